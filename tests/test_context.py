"""Unit tests for SeoContext (seo_researcher/pipeline/context.py)."""

import pytest

from seo_researcher.errors import ContextError
from seo_researcher.pipeline.context import SeoContext


@pytest.mark.unit
class TestSeoContext:
    def test_created_with_only_target(self):
        context = SeoContext(target="example.com")

        assert context.target == "example.com"
        assert context.keywords == set()
        assert context.log == []
        assert context.written_fields == set()
        assert context.get("keywords") is None
        assert not context.has("keywords")

    def test_apply_records_written_fields(self):
        context = SeoContext(target="example.com")

        context.apply({"keywords": {"bakery"}, "audit_scores": {"seo": 0.9}})

        assert context.keywords == {"bakery"}
        assert context.audit_scores == {"seo": 0.9}
        assert context.written_fields == {"keywords", "audit_scores"}
        assert context.get("keywords") == {"bakery"}

    def test_fields_cannot_be_removed(self):
        context = SeoContext(target="example.com")
        context.apply({"keywords": {"bakery"}})

        with pytest.raises(ContextError):
            context.apply({"keywords": None})

        assert context.keywords == {"bakery"}

    def test_target_and_log_are_not_mergeable(self):
        context = SeoContext(target="example.com")

        with pytest.raises(ContextError):
            context.apply({"target": "other.com"})
        with pytest.raises(ContextError):
            context.apply({"log": []})

    @pytest.mark.parametrize("score", [-0.1, 1.01, "0.5", True])
    def test_scores_outside_unit_interval_rejected(self, score):
        context = SeoContext(target="example.com")

        with pytest.raises(ContextError):
            context.apply({"audit_scores": {"performance": score}})

        assert context.audit_scores == {}

    def test_rejected_update_leaves_context_unchanged(self):
        context = SeoContext(target="example.com")

        with pytest.raises(ContextError):
            context.apply({"keywords": {"bakery"}, "audit_scores": {"seo": 2}})

        assert context.keywords == set()
        assert context.written_fields == set()

    def test_frozen_context_rejects_writes(self):
        context = SeoContext(target="example.com")
        context.append_log("line")
        context.freeze()

        assert context.frozen
        with pytest.raises(ContextError):
            context.apply({"keywords": {"bakery"}})
        with pytest.raises(ContextError):
            context.append_log("another")
        with pytest.raises(ContextError):
            context.keywords = {"bakery"}
        assert list(context.log) == ["line"]

    def test_claim_only_once(self):
        context = SeoContext(target="example.com")
        context.claim()

        with pytest.raises(ContextError):
            context.claim()

    def test_to_dict(self):
        context = SeoContext(target="example.com")
        context.apply({"keywords": {"shop", "bakery"}})

        data = context.to_dict()

        assert data["target"] == "example.com"
        assert data["keywords"] == ["bakery", "shop"]
        assert data["loading_experience"] is None

    def test_frozen_containers_are_immutable(self):
        context = SeoContext(target="example.com")
        context.apply(
            {
                "keywords": {"bakery"},
                "audit_scores": {"seo": 0.9},
                "search_metadata": {"pagination": {}},
                "findings": ["one"],
            }
        )
        context.append_log("line")
        context.freeze()

        with pytest.raises(TypeError):
            context.audit_scores["seo"] = 7.0
        with pytest.raises(TypeError):
            context.search_metadata["extra"] = 1
        with pytest.raises(AttributeError):
            context.keywords.add("late")
        with pytest.raises(AttributeError):
            context.log.clear()
        with pytest.raises(AttributeError):
            context.findings.append("two")

        assert context.audit_scores == {"seo": 0.9}
        assert context.keywords == {"bakery"}
        assert list(context.log) == ["line"]

    def test_frozen_context_still_serializes(self):
        context = SeoContext(target="example.com")
        context.apply({"keywords": {"shop", "bakery"}, "audit_scores": {"seo": 0.5}})
        context.freeze()

        data = context.to_dict()

        assert data["keywords"] == ["bakery", "shop"]
        assert data["audit_scores"] == {"seo": 0.5}
        assert data["log"] == []
