"""Integration tests for the SEO research pipeline (seo_researcher/pipeline/seo_pipeline.py).

This module tests:
- The default stage order and wiring of per-run options
- A full run against mocked SERP and PageSpeed endpoints
- Halting on an audit failure with a partial context and report
- Optional narrative generation
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from seo_researcher.errors import PipelineError, SchemaError, TransportError
from seo_researcher.pipeline.seo_pipeline import (
    AnalysisOptions,
    SeoResearchPipeline,
    analyze,
)
from seo_researcher.pipeline.stages import AUDIT_STAGE, KEYWORD_STAGE, SUMMARY_STAGE
from seo_researcher.report import STATUS_COMPLETED, STATUS_PARTIAL
from seo_researcher.writer import SummaryWriter
from tests.fixtures.test_helpers import make_client, routed_transport

SERP_HOST = "api.scrapingdog.com"
AUDIT_HOST = "www.googleapis.com"


@pytest.fixture
def healthy_transport(serp_payload, lighthouse_payload):
    return routed_transport(
        {
            SERP_HOST: httpx.Response(200, json=serp_payload),
            AUDIT_HOST: httpx.Response(200, json=lighthouse_payload),
        }
    )


def _mock_openai(content="## Executive summary\n\nFix LCP first."):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
        )
    )
    return client


# ==================== Wiring ====================


@pytest.mark.unit
def test_default_stage_order(settings, healthy_transport):
    pipeline = SeoResearchPipeline(settings, make_client(healthy_transport))

    assert len(pipeline.pipeline) == 3
    assert repr(pipeline.pipeline) == (
        f"Pipeline(stages=['{KEYWORD_STAGE}', '{AUDIT_STAGE}', '{SUMMARY_STAGE}'])"
    )


# ==================== Full Run ====================


@pytest.mark.integration
class TestFullRun:
    @pytest.mark.asyncio
    async def test_completed_report(self, settings, healthy_transport):
        pipeline = SeoResearchPipeline(settings, make_client(healthy_transport))

        report = await pipeline.run("example.com")

        assert report.status == STATUS_COMPLETED
        assert report.keywords == ["bakery", "best", "delivery", "shop"]
        assert report.audit_scores["performance"] == 0.42
        assert report.top_issues[0]["id"] == "cumulative-layout-shift"
        assert report.key_findings[0].startswith("4 keyword candidates")
        assert report.narrative is None
        assert [line.split()[1:] for line in report.log] == [
            [KEYWORD_STAGE, "success"],
            [AUDIT_STAGE, "success"],
            [SUMMARY_STAGE, "success"],
        ]

    @pytest.mark.asyncio
    async def test_requests_in_stage_order(self, settings, healthy_transport):
        pipeline = SeoResearchPipeline(settings, make_client(healthy_transport))

        await pipeline.run("example.com")

        hosts = [request.url.host for request in healthy_transport.requests]
        assert hosts == [SERP_HOST, AUDIT_HOST]
        assert healthy_transport.requests[0].url.params["query"] == "site:example.com"
        assert healthy_transport.requests[1].url.params["url"] == "https://example.com"

    @pytest.mark.asyncio
    async def test_options_reach_both_fetchers(self, settings, healthy_transport):
        options = AnalysisOptions(
            query="bakery london",
            country="uk",
            strategy="desktop",
            categories=("seo",),
        )
        pipeline = SeoResearchPipeline(settings, make_client(healthy_transport), options=options)

        await pipeline.run("https://example.com/shop")

        serp_params = healthy_transport.requests[0].url.params
        audit_params = healthy_transport.requests[1].url.params
        assert serp_params["query"] == "bakery london"
        assert serp_params["country"] == "uk"
        assert serp_params["language"] == "en"
        assert audit_params["url"] == "https://example.com/shop"
        assert audit_params["strategy"] == "desktop"
        assert audit_params.get_list("category") == ["seo"]

    @pytest.mark.asyncio
    async def test_narrative_added_by_writer(self, settings, healthy_transport):
        openai_client = _mock_openai()
        writer = SummaryWriter("test-openai-key", settings.writer, client=openai_client)
        pipeline = SeoResearchPipeline(settings, make_client(healthy_transport), writer=writer)

        report = await pipeline.run("example.com")

        assert report.narrative.startswith("## Executive summary")
        kwargs = openai_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == settings.writer.model
        assert "example.com" in kwargs["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_analyze_owns_client(self, settings, healthy_transport):
        report = await analyze("example.com", settings, transport=healthy_transport)

        assert report.completed
        assert len(healthy_transport.requests) == 2


# ==================== Failures ====================


@pytest.mark.integration
class TestFailures:
    @pytest.mark.asyncio
    async def test_audit_http_500_halts_with_partial_context(self, settings, serp_payload):
        transport = routed_transport(
            {
                SERP_HOST: httpx.Response(200, json=serp_payload),
                AUDIT_HOST: httpx.Response(500, json={"error": "backend error"}),
            }
        )
        writer_client = _mock_openai()
        writer = SummaryWriter("test-openai-key", settings.writer, client=writer_client)
        pipeline = SeoResearchPipeline(settings, make_client(transport), writer=writer)

        with pytest.raises(PipelineError) as exc_info:
            await pipeline.run("example.com")

        error = exc_info.value
        assert error.stage_index == 1
        assert error.stage_name == AUDIT_STAGE
        assert isinstance(error.cause, TransportError)
        assert error.cause.status_code == 500
        # keyword research survives, the audit contributes nothing
        assert error.context.keywords == {"best", "bakery", "shop", "delivery"}
        assert error.context.audit_scores == {}
        assert error.context.frozen
        assert error.report.status == STATUS_PARTIAL
        assert error.report.failed_stage == AUDIT_STAGE
        assert error.report.narrative is None
        writer_client.chat.completions.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_serp_schema_error_halts_at_first_stage(self, settings, lighthouse_payload):
        transport = routed_transport(
            {
                SERP_HOST: httpx.Response(200, json={"message": "Invalid API key"}),
                AUDIT_HOST: httpx.Response(200, json=lighthouse_payload),
            }
        )
        pipeline = SeoResearchPipeline(settings, make_client(transport))

        with pytest.raises(PipelineError) as exc_info:
            await pipeline.run("example.com")

        assert exc_info.value.stage_index == 0
        assert isinstance(exc_info.value.cause, SchemaError)
        assert [request.url.host for request in transport.requests] == [SERP_HOST]
        assert len(exc_info.value.context.log) == 1

    @pytest.mark.asyncio
    async def test_cancel_before_run(self, settings, healthy_transport):
        cancel = asyncio.Event()
        cancel.set()
        pipeline = SeoResearchPipeline(settings, make_client(healthy_transport))

        with pytest.raises(PipelineError) as exc_info:
            await pipeline.run("example.com", cancel_event=cancel)

        assert exc_info.value.stage_index == 0
        assert healthy_transport.requests == []
        assert exc_info.value.report.keywords == []
