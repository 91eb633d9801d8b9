"""Google PageSpeed Insights (Lighthouse) audit fetcher."""

import json
import logging
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..errors import SchemaError
from .base import BaseFetcher, FetchResult, QueryParams, require_mapping

logger = logging.getLogger(__name__)

STRATEGIES = ("mobile", "desktop")
CATEGORIES = ("performance", "accessibility", "best-practices", "seo", "pwa")
DEFAULT_CATEGORIES = ("performance", "accessibility", "seo")

# Lighthouse category id -> audit_scores key
SCORE_KEYS = {
    "performance": "performance",
    "accessibility": "accessibility",
    "best-practices": "best_practices",
    "seo": "seo",
    "pwa": "pwa",
}


@dataclass
class IssueRecord:
    """A Lighthouse check that is not passing yet."""

    id: str
    title: str
    description: str
    score: float
    display_value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "score": self.score,
            "display_value": self.display_value,
        }


@dataclass
class LoadingExperience:
    """Field-data (CrUX) categories reported alongside the lab audit."""

    first_contentful_paint: str = "N/A"
    first_input_delay: str = "N/A"
    overall_category: str = "N/A"

    def to_dict(self) -> Dict[str, str]:
        return {
            "first_contentful_paint": self.first_contentful_paint,
            "first_input_delay": self.first_input_delay,
            "overall_category": self.overall_category,
        }


@dataclass
class AuditFetchResult(FetchResult):
    scores: Dict[str, float]
    issues: List[IssueRecord] = field(default_factory=list)
    loading_experience: LoadingExperience = field(default_factory=LoadingExperience)

    def to_fragment(self) -> Dict[str, Any]:
        return {
            "audit_scores": dict(self.scores),
            "audit_issues": list(self.issues),
            "loading_experience": self.loading_experience,
        }


def _is_score(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def parse_scores(categories: Mapping[str, Any], raw: str) -> Dict[str, float]:
    """
    Map raw category scores to ``audit_scores``; missing or null categories read as 0.

    Raises:
        SchemaError: If a score is not a number in [0, 1]
    """
    scores: Dict[str, float] = {}
    for category_id, key in SCORE_KEYS.items():
        entry = categories.get(category_id)
        score = entry.get("score") if isinstance(entry, Mapping) else None
        if score is None:
            scores[key] = 0
            continue
        if not _is_score(score) or not 0 <= score <= 1:
            raise SchemaError(
                f"Lighthouse category {category_id!r} has invalid score {score!r}",
                raw_body=raw,
            )
        scores[key] = score
    return scores


def collect_issues(audits: Mapping[str, Any]) -> List[IssueRecord]:
    """
    Keep audits with a non-null score below 1, most severe first.

    ``sorted`` is stable, so equal scores keep the payload's iteration order.
    """
    issues = []
    for audit_id, audit in audits.items():
        if not isinstance(audit, Mapping):
            continue
        score = audit.get("score")
        if not _is_score(score) or score >= 1:
            continue
        issues.append(
            IssueRecord(
                id=audit_id,
                title=audit.get("title") or audit_id,
                description=audit.get("description") or "",
                score=score,
                display_value=audit.get("displayValue"),
            )
        )
    return sorted(issues, key=lambda issue: issue.score)


def parse_loading_experience(data: Any) -> LoadingExperience:
    if not isinstance(data, Mapping):
        return LoadingExperience()
    metrics = data.get("metrics") or {}

    def category(metric: str) -> str:
        entry = metrics.get(metric)
        if isinstance(entry, Mapping) and entry.get("category"):
            return entry["category"]
        return "N/A"

    return LoadingExperience(
        first_contentful_paint=category("FIRST_CONTENTFUL_PAINT_MS"),
        first_input_delay=category("FIRST_INPUT_DELAY_MS"),
        overall_category=data.get("overall_category") or "N/A",
    )


def parse_audit_response(data: Any) -> AuditFetchResult:
    """
    Reshape a raw PageSpeed payload into an ``AuditFetchResult``.

    Raises:
        SchemaError: If ``lighthouseResult`` is missing or a score is invalid
    """
    raw = json.dumps(data, default=str)
    data = require_mapping(data, "Lighthouse API response", raw=raw)
    lighthouse = data.get("lighthouseResult")
    if not isinstance(lighthouse, Mapping):
        raise SchemaError("Lighthouse API response missing 'lighthouseResult'", raw_body=raw)

    categories = lighthouse.get("categories") or {}
    audits = lighthouse.get("audits") or {}
    if not isinstance(categories, Mapping) or not isinstance(audits, Mapping):
        raise SchemaError(
            "Lighthouse 'categories' and 'audits' must be JSON objects", raw_body=raw
        )

    return AuditFetchResult(
        scores=parse_scores(categories, raw),
        issues=collect_issues(audits),
        loading_experience=parse_loading_experience(data.get("loadingExperience")),
    )


def build_audit_params(
    url: str, key: str, strategy: str, categories: Iterable[str], locale: str
) -> List[Tuple[str, Any]]:
    """Query parameters with one repeated ``category`` entry per category."""
    params: List[Tuple[str, Any]] = [("url", url), ("key", key), ("strategy", strategy)]
    params.extend(("category", category) for category in categories)
    params.append(("locale", locale))
    return params


class LighthouseFetcher(BaseFetcher):
    """Technical audit via the PageSpeed Insights API."""

    async def fetch(self, params: QueryParams) -> AuditFetchResult:
        """
        Run a Lighthouse audit for ``params["url"]``.

        Args:
            params: ``url`` (required), ``strategy``, ``categories``, ``locale``

        Returns:
            AuditFetchResult with scores, sorted issues and loading experience
        """
        url = params.get("url")
        if not url:
            raise ValueError("Lighthouse fetch requires a 'url' parameter")

        strategy = self.option(params, "strategy") or "mobile"
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown Lighthouse strategy: {strategy}")

        requested = self.option(params, "categories") or DEFAULT_CATEGORIES
        categories = [c for c in CATEGORIES if c in set(requested)]
        unknown = set(requested) - set(CATEGORIES)
        if unknown:
            raise ValueError(f"Unknown Lighthouse categories: {sorted(unknown)}")

        locale = self.option(params, "locale") or "en"

        logger.info(f"🔦 Running Lighthouse audit ({strategy}) for {url}: {categories}")
        data = await self._get_json(
            build_audit_params(url, self.config.api_key, strategy, categories, locale)
        )
        result = parse_audit_response(data)
        logger.info(f"  ✅ Scores: {result.scores}, {len(result.issues)} failing audits")
        return result

    def get_fetcher_name(self) -> str:
        return "Lighthouse"
