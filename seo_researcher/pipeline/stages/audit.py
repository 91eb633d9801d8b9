"""Technical audit stage backed by the Lighthouse fetcher."""

from typing import Any, Dict, Iterable, Optional

from ...fetchers.lighthouse import LighthouseFetcher
from ..base import MergeMode, StageDescriptor
from ..context import SeoContext

AUDIT_STAGE = "technical_audit"


def audit_url(target: str) -> str:
    """PageSpeed needs an absolute URL; bare hosts get an https scheme."""
    if "://" in target:
        return target
    return f"https://{target}"


def build_audit_stage(
    fetcher: LighthouseFetcher,
    strategy: Optional[str] = None,
    categories: Optional[Iterable[str]] = None,
    locale: Optional[str] = None,
) -> StageDescriptor:
    """Lighthouse audit of the target; scores and issues replace earlier values."""
    categories = tuple(categories) if categories else None

    def params(context: SeoContext) -> Dict[str, Any]:
        return {
            "url": audit_url(context.target),
            "strategy": strategy,
            "categories": categories,
            "locale": locale,
        }

    return StageDescriptor(
        name=AUDIT_STAGE,
        fetcher=fetcher,
        params=params,
        merge_strategy={
            "audit_scores": MergeMode.OVERWRITE,
            "audit_issues": MergeMode.OVERWRITE,
            "loading_experience": MergeMode.OVERWRITE,
        },
    )
