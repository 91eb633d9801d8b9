"""Summary stage: derives findings from the context, no external I/O."""

from typing import Any, Dict

from ...report import collect_findings
from ..base import MergeMode, StageDescriptor
from ..context import SeoContext

SUMMARY_STAGE = "summary"


def _summarize_findings(context: SeoContext) -> Dict[str, Any]:
    return {"findings": collect_findings(context)}


def build_summary_stage() -> StageDescriptor:
    return StageDescriptor(
        name=SUMMARY_STAGE,
        transform=_summarize_findings,
        merge_strategy={"findings": MergeMode.OVERWRITE},
    )
