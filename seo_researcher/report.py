"""Structured report built from the terminal pipeline context.

Everything here is a pure function of the context: no I/O, no mutation.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import PipelineError
from .pipeline.context import SeoContext

STATUS_COMPLETED = "completed"
STATUS_PARTIAL = "partial"

# Lighthouse's own rating bands
GOOD_SCORE = 0.9
NEEDS_IMPROVEMENT_SCORE = 0.5

MAX_LISTED_KEYWORDS = 15
MAX_LISTED_ISSUES = 5


def rate_score(score: float) -> str:
    if score >= GOOD_SCORE:
        return "good"
    if score >= NEEDS_IMPROVEMENT_SCORE:
        return "needs improvement"
    return "poor"


def collect_findings(context: SeoContext) -> List[str]:
    """Derive key findings from keywords, audit scores, issues and related questions."""
    findings: List[str] = []

    if context.keywords:
        top = sorted(context.keywords)[:MAX_LISTED_KEYWORDS]
        findings.append(
            f"{len(context.keywords)} keyword candidates found in search results: "
            + ", ".join(top)
        )
    elif context.has("search_results"):
        findings.append("No keyword candidates found in search results")

    for category, score in context.audit_scores.items():
        findings.append(f"{category} score {round(score * 100)}/100 ({rate_score(score)})")

    for issue in context.audit_issues[:MAX_LISTED_ISSUES]:
        detail = f" ({issue.display_value})" if issue.display_value else ""
        findings.append(f"Failing audit: {issue.title}{detail}")

    if context.related_questions:
        findings.append(f"{len(context.related_questions)} related questions people also ask")

    return findings


@dataclass
class Report:
    target: str
    status: str
    key_findings: List[str]
    keywords: List[str] = field(default_factory=list)
    audit_scores: Dict[str, float] = field(default_factory=dict)
    top_issues: List[Dict[str, Any]] = field(default_factory=list)
    related_questions: List[str] = field(default_factory=list)
    loading_experience: Optional[Dict[str, str]] = None
    log: List[str] = field(default_factory=list)
    failed_stage: Optional[str] = None
    failed_stage_index: Optional[int] = None
    error: Optional[str] = None
    narrative: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.status == STATUS_COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "status": self.status,
            "key_findings": list(self.key_findings),
            "keywords": list(self.keywords),
            "audit_scores": dict(self.audit_scores),
            "top_issues": list(self.top_issues),
            "related_questions": list(self.related_questions),
            "loading_experience": self.loading_experience,
            "log": list(self.log),
            "failed_stage": self.failed_stage,
            "failed_stage_index": self.failed_stage_index,
            "error": self.error,
            "narrative": self.narrative,
        }

    def to_markdown(self) -> str:
        lines = [f"# SEO report: {self.target}", ""]
        if self.completed:
            lines.append("Status: completed")
        else:
            lines.append(
                f"Status: partial (halted at stage {self.failed_stage_index} "
                f"'{self.failed_stage}': {self.error})"
            )

        lines += ["", "## Key findings", ""]
        lines += [f"- {finding}" for finding in self.key_findings] or ["- None"]

        if self.audit_scores:
            lines += ["", "## Scores", "", "| Category | Score |", "|---|---|"]
            lines += [
                f"| {category} | {round(score * 100)} |"
                for category, score in self.audit_scores.items()
            ]

        if self.top_issues:
            lines += ["", "## Top issues", ""]
            for issue in self.top_issues:
                detail = f" - {issue['display_value']}" if issue.get("display_value") else ""
                lines.append(f"- **{issue['title']}** (score {issue['score']}){detail}")

        if self.related_questions:
            lines += ["", "## Related questions", ""]
            lines += [f"- {question}" for question in self.related_questions]

        if self.narrative:
            lines += ["", "## Analyst summary", "", self.narrative.strip()]

        return "\n".join(lines) + "\n"


def summarize(context: SeoContext, error: Optional[PipelineError] = None) -> Report:
    """
    Build a report from the final context.

    Args:
        context: Context after the pipeline terminated
        error: The run's ``PipelineError`` when it did not complete

    Returns:
        Report marked ``completed``, or ``partial`` with the failing stage
    """
    findings = list(context.findings) if context.has("findings") else collect_findings(context)

    return Report(
        target=context.target,
        status=STATUS_PARTIAL if error is not None else STATUS_COMPLETED,
        key_findings=findings,
        keywords=sorted(context.keywords),
        audit_scores=dict(context.audit_scores),
        top_issues=[issue.to_dict() for issue in context.audit_issues[:MAX_LISTED_ISSUES]],
        related_questions=[q.question for q in context.related_questions],
        loading_experience=(
            context.loading_experience.to_dict() if context.loading_experience else None
        ),
        log=list(context.log),
        failed_stage=error.stage_name if error is not None else None,
        failed_stage_index=error.stage_index if error is not None else None,
        error=str(error.cause) if error is not None else None,
    )
