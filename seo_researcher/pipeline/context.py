"""Shared context carried through the SEO pipeline stages."""

from dataclasses import dataclass, field
from numbers import Real
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Set

from ..errors import ContextError
from ..fetchers.lighthouse import IssueRecord, LoadingExperience
from ..fetchers.serp import RelatedQuestion, SearchResultRecord

# Fields a stage may write through a merge. ``target`` and ``log`` are not
# mergeable: the target is fixed at creation and the log is append-only.
MERGEABLE_FIELDS = (
    "keywords",
    "search_results",
    "related_questions",
    "search_metadata",
    "audit_scores",
    "audit_issues",
    "loading_experience",
    "findings",
)


@dataclass
class SeoContext:
    """
    Mutable state threaded through one pipeline run.

    Created with only ``target`` set. Stages write fields through ``apply``;
    a written field can be replaced or extended but never removed. Once the
    run terminates the context is frozen and rejects every write.
    """

    target: str
    keywords: Set[str] = field(default_factory=set)
    search_results: List[SearchResultRecord] = field(default_factory=list)
    related_questions: List[RelatedQuestion] = field(default_factory=list)
    search_metadata: Dict[str, Any] = field(default_factory=dict)
    audit_scores: Dict[str, float] = field(default_factory=dict)
    audit_issues: List[IssueRecord] = field(default_factory=list)
    loading_experience: Optional[LoadingExperience] = None
    findings: List[str] = field(default_factory=list)
    log: List[str] = field(default_factory=list)

    _written: Set[str] = field(default_factory=set, init=False, repr=False, compare=False)
    _claimed: bool = field(default=False, init=False, repr=False, compare=False)
    _frozen: bool = field(default=False, init=False, repr=False, compare=False)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False):
            raise ContextError(f"Context for {self.target} is read-only; cannot set {name}")
        super().__setattr__(name, value)

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def written_fields(self) -> Set[str]:
        """Names of the fields written by stages so far."""
        return set(self._written)

    def get(self, name: str, default: Any = None) -> Any:
        """Get a mergeable field's value, or ``default`` if no stage wrote it."""
        if name not in self._written:
            return default
        return getattr(self, name)

    def has(self, name: str) -> bool:
        return name in self._written

    def apply(self, values: Dict[str, Any]) -> None:
        """
        Assign already-merged field values.

        Every value is validated before any field is assigned, so a rejected
        update leaves the context unchanged.

        Raises:
            ContextError: Unknown field, removal attempt, out-of-range score or frozen context
        """
        if self._frozen:
            raise ContextError(f"Context for {self.target} is read-only")
        for name, value in values.items():
            if name not in MERGEABLE_FIELDS:
                raise ContextError(f"Unknown or non-mergeable context field: {name}")
            if value is None:
                raise ContextError(f"Context field {name} cannot be removed")
        if "audit_scores" in values:
            validate_scores(values["audit_scores"])

        for name, value in values.items():
            setattr(self, name, value)
            self._written.add(name)

    def append_log(self, line: str) -> None:
        if self._frozen:
            raise ContextError(f"Context for {self.target} is read-only")
        self.log.append(line)

    def claim(self) -> None:
        """Bind this context to a pipeline run; a context serves exactly one run."""
        if self._claimed:
            raise ContextError(
                f"Context for {self.target} already belongs to a pipeline run"
            )
        self._claimed = True

    def freeze(self) -> None:
        """Make the context read-only, containers included."""
        set_field = super().__setattr__
        set_field("keywords", frozenset(self.keywords))
        for name in ("search_results", "related_questions", "audit_issues", "findings", "log"):
            set_field(name, tuple(getattr(self, name)))
        for name in ("search_metadata", "audit_scores"):
            set_field(name, MappingProxyType(dict(getattr(self, name))))
        set_field("_frozen", True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dict (for serialization)."""
        return {
            "target": self.target,
            "keywords": sorted(self.keywords),
            "search_results": [r.to_dict() for r in self.search_results],
            "related_questions": [q.to_dict() for q in self.related_questions],
            "search_metadata": dict(self.search_metadata),
            "audit_scores": dict(self.audit_scores),
            "audit_issues": [i.to_dict() for i in self.audit_issues],
            "loading_experience": (
                self.loading_experience.to_dict() if self.loading_experience else None
            ),
            "findings": list(self.findings),
            "log": list(self.log),
        }


def validate_scores(scores: Dict[str, Any]) -> None:
    for category, score in scores.items():
        if not isinstance(score, Real) or isinstance(score, bool) or not 0 <= score <= 1:
            raise ContextError(f"Score for {category} must be in [0, 1], got {score!r}")
