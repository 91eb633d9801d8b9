"""Stages of the SEO research pipeline."""

from .keyword import KEYWORD_STAGE, build_keyword_stage
from .audit import AUDIT_STAGE, build_audit_stage
from .summary import SUMMARY_STAGE, build_summary_stage

__all__ = [
    "KEYWORD_STAGE",
    "build_keyword_stage",
    "AUDIT_STAGE",
    "build_audit_stage",
    "SUMMARY_STAGE",
    "build_summary_stage",
]
