"""Sequential stage pipeline over a shared SEO context.

- Each stage is a static StageDescriptor: a fetcher plus params builder, or
  a pure transform over the context
- The StageExecutor merges stage output into the context all-or-nothing
- The Pipeline runs stages strictly in order and stops at the first failure
"""

from .context import SeoContext
from .base import (
    MergeMode,
    Pipeline,
    PipelineRun,
    PipelineStatus,
    StageDescriptor,
    StageExecutor,
)

__all__ = [
    "SeoContext",
    "MergeMode",
    "Pipeline",
    "PipelineRun",
    "PipelineStatus",
    "StageDescriptor",
    "StageExecutor",
]
