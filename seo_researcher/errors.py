"""Exception types shared across fetchers, stages and the pipeline."""

from typing import Any, Optional


class SeoResearchError(Exception):
    """Base class for all SEO researcher errors."""


class ConfigError(SeoResearchError):
    """A required credential or setting is missing or invalid."""


class ContextError(SeoResearchError):
    """An operation would violate a context invariant."""


class FetchError(SeoResearchError):
    """Base class for failures raised by external data fetchers."""


class TransportError(FetchError):
    """The endpoint returned a non-success status or the transport failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SchemaError(FetchError):
    """The response body does not match the documented contract."""

    def __init__(self, message: str, raw_body: Any = None):
        if raw_body is not None:
            message = f"{message}. Raw response: {raw_body}"
        super().__init__(message)
        self.raw_body = raw_body


class PipelineCancelled(SeoResearchError):
    """The pipeline was cancelled before a stage started."""


class PipelineError(SeoResearchError):
    """A stage failed and halted the pipeline.

    Carries the index and name of the failing stage, the original cause and
    the partial context accumulated by the stages that ran before it.
    """

    def __init__(
        self,
        stage_index: int,
        stage_name: str,
        cause: BaseException,
        context: Any = None,
    ):
        super().__init__(f"Stage {stage_index} ({stage_name}) failed: {cause}")
        self.stage_index = stage_index
        self.stage_name = stage_name
        self.cause = cause
        self.context = context
        self.report = None
