"""SEO research pipeline: keyword research, technical audit and summary."""

from .errors import (
    ConfigError,
    ContextError,
    FetchError,
    PipelineCancelled,
    PipelineError,
    SchemaError,
    SeoResearchError,
    TransportError,
)

__version__ = "0.1.0"

__all__ = [
    "SeoResearchError",
    "ConfigError",
    "ContextError",
    "FetchError",
    "TransportError",
    "SchemaError",
    "PipelineError",
    "PipelineCancelled",
]
