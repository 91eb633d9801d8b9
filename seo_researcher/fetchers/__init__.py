"""External data fetchers for keyword research and technical audits."""

from .base import BaseFetcher, FetcherConfig, FetchResult
from .lighthouse import AuditFetchResult, IssueRecord, LighthouseFetcher, LoadingExperience
from .serp import RelatedQuestion, SearchResultRecord, SerpFetchResult, SerpKeywordsFetcher

__all__ = [
    "BaseFetcher",
    "FetcherConfig",
    "FetchResult",
    "SerpKeywordsFetcher",
    "SerpFetchResult",
    "SearchResultRecord",
    "RelatedQuestion",
    "LighthouseFetcher",
    "AuditFetchResult",
    "IssueRecord",
    "LoadingExperience",
]
