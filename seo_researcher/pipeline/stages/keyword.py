"""Keyword research stage backed by the SERP fetcher."""

from typing import Any, Dict, Optional

from ...fetchers.serp import SerpKeywordsFetcher
from ..base import MergeMode, StageDescriptor
from ..context import SeoContext

KEYWORD_STAGE = "keyword_research"


def build_keyword_stage(
    fetcher: SerpKeywordsFetcher,
    query: Optional[str] = None,
    country: Optional[str] = None,
    language: Optional[str] = None,
) -> StageDescriptor:
    """
    Keyword research for the context's target.

    Keywords are unioned with any already in the context; search results,
    related questions and metadata are replaced.
    """

    def params(context: SeoContext) -> Dict[str, Any]:
        return {
            "url": context.target,
            "query": query,
            "country": country,
            "language": language,
        }

    return StageDescriptor(
        name=KEYWORD_STAGE,
        fetcher=fetcher,
        params=params,
        merge_strategy={
            "keywords": MergeMode.UNION,
            "search_results": MergeMode.OVERWRITE,
            "related_questions": MergeMode.OVERWRITE,
            "search_metadata": MergeMode.OVERWRITE,
        },
    )
