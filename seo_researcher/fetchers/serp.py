"""Scrapingdog Google SERP fetcher (keyword research, requires API key)."""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

from ..errors import SchemaError
from .base import BaseFetcher, FetchResult, QueryParams, as_list, require_mapping

logger = logging.getLogger(__name__)

KEYWORD_STOPLIST = frozenset({"https", "www", "com"})
MIN_KEYWORD_LENGTH = 4

_NON_WORD = re.compile(r"\W+", re.ASCII)


@dataclass
class SearchResultRecord:
    """One organic search result."""

    title: str
    displayed_link: str
    snippet: str
    link: str
    rank: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "displayed_link": self.displayed_link,
            "snippet": self.snippet,
            "link": self.link,
            "rank": self.rank,
        }


@dataclass
class RelatedQuestion:
    """A "people also ask" entry."""

    question: str
    answers: str = ""
    id: Optional[str] = None
    rank: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question": self.question,
            "answers": self.answers,
            "id": self.id,
            "rank": self.rank,
        }


@dataclass
class SerpFetchResult(FetchResult):
    keywords: Set[str]
    search_results: List[SearchResultRecord]
    related_questions: List[RelatedQuestion] = field(default_factory=list)
    search_metadata: Dict[str, Any] = field(default_factory=dict)

    def to_fragment(self) -> Dict[str, Any]:
        return {
            "keywords": set(self.keywords),
            "search_results": list(self.search_results),
            "related_questions": list(self.related_questions),
            "search_metadata": dict(self.search_metadata),
        }


def build_search_query(url: str, query: Optional[str] = None) -> str:
    """An explicit free-text query wins; otherwise search within the site."""
    if query:
        return query
    return f"site:{url}"


def extract_keywords(results: Iterable[SearchResultRecord]) -> Set[str]:
    """
    Collect keyword candidates from result titles and snippets.

    Text is lower-cased and split on anything outside [A-Za-z0-9_], so
    accented letters act as separators. Tokens shorter
    than four characters and URL noise ("https", "www", "com") are dropped.
    """
    keywords: Set[str] = set()
    for result in results:
        text = f"{result.title} {result.snippet}".lower()
        for word in _NON_WORD.split(text):
            if len(word) >= MIN_KEYWORD_LENGTH and word not in KEYWORD_STOPLIST:
                keywords.add(word)
    return keywords


def _parse_result(item: Any) -> SearchResultRecord:
    item = item if isinstance(item, dict) else {}
    return SearchResultRecord(
        title=item.get("title") or "",
        displayed_link=item.get("displayed_link") or "",
        snippet=item.get("snippet") or "",
        link=item.get("link") or "",
        rank=item.get("rank"),
    )


def _parse_question(item: Any) -> Optional[RelatedQuestion]:
    if not isinstance(item, dict) or not item.get("question"):
        return None
    return RelatedQuestion(
        question=item["question"],
        answers=item.get("answers") or "",
        id=item.get("id"),
        rank=item.get("rank"),
    )


def parse_serp_response(data: Any) -> SerpFetchResult:
    """
    Reshape a raw SERP payload into a ``SerpFetchResult``.

    Raises:
        SchemaError: If the payload has no ``organic_results`` list
    """
    data = require_mapping(data, "SERP API response", raw=json.dumps(data, default=str))
    organic = data.get("organic_results")
    if not isinstance(organic, list):
        raise SchemaError(
            "SERP API response missing 'organic_results'",
            raw_body=json.dumps(data, default=str),
        )

    results = [_parse_result(item) for item in organic]
    questions = [
        q for q in (_parse_question(item) for item in as_list(data.get("people_also_ask"))) if q
    ]

    metadata: Dict[str, Any] = {}
    for key in ("search_information", "menu_items", "pagination"):
        if data.get(key) is not None:
            metadata[key] = data[key]

    return SerpFetchResult(
        keywords=extract_keywords(results),
        search_results=results,
        related_questions=questions,
        search_metadata=metadata,
    )


class SerpKeywordsFetcher(BaseFetcher):
    """Keyword and ranking data from the Google SERP API."""

    async def fetch(self, params: QueryParams) -> SerpFetchResult:
        """
        Search for the target site and extract keyword candidates.

        Args:
            params: ``url`` (required), ``query``, ``country``, ``language``

        Returns:
            SerpFetchResult with keywords, results and related questions
        """
        url = params.get("url")
        if not url:
            raise ValueError("SERP fetch requires a 'url' parameter")

        search_query = build_search_query(url, params.get("query"))
        wire_params = {
            "api_key": self.config.api_key,
            "query": search_query,
            "country": self.option(params, "country") or "us",
            "language": self.option(params, "language") or "en",
        }

        logger.info(f"🔍 Searching with {self.get_fetcher_name()}: {search_query}")
        data = await self._get_json(wire_params)
        result = parse_serp_response(data)
        logger.info(
            f"  ✅ {len(result.search_results)} results, "
            f"{len(result.keywords)} keyword candidates"
        )
        return result

    def get_fetcher_name(self) -> str:
        return "SERP"
