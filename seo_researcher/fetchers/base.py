"""External data fetcher abstractions."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Tuple, Union

import httpx

from ..errors import SchemaError, TransportError

logger = logging.getLogger(__name__)

QueryParams = Mapping[str, Any]
WireParams = Union[Dict[str, Any], List[Tuple[str, Any]]]


@dataclass(frozen=True)
class FetcherConfig:
    """Configuration for a data fetcher."""

    fetcher_id: str
    api_key: str
    base_url: str
    defaults: Mapping[str, Any] = field(default_factory=dict)


class FetchResult(ABC):
    """Structured payload of one fetch, reshaped for merging into the context."""

    @abstractmethod
    def to_fragment(self) -> Dict[str, Any]:
        """Map context field names to the values this result contributes."""
        pass


class BaseFetcher(ABC):
    """Abstract base class for fetchers that perform one HTTP GET per call."""

    def __init__(self, config: FetcherConfig, client: httpx.AsyncClient):
        self.config = config
        self.client = client

    @abstractmethod
    async def fetch(self, params: QueryParams) -> FetchResult:
        """
        Perform exactly one request and reshape the response.

        Args:
            params: Recognized query options; unspecified ones take defaults

        Returns:
            FetchResult for the stage executor to merge

        Raises:
            TransportError: Non-success status or transport failure
            SchemaError: Response body violates the documented contract
        """
        pass

    @abstractmethod
    def get_fetcher_name(self) -> str:
        """Get fetcher display name."""
        pass

    def option(self, params: QueryParams, name: str) -> Any:
        """Return ``params[name]`` unless it is missing or None, else the configured default."""
        value = params.get(name)
        if value is None:
            return self.config.defaults.get(name)
        return value

    async def _get_json(self, params: WireParams) -> Any:
        """Issue the GET request and decode the JSON body, translating failures."""
        name = self.get_fetcher_name()
        try:
            response = await self.client.get(self.config.base_url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning(f"⚠️  {name} HTTP error: {status}")
            raise TransportError(
                f"{name} API request failed: {status} {e.response.reason_phrase}",
                status_code=status,
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"⚠️  {name} request failed: {e!r}")
            raise TransportError(f"{name} API request failed: {e!r}") from e

        try:
            return response.json()
        except ValueError as e:
            raise SchemaError(
                f"{name} API returned a body that is not JSON", raw_body=response.text
            ) from e


def require_mapping(data: Any, name: str, raw: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise SchemaError(f"{name} is not a JSON object", raw_body=raw)
    return data


def as_list(value: Any) -> Sequence[Any]:
    return value if isinstance(value, list) else []
