"""HTTP client construction using httpx with connection pooling.

One ``httpx.AsyncClient`` is shared by every fetcher of a pipeline run so
the search and audit calls reuse connections. Settings are taken from an
explicit ``HttpClientConfig`` rather than read from the environment here.

Usage:
    async with http_client(settings.http) as client:
        serp = SerpKeywordsFetcher(settings.serp_fetcher_config(), client)
        ...

Environment Variables (read once by ``seo_researcher.settings``):
    HTTP_MAX_CONNECTIONS: Max connections per client (default: 20)
    HTTP_MAX_KEEPALIVE_CONNECTIONS: Max keepalive connections (default: 10)
    HTTP_KEEPALIVE_EXPIRY: Keepalive expiry in seconds (default: 5.0)
    HTTP_CONNECT_TIMEOUT: Connection timeout in seconds (default: 10.0)
    HTTP_READ_TIMEOUT: Read timeout in seconds (default: 60.0)
    HTTP_WRITE_TIMEOUT: Write timeout in seconds (default: 30.0)
    HTTP_POOL_TIMEOUT: Pool acquire timeout in seconds (default: 10.0)
    HTTP2_ENABLED: Enable HTTP/2 support (default: false)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Mapping

import httpx

logger = logging.getLogger(__name__)


class HttpClientConfig:
    """Connection pool limits, timeouts and protocol options for httpx.

    PageSpeed audits routinely take 20-40 seconds, so the read timeout
    default is higher than for typical JSON APIs.
    """

    def __init__(
        self,
        max_connections: int = 20,
        max_keepalive_connections: int = 10,
        keepalive_expiry: float = 5.0,
        connect_timeout: float = 10.0,
        read_timeout: float = 60.0,
        write_timeout: float = 30.0,
        pool_timeout: float = 10.0,
        http2_enabled: bool = False,
    ):
        self.max_connections = max_connections
        self.max_keepalive_connections = max_keepalive_connections
        self.keepalive_expiry = keepalive_expiry
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        self.pool_timeout = pool_timeout
        self.http2_enabled = http2_enabled

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> "HttpClientConfig":
        """Build a config from an environment mapping, falling back to defaults."""
        defaults = cls()
        return cls(
            max_connections=int(env.get("HTTP_MAX_CONNECTIONS", defaults.max_connections)),
            max_keepalive_connections=int(
                env.get("HTTP_MAX_KEEPALIVE_CONNECTIONS", defaults.max_keepalive_connections)
            ),
            keepalive_expiry=float(env.get("HTTP_KEEPALIVE_EXPIRY", defaults.keepalive_expiry)),
            connect_timeout=float(env.get("HTTP_CONNECT_TIMEOUT", defaults.connect_timeout)),
            read_timeout=float(env.get("HTTP_READ_TIMEOUT", defaults.read_timeout)),
            write_timeout=float(env.get("HTTP_WRITE_TIMEOUT", defaults.write_timeout)),
            pool_timeout=float(env.get("HTTP_POOL_TIMEOUT", defaults.pool_timeout)),
            http2_enabled=str(env.get("HTTP2_ENABLED", "false")).lower() == "true",
        )

    def get_limits(self) -> dict:
        """
        Get httpx Limits configuration.

        Returns:
            dict: Configuration dict for httpx.Limits()
        """
        return {
            "max_connections": self.max_connections,
            "max_keepalive_connections": self.max_keepalive_connections,
            "keepalive_expiry": self.keepalive_expiry,
        }

    def get_timeout(self) -> dict:
        """
        Get httpx Timeout configuration.

        Returns:
            dict: Configuration dict for httpx.Timeout()
        """
        return {
            "connect": self.connect_timeout,
            "read": self.read_timeout,
            "write": self.write_timeout,
            "pool": self.pool_timeout,
        }

    def __repr__(self) -> str:
        return (
            f"HttpClientConfig("
            f"max_connections={self.max_connections}, "
            f"max_keepalive={self.max_keepalive_connections}, "
            f"connect_timeout={self.connect_timeout}s, "
            f"read_timeout={self.read_timeout}s, "
            f"http2={self.http2_enabled})"
        )


def create_http_client(
    config: HttpClientConfig, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    """
    Create a pooled ``httpx.AsyncClient``.

    Args:
        config: Pool and timeout settings
        transport: Optional transport override (``httpx.MockTransport`` in tests)

    Returns:
        httpx.AsyncClient: A new client; the caller owns it and must close it
    """
    logger.info(f"Creating HTTP client with config: {config}")
    kwargs = {
        "limits": httpx.Limits(**config.get_limits()),
        "timeout": httpx.Timeout(**config.get_timeout()),
        "http2": config.http2_enabled,
        "follow_redirects": True,
    }
    if transport is not None:
        kwargs["transport"] = transport
    return httpx.AsyncClient(**kwargs)


@asynccontextmanager
async def http_client(
    config: HttpClientConfig, transport: httpx.AsyncBaseTransport | None = None
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield a pooled client and close it when the block exits."""
    client = create_http_client(config, transport=transport)
    try:
        yield client
    finally:
        await client.aclose()
        logger.info("✓ HTTP client closed")
