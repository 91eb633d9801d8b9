"""Startup configuration: YAML defaults plus credentials from the environment.

Settings are built once by ``load_settings`` and passed explicitly into the
fetchers and the narrative writer. Nothing else in the package reads the
environment.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .errors import ConfigError
from .fetchers.base import FetcherConfig
from .fetchers.lighthouse import CATEGORIES, STRATEGIES
from .http_pool import HttpClientConfig

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "seo.yaml"

SERP_API_KEY_ENV = "SCRAPINGDOG_API_KEY"
AUDIT_API_KEY_ENV = "GOOGLE_API_KEY"
WRITER_API_KEY_ENV = "OPENAI_API_KEY"


@dataclass(frozen=True)
class SerpSettings:
    base_url: str = "http://api.scrapingdog.com/google"
    country: str = "us"
    language: str = "en"


@dataclass(frozen=True)
class AuditSettings:
    base_url: str = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
    strategy: str = "mobile"
    categories: Tuple[str, ...] = ("performance", "accessibility", "seo")
    locale: str = "en"


@dataclass(frozen=True)
class WriterSettings:
    model: str = "gpt-4.1-mini"
    base_url: Optional[str] = None
    temperature: float = 0.3
    max_tokens: int = 2000


@dataclass(frozen=True)
class Settings:
    serp_api_key: str
    audit_api_key: str
    writer_api_key: Optional[str] = None
    serp: SerpSettings = field(default_factory=SerpSettings)
    audit: AuditSettings = field(default_factory=AuditSettings)
    writer: WriterSettings = field(default_factory=WriterSettings)
    http: HttpClientConfig = field(default_factory=HttpClientConfig)

    def serp_fetcher_config(self) -> FetcherConfig:
        return FetcherConfig(
            fetcher_id="serp",
            api_key=self.serp_api_key,
            base_url=self.serp.base_url,
            defaults={"country": self.serp.country, "language": self.serp.language},
        )

    def audit_fetcher_config(self) -> FetcherConfig:
        return FetcherConfig(
            fetcher_id="lighthouse",
            api_key=self.audit_api_key,
            base_url=self.audit.base_url,
            defaults={
                "strategy": self.audit.strategy,
                "categories": self.audit.categories,
                "locale": self.audit.locale,
            },
        )


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path) as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning(f"⚠️  Config not found: {path} (using defaults)")
        return {}


def _parse_serp(data: Dict[str, Any]) -> SerpSettings:
    defaults = SerpSettings()
    return SerpSettings(
        base_url=data.get("base_url", defaults.base_url),
        country=data.get("country", defaults.country),
        language=data.get("language", defaults.language),
    )


def _parse_audit(data: Dict[str, Any]) -> AuditSettings:
    defaults = AuditSettings()
    return AuditSettings(
        base_url=data.get("base_url", defaults.base_url),
        strategy=data.get("strategy", defaults.strategy),
        categories=tuple(data.get("categories", defaults.categories)),
        locale=data.get("locale", defaults.locale),
    )


def _parse_writer(data: Dict[str, Any]) -> WriterSettings:
    defaults = WriterSettings()
    return WriterSettings(
        model=data.get("model", defaults.model),
        base_url=data.get("base_url", defaults.base_url),
        temperature=float(data.get("temperature", defaults.temperature)),
        max_tokens=int(data.get("max_tokens", defaults.max_tokens)),
    )


def load_settings(
    env: Optional[Mapping[str, str]] = None,
    config_path: Optional[Path] = None,
    require_writer: bool = False,
) -> Settings:
    """
    Build the process-wide settings.

    Args:
        env: Environment mapping (defaults to ``os.environ``)
        config_path: YAML defaults file (defaults to ``SEO_CONFIG_PATH`` or config/seo.yaml)
        require_writer: Whether the narrative writer credential is required

    Returns:
        Settings instance

    Raises:
        ConfigError: If a required credential is missing or a value is invalid
    """
    env = os.environ if env is None else env

    required_keys = [SERP_API_KEY_ENV, AUDIT_API_KEY_ENV]
    if require_writer:
        required_keys.append(WRITER_API_KEY_ENV)
    missing = [key for key in required_keys if not env.get(key)]

    if missing:
        raise ConfigError(f"Missing required environment variables: {missing}")

    path = Path(config_path or env.get("SEO_CONFIG_PATH") or DEFAULT_CONFIG_PATH)
    data = _load_yaml(path)

    try:
        settings = Settings(
            serp_api_key=env[SERP_API_KEY_ENV],
            audit_api_key=env[AUDIT_API_KEY_ENV],
            writer_api_key=env.get(WRITER_API_KEY_ENV) or None,
            serp=_parse_serp(data.get("serp") or {}),
            audit=_parse_audit(data.get("audit") or {}),
            writer=_parse_writer(data.get("writer") or {}),
            http=HttpClientConfig.from_env(env),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    if settings.audit.strategy not in STRATEGIES:
        raise ConfigError(
            f"Invalid audit strategy {settings.audit.strategy!r} in {path}"
        )
    unknown = sorted(set(settings.audit.categories) - set(CATEGORIES))
    if unknown:
        raise ConfigError(f"Invalid audit categories {unknown} in {path}")

    return settings
