"""SEO research pipeline orchestration: keyword research -> technical audit -> summary."""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import httpx

from ..fetchers.lighthouse import LighthouseFetcher
from ..fetchers.serp import SerpKeywordsFetcher
from ..http_pool import http_client
from ..report import Report, summarize
from ..settings import Settings
from ..writer import SummaryWriter
from .base import Pipeline, StageDescriptor
from .context import SeoContext
from .stages.audit import build_audit_stage
from .stages.keyword import build_keyword_stage
from .stages.summary import build_summary_stage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisOptions:
    """Per-run overrides; None falls back to the configured defaults."""

    query: Optional[str] = None
    country: Optional[str] = None
    language: Optional[str] = None
    strategy: Optional[str] = None
    categories: Optional[Tuple[str, ...]] = None
    locale: Optional[str] = None


def build_default_stages(
    serp_fetcher: SerpKeywordsFetcher,
    audit_fetcher: LighthouseFetcher,
    options: AnalysisOptions | None = None,
) -> List[StageDescriptor]:
    """The fixed stage order: keyword research, technical audit, summary."""
    options = options or AnalysisOptions()
    return [
        build_keyword_stage(
            serp_fetcher,
            query=options.query,
            country=options.country,
            language=options.language,
        ),
        build_audit_stage(
            audit_fetcher,
            strategy=options.strategy,
            categories=options.categories,
            locale=options.locale,
        ),
        build_summary_stage(),
    ]


class SeoResearchPipeline:
    """
    SEO research pipeline for one target per run.

    Pipeline flow:
    1. Keyword research (SERP API: keywords, results, related questions)
    2. Technical audit (PageSpeed Insights: scores, failing audits)
    3. Summary (findings derived from the context)
    """

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient,
        options: AnalysisOptions | None = None,
        writer: SummaryWriter | None = None,
    ):
        self.settings = settings
        self.options = options or AnalysisOptions()
        self.writer = writer

        serp_fetcher = SerpKeywordsFetcher(settings.serp_fetcher_config(), client)
        audit_fetcher = LighthouseFetcher(settings.audit_fetcher_config(), client)
        self.pipeline = Pipeline(build_default_stages(serp_fetcher, audit_fetcher, self.options))

    async def run(self, target: str, cancel_event: asyncio.Event | None = None) -> Report:
        """
        Run the complete pipeline for ``target``.

        Args:
            target: Site to analyze (e.g. "example.com" or a full URL)
            cancel_event: Optional cooperative cancellation token

        Returns:
            Completed report (with narrative when a writer is configured)

        Raises:
            PipelineError: A stage failed; ``error.context`` holds the partial
                context and ``error.report`` the partial report
        """
        logger.info(f"🚀 SEO research pipeline for {target}: {self.pipeline}")

        context = SeoContext(target=target)
        run = await self.pipeline.execute(context, cancel_event=cancel_event)

        if not run.succeeded:
            run.error.report = summarize(context, run.error)
            raise run.error

        report = summarize(context)
        if self.writer is not None:
            report.narrative = await self.writer.write(report)
        return report


async def analyze(
    target: str,
    settings: Settings,
    options: AnalysisOptions | None = None,
    use_writer: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Report:
    """
    Convenience function: build the HTTP client and pipeline, run once.

    Args:
        target: Site to analyze
        settings: Startup settings
        options: Per-run overrides
        use_writer: Generate an LLM narrative for a completed report
        transport: Optional httpx transport override

    Returns:
        Report for the run
    """
    writer = None
    if use_writer:
        writer = SummaryWriter(settings.writer_api_key, settings.writer)

    async with http_client(settings.http, transport=transport) as client:
        pipeline = SeoResearchPipeline(settings, client, options=options, writer=writer)
        return await pipeline.run(target)
