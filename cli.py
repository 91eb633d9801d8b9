#!/usr/bin/env python
"""CLI entry point for the SEO research pipeline."""

import asyncio
import json
import logging
import os
import sys

import click
from dotenv import load_dotenv

from seo_researcher.errors import ConfigError, PipelineError
from seo_researcher.fetchers.lighthouse import CATEGORIES, STRATEGIES
from seo_researcher.pipeline.seo_pipeline import AnalysisOptions, analyze
from seo_researcher.report import Report
from seo_researcher.settings import load_settings

load_dotenv()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _emit(report: Report, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        click.echo(report.to_markdown())


@click.group()
def cli():
    """SEO Researcher - keyword research, technical audit and summary for a site."""
    pass


@cli.command("analyze")
@click.argument("url")
@click.option("--query", type=str, default=None, help="Explicit search query (default: site:<url>)")
@click.option("--country", type=str, default=None, help="Search country (default: from config)")
@click.option("--language", type=str, default=None, help="Search language (default: from config)")
@click.option(
    "--strategy",
    type=click.Choice(list(STRATEGIES)),
    default=None,
    help="Lighthouse strategy (default: from config)",
)
@click.option(
    "--category",
    "categories",
    type=click.Choice(list(CATEGORIES)),
    multiple=True,
    help="Lighthouse category; repeat for several (default: from config)",
)
@click.option("--locale", type=str, default=None, help="Lighthouse locale (default: from config)")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.option(
    "--narrative/--no-narrative",
    default=False,
    help="Ask the LLM writer for an executive summary (needs OPENAI_API_KEY)",
)
def analyze_site(url, query, country, language, strategy, categories, locale, as_json, narrative):
    """Run keyword research -> technical audit -> summary for URL."""
    _configure_logging(os.environ.get("LOG_LEVEL", "INFO").upper())

    try:
        settings = load_settings(require_writer=narrative)
    except ConfigError as e:
        click.echo(f"❌ Configuration error: {e}", err=True)
        sys.exit(2)

    options = AnalysisOptions(
        query=query,
        country=country,
        language=language,
        strategy=strategy,
        categories=tuple(categories) or None,
        locale=locale,
    )

    try:
        report = asyncio.run(analyze(url, settings, options=options, use_writer=narrative))
    except PipelineError as e:
        click.echo(f"❌ Pipeline failed at stage {e.stage_index} ({e.stage_name}): {e.cause}", err=True)
        if e.report is not None:
            _emit(e.report, as_json)
        sys.exit(1)

    _emit(report, as_json)


if __name__ == "__main__":
    cli()
