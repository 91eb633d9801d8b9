"""Narrative report writer using the OpenAI SDK."""

import json
import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from .report import Report
from .settings import WriterSettings

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a senior SEO analyst. Read the structured findings \
(keywords, Lighthouse scores, failing audits, related questions) and write an \
executive-level report in markdown with:
- Key findings
- Prioritised recommendations
- A quick-win checklist
Output only markdown."""


class SummaryWriter:
    """Turns a completed report into an executive markdown narrative."""

    def __init__(self, api_key: str, settings: WriterSettings, client: Optional[AsyncOpenAI] = None):
        self.settings = settings
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=settings.base_url)

    async def write(self, report: Report) -> Optional[str]:
        """
        Generate the narrative for ``report``.

        Returns:
            Markdown text, or None if the model call failed or returned nothing
        """
        payload = json.dumps(
            {k: v for k, v in report.to_dict().items() if k not in ("log", "narrative")},
            indent=2,
        )
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": f"Structured findings for {report.target}:\n\n{payload}"},
        ]

        try:
            response = await self.client.chat.completions.create(
                model=self.settings.model,
                messages=messages,
                temperature=self.settings.temperature,
                max_tokens=self.settings.max_tokens,
            )
        except OpenAIError as e:
            logger.warning(f"⚠️  Failed to generate narrative summary: {e}")
            return None

        if not response.choices:
            return None
        return response.choices[0].message.content or None
