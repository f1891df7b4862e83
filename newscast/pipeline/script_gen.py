"""
Step 1: News script via OpenAI chat completion.

Turns raw business data into a ~30 second spoken news script, written in a
fixed professional news-reporter persona.
"""

import logging

from openai import AsyncOpenAI, OpenAIError

from .errors import ProviderTransportError
from .interfaces import TextGenerator

logger = logging.getLogger(__name__)

# ── Prompts ──────────────────────────────────────────────────────────────────

REPORTER_PERSONA = (
    "You are a professional news reporter. Create a concise, engaging 30-second "
    "news script based on the business data provided. Make it sound natural and "
    "professional."
)

REPORT_PROMPT_TEMPLATE = (
    "Create a 30-second news report script about this business data: {business_data}"
)


def build_report_prompt(business_data: str) -> str:
    # str.format would choke on braces inside the user's data
    return REPORT_PROMPT_TEMPLATE.replace("{business_data}", business_data)


class OpenAITextGenerator(TextGenerator):
    """Chat-completions adapter with a bounded output length."""

    def __init__(self, client: AsyncOpenAI, model: str = "gpt-4", max_tokens: int = 200):
        self._client = client
        self._model = model
        self._max_tokens = max_tokens

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_tokens=self._max_tokens,
            )
        except OpenAIError as e:
            raise ProviderTransportError(
                f"Script generation failed: {e}",
                provider="openai",
                status_code=getattr(e, "status_code", None),
            ) from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


async def generate_script(generator: TextGenerator, business_data: str) -> str:
    """
    Step 1: Produce the spoken news script for `business_data`.

    An empty script is passed through untouched; the caller has already
    rejected blank input.
    """
    script = await generator.generate(REPORTER_PERSONA, build_report_prompt(business_data))
    logger.info(f"Script generated ({len(script)} chars): {script[:100]}...")
    return script
