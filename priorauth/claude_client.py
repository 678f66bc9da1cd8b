"""Claude API client for medical necessity letter drafting."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

import anthropic

from priorauth.letter import LetterFacts
from priorauth.letter_config import LETTER_CONFIG, LETTER_SYSTEM_PROMPT, LetterConfig, build_letter_prompt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LetterDraft:
    """Drafting service output. ``text`` is returned exactly as received."""

    text: str
    model: str
    tokens_used: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "letter_text": self.text,
            "model": self.model,
            "tokens_used": self.tokens_used,
            "error": self.error,
        }


async def draft_letter(
    facts: LetterFacts,
    config: LetterConfig | None = None,
    client: anthropic.AsyncAnthropic | None = None,
) -> LetterDraft:
    """Send the fact bundle to Claude and return the draft.

    Args:
        facts: The assembled letter facts
        config: Optional drafting configuration (uses LETTER_CONFIG if not provided)
        client: Optional AsyncAnthropic client; built from ANTHROPIC_API_KEY otherwise

    Returns:
        LetterDraft; ``error`` is set when drafting was unavailable or failed
    """
    if config is None:
        config = LETTER_CONFIG

    if client is None:
        api_key = os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            return LetterDraft(
                text="",
                model="none",
                error="Letter drafting is not available - Anthropic API key not configured.",
            )
        client = anthropic.AsyncAnthropic(api_key=api_key)

    try:
        response = await client.messages.create(
            model=config.model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            system=LETTER_SYSTEM_PROMPT.format(draft_marker=config.draft_marker),
            messages=[{"role": "user", "content": build_letter_prompt(facts)}],
        )
    except anthropic.APIError as e:
        logger.error(f"Letter drafting failed: {e}")
        return LetterDraft(text="", model="error", error=f"Claude API error: {e!s}")

    content = response.content[0].text if response.content else ""
    return LetterDraft(
        text=content,
        model=config.model,
        tokens_used=response.usage.input_tokens + response.usage.output_tokens,
    )
