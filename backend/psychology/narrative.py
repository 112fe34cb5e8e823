"""
Narrative interpretation of a session's cognitive metrics.

Gemini writes a short second-person reading of the metrics; when no client
is configured, every model is rate limited, or the call fails, a template
built from the same metrics is used instead. Callers always get text.
"""

import logging
from typing import Optional, Sequence

from google import genai
from google.genai import types

from gemini.config import (
    NARRATIVE_MAX_OUTPUT_TOKENS,
    NARRATIVE_TEMPERATURE,
    narrative_model_chain,
)
from gemini.fallback import generate_with_fallback
from models.metrics import CognitiveMetrics
from psychology.archetypes import with_article
from psychology.catalog import ARCHETYPES, PUZZLES

logger = logging.getLogger(__name__)


def build_client(api_key: Optional[str]) -> Optional[genai.Client]:
    """A Gemini client for api_key, or None when narratives run on templates only."""
    if not api_key:
        return None
    return genai.Client(api_key=api_key)


_NARRATIVE_SYSTEM_PROMPT = """
You are the voice of Cognitive Mirrors, a set of psychological puzzles that reflect how a person thinks.

You will receive one player's metrics for a finished puzzle. Every metric is a rate from 0 to 1:
- decisiveness: committed choices versus backtracks
- exploration: breadth and volume of moves
- persistence: solving without asking for hints
- reflection: pausing before acting
- impulsivity: acting within half a second of the previous action

Write 2-3 sentences in the second person. Name the archetype once, point to the strongest and
weakest metric in plain language, and end with one concrete thing to try next time.
No markdown, no lists, no numbers with more than one decimal.
""".strip()


# ---------- Template fallback ----------

def _level(value: float) -> str:
    if value >= 0.7:
        return "high"
    if value >= 0.4:
        return "moderate"
    return "low"


def build_interpretation(metrics: CognitiveMetrics) -> str:
    parts = [
        f"You played like {with_article(metrics.archetype)}: someone who "
        f"{ARCHETYPES[metrics.archetype]['summary']}."
    ]

    if metrics.event_count == 0:
        parts.append("No moves were recorded, so this reading is only a starting point.")
        return " ".join(parts)

    parts.append(
        f"Your decisiveness was {_level(metrics.decisiveness)} and your exploration "
        f"{_level(metrics.exploration)}."
    )
    if metrics.impulsivity >= 0.5:
        parts.append("Many of your actions followed each other almost instantly; try pausing before the next move.")
    elif metrics.reflection >= 0.5:
        parts.append("You often stopped to think between actions, which kept your choices deliberate.")
    if metrics.persistence < 0.5:
        parts.append("You leaned on hints; next time, hold out a little longer before asking.")

    return " ".join(parts)


def _build_prompt(metrics: CognitiveMetrics, puzzle_type: str) -> str:
    title = PUZZLES.get(puzzle_type, {}).get("title", puzzle_type)
    return (
        f"Puzzle: {title}\n"
        f"Archetype: {metrics.archetype} ({ARCHETYPES[metrics.archetype]['summary']})\n"
        f"decisiveness={metrics.decisiveness:.2f} exploration={metrics.exploration:.2f} "
        f"persistence={metrics.persistence:.2f} reflection={metrics.reflection:.2f} "
        f"impulsivity={metrics.impulsivity:.2f}\n"
        f"events={metrics.event_count} duration_ms={metrics.duration_ms} score={metrics.score}"
    )


# ---------- Public entry point ----------

async def generate_interpretation(
    metrics: CognitiveMetrics,
    puzzle_type: str,
    *,
    client: Optional[genai.Client] = None,
    models: Optional[Sequence[str]] = None,
) -> str:
    if client is None:
        logger.debug("Narrative skipped, no Gemini client configured")
        return build_interpretation(metrics)

    try:
        result = await generate_with_fallback(
            client,
            models or narrative_model_chain(),
            contents=[{"role": "user", "parts": [{"text": _build_prompt(metrics, puzzle_type)}]}],
            config=types.GenerateContentConfig(
                system_instruction=_NARRATIVE_SYSTEM_PROMPT,
                max_output_tokens=NARRATIVE_MAX_OUTPUT_TOKENS,
                temperature=NARRATIVE_TEMPERATURE,
            ),
        )
        if result is None:
            logger.warning("Narrative: all models rate-limited, using template")
            return build_interpretation(metrics)

        text = (result.response.text or "").strip()
        if not text:
            logger.warning("Narrative: empty response from %s, using template", result.model)
            return build_interpretation(metrics)
        return text

    except Exception as exc:
        logger.warning("Narrative generation failed, using template: %s", exc)
        return build_interpretation(metrics)
