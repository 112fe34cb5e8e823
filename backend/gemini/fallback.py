"""
Model fallback for Gemini calls.

generate_with_fallback() asks each model of the chain it is given in turn
and only moves on when a model reports quota exhaustion (HTTP 429 /
RESOURCE_EXHAUSTED); any other error is raised to the caller. The result
names the model that answered, and is None only when every model in the
chain was exhausted.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FallbackResult:
    model: str
    response: Any


def _is_quota_error(exc: Exception) -> bool:
    # google.genai.errors.APIError carries the HTTP status as .code
    if getattr(exc, "code", None) == 429:
        return True
    text = str(exc)
    return "429" in text or "RESOURCE_EXHAUSTED" in text


async def generate_with_fallback(
    client,
    models: Sequence[str],
    *,
    contents,
    config,
) -> Optional[FallbackResult]:
    """
    Args:
        client: google.genai.Client instance
        models: model names, most preferred first
        contents: list of content dicts for generate_content
        config: types.GenerateContentConfig instance
    """
    if not models:
        raise ValueError("Gemini model chain is empty")

    exhausted: list[str] = []
    for model in models:
        try:
            response = await client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=config,
            )
        except Exception as exc:
            if not _is_quota_error(exc):
                raise
            logger.warning("Model %r quota exhausted, trying next in chain", model)
            exhausted.append(model)
            continue

        if exhausted:
            logger.info("Model %r answered after %s ran out of quota", model, exhausted)
        return FallbackResult(model=model, response=response)

    logger.error("All models in fallback chain exhausted: %s", list(models))
    return None
