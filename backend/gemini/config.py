"""
Gemini settings for narrative interpretations.

Narratives are a few sentences long, so the chain runs cheapest-and-fastest
first. The primary model comes from Settings.gemini_model (GEMINI_MODEL in
.env); the backups after it are fixed.
"""

from typing import Optional

DEFAULT_NARRATIVE_MODEL = "gemini-2.5-flash"
_BACKUP_MODELS = ("gemini-2.0-flash", "gemini-2.0-flash-lite")

NARRATIVE_MAX_OUTPUT_TOKENS = 256
NARRATIVE_TEMPERATURE = 0.6


def narrative_model_chain(primary: Optional[str] = None) -> list[str]:
    """primary first, then the backups, each model once."""
    return list(dict.fromkeys([primary or DEFAULT_NARRATIVE_MODEL, *_BACKUP_MODELS]))
