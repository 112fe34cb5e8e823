"""
Origin-scoped key-value storage and the profile cache built on it.

LocalStore mirrors the browser's localStorage: string values under string
keys, one JSON file per origin. The profile helpers keep the user id, the
profile record and the last session id under well-known keys.
"""

import json
import logging
import os
import random
import re
import string
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

USER_ID_KEY = "cognitive_user_id"
SESSION_ID_KEY = "cognitive_session_id"
PROFILE_KEY_PREFIX = "cognitive_profile_"

DEFAULT_STORAGE_DIR = Path(os.environ.get("COGNITIVE_STORAGE_DIR", Path.home() / ".cognitive_mirrors"))

DEFAULT_PREFERENCES = {
    "theme": "dark",
    "difficulty": "adaptive",
    "hints": True,
    "animations": True,
}


def _origin_slug(origin: str) -> str:
    return re.sub(r"[^A-Za-z0-9]+", "_", origin).strip("_") or "default"


class LocalStore:
    def __init__(self, origin: str = "http://localhost:4000", storage_dir: Optional[Path] = None):
        self.origin = origin
        self.path = Path(storage_dir or DEFAULT_STORAGE_DIR) / f"{_origin_slug(origin)}.json"
        self._items: dict[str, str] = self._load()

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable local store %s: %s", self.path, exc)
            return {}
        return {str(k): str(v) for k, v in data.items()} if isinstance(data, dict) else {}

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(self._items, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value
        self._save()

    def remove_item(self, key: str) -> None:
        if self._items.pop(key, None) is not None:
            self._save()

    def clear(self) -> None:
        self._items.clear()
        self._save()

    def __len__(self) -> int:
        return len(self._items)


# ---------- Profile cache ----------

def generate_user_id() -> str:
    """user_<ms since epoch>_<9 base-36 chars>"""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"user_{int(time.time() * 1000)}_{suffix}"


def get_user_id(store: LocalStore) -> str:
    user_id = store.get_item(USER_ID_KEY)
    if not user_id:
        user_id = generate_user_id()
        store.set_item(USER_ID_KEY, user_id)
    return user_id


def profile_key(user_id: str) -> str:
    return f"{PROFILE_KEY_PREFIX}{user_id}"


def default_profile(user_id: str) -> dict[str, Any]:
    return {
        "userId": user_id,
        "archetype": None,
        "sessions": [],
        "createdAt": datetime.now(timezone.utc).isoformat(),
        "preferences": dict(DEFAULT_PREFERENCES),
    }


def load_user_profile(store: LocalStore) -> dict[str, Any]:
    """
    Return the stored profile for this install's user, creating and
    persisting a default one when none exists or the stored copy is corrupt.
    """
    user_id = get_user_id(store)
    stored = store.get_item(profile_key(user_id))
    if stored:
        try:
            return json.loads(stored)
        except json.JSONDecodeError as exc:
            logger.warning("Failed to parse stored profile: %s", exc)

    profile = default_profile(user_id)
    save_user_profile(store, profile)
    return profile


def save_user_profile(store: LocalStore, profile: dict[str, Any]) -> None:
    store.set_item(profile_key(profile["userId"]), json.dumps(profile))


def remember_session(store: LocalStore, session_id: str) -> None:
    store.set_item(SESSION_ID_KEY, session_id)


def last_session_id(store: LocalStore) -> Optional[str]:
    return store.get_item(SESSION_ID_KEY)
