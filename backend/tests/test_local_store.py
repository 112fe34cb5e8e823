"""Tests for the client's origin-scoped storage and profile cache."""

import json
import re

from cognitive_client.local_store import (
    PROFILE_KEY_PREFIX,
    SESSION_ID_KEY,
    USER_ID_KEY,
    LocalStore,
    generate_user_id,
    get_user_id,
    last_session_id,
    load_user_profile,
    remember_session,
    save_user_profile,
)


class TestLocalStore:
    def test_items_persist_across_instances(self, tmp_path):
        store = LocalStore("http://localhost:4000", storage_dir=tmp_path)
        store.set_item("a", "1")

        reopened = LocalStore("http://localhost:4000", storage_dir=tmp_path)
        assert reopened.get_item("a") == "1"
        assert len(reopened) == 1

    def test_origins_are_isolated(self, tmp_path):
        LocalStore("http://localhost:4000", storage_dir=tmp_path).set_item("a", "1")
        other = LocalStore("https://mirrors.example.com", storage_dir=tmp_path)
        assert other.get_item("a") is None

    def test_remove_and_clear(self, tmp_path):
        store = LocalStore(storage_dir=tmp_path)
        store.set_item("a", "1")
        store.set_item("b", "2")
        store.remove_item("a")
        store.remove_item("missing")
        assert store.get_item("a") is None

        store.clear()
        assert len(LocalStore(storage_dir=tmp_path)) == 0

    def test_unreadable_file_starts_empty(self, tmp_path):
        store = LocalStore(storage_dir=tmp_path)
        store.path.write_text("{broken", encoding="utf-8")
        assert len(LocalStore(storage_dir=tmp_path)) == 0


class TestProfileCache:
    def test_user_id_format(self):
        assert re.fullmatch(r"user_\d{13}_[a-z0-9]{9}", generate_user_id())

    def test_user_id_is_stable(self, tmp_path):
        store = LocalStore(storage_dir=tmp_path)
        first = get_user_id(store)
        assert get_user_id(store) == first
        assert store.get_item(USER_ID_KEY) == first

    def test_default_profile_is_created_and_saved(self, tmp_path):
        store = LocalStore(storage_dir=tmp_path)
        profile = load_user_profile(store)

        assert profile["userId"] == get_user_id(store)
        assert profile["archetype"] is None
        assert profile["sessions"] == []
        assert profile["preferences"] == {
            "theme": "dark",
            "difficulty": "adaptive",
            "hints": True,
            "animations": True,
        }
        assert json.loads(store.get_item(PROFILE_KEY_PREFIX + profile["userId"])) == profile

    def test_second_load_returns_the_created_profile(self, tmp_path):
        first = load_user_profile(LocalStore(storage_dir=tmp_path))
        assert load_user_profile(LocalStore(storage_dir=tmp_path)) == first

    def test_saved_profile_is_returned(self, tmp_path):
        store = LocalStore(storage_dir=tmp_path)
        profile = load_user_profile(store)
        profile["archetype"] = "reflector"
        profile["sessions"].append(
            {"sessionId": "cm_1", "puzzleType": "ego_labyrinth", "archetype": "reflector", "score": 42}
        )
        profile["preferences"]["theme"] = "light"
        save_user_profile(store, profile)

        assert load_user_profile(LocalStore(storage_dir=tmp_path)) == profile

    def test_corrupt_profile_is_replaced(self, tmp_path):
        store = LocalStore(storage_dir=tmp_path)
        user_id = get_user_id(store)
        store.set_item(PROFILE_KEY_PREFIX + user_id, "not json")

        profile = load_user_profile(store)
        assert profile["userId"] == user_id
        assert profile["sessions"] == []

    def test_last_session(self, tmp_path):
        store = LocalStore(storage_dir=tmp_path)
        assert last_session_id(store) is None
        remember_session(store, "cm_1")
        assert last_session_id(store) == "cm_1"
        assert store.get_item(SESSION_ID_KEY) == "cm_1"
