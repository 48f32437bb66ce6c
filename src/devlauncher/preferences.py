"""Persist and restore launcher preferences (settings, pins, manual order)."""

from __future__ import annotations

import json
import logging as py_logging

from devlauncher.config import KeyValueStore, Settings, sanitize_settings

logger = py_logging.getLogger(__name__)

SETTINGS_KEY = "settings"
PINNED_KEY = "pinned_projects"
ORDER_KEY = "project_order"


def _load_json(store: KeyValueStore, key: str) -> object | None:
    try:
        raw = store.get(key)
    except Exception as exc:
        logger.warning("Failed to read preference key=%s error=%s", key, exc)
        return None
    if raw is None:
        return None
    try:
        loaded: object = json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Ignoring malformed preference key=%s error=%s", key, exc)
        return None
    return loaded


def _save_json(store: KeyValueStore, key: str, value: object) -> bool:
    try:
        store.set(key, json.dumps(value, ensure_ascii=True, separators=(",", ":")))
    except Exception as exc:
        logger.warning("Failed to save preference key=%s error=%s", key, exc)
        return False
    return True


def _string_list(value: object, *, key: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning("Ignoring preference key=%s with unexpected type=%s", key, type(value).__name__)
        return []
    return [item for item in value if isinstance(item, str)]


def load_settings(store: KeyValueStore) -> Settings:
    return sanitize_settings(_load_json(store, SETTINGS_KEY))


def save_settings(store: KeyValueStore, settings: Settings) -> bool:
    return _save_json(store, SETTINGS_KEY, settings.model_dump(mode="json"))


def load_pinned(store: KeyValueStore) -> frozenset[str]:
    return frozenset(_string_list(_load_json(store, PINNED_KEY), key=PINNED_KEY))


def save_pinned(store: KeyValueStore, pinned: frozenset[str] | set[str]) -> bool:
    return _save_json(store, PINNED_KEY, sorted(pinned))


def load_order(store: KeyValueStore) -> tuple[str, ...]:
    return tuple(_string_list(_load_json(store, ORDER_KEY), key=ORDER_KEY))


def save_order(store: KeyValueStore, order: tuple[str, ...] | list[str]) -> bool:
    return _save_json(store, ORDER_KEY, list(order))
