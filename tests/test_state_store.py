from __future__ import annotations

import json
import logging as py_logging

import pytest

from devlauncher.config import MemoryPreferences, Settings
from devlauncher.errors import DevLauncherError
from devlauncher.models import Environment, Project, Template
from devlauncher.preferences import ORDER_KEY, PINNED_KEY, SETTINGS_KEY
from devlauncher.state import StateStore


class _ReadOnlyPreferences(MemoryPreferences):
    def set(self, key: str, value: str) -> None:
        raise OSError("disk full")


def test_store_hydrates_from_preferences() -> None:
    prefs = MemoryPreferences(
        {
            SETTINGS_KEY: json.dumps({"default_env": "wsl", "default_template": "python"}),
            PINNED_KEY: '["api"]',
            ORDER_KEY: '["web","api"]',
        }
    )

    store = StateStore(prefs)

    assert store.active_env == Environment.WSL
    assert store.settings.default_template == Template.PYTHON
    assert store.pinned == frozenset({"api"})
    assert store.order == ("web", "api")
    assert store.projects == ()
    assert store.authenticated is False


def test_empty_preferences_use_defaults() -> None:
    store = StateStore(MemoryPreferences())

    assert store.settings == Settings()
    assert store.active_env == Environment.WINDOWS
    assert store.pinned == frozenset()
    assert store.order == ()


def test_toggle_pin_adds_then_removes_and_persists() -> None:
    prefs = MemoryPreferences()
    store = StateStore(prefs)

    store.toggle_pin("api")
    assert store.pinned == frozenset({"api"})
    assert json.loads(prefs.values[PINNED_KEY]) == ["api"]

    store.toggle_pin("api")
    assert store.pinned == frozenset()
    assert json.loads(prefs.values[PINNED_KEY]) == []


def test_every_mutation_notifies_in_subscription_order() -> None:
    store = StateStore(MemoryPreferences())
    calls: list[str] = []
    store.subscribe(lambda: calls.append("first"))
    store.subscribe(lambda: calls.append("second"))

    store.set_projects([Project(name="a", path="/p/a")])
    store.set_projects(store.projects)

    assert calls == ["first", "second", "first", "second"]


def test_subscriber_sees_new_snapshot() -> None:
    store = StateStore(MemoryPreferences())
    seen: list[tuple[str, ...]] = []
    store.subscribe(lambda: seen.append(tuple(project.name for project in store.projects)))

    store.set_projects([Project(name="a", path="/p/a"), Project(name="b", path="/p/b")])

    assert seen == [("a", "b")]


def test_unsubscribe_stops_notifications_and_is_idempotent() -> None:
    store = StateStore(MemoryPreferences())
    calls: list[int] = []
    unsubscribe = store.subscribe(lambda: calls.append(1))

    store.set_authenticated(True)
    unsubscribe()
    unsubscribe()
    store.set_authenticated(False)

    assert calls == [1]


def test_subscriber_added_during_notification_runs_from_next_mutation() -> None:
    store = StateStore(MemoryPreferences())
    calls: list[str] = []

    def late() -> None:
        calls.append("late")

    def first() -> None:
        calls.append("first")
        if "late" not in calls and len(calls) == 1:
            store.subscribe(late)

    store.subscribe(first)
    store.set_authenticated(True)
    assert calls == ["first"]

    store.set_authenticated(False)
    assert calls == ["first", "first", "late"]


def test_failing_subscriber_does_not_block_others(caplog: pytest.LogCaptureFixture) -> None:
    store = StateStore(MemoryPreferences())
    calls: list[str] = []

    def broken() -> None:
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(lambda: calls.append("after"))

    with caplog.at_level(py_logging.ERROR, logger="devlauncher.state"):
        store.toggle_pin("api")

    assert calls == ["after"]
    assert store.pinned == frozenset({"api"})
    assert "State subscriber failed" in caplog.text


def test_set_settings_merges_single_field() -> None:
    prefs = MemoryPreferences()
    store = StateStore(prefs)

    store.set_settings(default_template="rust")

    assert store.settings.default_template == Template.RUST
    assert store.settings.default_env == Environment.WINDOWS
    assert store.settings.auto_create_github is False
    assert json.loads(prefs.values[SETTINGS_KEY])["default_template"] == "rust"


def test_set_settings_default_env_switches_active_env_in_one_notification() -> None:
    store = StateStore(MemoryPreferences())
    seen: list[tuple[Environment, Environment]] = []
    store.subscribe(lambda: seen.append((store.settings.default_env, store.active_env)))

    store.set_settings(default_env="wsl")

    assert seen == [(Environment.WSL, Environment.WSL)]


def test_set_settings_without_env_keeps_session_env() -> None:
    store = StateStore(MemoryPreferences())
    store.set_active_env(Environment.WSL)

    store.set_settings(auto_create_github=True)

    assert store.active_env == Environment.WSL
    assert store.settings.default_env == Environment.WINDOWS


def test_set_settings_rejects_invalid_values_without_mutation() -> None:
    store = StateStore(MemoryPreferences())
    calls: list[int] = []
    store.subscribe(lambda: calls.append(1))

    with pytest.raises(DevLauncherError):
        store.set_settings(default_template="cobol")

    assert store.settings == Settings()
    assert calls == []


def test_active_env_is_not_persisted() -> None:
    prefs = MemoryPreferences()
    store = StateStore(prefs)

    store.set_active_env(Environment.WSL)

    assert SETTINGS_KEY not in prefs.values
    assert StateStore(prefs).active_env == Environment.WINDOWS


def test_project_order_persists() -> None:
    prefs = MemoryPreferences()
    store = StateStore(prefs)

    store.set_project_order(["b", "a"])

    assert store.order == ("b", "a")
    assert StateStore(prefs).order == ("b", "a")


def test_persistence_failure_keeps_memory_state(caplog: pytest.LogCaptureFixture) -> None:
    store = StateStore(_ReadOnlyPreferences())
    calls: list[int] = []
    store.subscribe(lambda: calls.append(1))

    with caplog.at_level(py_logging.WARNING, logger="devlauncher.preferences"):
        store.toggle_pin("api")
        store.set_project_order(["api"])
        store.set_settings(default_env="wsl")

    assert store.pinned == frozenset({"api"})
    assert store.order == ("api",)
    assert store.active_env == Environment.WSL
    assert calls == [1, 1, 1]
    assert "Failed to save preference" in caplog.text
