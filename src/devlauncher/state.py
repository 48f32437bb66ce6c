"""Authoritative in-memory launcher state with change notification."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace

from devlauncher.config import KeyValueStore, Settings
from devlauncher.models import Environment, Project
from devlauncher.preferences import (
    load_order,
    load_pinned,
    load_settings,
    save_order,
    save_pinned,
    save_settings,
)

logger = py_logging.getLogger(__name__)

Listener = Callable[[], None]
Unsubscribe = Callable[[], None]


@dataclass(frozen=True)
class AppState:
    projects: tuple[Project, ...] = ()
    pinned: frozenset[str] = frozenset()
    order: tuple[str, ...] = ()
    settings: Settings = Settings()
    active_env: Environment = Environment.WINDOWS
    authenticated: bool = False


class StateStore:
    """Single source of truth for the launcher session.

    Every mutation swaps in a complete new :class:`AppState` and then calls
    each subscriber once, in subscription order, even when nothing changed.
    The subscriber list is copied before a notification pass starts, so a
    callback subscribed during a pass is first called on the next mutation
    and a callback unsubscribed during a pass still sees the current one.
    """

    def __init__(self, preferences: KeyValueStore) -> None:
        self._preferences = preferences
        self._listeners: list[Listener] = []
        settings = load_settings(preferences)
        self._state = AppState(
            settings=settings,
            pinned=load_pinned(preferences),
            order=load_order(preferences),
            active_env=settings.default_env,
        )
        logger.debug(
            "State hydrated env=%s pinned=%s order=%s",
            self._state.active_env.value,
            len(self._state.pinned),
            len(self._state.order),
        )

    def snapshot(self) -> AppState:
        return self._state

    @property
    def projects(self) -> tuple[Project, ...]:
        return self._state.projects

    @property
    def pinned(self) -> frozenset[str]:
        return self._state.pinned

    @property
    def order(self) -> tuple[str, ...]:
        return self._state.order

    @property
    def settings(self) -> Settings:
        return self._state.settings

    @property
    def active_env(self) -> Environment:
        return self._state.active_env

    @property
    def authenticated(self) -> bool:
        return self._state.authenticated

    def set_projects(self, projects: Iterable[Project]) -> None:
        self._commit(replace(self._state, projects=tuple(projects)))

    def set_settings(self, **changes: object) -> None:
        settings = self._state.settings.merged(changes)
        active_env = self._state.active_env
        if "default_env" in changes and settings.default_env != active_env:
            active_env = settings.default_env
        save_settings(self._preferences, settings)
        self._commit(replace(self._state, settings=settings, active_env=active_env))

    def set_active_env(self, env: Environment) -> None:
        self._commit(replace(self._state, active_env=Environment(env)))

    def toggle_pin(self, name: str) -> None:
        pinned = set(self._state.pinned)
        if name in pinned:
            pinned.remove(name)
        else:
            pinned.add(name)
        frozen = frozenset(pinned)
        save_pinned(self._preferences, frozen)
        self._commit(replace(self._state, pinned=frozen))

    def set_project_order(self, order: Iterable[str]) -> None:
        frozen = tuple(order)
        save_order(self._preferences, frozen)
        self._commit(replace(self._state, order=frozen))

    def set_authenticated(self, value: bool) -> None:
        self._commit(replace(self._state, authenticated=bool(value)))

    def subscribe(self, listener: Listener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, state: AppState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("State subscriber failed listener=%r", listener)
