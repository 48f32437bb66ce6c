"""Launcher composition root and entrypoints."""

from __future__ import annotations

import asyncio
import logging as py_logging
import time
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any, TextIO

from devlauncher.backend import LocalBackend, ProjectBackend
from devlauncher.config import KeyValueStore, PreferencesStore
from devlauncher.errors import ExitCode
from devlauncher.models import Environment
from devlauncher.state import StateStore
from devlauncher.ui.actions import LauncherActions, build_menus
from devlauncher.ui.dialogs import (
    BranchPrompt,
    ClonePrompt,
    CommitHistoryView,
    CommitMessagePrompt,
    ConfirmDeleteFlow,
    DeletePrompt,
    NewProjectPrompt,
    StashPrompt,
)
from devlauncher.ui.drag import DragReorderController, Scheduler, call_later
from devlauncher.ui.enricher import StatusEnricher
from devlauncher.ui.overlay import OverlayManager, Viewport
from devlauncher.ui.render import GridSurface, RenderPipeline, TextSurface
from devlauncher.ui.toast import ToastCenter

logger = py_logging.getLogger(__name__)


def _decline(_: object) -> bool:
    return False


def _no_clipboard(text: str) -> None:
    del text
    raise RuntimeError("Clipboard is not available.")


def _no_history(view: CommitHistoryView) -> None:
    logger.debug("Commit history for %s not shown; no viewer attached", view.name)


class LauncherApp:
    def __init__(
        self,
        *,
        preferences: KeyValueStore,
        backend: ProjectBackend,
        surface: GridSurface,
        viewport: Viewport = lambda: (1280, 800),
        delete_prompt: DeletePrompt = _decline,
        commit_prompt: Callable[[CommitMessagePrompt], bool] = _decline,
        project_prompt: Callable[[NewProjectPrompt], bool] = _decline,
        clone_prompt: Callable[[ClonePrompt], bool] = _decline,
        branch_prompt: Callable[[BranchPrompt], bool] = _decline,
        stash_prompt: Callable[[StashPrompt], bool] = _decline,
        show_history: Callable[[CommitHistoryView], None] = _no_history,
        clipboard: Callable[[str], None] = _no_clipboard,
        toasts: ToastCenter | None = None,
        schedule: Scheduler = call_later,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = StateStore(preferences)
        self.backend = backend
        self.toasts = toasts or ToastCenter()
        self.enricher = StatusEnricher(self.store, backend)
        self.pipeline = RenderPipeline(
            self.store,
            surface,
            backend=backend,
            enricher=self.enricher,
            notifier=self.toasts,
            clock=clock,
        )
        self.confirm_delete = ConfirmDeleteFlow(self.store, backend, self.toasts, delete_prompt)
        self.drag = DragReorderController(self.store, self.confirm_delete, schedule=schedule)
        self.overlays = OverlayManager(viewport)
        self.project_menu, self.app_menu = build_menus(self.overlays)
        self.actions = LauncherActions(
            self.store,
            backend,
            self.toasts,
            self.pipeline,
            self.overlays,
            self.confirm_delete,
            clipboard=clipboard,
            commit_prompt=commit_prompt,
            project_prompt=project_prompt,
            clone_prompt=clone_prompt,
            branch_prompt=branch_prompt,
            stash_prompt=stash_prompt,
            show_history=show_history,
        )
        self._loaded_env: Environment | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    def attach(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_state_change)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def startup(self, *, env: Environment | None = None) -> None:
        self.attach()
        if env is not None and env != self.store.active_env:
            self.store.set_active_env(env)
        self.pipeline.render()
        await self.reload()
        await self.refresh_auth()
        logger.info("Launcher initialized env=%s", self.store.active_env.value)

    async def reload(self) -> bool:
        self._loaded_env = self.store.active_env
        return await self.pipeline.load_projects()

    async def refresh_auth(self) -> None:
        await self.actions.check_auth()

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        """Run a UI callback on the loop and keep it alive until it finishes."""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self.enricher.wait_idle()

    def _on_state_change(self) -> None:
        self.pipeline.render()
        env = self.store.active_env
        if self._loaded_env is None or env == self._loaded_env:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Environment changed to %s without a running loop; reload skipped", env.value)
            return
        logger.info("Active environment changed env=%s; reloading projects", env.value)
        self._loaded_env = env
        self.spawn(self.reload())


def run_listing(
    *,
    preferences: KeyValueStore,
    backend: ProjectBackend,
    env: Environment | None = None,
    stream: TextIO,
) -> int:
    """Load, enrich and print the project grid without a GUI."""
    surface = TextSurface()
    app = LauncherApp(preferences=preferences, backend=backend, surface=surface)

    async def _run() -> bool:
        await app.startup(env=env)
        await app.wait_idle()
        return not app.pipeline.load_failed

    loaded = asyncio.run(_run())
    app.detach()
    for line in surface.lines:
        print(line, file=stream)
    return int(ExitCode.SUCCESS if loaded else ExitCode.BACKEND_ERROR)


def launch_app(
    *,
    prefs_path: str | Path | None = None,
    env: Environment | None = None,
) -> int:
    """Open the launcher window."""
    from devlauncher.ui.window import launch_window

    preferences = PreferencesStore(prefs_path)
    return launch_window(preferences=preferences, backend=LocalBackend(), env=env)
