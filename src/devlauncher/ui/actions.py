"""Card buttons and context menu commands."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from devlauncher.backend.protocol import ProjectBackend
from devlauncher.state import StateStore
from devlauncher.ui.dialogs import (
    DEFAULT_COMMIT_MESSAGE,
    BranchPrompt,
    ClonePrompt,
    CommitHistoryView,
    CommitMessagePrompt,
    NewProjectPrompt,
    StashPrompt,
    history_error_message,
)
from devlauncher.ui.drag import ConfirmDelete
from devlauncher.ui.overlay import ContextMenu, MenuItem, OverlayManager
from devlauncher.ui.render import ProjectCard, RenderPipeline
from devlauncher.ui.toast import Notifier

logger = py_logging.getLogger(__name__)

T = TypeVar("T")

PROJECT_MENU_ID = "project-menu"
APP_MENU_ID = "app-menu"
HISTORY_LIMIT = 20

PROJECT_MENU_ITEMS = (
    MenuItem("open", "Open"),
    MenuItem("copy", "Copy name"),
    MenuItem("copy_path", "Copy path"),
    MenuItem("delete", "Delete"),
)
APP_MENU_ITEMS = (
    MenuItem("new_project", "New project"),
    MenuItem("clone", "Clone repository"),
    MenuItem("refresh", "Refresh"),
    MenuItem("open_root", "Open projects folder"),
    MenuItem("terminal", "Open terminal"),
    MenuItem("github_login", "GitHub login"),
)


def build_menus(overlays: OverlayManager) -> tuple[ContextMenu, ContextMenu]:
    project_menu = ContextMenu(PROJECT_MENU_ITEMS)
    app_menu = ContextMenu(APP_MENU_ITEMS)
    overlays.register(PROJECT_MENU_ID, project_menu)
    overlays.register(APP_MENU_ID, app_menu)
    return project_menu, app_menu


def _decline(_: object) -> bool:
    return False


def _ignore(_: object) -> None:
    return None


class LauncherActions:
    def __init__(
        self,
        store: StateStore,
        backend: ProjectBackend,
        notifier: Notifier,
        pipeline: RenderPipeline,
        overlays: OverlayManager,
        confirm_delete: ConfirmDelete,
        *,
        clipboard: Callable[[str], None],
        commit_prompt: Callable[[CommitMessagePrompt], bool],
        project_prompt: Callable[[NewProjectPrompt], bool] = _decline,
        clone_prompt: Callable[[ClonePrompt], bool] = _decline,
        branch_prompt: Callable[[BranchPrompt], bool] = _decline,
        stash_prompt: Callable[[StashPrompt], bool] = _decline,
        show_history: Callable[[CommitHistoryView], None] = _ignore,
    ) -> None:
        self.store = store
        self.backend = backend
        self.notifier = notifier
        self.pipeline = pipeline
        self.overlays = overlays
        self.confirm_delete = confirm_delete
        self.clipboard = clipboard
        self.commit_prompt = commit_prompt
        self.project_prompt = project_prompt
        self.clone_prompt = clone_prompt
        self.branch_prompt = branch_prompt
        self.stash_prompt = stash_prompt
        self.show_history = show_history
        self.menu_target: ProjectCard | None = None

    def open_project_menu(self, card: ProjectCard, x: int, y: int) -> None:
        self.menu_target = card
        self.overlays.show(PROJECT_MENU_ID, x, y)

    def open_app_menu(self, x: int, y: int) -> None:
        self.overlays.show(APP_MENU_ID, x, y)

    async def check_auth(self) -> None:
        try:
            username = await self.backend.check_github_auth()
        except Exception as exc:
            logger.warning("GitHub auth check failed: %s", exc)
            username = None
        self.store.set_authenticated(bool(username))

    async def run_project_action(self, action: str) -> None:
        card = self.menu_target
        self.overlays.hide(PROJECT_MENU_ID)
        if card is None:
            return
        if action == "open":
            await self._guard(self.backend.open_project(card.path, card.env), "Failed to open project")
        elif action == "copy":
            self._copy(card.name, "Failed to copy project")
        elif action == "copy_path":
            self._copy(card.path, "Failed to copy path")
        elif action == "delete":
            self.confirm_delete(card.name, card.path)
        else:
            logger.debug("Unknown project menu action=%s", action)

    async def run_app_action(self, action: str) -> None:
        self.overlays.hide(APP_MENU_ID)
        env = self.store.settings.default_env
        if action == "new_project":
            await self.create_project()
        elif action == "clone":
            await self.clone_repository()
        elif action == "refresh":
            await self.pipeline.load_projects()
        elif action == "open_root":
            await self._guard(self.backend.open_root(env), "Failed to open projects folder")
        elif action == "terminal":
            await self._guard(self.backend.open_terminal(env), "Failed to open terminal")
        elif action == "github_login":
            if await self._guard(self.backend.github_login(), "Failed to open GitHub login"):
                self.notifier.info("Finish the GitHub login in the terminal window")
                await self.check_auth()
        else:
            logger.debug("Unknown app menu action=%s", action)

    async def run_card_action(self, action: str, card: ProjectCard) -> None:
        if action == "pin":
            self.store.toggle_pin(card.name)
        elif action == "pull":
            if await self._guard(self.backend.git_pull(card.path, card.env), "Pull failed", detail=True):
                await self.pipeline.load_projects()
        elif action == "push":
            await self._push(card)
        elif action == "branch":
            await self._branch(card)
        elif action == "history":
            await self._history(card)
        elif action == "stash":
            await self._stash(card)
        else:
            logger.debug("Unknown card action=%s", action)

    async def create_project(self) -> bool:
        settings = self.store.settings
        prompt = NewProjectPrompt(
            env=settings.default_env,
            template=settings.default_template,
            create_github=settings.auto_create_github,
        )
        if not self.project_prompt(prompt):
            return False
        if not prompt.can_confirm:
            self.notifier.error(prompt.error)
            return False
        name = prompt.name.strip()

        ok, exists = await self._call(
            self.backend.check_project_exists(name, prompt.env), "Failed to check project name", detail=True
        )
        if not ok:
            return False
        if exists:
            self.notifier.error("Project already exists!")
            return False

        self.notifier.info("Creating project...")
        ok, path = await self._call(
            self.backend.create_project(name, prompt.env, prompt.template, prompt.create_github),
            "Failed to create project",
            detail=True,
        )
        if not ok:
            return False
        self.notifier.success(f"Created {name} successfully!")
        await self.pipeline.load_projects()
        await self._guard(self.backend.open_project(path, prompt.env), "Failed to open project")
        return True

    async def clone_repository(self) -> bool:
        prompt = ClonePrompt(env=self.store.settings.default_env)
        if not self.clone_prompt(prompt):
            return False
        if not prompt.can_confirm:
            self.notifier.error("Please enter a repository URL")
            return False

        self.notifier.info("Cloning repository...")
        ok, name = await self._call(
            self.backend.git_clone(prompt.url.strip(), prompt.env), "Clone failed", detail=True
        )
        if not ok:
            return False
        self.notifier.success(f"Cloned {name} successfully!")
        await self.pipeline.load_projects()
        return True

    async def _push(self, card: ProjectCard) -> None:
        prompt = CommitMessagePrompt(path=card.path, env=card.env, message=DEFAULT_COMMIT_MESSAGE)
        try:
            prompt.set_diff(await self.backend.get_diff(card.path, card.env))
        except Exception as exc:
            logger.warning("Diff preview unavailable path=%s: %s", card.path, exc)
        if not self.commit_prompt(prompt) or not prompt.can_confirm:
            return
        pushed = await self._guard(
            self.backend.git_push(card.path, card.env, prompt.message.strip()),
            "Push failed",
            detail=True,
        )
        if pushed:
            await self.pipeline.load_projects()

    async def _branch(self, card: ProjectCard) -> None:
        ok, branches = await self._call(
            self.backend.get_branches(card.path, card.env), "Failed to load branches", detail=True
        )
        if not ok:
            return
        prompt = BranchPrompt(path=card.path, env=card.env, current=branches.current, branches=branches.names)
        if not self.branch_prompt(prompt):
            return
        if not prompt.can_confirm:
            if prompt.intent == "create":
                self.notifier.error("Branch name is not valid")
            return

        if prompt.intent == "create":
            name = prompt.new_name.strip()
            changed = await self._guard(
                self.backend.create_branch(card.path, card.env, name), "Failed to create branch", detail=True
            )
        else:
            changed = await self._guard(
                self.backend.switch_branch(card.path, card.env, prompt.selected),
                "Failed to switch branch",
                detail=True,
            )
        if changed:
            await self.pipeline.load_projects()

    async def _history(self, card: ProjectCard) -> None:
        view = CommitHistoryView(name=card.name)
        try:
            view.commits = await self.backend.get_commit_history(card.path, card.env, HISTORY_LIMIT)
        except Exception as exc:
            logger.error("Failed to load commit history path=%s: %s", card.path, exc)
            view.error = history_error_message(exc)
        self.show_history(view)

    async def _stash(self, card: ProjectCard) -> None:
        prompt = StashPrompt(path=card.path, env=card.env)
        if not self.stash_prompt(prompt) or prompt.choice is None:
            return
        if prompt.choice == "stash":
            self.notifier.info("Stashing changes...")
            call = self.backend.git_stash(card.path, card.env)
        else:
            self.notifier.info("Restoring stashed changes...")
            call = self.backend.git_stash_pop(card.path, card.env)
        ok, message = await self._call(call, "Stash failed", detail=True)
        if ok:
            self.notifier.success(message)
            await self.pipeline.load_projects()

    def _copy(self, text: str, failure: str) -> None:
        try:
            self.clipboard(text)
        except Exception:
            logger.exception("Clipboard write failed")
            self.notifier.error(failure)

    async def _call(self, call: Awaitable[T], failure: str, *, detail: bool = False) -> tuple[bool, Any]:
        try:
            result = await call
        except Exception as exc:
            logger.error("%s: %s", failure, exc)
            self.notifier.error(f"{failure}: {exc}" if detail else failure)
            return False, None
        return True, result

    async def _guard(self, call: Awaitable[object], failure: str, *, detail: bool = False) -> bool:
        ok, _ = await self._call(call, failure, detail=detail)
        return ok
