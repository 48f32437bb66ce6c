"""Dialog view-models and the delete flow they gate."""

from __future__ import annotations

import asyncio
import logging as py_logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal

from devlauncher.backend.git_status import is_valid_branch_name
from devlauncher.backend.protocol import ProjectBackend
from devlauncher.backend.templates import validate_project_name
from devlauncher.errors import DevLauncherError
from devlauncher.models import Commit, Environment, Template
from devlauncher.state import StateStore
from devlauncher.ui.render import format_last_opened
from devlauncher.ui.toast import Notifier

logger = py_logging.getLogger(__name__)


@dataclass
class DeleteConfirmation:
    """State of one open delete dialog."""

    name: str
    path: str
    env: Environment
    typed: str = ""

    def update_input(self, text: str) -> None:
        self.typed = text

    @property
    def can_confirm(self) -> bool:
        return self.typed.strip() == self.name


DIFF_PREVIEW_LINES = 20
DEFAULT_COMMIT_MESSAGE = "Update"


@dataclass
class CommitMessagePrompt:
    path: str
    env: Environment
    message: str = ""
    preview: str = ""

    def set_diff(self, diff: str) -> None:
        lines = diff.splitlines()
        self.preview = "\n".join(lines[:DIFF_PREVIEW_LINES])
        if len(lines) > DIFF_PREVIEW_LINES:
            self.preview += "\n\n... (truncated)"

    def update_input(self, text: str) -> None:
        self.message = text

    @property
    def can_confirm(self) -> bool:
        return bool(self.message.strip())


@dataclass
class NewProjectPrompt:
    """New project form, pre-filled from the saved settings."""

    env: Environment
    template: Template
    create_github: bool
    name: str = ""

    def update_input(self, text: str) -> None:
        self.name = text

    @property
    def error(self) -> str:
        try:
            validate_project_name(self.name)
        except DevLauncherError as exc:
            return exc.hint or exc.message
        return ""

    @property
    def can_confirm(self) -> bool:
        return not self.error


@dataclass
class ClonePrompt:
    env: Environment
    url: str = ""

    def update_input(self, text: str) -> None:
        self.url = text

    @property
    def can_confirm(self) -> bool:
        return bool(self.url.strip())


@dataclass
class BranchPrompt:
    """Switch to an existing branch or create a new one."""

    path: str
    env: Environment
    current: str
    branches: tuple[str, ...]
    selected: str = ""
    new_name: str = ""
    intent: Literal["switch", "create"] = "switch"

    def __post_init__(self) -> None:
        if not self.selected:
            self.selected = self.current

    def choose(self, branch: str) -> None:
        self.selected = branch
        self.intent = "switch"

    def update_input(self, text: str) -> None:
        self.new_name = text
        self.intent = "create"

    def labels(self) -> list[str]:
        return [f"{name} (current)" if name == self.current else name for name in self.branches]

    @property
    def can_confirm(self) -> bool:
        if self.intent == "create":
            return is_valid_branch_name(self.new_name.strip())
        return self.selected in self.branches and self.selected != self.current


@dataclass
class StashPrompt:
    path: str
    env: Environment
    choice: Literal["stash", "pop"] | None = None


@dataclass
class CommitHistoryView:
    name: str
    commits: list[Commit] = field(default_factory=list)
    error: str = ""

    def lines(self, now: float) -> list[str]:
        if self.error:
            return [self.error]
        if not self.commits:
            return ["No commits found in this repository."]
        return [
            f"{commit.short_hash} {commit.message} by {commit.author}, {format_last_opened(commit.timestamp, now)}"
            for commit in self.commits
        ]


def history_error_message(error: Exception) -> str:
    text = str(error).lower()
    if "not a git repository" in text or "no commits yet" in text or "does not have any commits" in text:
        return "This project has no commits yet. Make some changes and commit them first!"
    if "failed to run git" in text:
        return "Git is not available or not installed on your system."
    return "Unable to load commit history. This might be a new repository with no commits."


DeletePrompt = Callable[[DeleteConfirmation], bool]


class ConfirmDeleteFlow:
    """Opens a typed-name confirmation and deletes only when it is accepted."""

    def __init__(
        self,
        store: StateStore,
        backend: ProjectBackend,
        notifier: Notifier,
        prompt: DeletePrompt,
    ) -> None:
        self.store = store
        self.backend = backend
        self.notifier = notifier
        self.prompt = prompt
        self._tasks: set[asyncio.Task[bool]] = set()

    def __call__(self, name: str, path: str) -> None:
        task = asyncio.get_running_loop().create_task(self.run(name, path))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def run(self, name: str, path: str) -> bool:
        dialog = DeleteConfirmation(name=name, path=path, env=self._env_for(path))
        accepted = self.prompt(dialog)
        if not accepted or not dialog.can_confirm:
            logger.debug("Delete cancelled project=%s", name)
            return False

        try:
            await self.backend.delete_project(dialog.path, dialog.name, dialog.env)
        except DevLauncherError as exc:
            logger.error("Delete failed project=%s error=%s", name, exc)
            self.notifier.error(f"Delete failed: {exc}")
            return False
        except Exception as exc:
            logger.exception("Delete failed project=%s", name)
            self.notifier.error(f"Delete failed: {exc}")
            return False

        self.store.set_projects(project for project in self.store.projects if project.name != name)
        self.notifier.success("Project deleted!")
        return True

    def _env_for(self, path: str) -> Environment:
        for project in self.store.projects:
            if project.path == path:
                return project.env
        return Environment.from_path(path)
