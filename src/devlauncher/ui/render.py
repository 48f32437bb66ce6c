"""Project grid projection and the project-list load step."""

from __future__ import annotations

import logging as py_logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import Protocol

from devlauncher.backend.protocol import ProjectBackend
from devlauncher.models import Environment, Project
from devlauncher.state import AppState, StateStore
from devlauncher.ui.enricher import StatusEnricher
from devlauncher.ui.toast import Notifier

logger = py_logging.getLogger(__name__)


class Placeholder(str, Enum):
    EMPTY = 'No projects found. Click "+ NEW" to create one!'
    ALL_PINNED = "All projects are pinned!"
    LOAD_FAILED = "Failed to load projects. Please restart the app."


@dataclass(frozen=True)
class ProjectCard:
    name: str
    path: str
    env: Environment
    pinned: bool
    time_label: str
    branch: str = ""
    status_label: str = "Loading..."
    status_class: str = ""
    commits_label: str = ""
    can_pull: bool = False
    can_push: bool = False

    @property
    def has_status(self) -> bool:
        return bool(self.branch)


@dataclass(frozen=True)
class GridView:
    pinned: tuple[ProjectCard, ...] = ()
    unpinned: tuple[ProjectCard, ...] = ()
    placeholder: Placeholder | None = None

    @property
    def pinned_visible(self) -> bool:
        return bool(self.pinned)

    def cards(self) -> tuple[ProjectCard, ...]:
        return self.pinned + self.unpinned


class GridSurface(Protocol):
    def draw(self, view: GridView) -> None: ...


def format_last_opened(last_opened: int, now: float) -> str:
    if last_opened == 0:
        return "unknown"
    diff = int(now) - last_opened
    if diff < 60:
        return "just now"
    if diff < 3600:
        return f"{diff // 60}m ago"
    if diff < 86400:
        return f"{diff // 3600}h ago"
    if diff < 604800:
        return f"{diff // 86400}d ago"
    return f"{diff // 604800}w ago"


def build_card(project: Project, now: float) -> ProjectCard:
    card = ProjectCard(
        name=project.name,
        path=project.path,
        env=project.env,
        pinned=project.pinned,
        time_label=format_last_opened(project.last_opened, now),
    )
    status = project.status
    if status is None or not status.branch:
        return card

    parts: list[str] = []
    if status.commits_ahead > 0:
        parts.append(f"⬆{status.commits_ahead}")
    if status.commits_behind > 0:
        parts.append(f"⬇{status.commits_behind}")
    return replace(
        card,
        branch=status.branch,
        status_label=f"{'✓' if status.is_clean else '●'} {status.branch}",
        status_class="clean" if status.is_clean else "dirty",
        commits_label=" ".join(parts),
        can_pull=status.commits_behind > 0,
        can_push=not status.is_clean or status.commits_ahead > 0,
    )


def sort_projects(projects: Sequence[Project], order: Sequence[str]) -> list[Project]:
    """Stable sort by position in ``order``; names missing from it go last."""
    positions: dict[str, int] = {}
    for index, name in enumerate(order):
        positions.setdefault(name, index)
    missing = len(positions) + len(order)
    return sorted(projects, key=lambda project: positions.get(project.name, missing))


def build_grid(state: AppState, *, now: float, load_failed: bool = False) -> GridView:
    stamped = [replace(project, pinned=project.name in state.pinned) for project in state.projects]
    ordered = sort_projects(stamped, state.order)
    pinned = tuple(build_card(project, now) for project in ordered if project.pinned)
    unpinned = tuple(build_card(project, now) for project in ordered if not project.pinned)

    placeholder: Placeholder | None = None
    if load_failed:
        unpinned = ()
        placeholder = Placeholder.LOAD_FAILED
    elif not unpinned:
        placeholder = Placeholder.EMPTY if not stamped else Placeholder.ALL_PINNED
    return GridView(pinned=pinned, unpinned=unpinned, placeholder=placeholder)


def filter_view(view: GridView, query: str) -> GridView:
    """Keep the cards whose name or path contains ``query`` (case-insensitive)."""
    needle = query.strip().lower()
    if not needle:
        return view

    def matches(card: ProjectCard) -> bool:
        return needle in card.name.lower() or needle in card.path.lower()

    return replace(
        view,
        pinned=tuple(card for card in view.pinned if matches(card)),
        unpinned=tuple(card for card in view.unpinned if matches(card)),
    )


def view_lines(view: GridView) -> list[str]:
    """Plain-text rendition of a grid for terminals and logs."""
    lines: list[str] = []

    def card_line(card: ProjectCard) -> str:
        status = card.status_label
        if card.commits_label:
            status = f"{status} {card.commits_label}"
        return f"  {card.name:<28} {status:<24} {card.time_label:<10} {card.path}"

    if view.pinned_visible:
        lines.append("PINNED")
        lines.extend(card_line(card) for card in view.pinned)
        lines.append("")
    lines.append("PROJECTS")
    if view.placeholder is not None:
        lines.append(f"  {view.placeholder.value}")
    lines.extend(card_line(card) for card in view.unpinned)
    return lines


class TextSurface:
    def __init__(self) -> None:
        self.lines: list[str] = []
        self.draw_count = 0

    def draw(self, view: GridView) -> None:
        self.lines = view_lines(view)
        self.draw_count += 1


class RenderPipeline:
    def __init__(
        self,
        store: StateStore,
        surface: GridSurface,
        *,
        backend: ProjectBackend,
        enricher: StatusEnricher,
        notifier: Notifier,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.surface = surface
        self.backend = backend
        self.enricher = enricher
        self.notifier = notifier
        self.clock = clock
        self.load_failed = False
        self.last_view: GridView | None = None

    def render(self) -> GridView:
        view = build_grid(self.store.snapshot(), now=self.clock(), load_failed=self.load_failed)
        self.last_view = view
        self.surface.draw(view)
        return view

    async def load_projects(self) -> bool:
        env = self.store.active_env
        logger.info("Loading projects env=%s", env.value)
        try:
            if env == Environment.WINDOWS:
                projects = await self.backend.list_projects_fast()
            else:
                projects = await self.backend.scan_wsl_projects()
        except Exception:
            logger.exception("Failed to load projects env=%s", env.value)
            self.load_failed = True
            self.render()
            self.notifier.error("Failed to load projects")
            return False

        self.load_failed = False
        fresh = [self._with_cached_status(project) for project in projects]
        self.store.set_projects(fresh)
        logger.debug("Loaded projects env=%s count=%s", env.value, len(fresh))
        self.enricher.schedule(fresh)
        return True

    def _with_cached_status(self, project: Project) -> Project:
        if project.status is not None:
            return project
        cached = self.enricher.cached(project.path)
        if cached is None:
            return project
        return replace(project, status=cached)
