"""Concurrent git status loading merged back into launcher state."""

from __future__ import annotations

import asyncio
import logging as py_logging
from collections.abc import Sequence
from dataclasses import replace

from devlauncher.backend.protocol import ProjectBackend
from devlauncher.models import GitStatus, Project
from devlauncher.state import StateStore

logger = py_logging.getLogger(__name__)


class StatusEnricher:
    def __init__(self, store: StateStore, backend: ProjectBackend) -> None:
        self.store = store
        self.backend = backend
        self._cache: dict[str, GitStatus] = {}
        self._generation = 0
        self._merged_generation: dict[str, int] = {}
        self._tasks: set[asyncio.Task[bool]] = set()

    def cached(self, path: str) -> GitStatus | None:
        return self._cache.get(path)

    def schedule(self, projects: Sequence[Project]) -> asyncio.Task[bool]:
        """Start a batch in the background on the running loop."""
        task = asyncio.get_running_loop().create_task(self.enrich(projects))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def enrich(self, projects: Sequence[Project]) -> bool:
        """Fetch every status concurrently, then merge once; True when state changed."""
        self._generation += 1
        generation = self._generation
        requested = list(projects)
        if not requested:
            return False
        logger.debug("status-batch start generation=%s count=%s", generation, len(requested))

        results = await asyncio.gather(
            *(self.backend.get_status(project.path, project.env) for project in requested),
            return_exceptions=True,
        )

        fetched: dict[str, GitStatus] = {}
        for project, result in zip(requested, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.debug("status-batch lookup failed path=%s error=%s", project.path, result)
                continue
            if result is None:
                continue
            fetched[project.path] = result

        current = list(self.store.projects)
        merged = 0
        for index, project in enumerate(current):
            status = fetched.get(project.path)
            if status is None:
                continue
            if self._merged_generation.get(project.path, 0) > generation:
                logger.debug("status-batch stale path=%s generation=%s", project.path, generation)
                continue
            current[index] = replace(project, status=status)
            self._cache[project.path] = status
            self._merged_generation[project.path] = generation
            merged += 1

        logger.debug(
            "status-batch done generation=%s fetched=%s merged=%s",
            generation,
            len(fetched),
            merged,
        )
        if not merged:
            return False
        self.store.set_projects(current)
        return True
