"""Backend command boundary consumed by the launcher UI."""

from __future__ import annotations

from typing import Protocol

from devlauncher.models import BranchList, Commit, Environment, GitStatus, Project, Template


class ProjectBackend(Protocol):
    async def list_projects_fast(self) -> list[Project]: ...

    async def scan_wsl_projects(self) -> list[Project]: ...

    async def get_status(self, path: str, env: Environment) -> GitStatus | None: ...

    async def delete_project(self, path: str, name: str, env: Environment) -> None: ...

    async def check_project_exists(self, name: str, env: Environment) -> bool: ...

    async def create_project(
        self,
        name: str,
        env: Environment,
        template: Template,
        create_github: bool = False,
    ) -> str: ...

    async def git_clone(self, url: str, env: Environment) -> str: ...

    async def open_project(self, path: str, env: Environment) -> None: ...

    async def git_pull(self, path: str, env: Environment) -> None: ...

    async def git_push(self, path: str, env: Environment, message: str) -> None: ...

    async def get_branches(self, path: str, env: Environment) -> BranchList: ...

    async def switch_branch(self, path: str, env: Environment, branch: str) -> None: ...

    async def create_branch(self, path: str, env: Environment, branch: str) -> None: ...

    async def get_commit_history(self, path: str, env: Environment, limit: int = 20) -> list[Commit]: ...

    async def get_diff(self, path: str, env: Environment) -> str: ...

    async def git_stash(self, path: str, env: Environment) -> str: ...

    async def git_stash_pop(self, path: str, env: Environment) -> str: ...

    async def check_github_auth(self) -> str | None: ...

    async def github_login(self) -> None: ...

    async def open_root(self, env: Environment) -> None: ...

    async def open_terminal(self, env: Environment) -> None: ...
