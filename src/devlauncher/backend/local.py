"""Subprocess-backed implementation of the launcher backend boundary."""

from __future__ import annotations

import asyncio
import logging as py_logging
import os
import shlex
import shutil
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path

from devlauncher.backend.git_status import (
    LOG_FORMAT,
    is_valid_branch_name,
    parse_branch_list,
    parse_commit_log,
    parse_porcelain_status,
)
from devlauncher.backend.templates import template_plan, validate_project_name
from devlauncher.backend.wsl import build_wsl_command, decode_process_output
from devlauncher.errors import DevLauncherError, ExitCode, backend_error
from devlauncher.models import BranchList, Commit, Environment, GitStatus, Project, Template

logger = py_logging.getLogger(__name__)

DEFAULT_WINDOWS_ROOT = Path("~/projects")
DEFAULT_WSL_ROOT_NAME = "projects"
DEFAULT_HISTORY_LIMIT = 20
INITIAL_COMMIT_MESSAGE = "Initial commit"
_STATUS_ARGS = ("status", "--porcelain=v1", "--branch")
_NOTHING_TO_COMMIT_MARKERS = ("nothing to commit", "no changes added to commit")
_NOTHING_TO_STASH_MARKER = "no local changes to save"

Runner = Callable[..., subprocess.CompletedProcess]


def command_for_log(args: Sequence[str]) -> str:
    if not args:
        return ""
    return " ".join(shlex.quote(part) for part in args)


def repository_name(url: str) -> str:
    """Folder name ``git clone`` will create for ``url``."""
    trimmed = url.strip().rstrip("/")
    if trimmed.endswith(".git"):
        trimmed = trimmed[: -len(".git")]
    name = trimmed.replace(":", "/").rsplit("/", 1)[-1]
    if not name or name in (".", ".."):
        raise DevLauncherError(
            "Invalid repository URL.",
            code=ExitCode.VALIDATION_ERROR,
            hint="Use a URL such as https://github.com/user/repo.git",
        )
    return name


class LocalBackend:
    """Runs git/filesystem work with blocking subprocess calls off the event loop."""

    def __init__(
        self,
        *,
        windows_root: str | Path | None = None,
        wsl_root: str = "",
        distribution: str = "",
        runner: Runner = subprocess.run,
    ) -> None:
        self.windows_root = Path(windows_root or DEFAULT_WINDOWS_ROOT).expanduser()
        self.distribution = distribution
        self._wsl_root = wsl_root.rstrip("/")
        self._runner = runner

    async def list_projects_fast(self) -> list[Project]:
        return await asyncio.to_thread(self._list_windows_projects)

    async def scan_wsl_projects(self) -> list[Project]:
        try:
            return await asyncio.to_thread(self._scan_wsl_projects)
        except DevLauncherError as exc:
            logger.warning("WSL project scan failed: %s", exc)
            return []

    async def get_status(self, path: str, env: Environment) -> GitStatus | None:
        result = await asyncio.to_thread(
            self._run, self._git_command(path, env, _STATUS_ARGS), step="git-status", check=False
        )
        if result.returncode != 0:
            logger.debug("No git status for path=%s code=%s", path, result.returncode)
            return None
        return parse_porcelain_status(decode_process_output(result.stdout))

    async def delete_project(self, path: str, name: str, env: Environment) -> None:
        logger.info("Deleting project name=%s path=%s env=%s", name, path, env.value)
        await asyncio.to_thread(self._delete_project, path, env)

    async def check_project_exists(self, name: str, env: Environment) -> bool:
        return await asyncio.to_thread(self._project_exists, validate_project_name(name), env)

    async def create_project(
        self,
        name: str,
        env: Environment,
        template: Template,
        create_github: bool = False,
    ) -> str:
        cleaned = validate_project_name(name)
        logger.info(
            "Creating project name=%s env=%s template=%s github=%s",
            cleaned,
            env.value,
            template.value,
            create_github,
        )
        return await asyncio.to_thread(self._create_project, cleaned, env, template, create_github)

    async def git_clone(self, url: str, env: Environment) -> str:
        name = repository_name(url)
        logger.info("Cloning repository url=%s env=%s", url.strip(), env.value)
        await asyncio.to_thread(self._git_clone, url.strip(), env)
        return name

    async def open_project(self, path: str, env: Environment) -> None:
        command = ["code", path]
        if env == Environment.WSL:
            command = build_wsl_command(["code", path], distribution=self.distribution)
        await asyncio.to_thread(self._run, command, step="open-project")

    async def git_pull(self, path: str, env: Environment) -> None:
        result = await asyncio.to_thread(
            self._run, self._git_command(path, env, ("pull",)), step="git-pull", check=False
        )
        if result.returncode != 0:
            raise backend_error("Git pull failed.", step="git-pull", output=_combined_output(result))

    async def git_push(self, path: str, env: Environment, message: str) -> None:
        await asyncio.to_thread(self._git_push, path, env, message)

    async def get_branches(self, path: str, env: Environment) -> BranchList:
        result = await asyncio.to_thread(
            self._run, self._git_command(path, env, ("branch", "--all")), step="git-branch", check=False
        )
        if result.returncode != 0:
            raise backend_error("Failed to get branches.", step="git-branch", output=_combined_output(result))
        return parse_branch_list(decode_process_output(result.stdout))

    async def switch_branch(self, path: str, env: Environment, branch: str) -> None:
        _require_branch_name(branch)
        result = await asyncio.to_thread(
            self._run, self._git_command(path, env, ("checkout", branch)), step="git-checkout", check=False
        )
        if result.returncode != 0:
            raise backend_error(
                f"Failed to switch to branch '{branch}'.",
                step="git-checkout",
                output=_combined_output(result),
            )
        logger.info("Switched branch path=%s branch=%s", path, branch)

    async def create_branch(self, path: str, env: Environment, branch: str) -> None:
        _require_branch_name(branch)
        result = await asyncio.to_thread(
            self._run,
            self._git_command(path, env, ("checkout", "-b", branch)),
            step="git-create-branch",
            check=False,
        )
        if result.returncode != 0:
            raise backend_error(
                f"Failed to create branch '{branch}'.",
                step="git-create-branch",
                output=_combined_output(result),
            )
        logger.info("Created branch path=%s branch=%s", path, branch)

    async def get_commit_history(
        self,
        path: str,
        env: Environment,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[Commit]:
        args = ("log", f"-{max(1, limit)}", f"--pretty=format:{LOG_FORMAT}")
        result = await asyncio.to_thread(
            self._run, self._git_command(path, env, args), step="git-log", check=False
        )
        if result.returncode != 0:
            raise backend_error(
                "Failed to get commit history.", step="git-log", output=_combined_output(result)
            )
        return parse_commit_log(decode_process_output(result.stdout))

    async def get_diff(self, path: str, env: Environment) -> str:
        result = await asyncio.to_thread(
            self._run, self._git_command(path, env, ("diff", "HEAD")), step="git-diff", check=False
        )
        if result.returncode != 0:
            raise backend_error("Failed to get diff.", step="git-diff", output=_combined_output(result))
        return decode_process_output(result.stdout)

    async def git_stash(self, path: str, env: Environment) -> str:
        result = await asyncio.to_thread(
            self._run, self._git_command(path, env, ("stash",)), step="git-stash", check=False
        )
        output = _combined_output(result)
        if result.returncode != 0:
            raise backend_error("Failed to stash changes.", step="git-stash", output=output)
        if _NOTHING_TO_STASH_MARKER in output.lower():
            return "No changes to stash"
        return "Changes stashed successfully"

    async def git_stash_pop(self, path: str, env: Environment) -> str:
        result = await asyncio.to_thread(
            self._run, self._git_command(path, env, ("stash", "pop")), step="git-stash-pop", check=False
        )
        if result.returncode != 0:
            raise backend_error(
                "Failed to apply stash.", step="git-stash-pop", output=_combined_output(result)
            )
        return "Stash applied successfully"

    async def check_github_auth(self) -> str | None:
        try:
            result = await asyncio.to_thread(
                self._run, ["gh", "api", "user", "--jq", ".login"], step="github-auth", check=False
            )
        except DevLauncherError as exc:
            logger.debug("GitHub CLI unavailable: %s", exc)
            return None
        login = decode_process_output(result.stdout).strip()
        if result.returncode != 0 or not login:
            return None
        return login

    async def github_login(self) -> None:
        # gh auth login is interactive, so it gets its own terminal window.
        await asyncio.to_thread(self._run, ["wt.exe", "gh", "auth", "login"], step="github-login")

    async def open_root(self, env: Environment) -> None:
        if env == Environment.WSL:
            root = await asyncio.to_thread(self._resolve_wsl_root)
            command = ["wsl.exe", "--cd", root, "--", "explorer.exe", "."]
        else:
            command = ["explorer.exe", str(self.windows_root)]
        await asyncio.to_thread(self._run, command, step="open-root", check=False)

    async def open_terminal(self, env: Environment) -> None:
        if env == Environment.WSL:
            root = await asyncio.to_thread(self._resolve_wsl_root)
            command = ["wt.exe", "wsl.exe", "--cd", root]
        else:
            command = ["wt.exe", "-d", str(self.windows_root)]
        await asyncio.to_thread(self._run, command, step="open-terminal")

    def _list_windows_projects(self) -> list[Project]:
        if not self.windows_root.is_dir():
            logger.info("Project root does not exist path=%s", self.windows_root)
            return []
        projects: list[Project] = []
        try:
            with os.scandir(self.windows_root) as entries:
                for entry in entries:
                    if not entry.is_dir():
                        continue
                    try:
                        last_opened = int(entry.stat().st_mtime)
                    except OSError:
                        last_opened = 0
                    projects.append(
                        Project(
                            name=entry.name,
                            path=entry.path,
                            env=Environment.WINDOWS,
                            last_opened=last_opened,
                        )
                    )
        except OSError as exc:
            raise backend_error(
                f"Failed to list projects in {self.windows_root}.", step="list-projects", hint=str(exc)
            ) from exc
        projects.sort(key=lambda item: item.name.lower())
        logger.debug("Listed host projects count=%s", len(projects))
        return projects

    def _scan_wsl_projects(self) -> list[Project]:
        root = self._resolve_wsl_root()
        command = build_wsl_command(["ls", "-1", root], distribution=self.distribution)
        result = self._run(command, step="wsl-scan")
        projects = [
            Project(name=name, path=f"{root}/{name}", env=Environment.WSL)
            for name in (line.strip() for line in decode_process_output(result.stdout).splitlines())
            if name
        ]
        logger.debug("Scanned WSL projects count=%s", len(projects))
        return projects

    def _resolve_wsl_root(self) -> str:
        if self._wsl_root:
            return self._wsl_root
        command = build_wsl_command(["sh", "-c", 'printf %s "$HOME"'], distribution=self.distribution)
        home = decode_process_output(self._run(command, step="wsl-home").stdout).strip()
        if not home.startswith("/"):
            raise backend_error(
                "Failed to resolve the WSL home directory.",
                step="wsl-home",
                hint="Ensure the default WSL distribution is installed and running.",
            )
        self._wsl_root = f"{home.rstrip('/')}/{DEFAULT_WSL_ROOT_NAME}"
        return self._wsl_root

    def _project_path(self, name: str, env: Environment) -> str:
        if env == Environment.WSL:
            return f"{self._resolve_wsl_root()}/{name}"
        return str(self.windows_root / name)

    def _wsl_dir_exists(self, path: str) -> bool:
        result = self._run(
            build_wsl_command(["test", "-d", path], distribution=self.distribution),
            step="wsl-exists",
            check=False,
        )
        return result.returncode == 0

    def _project_exists(self, name: str, env: Environment) -> bool:
        path = self._project_path(name, env)
        if env == Environment.WSL:
            return self._wsl_dir_exists(path)
        return Path(path).exists()

    def _delete_project(self, path: str, env: Environment) -> None:
        if env == Environment.WSL:
            if not self._wsl_dir_exists(path):
                raise backend_error(f"Project folder does not exist: {path}", step="wsl-delete")
            self._run(
                build_wsl_command(["rm", "-rf", path], distribution=self.distribution),
                step="wsl-delete",
            )
            return

        target = Path(path)
        if not target.exists():
            raise backend_error(f"Project folder does not exist: {path}", step="delete")
        try:
            shutil.rmtree(target)
        except PermissionError as exc:
            raise backend_error(
                "Cannot delete project.",
                step="delete",
                hint="Close any editor or program using this folder first.",
            ) from exc
        except OSError as exc:
            raise backend_error(
                f"Failed to delete project folder '{path}'.", step="delete", hint=str(exc)
            ) from exc

    def _create_project(self, name: str, env: Environment, template: Template, create_github: bool) -> str:
        if self._project_exists(name, env):
            raise backend_error(
                f"Project '{name}' already exists.",
                step="create-project",
                hint="Pick another name or open the existing project.",
            )
        path = self._project_path(name, env)
        self._make_dir(path, env)

        plan = template_plan(template, name)
        for command in plan.commands:
            self._run(
                self._tool_command(command, path, env),
                step=f"template-{template.value}",
                cwd=None if env == Environment.WSL else path,
            )
        for filename, content in plan.files.items():
            self._write_file(path, filename, content, env)

        self._run(self._git_command(path, env, ("init", "-b", "main")), step="git-init")
        self._commit_all(path, env, INITIAL_COMMIT_MESSAGE)
        if create_github:
            self._publish(name, path, env)
        return path

    def _make_dir(self, path: str, env: Environment) -> None:
        if env == Environment.WSL:
            self._run(build_wsl_command(["mkdir", "-p", path], distribution=self.distribution), step="mkdir")
            return
        try:
            Path(path).mkdir(parents=True)
        except OSError as exc:
            raise backend_error(f"Failed to create directory '{path}'.", step="mkdir", hint=str(exc)) from exc

    def _write_file(self, folder: str, filename: str, content: str, env: Environment) -> None:
        if env == Environment.WSL:
            target = f"{folder}/{filename}"
            command = build_wsl_command(["sh", "-c", f"cat > {shlex.quote(target)}"], distribution=self.distribution)
            self._run(command, step="write-file", stdin=content.encode("utf-8"))
            return
        try:
            Path(folder, filename).write_text(content, encoding="utf-8")
        except OSError as exc:
            raise backend_error(f"Failed to write {filename}.", step="write-file", hint=str(exc)) from exc

    def _tool_command(self, command: Sequence[str], cwd: str, env: Environment) -> list[str]:
        if env == Environment.WSL:
            return build_wsl_command(command, distribution=self.distribution, cwd=cwd)
        # npm and npx are .cmd shims on Windows and need their full path.
        return [shutil.which(command[0]) or command[0], *command[1:]]

    def _git_clone(self, url: str, env: Environment) -> None:
        if env == Environment.WSL:
            root = self._resolve_wsl_root()
            self._run(build_wsl_command(["mkdir", "-p", root], distribution=self.distribution), step="mkdir")
        else:
            root = str(self.windows_root)
            self.windows_root.mkdir(parents=True, exist_ok=True)
        result = self._run(self._git_command(root, env, ("clone", url)), step="git-clone", check=False)
        if result.returncode != 0:
            raise backend_error("Git clone failed.", step="git-clone", output=_combined_output(result))

    def _commit_all(self, path: str, env: Environment, message: str) -> None:
        self._run(self._git_command(path, env, ("add", "-A")), step="git-add")
        commit = self._run(
            self._git_command(path, env, ("commit", "-m", message)), step="git-commit", check=False
        )
        if commit.returncode != 0:
            output = _combined_output(commit)
            if not any(marker in output.lower() for marker in _NOTHING_TO_COMMIT_MARKERS):
                raise backend_error("Git commit failed.", step="git-commit", output=output)

    def _has_origin(self, path: str, env: Environment) -> bool:
        result = self._run(
            self._git_command(path, env, ("remote", "get-url", "origin")), step="git-remote", check=False
        )
        return result.returncode == 0

    def _publish(self, name: str, path: str, env: Environment) -> None:
        """Create a private GitHub repository and push ``main`` to it."""
        created = self._run(["gh", "repo", "create", name, "--private"], step="github-create", check=False)
        output = _combined_output(created)
        if created.returncode != 0:
            raise backend_error("Failed to create the GitHub repository.", step="github-create", output=output)
        url = decode_process_output(created.stdout).strip().splitlines()
        if not url or not url[-1].startswith(("https://", "git@")):
            raise backend_error(
                "GitHub did not return a repository URL.", step="github-create", hint=output
            )
        logger.info("Created GitHub repository name=%s url=%s", name, url[-1])
        self._run(self._git_command(path, env, ("remote", "add", "origin", url[-1])), step="git-remote")
        self._run(self._git_command(path, env, ("branch", "-M", "main")), step="git-branch")
        self._push(path, env, ("push", "-u", "origin", "main"))

    def _git_push(self, path: str, env: Environment, message: str) -> None:
        has_origin = self._has_origin(path, env)
        self._commit_all(path, env, message)
        if not has_origin:
            name = path.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]
            logger.info("No origin remote path=%s; publishing to GitHub as %s", path, name)
            self._publish(name, path, env)
            return
        self._push(path, env, ("push",))

    def _push(self, path: str, env: Environment, args: Sequence[str]) -> None:
        push = self._run(self._git_command(path, env, args), step="git-push", check=False)
        if push.returncode != 0:
            raise backend_error("Git push failed.", step="git-push", output=_combined_output(push))

    def _git_command(self, path: str, env: Environment, args: Sequence[str]) -> list[str]:
        command = ["git", "-C", path, *args]
        if env == Environment.WSL:
            return build_wsl_command(command, distribution=self.distribution)
        return command

    def _run(
        self,
        command: list[str],
        *,
        step: str,
        check: bool = True,
        cwd: str | None = None,
        stdin: bytes | None = None,
    ) -> subprocess.CompletedProcess:
        logger.debug("backend-run step=%s command=%s", step, command_for_log(command))
        try:
            result = self._runner(
                command,
                capture_output=True,
                text=False,
                check=False,
                cwd=cwd,
                input=stdin,
            )
        except OSError as exc:
            logger.error("backend-run step=%s failed to start: %s", step, exc)
            raise backend_error(f"Failed to run {command[0]}.", step=step, hint=str(exc)) from exc
        if check and result.returncode != 0:
            output = _combined_output(result)
            logger.error("backend-run step=%s exit=%s output=%s", step, result.returncode, output)
            raise backend_error(
                f"Command failed during {step}.",
                step=step,
                output=output,
                hint="" if output else f"Exit code {result.returncode}.",
            )
        return result


def _require_branch_name(branch: str) -> None:
    if not is_valid_branch_name(branch):
        raise DevLauncherError(
            f"Invalid branch name '{branch}'.",
            code=ExitCode.VALIDATION_ERROR,
            hint="Branch names cannot contain spaces, '..', '~', '^', ':' or start with '-'.",
        )


def _combined_output(result: subprocess.CompletedProcess) -> str:
    stdout = decode_process_output(result.stdout).strip()
    stderr = decode_process_output(result.stderr).strip()
    return "\n".join(part for part in (stdout, stderr) if part)
