"""Launcher error model: CLI exit codes and next-step hints for tool failures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    INVALID_ARGS = 2
    RUNTIME_ERROR = 4
    BACKEND_ERROR = 5
    GUI_UNAVAILABLE = 6
    VALIDATION_ERROR = 7


_PUSH_ACCESS_HINT = "You don't have push access to this repository."
_NO_UPSTREAM_HINT = "No remote tracking branch. This project may not have been pushed yet."
_GH_LOGIN_HINT = "Log in with `gh auth login` and retry."

# Lower-cased fragments of git, gh and wsl.exe output, checked in order.
OUTPUT_HINTS: tuple[tuple[str, str], ...] = (
    ("not a git repository", "This folder is not a git repository."),
    ("does not have any commits", "This project has no commits yet."),
    ("no tracking information", _NO_UPSTREAM_HINT),
    ("no upstream branch", _NO_UPSTREAM_HINT),
    ("denied to push", _PUSH_ACCESS_HINT),
    ("permission denied", _PUSH_ACCESS_HINT),
    ("the requested url returned error: 403", _PUSH_ACCESS_HINT),
    ("no stash entries found", "No stashed changes to restore."),
    ("already exists", "A folder or branch with that name already exists."),
    ("did not match any file(s) known to git", "That branch does not exist."),
    ("could not read username", _GH_LOGIN_HINT),
    ("authentication failed", _GH_LOGIN_HINT),
    ("gh auth login", _GH_LOGIN_HINT),
    ("windows subsystem for linux has no installed distributions", "Install a WSL distribution first."),
)


def hint_for_output(output: str, *, default: str = "") -> str:
    """Map raw tool output to the step a user can take next.

    Unrecognised output is returned as-is so the user still sees what the
    tool said; empty output falls back to ``default``.
    """
    lowered = output.lower()
    for marker, hint in OUTPUT_HINTS:
        if marker in lowered:
            return hint
    return output.strip() or default


@dataclass
class DevLauncherError(Exception):
    message: str
    code: ExitCode = ExitCode.RUNTIME_ERROR
    hint: str = ""
    step: str = ""

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message


def backend_error(message: str, *, step: str, output: str = "", hint: str = "") -> DevLauncherError:
    """Build the error raised when a git, gh, wsl or filesystem step fails."""
    return DevLauncherError(
        message,
        code=ExitCode.BACKEND_ERROR,
        hint=hint or hint_for_output(output),
        step=step,
    )


def user_facing_error(error: DevLauncherError | str, *, hint: str = "") -> str:
    """Render an error for stderr in the CLI."""
    if isinstance(error, DevLauncherError):
        message = error.message.rstrip(".")
        hint = hint or error.hint
        if error.step:
            message = f"{message} ({error.step})"
    else:
        message = error.rstrip(".")
    if hint:
        return f"Error: {message}. Next step: {hint}"
    return f"Error: {message}."
