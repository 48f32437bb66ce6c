from __future__ import annotations

import pytest

from devlauncher.errors import (
    OUTPUT_HINTS,
    DevLauncherError,
    ExitCode,
    backend_error,
    hint_for_output,
    user_facing_error,
)


def test_exit_codes_are_deterministic() -> None:
    assert int(ExitCode.SUCCESS) == 0
    assert int(ExitCode.INVALID_ARGS) == 2
    assert int(ExitCode.RUNTIME_ERROR) == 4
    assert int(ExitCode.BACKEND_ERROR) == 5
    assert int(ExitCode.GUI_UNAVAILABLE) == 6
    assert int(ExitCode.VALIDATION_ERROR) == 7


def test_error_string_contains_hint() -> None:
    err = DevLauncherError("git not found", code=ExitCode.BACKEND_ERROR, hint="Install git")
    assert str(err) == "git not found Hint: Install git"


def test_error_string_without_hint() -> None:
    assert str(DevLauncherError("msg")) == "msg"


@pytest.mark.parametrize(
    ("output", "expected"),
    [
        ("fatal: not a git repository (or any parent)", "This folder is not a git repository."),
        ("There is no tracking information for the current branch.", OUTPUT_HINTS[2][1]),
        ("remote: Permission denied to octo.", "You don't have push access to this repository."),
        ("No stash entries found.", "No stashed changes to restore."),
        ("fatal: could not read Username for 'https://github.com'", "Log in with `gh auth login` and retry."),
    ],
)
def test_known_tool_output_maps_to_hint(output: str, expected: str) -> None:
    assert hint_for_output(output) == expected


def test_unknown_output_is_passed_through() -> None:
    assert hint_for_output("  fatal: something odd  ") == "fatal: something odd"
    assert hint_for_output("", default="Exit code 3.") == "Exit code 3."


def test_backend_error_records_step_and_hint() -> None:
    err = backend_error("Git pull failed.", step="git-pull", output="fatal: not a git repository")

    assert err.code == ExitCode.BACKEND_ERROR
    assert err.step == "git-pull"
    assert err.hint == "This folder is not a git repository."


def test_backend_error_explicit_hint_wins() -> None:
    err = backend_error("Cannot delete project.", step="delete", output="denied", hint="Close the editor.")

    assert err.hint == "Close the editor."


def test_user_facing_error_template() -> None:
    assert user_facing_error("something went wrong") == "Error: something went wrong."
    assert (
        user_facing_error("something went wrong", hint="try again")
        == "Error: something went wrong. Next step: try again"
    )


def test_user_facing_error_names_failed_step() -> None:
    err = backend_error("Git clone failed.", step="git-clone", hint="Check the URL.")

    assert user_facing_error(err) == "Error: Git clone failed (git-clone). Next step: Check the URL."
