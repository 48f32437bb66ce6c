from __future__ import annotations

import pytest

from devlauncher.backend.git_status import (
    is_valid_branch_name,
    parse_branch_header,
    parse_branch_list,
    parse_commit_log,
    parse_porcelain_status,
)
from devlauncher.backend.wsl import build_wsl_command, decode_process_output
from devlauncher.errors import DevLauncherError
from devlauncher.models import BranchList, Commit, GitStatus


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        ("## main", ("main", 0, 0)),
        ("## main...origin/main", ("main", 0, 0)),
        ("## main...origin/main [ahead 3]", ("main", 3, 0)),
        ("## dev...origin/dev [behind 2]", ("dev", 0, 2)),
        ("## feat/x...origin/feat/x [ahead 1, behind 4]", ("feat/x", 1, 4)),
        ("## No commits yet on trunk", ("trunk", 0, 0)),
        ("## HEAD (no branch)", ("", 0, 0)),
        ("## main...origin/main [gone]", ("main", 0, 0)),
    ],
)
def test_parse_branch_header(header: str, expected: tuple[str, int, int]) -> None:
    assert parse_branch_header(header) == expected


def test_clean_repository() -> None:
    assert parse_porcelain_status("## main...origin/main\n") == GitStatus(branch="main", is_clean=True)


def test_dirty_repository_counts_changes() -> None:
    output = "## main...origin/main [ahead 1]\n M src/app.py\n?? notes.txt\n"

    status = parse_porcelain_status(output)

    assert status == GitStatus(
        branch="main",
        is_clean=False,
        commits_ahead=1,
        commits_behind=0,
        uncommitted_files=2,
    )


def test_output_without_branch_header_is_not_a_status() -> None:
    assert parse_porcelain_status("") is None
    assert parse_porcelain_status("fatal: not a git repository") is None


def test_git_status_rejects_negative_counts() -> None:
    with pytest.raises(ValueError):
        GitStatus(branch="main", is_clean=True, commits_ahead=-1)


def test_decode_utf16_wsl_output() -> None:
    raw = "\ufeffUbuntu\r\n".encode("utf-16le")

    assert decode_process_output(raw) == "Ubuntu\r\n"


def test_decode_plain_and_empty_output() -> None:
    assert decode_process_output(b"main\n") == "main\n"
    assert decode_process_output(None) == ""
    assert decode_process_output(b"") == ""
    assert decode_process_output("text") == "text"


def test_build_wsl_command_with_distribution() -> None:
    assert build_wsl_command(["ls", "-1"], distribution="Ubuntu") == [
        "wsl.exe",
        "-d",
        "Ubuntu",
        "--",
        "ls",
        "-1",
    ]
    assert build_wsl_command(["pwd"]) == ["wsl.exe", "--", "pwd"]


def test_build_wsl_command_rejects_empty() -> None:
    with pytest.raises(DevLauncherError):
        build_wsl_command([])


def test_branch_list_puts_current_first_and_dedupes_remotes() -> None:
    output = "\n".join(
        [
            "  main",
            "* feature/login",
            "  remotes/origin/HEAD -> origin/main",
            "  remotes/origin/main",
            "  remotes/origin/release",
        ]
    )

    assert parse_branch_list(output) == BranchList(
        current="feature/login", names=("feature/login", "main", "release")
    )


def test_branch_list_with_detached_head_has_no_current() -> None:
    output = "* (HEAD detached at 1a2b3c4)\n  main\n"

    assert parse_branch_list(output) == BranchList(current="", names=("main",))


def test_commit_log_keeps_pipes_in_subject_and_skips_junk() -> None:
    output = "\n".join(
        [
            "0123456789abcdef|Ann|ann@example.com|1700000000|Merge a|b",
            "fedcba9876543210|Bob|bob@example.com|not-a-time|Initial commit",
            "garbage",
        ]
    )

    commits = parse_commit_log(output)

    assert commits == [
        Commit("0123456789abcdef", "Ann", "ann@example.com", 1700000000, "Merge a|b"),
        Commit("fedcba9876543210", "Bob", "bob@example.com", 0, "Initial commit"),
    ]
    assert commits[0].short_hash == "0123456"


@pytest.mark.parametrize("name", ["main", "feature/login", "fix-12", "release_1.2"])
def test_valid_branch_names(name: str) -> None:
    assert is_valid_branch_name(name)


@pytest.mark.parametrize(
    "name",
    ["", "@", "-x", "/lead", "trail/", "dot.", "x.lock", "a b", "a..b", "a~1", "a^", "a:b", "a?", "a*", "a[", "a\\b", "a@{1}", "a//b"],
)
def test_invalid_branch_names(name: str) -> None:
    assert not is_valid_branch_name(name)
