"""Parsers for the git output the launcher reads: status, branch lists and logs."""

from __future__ import annotations

import re

from devlauncher.models import BranchList, Commit, GitStatus

_AHEAD = re.compile(r"ahead (\d+)")
_BEHIND = re.compile(r"behind (\d+)")


def parse_branch_header(header: str) -> tuple[str, int, int]:
    """Return (branch, ahead, behind) from a ``## ...`` porcelain header line."""
    text = header[2:].strip() if header.startswith("##") else header.strip()
    if text.startswith("No commits yet on "):
        return text[len("No commits yet on ") :].strip(), 0, 0
    if text.startswith("HEAD (no branch)"):
        return "", 0, 0

    tracking = ""
    if " [" in text and text.endswith("]"):
        text, tracking = text[:-1].split(" [", 1)
    branch = text.split("...", 1)[0].strip()

    ahead_match = _AHEAD.search(tracking)
    behind_match = _BEHIND.search(tracking)
    ahead = int(ahead_match.group(1)) if ahead_match else 0
    behind = int(behind_match.group(1)) if behind_match else 0
    return branch, ahead, behind


def parse_porcelain_status(output: str) -> GitStatus | None:
    lines = [line for line in output.splitlines() if line.strip()]
    if not lines or not lines[0].startswith("##"):
        return None
    branch, ahead, behind = parse_branch_header(lines[0])
    changes = len(lines) - 1
    return GitStatus(
        branch=branch,
        is_clean=changes == 0,
        commits_ahead=ahead,
        commits_behind=behind,
        uncommitted_files=changes,
    )


LOG_FORMAT = "%H|%an|%ae|%at|%s"
_REMOTE_PREFIX = "remotes/origin/"


def parse_branch_list(output: str) -> BranchList:
    """Parse ``git branch --all``; remote names fold into their local names."""
    current = ""
    names: list[str] = []
    for raw in output.splitlines():
        line = raw.strip()
        if not line or "HEAD ->" in line or line.startswith("* ("):
            continue
        if line.startswith("* "):
            line = line[2:].strip()
            current = line
        if line.startswith(_REMOTE_PREFIX):
            line = line[len(_REMOTE_PREFIX) :]
        if line not in names:
            names.append(line)
    if current:
        names.remove(current)
        names.insert(0, current)
    return BranchList(current=current, names=tuple(names))


def parse_commit_log(output: str) -> list[Commit]:
    commits: list[Commit] = []
    for line in output.splitlines():
        parts = line.split("|", 4)
        if len(parts) != 5:
            continue
        hash_, author, email, timestamp, message = parts
        try:
            seconds = int(timestamp)
        except ValueError:
            seconds = 0
        commits.append(Commit(hash=hash_, author=author, email=email, timestamp=seconds, message=message))
    return commits


_BRANCH_FORBIDDEN = re.compile(r"[\s~^:?*\[\\]|\.\.|@\{|//")


def is_valid_branch_name(name: str) -> bool:
    """Cheap subset of ``git check-ref-format --branch``."""
    if not name or name == "@" or _BRANCH_FORBIDDEN.search(name):
        return False
    if name.startswith(("-", "/", ".")) or name.endswith(("/", ".", ".lock")):
        return False
    return True
