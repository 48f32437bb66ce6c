"""Launcher domain models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Environment(str, Enum):
    WINDOWS = "windows"
    WSL = "wsl"

    @classmethod
    def from_path(cls, path: str) -> Environment:
        """Best-effort tag for records that arrive without an explicit environment."""
        if path.startswith("/") and not path.startswith("//"):
            return cls.WSL
        return cls.WINDOWS


class Template(str, Enum):
    EMPTY = "empty"
    RUST = "rust"
    NEXTJS = "nextjs"
    PYTHON = "python"
    GO = "go"
    NODE = "node"


@dataclass(frozen=True)
class GitStatus:
    branch: str
    is_clean: bool
    commits_ahead: int = 0
    commits_behind: int = 0
    uncommitted_files: int = 0

    def __post_init__(self) -> None:
        for name in ("commits_ahead", "commits_behind", "uncommitted_files"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")


@dataclass(frozen=True)
class Project:
    name: str
    path: str
    env: Environment = Environment.WINDOWS
    last_opened: int = 0
    pinned: bool = False
    status: GitStatus | None = None


@dataclass(frozen=True)
class Commit:
    hash: str
    author: str
    email: str
    timestamp: int
    message: str

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


@dataclass(frozen=True)
class BranchList:
    """Local and remote branch names of one repository, current branch first."""

    current: str
    names: tuple[str, ...] = ()
