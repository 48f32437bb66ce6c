"""Backend command boundary and its subprocess implementation."""

from .git_status import is_valid_branch_name, parse_branch_list, parse_commit_log, parse_porcelain_status
from .local import LocalBackend
from .protocol import ProjectBackend

__all__ = [
    "is_valid_branch_name",
    "LocalBackend",
    "parse_branch_list",
    "parse_commit_log",
    "parse_porcelain_status",
    "ProjectBackend",
]
