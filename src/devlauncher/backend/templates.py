"""Starter files and init commands for new projects."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from devlauncher.errors import DevLauncherError, ExitCode
from devlauncher.models import Template

_PROJECT_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
_RESERVED_NAMES = frozenset({"con", "prn", "aux", "nul"})

_PYTHON_MAIN = '''#!/usr/bin/env python3


def main():
    print("Hello, World!")


if __name__ == "__main__":
    main()
'''

_GO_MAIN = """package main

import "fmt"

func main() {
    fmt.Println("Hello, World!")
}
"""

_NODE_INDEX = "console.log('Hello, World!');\n"


@dataclass(frozen=True)
class TemplatePlan:
    """Files to write and commands to run inside a fresh project folder."""

    files: dict[str, str] = field(default_factory=dict)
    commands: tuple[tuple[str, ...], ...] = ()


def validate_project_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise DevLauncherError(
            "Project name is empty.",
            code=ExitCode.VALIDATION_ERROR,
            hint="Please enter a project name.",
        )
    if not _PROJECT_NAME.match(cleaned) or cleaned.lower() in _RESERVED_NAMES or ".." in cleaned:
        raise DevLauncherError(
            f"Invalid project name '{cleaned}'.",
            code=ExitCode.VALIDATION_ERROR,
            hint="Use letters, digits, '.', '-' or '_' and start with a letter or digit.",
        )
    return cleaned


def template_plan(template: Template, name: str) -> TemplatePlan:
    if template == Template.RUST:
        return TemplatePlan(commands=(("cargo", "init"),))
    if template == Template.NEXTJS:
        return TemplatePlan(
            commands=(
                (
                    "npx",
                    "create-next-app@latest",
                    ".",
                    "--typescript",
                    "--tailwind",
                    "--app",
                    "--no-src-dir",
                    "--import-alias",
                    "@/*",
                    "--yes",
                ),
            )
        )
    if template == Template.PYTHON:
        return TemplatePlan(files={"main.py": _PYTHON_MAIN, "requirements.txt": ""})
    if template == Template.GO:
        return TemplatePlan(files={"main.go": _GO_MAIN}, commands=(("go", "mod", "init", name),))
    if template == Template.NODE:
        return TemplatePlan(files={"index.js": _NODE_INDEX}, commands=(("npm", "init", "-y"),))
    return TemplatePlan(files={"README.md": f"# {name}\n\nA new project.\n"})
