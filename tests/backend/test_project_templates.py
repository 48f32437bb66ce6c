from __future__ import annotations

import pytest

from devlauncher.backend.templates import template_plan, validate_project_name
from devlauncher.errors import DevLauncherError, ExitCode
from devlauncher.models import Template


def test_project_name_is_trimmed() -> None:
    assert validate_project_name("  my-app_2.0 ") == "my-app_2.0"


@pytest.mark.parametrize("name", ["", "   ", "../escape", ".hidden", "-flag", "a/b", "a b", "CON", "nul", "a..b"])
def test_project_name_rejections(name: str) -> None:
    with pytest.raises(DevLauncherError) as exc_info:
        validate_project_name(name)

    assert exc_info.value.code == ExitCode.VALIDATION_ERROR
    assert exc_info.value.hint


def test_empty_name_asks_for_one() -> None:
    with pytest.raises(DevLauncherError) as exc_info:
        validate_project_name("")

    assert exc_info.value.hint == "Please enter a project name."


def test_empty_template_writes_readme_only() -> None:
    plan = template_plan(Template.EMPTY, "notes")

    assert plan.files == {"README.md": "# notes\n\nA new project.\n"}
    assert plan.commands == ()


def test_go_template_initialises_module_with_project_name() -> None:
    plan = template_plan(Template.GO, "svc")

    assert plan.commands == (("go", "mod", "init", "svc"),)
    assert "package main" in plan.files["main.go"]


@pytest.mark.parametrize(
    ("template", "tool"),
    [(Template.RUST, "cargo"), (Template.NEXTJS, "npx"), (Template.NODE, "npm")],
)
def test_tool_templates_run_their_initialiser(template: Template, tool: str) -> None:
    plan = template_plan(template, "app")

    assert plan.commands[0][0] == tool


def test_python_template_files() -> None:
    plan = template_plan(Template.PYTHON, "app")

    assert set(plan.files) == {"main.py", "requirements.txt"}
    assert plan.commands == ()
