from __future__ import annotations

import io
import runpy
from contextlib import redirect_stderr
from pathlib import Path

import pytest

from devlauncher import cli
from devlauncher.errors import DevLauncherError, ExitCode
from devlauncher.models import Environment, GitStatus, Project


class _ListingBackend:
    def __init__(self, **kwargs: object) -> None:
        self.kwargs = kwargs

    async def list_projects_fast(self) -> list[Project]:
        return [Project(name="web", path="C:\\projects\\web")]

    async def scan_wsl_projects(self) -> list[Project]:
        return [Project(name="svc", path="/home/dev/projects/svc", env=Environment.WSL)]

    async def get_status(self, path: str, env: Environment) -> GitStatus | None:
        return GitStatus(branch="main", is_clean=True)

    async def check_github_auth(self) -> str | None:
        return None


@pytest.fixture(autouse=True)
def _isolated_log(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "default_log_path", lambda: tmp_path / "logs" / "devlauncher.log")


def test_cli_help_includes_public_flags() -> None:
    help_text = cli.build_parser().format_help()

    for flag in ("--prefs", "--env", "--root", "--list", "--log-level", "--log-file", "--trace"):
        assert flag in help_text


def test_invalid_env_returns_error_code() -> None:
    with redirect_stderr(io.StringIO()):
        assert cli.main(["--env", "mac"]) == 2


def test_invalid_log_level_returns_error_code() -> None:
    with redirect_stderr(io.StringIO()):
        assert cli.main(["--log-level", "loud"]) != 0


def test_no_args_triggers_gui_launcher() -> None:
    marker = {"called": False}

    def fake_gui() -> int:
        marker["called"] = True
        return 0

    assert cli.main([], gui_launcher=fake_gui) == 0
    assert marker["called"]


def test_gui_error_is_reported_to_stderr() -> None:
    def fake_gui() -> int:
        raise DevLauncherError("PySide6 missing", code=ExitCode.RUNTIME_ERROR, hint="Install PySide6.")

    stream = io.StringIO()
    with redirect_stderr(stream):
        code = cli.main([], gui_launcher=fake_gui)

    assert code == int(ExitCode.RUNTIME_ERROR)
    assert "Error: PySide6 missing. Next step: Install PySide6." in stream.getvalue()


def test_unexpected_gui_failure_maps_to_runtime_error() -> None:
    def fake_gui() -> int:
        raise RuntimeError("segfault-ish")

    stream = io.StringIO()
    with redirect_stderr(stream):
        code = cli.main([], gui_launcher=fake_gui)

    assert code == int(ExitCode.RUNTIME_ERROR)
    assert "Unexpected runtime failure" in stream.getvalue()


def test_list_prints_grid(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr(cli, "LocalBackend", _ListingBackend)

    code = cli.main(["--list", "--prefs", str(tmp_path / "prefs.toml"), "--log-file", str(tmp_path / "x.log")])

    out = capsys.readouterr().out
    assert code == 0
    assert "PROJECTS" in out
    assert "web" in out
    assert "✓ main" in out


def test_list_with_env_override_scans_wsl(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr(cli, "LocalBackend", _ListingBackend)

    code = cli.main(["--list", "--env", "wsl", "--prefs", str(tmp_path / "prefs.toml")])

    out = capsys.readouterr().out
    assert code == 0
    assert "svc" in out
    assert "web" not in out


def test_root_option_is_passed_to_backend(tmp_path: Path) -> None:
    namespace = cli.build_parser().parse_args(["--root", str(tmp_path)])

    backend = cli._backend_for(namespace)

    assert backend.windows_root == tmp_path


def test_module_entrypoint_supports_script_execution_context() -> None:
    namespace = runpy.run_path(
        str(Path("src/devlauncher/__main__.py")),
        run_name="devlauncher_entrypoint_test",
    )
    assert callable(namespace["run"])


def test_cli_exposes_parser_builder_only() -> None:
    assert not hasattr(cli, "parse_args")
    assert cli.build_parser().parse_args([]).list is False
