"""Public CLI contract and entrypoint."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

from .backend import LocalBackend
from .config import PreferencesStore
from .errors import DevLauncherError, ExitCode, user_facing_error
from .logging import configure_logging, default_log_path
from .models import Environment

_VALID_ENVS = tuple(item.value for item in Environment)
_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")


def _log_level_type(value: str) -> str:
    normalized = value.upper()
    if normalized == "WARNING":
        normalized = "WARN"
    if normalized not in _VALID_LOG_LEVELS:
        accepted = ", ".join(_VALID_LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="devlauncher")
    parser.add_argument("--prefs", type=Path, default=None, help="Preferences file (TOML)")
    parser.add_argument(
        "--env",
        choices=_VALID_ENVS,
        default=None,
        help="Active environment for this run; the saved default is left unchanged",
    )
    parser.add_argument("--root", type=Path, default=None, help="Host projects directory")
    parser.add_argument(
        "--list",
        action="store_true",
        help="Print the project grid with git status and exit",
    )
    parser.add_argument("--log-level", type=_log_level_type, default="INFO")
    parser.add_argument("--log-file", type=Path, default=None)
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Echo every backend command and status lookup to the console",
    )
    return parser


def launch_gui(*, prefs_path: Path | None = None, env: Environment | None = None) -> int:
    from devlauncher.ui.app import launch_app

    return launch_app(prefs_path=prefs_path, env=env)


def _backend_for(namespace: argparse.Namespace) -> LocalBackend:
    if namespace.root is None:
        return LocalBackend()
    return LocalBackend(windows_root=namespace.root.expanduser())


def run_cli_flow(namespace: argparse.Namespace) -> int:
    from devlauncher.ui.app import run_listing

    env = Environment(namespace.env) if namespace.env else None
    return run_listing(
        preferences=PreferencesStore(namespace.prefs),
        backend=_backend_for(namespace),
        env=env,
        stream=sys.stdout,
    )


def main(
    argv: Sequence[str] | None = None,
    *,
    gui_launcher: Callable[[], int | None] | None = None,
) -> int:
    log_path = default_log_path()
    logger = configure_logging(log_file=log_path)
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.warning("Argument parsing failed with exit code %s", exc.code)
        return int(exc.code or 0)

    if namespace.log_file is not None:
        log_path = namespace.log_file.expanduser()
    logger = configure_logging(level=namespace.log_level, log_file=log_path, trace=namespace.trace)

    try:
        if namespace.list:
            logger.debug("Starting listing flow")
            return run_cli_flow(namespace)

        env = Environment(namespace.env) if namespace.env else None
        launcher = gui_launcher or (lambda: launch_gui(prefs_path=namespace.prefs, env=env))
        logger.debug("Starting GUI flow")
        result = launcher()
        if isinstance(result, int):
            return result
        return int(ExitCode.SUCCESS)
    except DevLauncherError as exc:
        logger.error("Handled DevLauncherError (code=%s step=%s): %s", int(exc.code), exc.step or "-", exc.message)
        logger.debug("DevLauncherError traceback", exc_info=True)
        print(user_facing_error(exc), file=sys.stderr)
        return int(exc.code)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        print(user_facing_error("Unexpected runtime failure", hint=f"Inspect logs: {log_path}"), file=sys.stderr)
        return int(ExitCode.RUNTIME_ERROR)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
