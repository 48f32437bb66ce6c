"""Launcher settings model and the on-disk preferences store."""

from __future__ import annotations

import logging as py_logging
import sys
from collections.abc import Mapping
from contextlib import suppress
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, ValidationError

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from devlauncher.errors import DevLauncherError, ExitCode
from devlauncher.models import Environment, Template

logger = py_logging.getLogger(__name__)

DEFAULT_PREFERENCES_PATH = Path("~/.config/devlauncher/preferences.toml").expanduser()
DEFAULT_ENV = Environment.WINDOWS
DEFAULT_TEMPLATE = Template.EMPTY


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    default_env: Environment = DEFAULT_ENV
    default_template: Template = DEFAULT_TEMPLATE
    auto_create_github: bool = False

    def merged(self, changes: Mapping[str, object]) -> Settings:
        """Return a validated copy with ``changes`` applied over the current values."""
        payload: dict[str, object] = self.model_dump()
        payload.update(changes)
        try:
            return Settings.model_validate(payload)
        except ValidationError as exc:
            raise DevLauncherError(
                "Invalid settings update.",
                code=ExitCode.VALIDATION_ERROR,
                hint="; ".join(
                    f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
                    for item in exc.errors()
                ),
            ) from exc


def sanitize_settings(raw: object) -> Settings:
    """Merge persisted values over the defaults; invalid keys keep their default."""
    cfg = Settings()
    if not isinstance(raw, dict):
        return cfg

    accepted: dict[str, object] = {}
    default_env = raw.get("default_env")
    if isinstance(default_env, str) and default_env in {item.value for item in Environment}:
        accepted["default_env"] = Environment(default_env)

    default_template = raw.get("default_template")
    if isinstance(default_template, str) and default_template in {item.value for item in Template}:
        accepted["default_template"] = Template(default_template)

    auto_create_github = raw.get("auto_create_github")
    if isinstance(auto_create_github, bool):
        accepted["auto_create_github"] = auto_create_github

    if not accepted:
        return cfg
    return cfg.merged(accepted)


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryPreferences:
    """Dict-backed preferences for headless runs."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


def get_preferences_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_PREFERENCES_PATH
    return Path(path).expanduser()


def _escape(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


def _toml_scalar(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return f'"{_escape(value)}"'
    raise TypeError(f"Unsupported TOML scalar type: {type(value)!r}")


class PreferencesStore:
    """Flat string key/value table persisted as TOML."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = get_preferences_path(path)

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        if isinstance(value, str):
            return value
        return None

    def set(self, key: str, value: str) -> None:
        values = {name: item for name, item in self._read().items() if isinstance(item, str)}
        values[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        lines = [f'"{_escape(name)}" = {_toml_scalar(item)}' for name, item in sorted(values.items())]
        self.path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        with suppress(OSError):
            self.path.chmod(0o600)

    def _read(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("rb") as handle:
                raw = tomllib.load(handle)
        except tomllib.TOMLDecodeError:
            logger.warning("Ignoring unreadable preferences file path=%s", self.path)
            return {}
        return raw
