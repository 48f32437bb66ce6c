"""WSL command builders and output decoding."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Sequence

from devlauncher.errors import DevLauncherError, ExitCode

logger = py_logging.getLogger(__name__)


def decode_process_output(value: bytes | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if not value:
        return ""

    # wsl.exe may emit UTF-16LE in Windows consoles.
    if b"\x00" in value:
        for encoding in ("utf-16le", "utf-16"):
            try:
                return value.decode(encoding).replace("\ufeff", "")
            except UnicodeDecodeError:
                continue

    for encoding in ("utf-8", "cp1252"):
        try:
            return value.decode(encoding)
        except UnicodeDecodeError:
            continue
    return value.decode("utf-8", errors="replace")


def build_wsl_command(command: Sequence[str], *, distribution: str = "", cwd: str = "") -> list[str]:
    if not command:
        logger.error("WSL command requested with empty payload")
        raise DevLauncherError(
            "Backend command is empty.",
            code=ExitCode.VALIDATION_ERROR,
            hint="Provide a command to execute in WSL.",
        )
    prefix = ["wsl.exe"]
    if distribution:
        prefix.extend(["-d", distribution])
    if cwd:
        prefix.extend(["--cd", cwd])
    return [*prefix, "--", *command]
