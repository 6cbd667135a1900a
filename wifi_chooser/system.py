from __future__ import annotations

import logging
import os
import shlex
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

from wifi_chooser.errors import CommandIOError, DecodeError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    returncode: int
    stdout: str


def describe(command: Sequence[str], redact: bool = False) -> str:
    """Render ``command`` for messages; ``redact`` hides the arguments."""
    if redact:
        return f"{command[0]} (arguments hidden)"
    return shlex.join(str(part) for part in command)


def decode_output(command: Sequence[str], data: bytes, redact: bool = False) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"Output from {describe(command, redact)} is not UTF-8: {exc}") from exc


def _spawn_error(command: Sequence[str], exc: OSError, redact: bool) -> CommandIOError:
    if isinstance(exc, FileNotFoundError):
        return CommandIOError(f"command not found: {command[0]}")
    if isinstance(exc, PermissionError):
        return CommandIOError(f"permission denied: {command[0]}")
    return CommandIOError(f"Error invoking {describe(command, redact)}: {exc}")


def run(
    command: Sequence[str],
    timeout: float | None = None,
    strict: bool = True,
    redact: bool = False,
) -> CommandResult:
    """Run ``command`` to completion and return its exit status and stdout.

    A non-zero exit status is reported, not raised. With ``strict`` the
    output must be UTF-8; otherwise undecodable bytes are replaced. Pass
    ``redact`` when the arguments carry secrets.
    """
    logger.debug("Running %s", describe(command, redact))
    try:
        result = subprocess.run(
            [str(part) for part in command],
            check=False,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise CommandIOError(f"{command[0]} did not finish within {timeout:g} seconds") from exc
    except OSError as exc:
        raise _spawn_error(command, exc, redact) from exc
    if strict:
        stdout = decode_output(command, result.stdout, redact)
    else:
        stdout = result.stdout.decode("utf-8", errors="replace")
    return CommandResult(returncode=result.returncode, stdout=stdout)


def run_live(command: Sequence[str], env: Mapping[str, str] | None = None) -> CommandResult:
    """Run ``command`` attached to the terminal so it can prompt the operator."""
    logger.debug("Running %s", describe(command))
    merged = None
    if env:
        merged = dict(os.environ)
        merged.update(env)
    try:
        result = subprocess.run([str(part) for part in command], check=False, env=merged)
    except OSError as exc:
        raise _spawn_error(command, exc, False) from exc
    return CommandResult(returncode=result.returncode, stdout="")


def _read_existing(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def write_text_atomic(path: Path, content: str) -> bool:
    """Replace ``path`` with ``content`` in one step.

    Returns False when the file already holds exactly ``content``. Readers
    see either the old file or the new one, never a partial write. The
    temporary file is created mode 0600 and keeps that mode.
    """
    path = Path(path)
    if _read_existing(path) == content:
        logger.debug("%s is unchanged.", path)
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile("w", delete=False, dir=path.parent, encoding="utf-8")
    temp_path = Path(handle.name)
    try:
        with handle:
            handle.write(content)
        temp_path.replace(path)
    except OSError:
        temp_path.unlink(missing_ok=True)
        raise
    return True
