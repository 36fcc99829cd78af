from __future__ import annotations

import subprocess
from collections.abc import Sequence
from dataclasses import dataclass

DEFAULT_TIMEOUT_S = 120.0


@dataclass(frozen=True)
class CommandResult:
    code: int
    out: str


def safe_exec(cmd: Sequence[str], timeout_s: float = DEFAULT_TIMEOUT_S) -> str:
    """Return trimmed stdout of ``cmd``, or an empty string on any failure."""

    try:
        out = subprocess.check_output(
            list(cmd), stderr=subprocess.DEVNULL, text=True, timeout=timeout_s
        )
        return out.strip()
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError):
        return ""


def run_cmd(cmd: Sequence[str], timeout_s: float = DEFAULT_TIMEOUT_S) -> CommandResult:
    """Run ``cmd`` and return its exit code with stdout and stderr combined.

    Timeouts and missing executables map to a non-zero code; this never raises.
    """

    try:
        proc = subprocess.run(
            list(cmd),
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            timeout=timeout_s,
        )
    except subprocess.TimeoutExpired as exc:
        partial = _decode(exc.stdout) + "\n" + _decode(exc.stderr)
        return CommandResult(124, f"{partial.strip()}\ntimed out after {timeout_s:g}s".strip())
    except OSError as exc:
        return CommandResult(127, str(exc))
    out = f"{proc.stdout or ''}\n{proc.stderr or ''}".strip()
    return CommandResult(proc.returncode, out)


def _decode(value: str | bytes | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
