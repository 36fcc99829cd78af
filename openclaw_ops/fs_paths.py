from __future__ import annotations

from collections.abc import Callable
from pathlib import Path


def expand_home(path: str | Path) -> Path:
    return Path(path).expanduser()


def newest_entry(directory: Path, accept: Callable[[Path], bool]) -> Path | None:
    """Return the most recently modified file in ``directory`` that ``accept`` allows.

    Entries that vanish or cannot be stat'ed mid-scan are skipped.
    """

    try:
        entries = list(directory.iterdir())
    except OSError:
        return None
    newest: tuple[float, Path] | None = None
    for entry in entries:
        if not accept(entry):
            continue
        try:
            if not entry.is_file():
                continue
            mtime = entry.stat().st_mtime
        except OSError:
            continue
        if newest is None or mtime > newest[0]:
            newest = (mtime, entry)
    return newest[1] if newest else None


def latest_file(directory: Path, prefix: str) -> Path | None:
    return newest_entry(directory, lambda entry: entry.name.startswith(prefix))


def tail_lines(path: Path, count: int, max_bytes: int = 256_000) -> list[str]:
    """Return the last ``count`` lines of ``path``, reading at most ``max_bytes``.

    Raises ``OSError`` when the file cannot be read.
    """

    size = path.stat().st_size
    offset = max(0, size - max_bytes)
    with path.open("rb") as handle:
        handle.seek(offset)
        raw = handle.read().decode("utf-8", errors="replace")
    if offset > 0:
        # Seeked into the middle of a line.
        raw = raw[raw.find("\n") + 1 :]
    lines = raw.splitlines()
    return lines[-count:] if count > 0 else []


def format_bytes(size: int) -> str:
    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    for unit in units:
        if value < 1024 or unit == units[-1]:
            if unit == "B":
                return f"{int(value)} {unit}"
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{int(size)} B"
