"""File helpers for exporting and importing menu JSON files."""

from __future__ import annotations

import codecs
import os
import tempfile
from pathlib import Path

__all__ = ["read_text", "write_text", "unique_export_path"]

_BOM_MAP: dict[bytes, str] = {
    codecs.BOM_UTF8: "utf-8-sig",
    codecs.BOM_UTF16_LE: "utf-16-le",
    codecs.BOM_UTF16_BE: "utf-16-be",
}
_INVALID_FILENAME_CHARS = '<>:"/\\|?*'


def read_text(path: Path | str, *, encoding: str | None = None) -> str:
    """Read a text file, honouring a byte-order mark when present."""

    raw = Path(path).read_bytes()
    detected = encoding or _detect_encoding(raw)
    text = raw.decode(detected)
    return text.lstrip("\ufeff").replace("\r\n", "\n")


def write_text(path: Path | str, content: str, *, encoding: str = "utf-8", atomic: bool = True) -> Path:
    """Write text to disk, replacing the target atomically by default."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    if not atomic:
        target.write_text(content, encoding=encoding)
        return target

    descriptor, tmp_name = tempfile.mkstemp(dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(descriptor, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, target)
    finally:
        if os.path.exists(tmp_name):  # pragma: no cover - cleanup path
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
    return target


def unique_export_path(directory: Path | str, filename: str) -> Path:
    """Return ``directory/filename`` with unsafe characters replaced and a numeric
    suffix added when the file already exists."""

    cleaned = "".join("-" if char in _INVALID_FILENAME_CHARS else char for char in filename).strip() or "rich-menu.json"
    candidate = Path(directory) / cleaned
    stem, suffix = candidate.stem, candidate.suffix
    counter = 1
    while candidate.exists():
        candidate = candidate.with_name(f"{stem} ({counter}){suffix}")
        counter += 1
    return candidate


def _detect_encoding(raw: bytes) -> str:
    for bom, encoding in _BOM_MAP.items():
        if raw.startswith(bom):
            return encoding
    return "utf-8"
