"""Helpers that locate a position inside a configuration document."""

from __future__ import annotations

_CONTEXT_RADIUS = 20


def _as_bytes(data: bytes | str) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else bytes(data)


def find_line_and_character(data: bytes | str, offset: int) -> tuple[int, int]:
    """Return the 1-based line and the position within it for a byte offset."""
    line_number = 1
    position = offset
    for line in _as_bytes(data).split(b"\n"):
        if len(line) + 1 < position:
            line_number += 1
            position -= len(line) + 1
        else:
            break
    return line_number, position


def get_error_context(data: bytes | str, offset: int) -> str:
    """Return the stripped text within twenty bytes either side of an offset."""
    raw = _as_bytes(data)
    start = max(offset - _CONTEXT_RADIUS, 0)
    end = min(offset + _CONTEXT_RADIUS, len(raw))
    return raw[start:end].decode("utf-8", errors="replace").strip()