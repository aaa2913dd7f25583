"""Helpers for multiline fields.

``source``, stream ``text`` and mimebundle payloads are stored on the wire
either as one string or as a list of line strings. Internally they are
always a single string.
"""

from __future__ import annotations

from typing import Any, List


def is_multiline(value: Any) -> bool:
    """True if ``value`` is a string or a list of strings."""
    if isinstance(value, str):
        return True
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def join_text(value: Any) -> str:
    """Collapse either wire encoding to the joined string.

    Lines are concatenated as-is; each line is expected to carry its own
    trailing newline (``["a\\n", "b"]`` -> ``"a\\nb"``).
    """
    if isinstance(value, str):
        return value
    return "".join(value)


def split_text(text: str) -> List[str]:
    """Split ``text`` into lines that keep their line endings."""
    return text.splitlines(keepends=True)
