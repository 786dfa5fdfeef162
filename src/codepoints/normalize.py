"""Shared input normalization: id sanitization and name folding.

Pure functions with zero store dependencies.
"""
from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

_DIGITS_RE = re.compile(r"[0-9]+")


def coerce_id(value: Any) -> int | None:
    """Return *value* as a codepoint id, or None if it is not one.

    Accepts non-negative ``int`` values and ASCII digit strings. ``bool``
    is rejected even though it subclasses ``int``.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, str) and _DIGITS_RE.fullmatch(value):
        return int(value)
    return None


def sanitize_ids(values: Iterable[Any]) -> tuple[list[int], int]:
    """Drop everything that is not a valid codepoint id.

    Returns:
        ``(ids, dropped)`` where *ids* keeps input order (duplicates
        included) and *dropped* counts the rejected values.
    """
    ids: list[int] = []
    dropped = 0
    for value in values:
        cp = coerce_id(value)
        if cp is None:
            dropped += 1
        else:
            ids.append(cp)
    return ids, dropped


def normalize_name(name: str) -> str:
    """Fold a block/plane name for case- and format-insensitive matching.

    Lowercases and strips every space and underscore, so that
    ``"Basic Latin"``, ``"basic_latin"`` and ``"BASICLATIN"`` compare equal.
    """
    return name.lower().replace(" ", "").replace("_", "")
