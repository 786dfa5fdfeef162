"""Parsers that turn user text into codepoints.

* ``parse_codepoint`` — one token such as ``U+0041``, ``0x41`` or ``41``.
* ``parse_range_expression`` — comma-separated ranges like ``U+41..U+5A, 61``.
* ``parse_string`` — every codepoint of a literal string, in order.
* ``normalize_name`` — the canonical block/plane name folding.

Unparseable input never raises; it shrinks the result instead.
"""
from __future__ import annotations

import logging
import re

from codepoints.errors import CodepointNotFoundError
from codepoints.normalize import normalize_name
from codepoints.range_set import RangeSet
from codepoints.records import CodepointRecord
from codepoints.resolver import CodepointResolver
from codepoints.settings import Settings
from codepoints.store import CodepointStore

log = logging.getLogger(__name__)

__all__ = [
    "MAX_CODEPOINT",
    "PARSE_STRING_MAXLENGTH",
    "normalize_name",
    "parse_codepoint",
    "parse_range_expression",
    "parse_string",
]

MAX_CODEPOINT = 0x10FFFF
PARSE_STRING_MAXLENGTH = 256

_CODEPOINT_RE = re.compile(r"(?:U[+-]|\\U|0x|U)?([0-9a-f]+)", re.IGNORECASE)
_JUNK_SPLIT_RE = re.compile(r"\s*(?:,\s*)+")
_RANGE_SPLIT_RE = re.compile(r"\s*(?:-|\.\.|:)\s*")


def parse_codepoint(token: str) -> int | None:
    """Return the codepoint for a single representation.

    Accepted forms (case-insensitive): ``41``, ``U+41``, ``U-41``,
    ``\\U41``, ``0x41`` and ``U41``. The whole token must match and the
    value must not exceed U+10FFFF.
    """
    match = _CODEPOINT_RE.fullmatch(token)
    if match is None:
        return None
    cp = int(match.group(1), 16)
    return cp if cp <= MAX_CODEPOINT else None


def _expand_junk(junk: str) -> list[int]:
    """Expand one comma-delimited segment into its codepoint ids."""
    parts = _RANGE_SPLIT_RE.split(junk)
    if len(parts) == 1:
        cp = parse_codepoint(parts[0])
        return [] if cp is None else [cp]
    if len(parts) == 2:
        low = parse_codepoint(parts[0])
        high = parse_codepoint(parts[1])
        if low is None or high is None:
            return []
        return list(range(min(low, high), max(low, high) + 1))
    # Three or more parts collapse to one span over the parseable extremes.
    parsed = [cp for cp in (parse_codepoint(p) for p in parts) if cp is not None]
    if not parsed:
        return []
    return list(range(min(parsed), max(parsed) + 1))


def parse_range_expression(
    text: str,
    store: CodepointStore,
    *,
    resolver: CodepointResolver | None = None,
) -> RangeSet:
    """Parse a string of form ``U+A..U+B, U+C`` into a lazy RangeSet.

    Segments are separated by commas; within a segment ``-``, ``..`` or
    ``:`` separate range endpoints. Endpoints may be given in either
    order. Nothing is fetched from *store* until the set is read.
    """
    ids: list[int] = []
    for junk in _JUNK_SPLIT_RE.split(text.strip()):
        ids.extend(_expand_junk(junk))
    log.debug("Range expression %r expanded to %d id(s)", text, len(ids))
    return RangeSet(ids, store, resolver=resolver)


def parse_string(
    text: str,
    store: CodepointStore,
    max_len: int | None = None,
    *,
    resolver: CodepointResolver | None = None,
) -> list[CodepointRecord]:
    """Get the records of all codepoints of *text*, left to right.

    Input of *max_len* codepoints or more yields an empty list. Without
    *max_len* the limit is read from ``CODEPOINTS_PARSE_STRING_MAXLENGTH``
    (default :data:`PARSE_STRING_MAXLENGTH`). Characters the store does not
    know are skipped; repeated characters appear once per occurrence.
    """
    if max_len is None:
        max_len = Settings.from_env().parse_string_maxlength
    if len(text) >= max_len:
        log.debug("parse_string input of %d codepoints over limit %d", len(text), max_len)
        return []
    resolver = resolver or CodepointResolver(store)
    records: list[CodepointRecord] = []
    for char in text:
        try:
            records.append(resolver.resolve(ord(char)))
        except CodepointNotFoundError:
            log.debug("Skipping unknown codepoint U+%04X", ord(char))
    return records
