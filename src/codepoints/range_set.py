"""Lazy, deduplicated sets of codepoints backed by a codepoint store.

A :class:`RangeSet` starts out holding only a pending tuple of ids and
touches the store on first read. The two states are explicit:

* **Unresolved** — pending ids, cheap to construct and to window with
  :meth:`RangeSet.slice`.
* **Resolved** — an insertion-ordered ``id -> CodepointRecord`` mapping.

The switch from Unresolved to Resolved happens once. Later additions only
fetch ids the set does not hold yet.

Ordering differs between mutations: :meth:`RangeSet.add` and
:meth:`RangeSet.add_set` insert new ids at their ascending position, while
:meth:`RangeSet.add_range` appends the other set's new entries after the
existing ones without re-sorting.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from codepoints.normalize import coerce_id, sanitize_ids
from codepoints.records import CodepointRecord
from codepoints.resolver import CodepointResolver
from codepoints.store import CodepointStore

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# State variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Unresolved:
    """Pending ids, not yet looked up."""

    pending: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class Resolved:
    """Materialized records keyed by codepoint id."""

    entries: dict[int, CodepointRecord]


RangeState = Unresolved | Resolved


def _window(
    pending: tuple[int, ...],
    offset: int,
    length: int | None,
) -> tuple[int, ...]:
    """Cut ``length`` ids starting at ``offset`` out of *pending*.

    Negative *offset* counts from the end; negative *length* stops that
    many ids before the end; ``None`` keeps everything after *offset*.
    """
    size = len(pending)
    start = offset if offset >= 0 else max(size + offset, 0)
    if length is None:
        stop = size
    elif length >= 0:
        stop = start + length
    else:
        stop = max(size + length, start)
    return pending[start:stop]


def _insert_ascending(
    existing: Mapping[int, CodepointRecord],
    incoming: Mapping[int, CodepointRecord],
) -> dict[int, CodepointRecord]:
    """Merge *incoming* into *existing*, placing each new id before the
    first existing id greater than it. Existing entries keep their order.
    """
    pending = sorted(incoming.items())
    merged: dict[int, CodepointRecord] = {}
    i = 0
    for cp, record in existing.items():
        while i < len(pending) and pending[i][0] < cp:
            merged[pending[i][0]] = pending[i][1]
            i += 1
        merged[cp] = record
    for cp, record in pending[i:]:
        merged[cp] = record
    return merged


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------

class RangeCursor:
    """Independent cursor over a snapshot of a set's materialized entries.

    Each call to :meth:`RangeSet.cursor` creates a new cursor, so several
    traversals of one set never move each other's position.
    """

    def __init__(self, entries: Mapping[int, CodepointRecord]) -> None:
        self._entries = entries
        self._keys = tuple(entries)
        self._pos = 0

    def rewind(self) -> None:
        self._pos = 0

    def advance(self) -> bool:
        """Move to the next entry; return whether the cursor is still valid."""
        if self._pos < len(self._keys):
            self._pos += 1
        return self.valid()

    def valid(self) -> bool:
        return self._pos < len(self._keys)

    def key(self) -> int | None:
        return self._keys[self._pos] if self.valid() else None

    def current(self) -> CodepointRecord | None:
        if not self.valid():
            return None
        return self._entries[self._keys[self._pos]]


# ---------------------------------------------------------------------------
# RangeSet
# ---------------------------------------------------------------------------

class RangeSet:
    """An arbitrary, possibly gapped, set of Unicode codepoints."""

    def __init__(
        self,
        ids: Iterable[Any],
        store: CodepointStore,
        *,
        resolver: CodepointResolver | None = None,
    ) -> None:
        self._store = store
        self._resolver = resolver or CodepointResolver(store)
        self._dropped = 0
        clean, dropped = sanitize_ids(ids)
        self._note_dropped(dropped)
        self._state: RangeState = Unresolved(tuple(dict.fromkeys(clean)))

    def __repr__(self) -> str:
        match self._state:
            case Unresolved(pending=pending):
                return f"<RangeSet pending={len(pending)}>"
            case Resolved(entries=entries):
                return f"<RangeSet resolved={len(entries)}>"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _note_dropped(self, count: int) -> None:
        if count:
            self._dropped += count
            log.debug("Dropped %d invalid codepoint id(s)", count)

    def _fetch(self, ids: list[int]) -> dict[int, CodepointRecord]:
        """Look *ids* up in one batch and bind the records to this set."""
        if not ids:
            return {}
        fetched = self._store.fetch_batch(ids)
        log.debug("Resolved %d of %d codepoint(s)", len(fetched), len(ids))
        return self._resolver.bind(dict(sorted(fetched.items())), self)

    def _materialize(self) -> dict[int, CodepointRecord]:
        match self._state:
            case Resolved(entries=entries):
                return entries
            case Unresolved(pending=pending):
                # The state only flips once the fetch succeeded, so a store
                # failure leaves the set retryable.
                entries = self._fetch(list(pending))
                self._state = Resolved(entries)
                return entries

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def store(self) -> CodepointStore:
        return self._store

    @property
    def is_materialized(self) -> bool:
        return isinstance(self._state, Resolved)

    @property
    def dropped(self) -> int:
        """Number of invalid ids silently discarded so far."""
        return self._dropped

    def get(self) -> Mapping[int, CodepointRecord]:
        """Get the current set of codepoints as a read-only mapping."""
        return MappingProxyType(self._materialize())

    def cursor(self) -> RangeCursor:
        return RangeCursor(self._materialize())

    def __iter__(self) -> Iterator[int]:
        return iter(tuple(self._materialize()))

    def items(self) -> Iterator[tuple[int, CodepointRecord]]:
        return iter(tuple(self._materialize().items()))

    def __len__(self) -> int:
        return len(self._materialize())

    def __contains__(self, value: object) -> bool:
        cp = coerce_id(value)
        return cp is not None and cp in self._materialize()

    def get_boundaries(self) -> tuple[int, int] | None:
        """Get the IDs of the first and last codepoints in the set."""
        entries = self._materialize()
        if not entries:
            return None
        return next(iter(entries)), next(reversed(entries))

    def get_first(self) -> int | None:
        entries = self._materialize()
        return next(iter(entries), None)

    def get_last(self) -> int | None:
        entries = self._materialize()
        return next(reversed(entries), None)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, cp: Any) -> RangeSet:
        """Add a single codepoint, fetching it only if it is new."""
        entries = self._materialize()
        cp_id = coerce_id(cp)
        if cp_id is None:
            self._note_dropped(1)
            return self
        if cp_id not in entries:
            fetched = self._fetch([cp_id])
            if fetched:
                self._state = Resolved(_insert_ascending(entries, fetched))
        return self

    def add_set(self, ids: Iterable[Any]) -> RangeSet:
        """Add several codepoints, fetching only those not yet in the set."""
        entries = self._materialize()
        clean, dropped = sanitize_ids(ids)
        self._note_dropped(dropped)
        missing = [cp for cp in dict.fromkeys(clean) if cp not in entries]
        fetched = self._fetch(missing)
        if fetched:
            self._state = Resolved(_insert_ascending(entries, fetched))
        return self

    def add_range(self, other: RangeSet) -> RangeSet:
        """Union *other* into this set.

        Existing entries keep their order and the other set's new entries
        follow in its order. The result is not re-sorted.
        """
        entries = self._materialize()
        merged = dict(entries)
        for cp, record in other.get().items():
            if cp not in merged:
                merged[cp] = record
        self._state = Resolved(merged)
        return self

    def slice(self, offset: int, length: int | None = None) -> RangeSet:
        """Restrict the pending ids to a window.

        Only meaningful before the first read. Once the set is resolved
        the pending ids are gone and this call changes nothing.
        """
        match self._state:
            case Unresolved(pending=pending):
                self._state = Unresolved(_window(pending, offset, length))
            case Resolved():
                log.debug("slice(%d, %s) ignored on resolved set", offset, length)
        return self
