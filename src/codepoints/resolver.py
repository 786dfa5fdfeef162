"""Construction and caching of codepoint records."""
from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any

from codepoints.errors import CodepointNotFoundError
from codepoints.records import CodepointRecord, image_uri
from codepoints.store import CodepointStore


class CodepointResolver:
    """Builds :class:`CodepointRecord` values and caches them by id.

    A resolver is bound to one store. The cache lives on the instance, so
    nothing is shared between resolvers.
    """

    def __init__(self, store: CodepointStore) -> None:
        self._store = store
        self._cache: dict[int, CodepointRecord] = {}

    @property
    def store(self) -> CodepointStore:
        return self._store

    def cached(self, cp: int) -> CodepointRecord | None:
        return self._cache.get(cp)

    def resolve(
        self,
        cp: int,
        *,
        name: str | None = None,
        name_is_fallback: bool = False,
        owner: Any = None,
        image: str | None = None,
    ) -> CodepointRecord:
        """Return the record for *cp*.

        With a *name* hint the record is built without a store call. Without
        one, a cached record is reused, or the store is asked for this
        single id.

        Raises:
            CodepointNotFoundError: The store has no row for *cp*.
        """
        if name is not None:
            record = CodepointRecord(
                cp=cp,
                name=name,
                name_is_fallback=name_is_fallback,
                image=image if image is not None else image_uri(None),
                owner=owner,
            )
            self._cache[cp] = record
            return record

        record = self._cache.get(cp)
        if record is None:
            record = self._store.fetch_batch([cp]).get(cp)
            if record is None:
                raise CodepointNotFoundError(cp)
            self._cache[cp] = record
        if owner is not None and record.owner is not owner:
            record = dataclasses.replace(record, owner=owner)
        return record

    def bind(
        self,
        records: Mapping[int, CodepointRecord],
        owner: Any,
    ) -> dict[int, CodepointRecord]:
        """Attach fetched *records* to *owner*, keeping their order."""
        bound: dict[int, CodepointRecord] = {}
        for cp, record in records.items():
            bound[cp] = dataclasses.replace(record, owner=owner)
            self._cache[cp] = bound[cp]
        return bound
