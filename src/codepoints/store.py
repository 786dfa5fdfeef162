"""DuckDB-backed codepoint index.

Provides read-only access to the pre-built codepoint index
(codepoints.duckdb). The index is built by
scripts/build_codepoint_index.py and opened read-only by every consumer.

Tables:
    codepoints      — one row per assigned codepoint (cp, na, na1, age)
    codepoint_image — optional base64 PNG glyph per codepoint
    blocks          — named block boundaries
    block_abstract  — per-language block descriptions
    planes          — plane boundaries
    _schema_version — schema version tracking
"""
from __future__ import annotations

import importlib
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any, Protocol

from codepoints.errors import SchemaVersionError, StoreError
from codepoints.manifest import default_manifest_path_for_db, load_manifest
from codepoints.normalize import normalize_name
from codepoints.records import BlockRow, CodepointRecord, PlaneRow, record_from_row
from codepoints.settings import Settings

# Dynamic DuckDB import for pyright compatibility
_duckdb_mod = importlib.import_module("duckdb")

log = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0.0"

# Upper bound on bind parameters per IN (...) query.
FETCH_CHUNK_SIZE = 2000

# SQL twin of normalize_name(): lowercase, no spaces, no underscores.
_NORMALIZED_NAME_SQL = "replace(replace(lower({col}), '_', ''), ' ', '')"


class CodepointStore(Protocol):
    """Batch lookup of codepoint metadata by id.

    Ids absent from the backing data are missing from the result; that is
    not an error. Query failures raise :class:`StoreError`.
    """

    def fetch_batch(self, ids: Sequence[int]) -> dict[int, CodepointRecord]: ...


def _read_schema_version(conn: Any) -> str:
    """Read index schema version from an open DuckDB connection."""
    try:
        result = conn.execute(
            "SELECT version FROM _schema_version WHERE table_name = 'codepoints'"
        ).fetchone()
        return str(result[0]) if result else "unknown"
    except _duckdb_mod.Error:
        return "unknown"


def ensure_schema_version(
    conn: Any,
    *,
    db_path: Path | None = None,
    expected: str = SCHEMA_VERSION,
) -> str:
    """Validate schema version for an open DuckDB connection.

    Returns actual schema version on success.
    Raises SchemaVersionError on mismatch.
    """
    actual = _read_schema_version(conn)
    if actual != expected:
        where = f" in {db_path}" if db_path is not None else ""
        raise SchemaVersionError(
            f"Schema version mismatch{where}: expected {expected}, got {actual}"
        )
    return actual


def _chunks(ids: Sequence[int], size: int) -> Iterable[Sequence[int]]:
    for start in range(0, len(ids), size):
        yield ids[start:start + size]


class CodepointIndex:
    """Read-only interface to the DuckDB codepoint index.

    Opens the database in read-only mode. All queries return typed records;
    any DuckDB failure surfaces as :class:`StoreError`.
    """

    def __init__(self, db_path: Path, *, enforce_schema: bool = True) -> None:
        if not db_path.exists():
            raise FileNotFoundError(f"Codepoint index not found: {db_path}")
        self._db_path = db_path
        self._conn: Any = _duckdb_mod.connect(str(db_path), read_only=True)
        if enforce_schema:
            try:
                ensure_schema_version(self._conn, db_path=db_path)
            except Exception:
                self._conn.close()
                raise

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> CodepointIndex:
        """Open the index configured through ``CODEPOINTS_DB``."""
        settings = settings or Settings.from_env()
        return cls(settings.db_path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> CodepointIndex:
        return self

    def __exit__(self, *_args: object) -> None:
        self.close()

    def _query(self, sql: str, params: Sequence[Any] = ()) -> list[tuple[Any, ...]]:
        try:
            return self._conn.execute(sql, list(params)).fetchall()
        except _duckdb_mod.Error as exc:
            raise StoreError(f"Query failed on {self._db_path}: {exc}") from exc

    @property
    def schema_version(self) -> str:
        """Get the schema version of this index."""
        return _read_schema_version(self._conn)

    @property
    def run_manifest_path(self) -> Path:
        """Canonical run-manifest path sidecar for this DB."""
        return default_manifest_path_for_db(self._db_path)

    def get_run_manifest(self) -> dict[str, Any] | None:
        """Load the run manifest sidecar, or None when it does not exist."""
        path = self.run_manifest_path
        if not path.exists():
            return None
        return load_manifest(path)

    @property
    def codepoint_count(self) -> int:
        """Total number of codepoints in the index."""
        rows = self._query("SELECT COUNT(*) FROM codepoints")
        return int(rows[0][0]) if rows else 0

    # ------------------------------------------------------------------
    # Codepoints
    # ------------------------------------------------------------------

    def fetch_batch(self, ids: Sequence[int]) -> dict[int, CodepointRecord]:
        """Fetch records for *ids* in ascending id order.

        Ids with no row are simply absent from the result.
        """
        wanted = sorted(set(ids))
        records: dict[int, CodepointRecord] = {}
        if not wanted:
            return records
        cols = ["cp", "na", "na1", "image"]
        for chunk in _chunks(wanted, FETCH_CHUNK_SIZE):
            placeholders = ", ".join("?" for _ in chunk)
            rows = self._query(
                "SELECT c.cp, c.na, c.na1, i.image "
                "FROM codepoints c "
                "LEFT JOIN codepoint_image i ON i.cp = c.cp "
                f"WHERE c.cp IN ({placeholders}) "
                "ORDER BY c.cp",
                chunk,
            )
            for row in rows:
                rec = record_from_row(dict(zip(cols, row, strict=True)))
                records[rec.cp] = rec
        log.debug("fetch_batch: %d requested, %d found", len(wanted), len(records))
        return records

    def fetch_one(self, cp: int) -> CodepointRecord | None:
        """Fetch a single codepoint record."""
        return self.fetch_batch([cp]).get(cp)

    def count_codepoints(self, first: int, last: int) -> int:
        """Number of assigned codepoints in ``[first, last]``."""
        rows = self._query(
            "SELECT COUNT(*) FROM codepoints WHERE cp >= ? AND cp <= ?",
            [first, last],
        )
        return int(rows[0][0]) if rows else 0

    def ages(self, first: int, last: int) -> list[str]:
        """Distinct Unicode ages of the codepoints in ``[first, last]``."""
        rows = self._query(
            "SELECT DISTINCT age FROM codepoints "
            "WHERE cp >= ? AND cp <= ? AND age IS NOT NULL",
            [first, last],
        )
        return [str(r[0]) for r in rows]

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def _block_rows(self, sql: str, params: Sequence[Any] = ()) -> list[BlockRow]:
        return [
            BlockRow(name=str(r[0]), first=int(r[1]), last=int(r[2]))
            for r in self._query(sql, params)
        ]

    def find_block(self, name: str) -> BlockRow | None:
        """Find a block by name, ignoring case, spaces and underscores."""
        rows = self._block_rows(
            "SELECT name, first, last FROM blocks "
            f"WHERE {_NORMALIZED_NAME_SQL.format(col='name')} = ? LIMIT 1",
            [normalize_name(name)],
        )
        return rows[0] if rows else None

    def block_containing(self, cp: int) -> BlockRow | None:
        """The block whose limits include *cp*."""
        rows = self._block_rows(
            "SELECT name, first, last FROM blocks "
            "WHERE first <= ? AND last >= ? LIMIT 1",
            [cp, cp],
        )
        return rows[0] if rows else None

    def block_before(self, cp: int) -> BlockRow | None:
        """The closest block ending before *cp*."""
        rows = self._block_rows(
            "SELECT name, first, last FROM blocks "
            "WHERE first < ? AND last < ? ORDER BY last DESC LIMIT 1",
            [cp, cp],
        )
        return rows[0] if rows else None

    def block_after(self, cp: int) -> BlockRow | None:
        """The closest block starting after *cp*."""
        rows = self._block_rows(
            "SELECT name, first, last FROM blocks "
            "WHERE first > ? AND last > ? ORDER BY first ASC LIMIT 1",
            [cp, cp],
        )
        return rows[0] if rows else None

    def search_blocks(self, fragment: str) -> list[BlockRow]:
        """Blocks whose normalized name contains *fragment*, in code order."""
        pattern = "%" + normalize_name(fragment) + "%"
        return self._block_rows(
            "SELECT name, first, last FROM blocks "
            f"WHERE {_NORMALIZED_NAME_SQL.format(col='name')} LIKE ? "
            "ORDER BY first ASC",
            [pattern],
        )

    def blocks_within(self, first: int, last: int) -> list[BlockRow]:
        """Blocks lying entirely inside ``[first, last]``, in code order."""
        return self._block_rows(
            "SELECT name, first, last FROM blocks "
            "WHERE first >= ? AND last <= ? ORDER BY first ASC",
            [first, last],
        )

    def block_names(self) -> list[str]:
        """All block names in code order."""
        return [str(r[0]) for r in self._query("SELECT name FROM blocks ORDER BY first ASC")]

    def block_abstract(self, name: str, lang: str) -> str | None:
        """The block description in *lang*, if one is stored."""
        rows = self._query(
            "SELECT abstract FROM block_abstract "
            f"WHERE {_NORMALIZED_NAME_SQL.format(col='block')} = ? AND lang = ? "
            "LIMIT 1",
            [normalize_name(name), lang],
        )
        if not rows or rows[0][0] is None:
            return None
        return str(rows[0][0])

    # ------------------------------------------------------------------
    # Planes
    # ------------------------------------------------------------------

    def _plane_rows(self, sql: str, params: Sequence[Any] = ()) -> list[PlaneRow]:
        return [
            PlaneRow(name=str(r[0]), first=int(r[1]), last=int(r[2]))
            for r in self._query(sql, params)
        ]

    def find_plane(self, name: str) -> PlaneRow | None:
        """Find a plane by name, ignoring case, spaces and underscores."""
        rows = self._plane_rows(
            "SELECT name, first, last FROM planes "
            f"WHERE {_NORMALIZED_NAME_SQL.format(col='name')} = ? LIMIT 1",
            [normalize_name(name)],
        )
        return rows[0] if rows else None

    def plane_containing(self, first: int, last: int) -> PlaneRow | None:
        """The plane whose limits include all of ``[first, last]``."""
        rows = self._plane_rows(
            "SELECT name, first, last FROM planes "
            "WHERE first <= ? AND last >= ? LIMIT 1",
            [first, last],
        )
        return rows[0] if rows else None
