"""Shared fixtures: a counting fake store and a small DuckDB codepoint index."""
from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import duckdb
import pytest

from codepoints.errors import StoreError
from codepoints.records import CodepointRecord
from codepoints.store import SCHEMA_VERSION, CodepointIndex


class FakeStore:
    """In-memory store that records every fetch_batch call."""

    def __init__(self, known: Sequence[int], *, failures: int = 0) -> None:
        self.records = {
            cp: CodepointRecord(cp=cp, name=f"CHAR {cp:04X}") for cp in known
        }
        self.calls: list[list[int]] = []
        self.failures = failures

    def fetch_batch(self, ids: Sequence[int]) -> dict[int, CodepointRecord]:
        self.calls.append(list(ids))
        if self.failures:
            self.failures -= 1
            raise StoreError("backing store unavailable")
        # Deliberately unordered to prove callers sort.
        return {
            cp: self.records[cp]
            for cp in sorted(set(ids), reverse=True)
            if cp in self.records
        }


@pytest.fixture()
def fake_store() -> FakeStore:
    """Knows A-Z (0x41-0x5A), a-z (0x61-0x7A) and U+1F600."""
    return FakeStore([*range(0x41, 0x5B), *range(0x61, 0x7B), 0x1F600])


def create_min_codepoint_db(path: Path, *, schema_version: str = SCHEMA_VERSION) -> None:
    con = duckdb.connect(str(path))
    con.execute(
        """
        CREATE TABLE _schema_version (
            table_name VARCHAR PRIMARY KEY,
            version VARCHAR NOT NULL,
            created_at TIMESTAMP
        )
        """
    )
    con.execute(
        "INSERT INTO _schema_version VALUES ('codepoints', ?, current_timestamp)",
        [schema_version],
    )
    con.execute(
        "CREATE TABLE codepoints (cp INTEGER PRIMARY KEY, na VARCHAR, na1 VARCHAR, age VARCHAR)"
    )
    con.execute("CREATE TABLE codepoint_image (cp INTEGER PRIMARY KEY, image VARCHAR)")
    con.execute("CREATE TABLE blocks (name VARCHAR PRIMARY KEY, first INTEGER, last INTEGER)")
    con.execute("CREATE TABLE block_abstract (block VARCHAR, lang VARCHAR, abstract VARCHAR)")
    con.execute("CREATE TABLE planes (name VARCHAR PRIMARY KEY, first INTEGER, last INTEGER)")

    rows = [
        (0x00, None, "NULL", "1.1"),
        (0x0A, None, "LINE FEED (LF)", "1.1"),
        (0x7F, None, None, "1.1"),
    ]
    rows += [
        (cp, f"LATIN CAPITAL LETTER {chr(cp)}", None, "1.1") for cp in range(0x41, 0x5B)
    ]
    rows += [
        (0x61, "LATIN SMALL LETTER A", None, "1.1"),
        (0x391, "GREEK CAPITAL LETTER ALPHA", None, "1.1"),
        (0x3F4, "GREEK CAPITAL THETA SYMBOL", None, "3.1"),
        (0x1F600, "GRINNING FACE", None, "6.1"),
    ]
    con.executemany("INSERT INTO codepoints VALUES (?, ?, ?, ?)", rows)
    con.execute("INSERT INTO codepoint_image VALUES (65, 'QUJD')")
    con.executemany(
        "INSERT INTO blocks VALUES (?, ?, ?)",
        [
            ("Basic Latin", 0x0000, 0x007F),
            ("Latin-1 Supplement", 0x0080, 0x00FF),
            ("Greek and Coptic", 0x0370, 0x03FF),
            ("Emoticons", 0x1F600, 0x1F64F),
        ],
    )
    con.execute("INSERT INTO block_abstract VALUES ('Basic Latin', 'en', 'The ASCII block.')")
    con.executemany(
        "INSERT INTO planes VALUES (?, ?, ?)",
        [
            ("Basic Multilingual Plane", 0x0000, 0xFFFF),
            ("Supplementary Multilingual Plane", 0x10000, 0x1FFFF),
        ],
    )
    con.close()


@pytest.fixture()
def index_path(tmp_path: Path) -> Path:
    path = tmp_path / "codepoints.duckdb"
    create_min_codepoint_db(path)
    return path


@pytest.fixture()
def index(index_path: Path) -> CodepointIndex:
    idx = CodepointIndex(index_path)
    yield idx  # type: ignore[misc]
    idx.close()
