#!/usr/bin/env python3
"""Build a DuckDB codepoint index from Unicode Character Database files.

Reads ``UnicodeData.txt`` and ``Blocks.txt`` (and optionally
``DerivedAge.txt``), plus optional JSON sidecars with block abstracts and
glyph images, and writes them to a DuckDB database file opened read-only
by ``codepoints.store.CodepointIndex``. A ``run_manifest.json`` sidecar is
written next to the database.

Usage:
    python3 scripts/build_codepoint_index.py \
        --unicode-data ucd/UnicodeData.txt \
        --blocks ucd/Blocks.txt \
        --derived-age ucd/DerivedAge.txt \
        --output codepoint_index/codepoints.duckdb

Sidecar formats:
    --abstracts  {"Basic Latin": {"en": "..."}, ...}
    --images     {"0041": "<base64 PNG>", ...}
"""
from __future__ import annotations

import argparse
import importlib
import logging
import re
import sys
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import orjson

from codepoints.manifest import (
    build_manifest,
    generate_run_id,
    table_row_counts,
    write_manifest,
)
from codepoints.settings import Settings, configure_logging
from codepoints.store import SCHEMA_VERSION

# DuckDB: dynamic import for pyright compatibility
_duckdb = importlib.import_module("duckdb")

log = logging.getLogger("build_codepoint_index")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_SCHEMA_DDL = f"""\
CREATE TABLE _schema_version (
    table_name VARCHAR PRIMARY KEY,
    version VARCHAR NOT NULL,
    created_at TIMESTAMP DEFAULT current_timestamp
);

INSERT INTO _schema_version VALUES ('codepoints', '{SCHEMA_VERSION}', current_timestamp);

CREATE TABLE codepoints (
    cp INTEGER PRIMARY KEY,
    na VARCHAR,
    na1 VARCHAR,
    age VARCHAR
);

CREATE TABLE codepoint_image (
    cp INTEGER PRIMARY KEY,
    image VARCHAR
);

CREATE TABLE blocks (
    name VARCHAR PRIMARY KEY,
    first INTEGER NOT NULL,
    last INTEGER NOT NULL
);

CREATE TABLE block_abstract (
    block VARCHAR NOT NULL,
    lang VARCHAR NOT NULL,
    abstract VARCHAR,
    PRIMARY KEY (block, lang)
);

CREATE TABLE planes (
    name VARCHAR PRIMARY KEY,
    first INTEGER NOT NULL,
    last INTEGER NOT NULL
);
"""

PLANE_NAMES: tuple[str, ...] = (
    "Basic Multilingual Plane",
    "Supplementary Multilingual Plane",
    "Supplementary Ideographic Plane",
    "Tertiary Ideographic Plane",
    *(f"Plane {n} (unassigned)" for n in range(4, 14)),
    "Supplementary Special-purpose Plane",
    "Supplementary Private Use Area-A",
    "Supplementary Private Use Area-B",
)

# Ranges listed as <..., First>/<..., Last> pairs whose names are derived
# from the codepoint value.
_IDEOGRAPH_PREFIXES: dict[str, str] = {
    "CJK Ideograph": "CJK UNIFIED IDEOGRAPH-",
    "Tangut Ideograph": "TANGUT IDEOGRAPH-",
    "Khitan Small Script": "KHITAN SMALL SCRIPT CHARACTER-",
    "Nushu Character": "NUSHU CHARACTER-",
}

_RANGE_LINE_RE = re.compile(
    r"^([0-9A-Fa-f]+)(?:\.\.([0-9A-Fa-f]+))?\s*;\s*([^#]+?)\s*(?:#.*)?$"
)

# Hangul syllable decomposition constants (Unicode ch. 3.12)
_S_BASE, _L_COUNT, _V_COUNT, _T_COUNT = 0xAC00, 19, 21, 28
_JAMO_L = ("G", "GG", "N", "D", "DD", "R", "M", "B", "BB", "S", "SS", "",
           "J", "JJ", "C", "K", "T", "P", "H")
_JAMO_V = ("A", "AE", "YA", "YAE", "EO", "E", "YEO", "YE", "O", "WA", "WAE",
           "OE", "YO", "U", "WEO", "WE", "WI", "YU", "EU", "YI", "I")
_JAMO_T = ("", "G", "GG", "GS", "N", "NJ", "NH", "D", "L", "LG", "LM", "LB",
           "LS", "LT", "LP", "LH", "M", "B", "BS", "S", "SS", "NG", "J", "C",
           "K", "T", "P", "H")


def hangul_syllable_name(cp: int) -> str:
    """Algorithmic name of a precomposed Hangul syllable."""
    index = cp - _S_BASE
    l_index = index // (_V_COUNT * _T_COUNT)
    v_index = (index % (_V_COUNT * _T_COUNT)) // _T_COUNT
    t_index = index % _T_COUNT
    return "HANGUL SYLLABLE " + _JAMO_L[l_index] + _JAMO_V[v_index] + _JAMO_T[t_index]


def _range_name(label: str, cp: int) -> str | None:
    if label.startswith("Hangul Syllable"):
        return hangul_syllable_name(cp)
    for prefix, name in _IDEOGRAPH_PREFIXES.items():
        if label.startswith(prefix):
            return f"{name}{cp:04X}"
    return None


# ---------------------------------------------------------------------------
# UCD parsing
# ---------------------------------------------------------------------------

def parse_unicode_data(
    lines: Iterable[str],
) -> tuple[list[tuple[int, str | None, str | None]], int]:
    """Parse ``UnicodeData.txt`` lines into ``(cp, na, na1)`` rows.

    ``<control>``-style labels leave ``na`` empty. First/Last range pairs
    are expanded when their names can be derived (ideographs, Hangul);
    other ranges (private use, surrogates) are skipped.

    Returns:
        ``(rows, skipped)`` where *skipped* counts malformed lines.
    """
    rows: list[tuple[int, str | None, str | None]] = []
    skipped = 0
    range_start: tuple[int, str] | None = None
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        fields = line.split(";")
        if len(fields) < 11:
            skipped += 1
            continue
        try:
            cp = int(fields[0], 16)
        except ValueError:
            skipped += 1
            continue
        label = fields[1].strip()
        na1 = fields[10].strip() or None

        if label.startswith("<") and label.endswith(", First>"):
            range_start = (cp, label[1:-len(", First>")])
            continue
        if label.startswith("<") and label.endswith(", Last>"):
            if range_start is None:
                skipped += 1
                continue
            first, range_label = range_start
            range_start = None
            if _range_name(range_label, first) is None:
                continue
            for member in range(first, cp + 1):
                rows.append((member, _range_name(range_label, member), None))
            continue

        na = None if label.startswith("<") else label
        rows.append((cp, na, na1))
    return rows, skipped


def parse_ranged_file(lines: Iterable[str]) -> list[tuple[int, int, str]]:
    """Parse ``XXXX..YYYY; value`` lines (Blocks.txt, DerivedAge.txt)."""
    entries: list[tuple[int, int, str]] = []
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        match = _RANGE_LINE_RE.match(line)
        if match is None:
            continue
        first = int(match.group(1), 16)
        last = int(match.group(2), 16) if match.group(2) else first
        entries.append((first, last, match.group(3)))
    return entries


def assign_ages(
    rows: list[tuple[int, str | None, str | None]],
    ages: list[tuple[int, int, str]],
) -> list[tuple[int, str | None, str | None, str | None]]:
    """Attach the DerivedAge version to every codepoint row."""
    lookup: dict[int, str] = {}
    for first, last, age in ages:
        for cp in range(first, last + 1):
            lookup[cp] = age
    return [(cp, na, na1, lookup.get(cp)) for cp, na, na1 in rows]


def plane_rows() -> list[tuple[str, int, int]]:
    return [
        (name, n * 0x10000, n * 0x10000 + 0xFFFF)
        for n, name in enumerate(PLANE_NAMES)
    ]


def _load_json_object(path: Path) -> dict[str, Any]:
    data = orjson.loads(path.read_bytes())
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {path}")
    return data


def abstract_rows(payload: dict[str, Any]) -> list[tuple[str, str, str]]:
    rows: list[tuple[str, str, str]] = []
    for block, by_lang in payload.items():
        if not isinstance(by_lang, dict):
            continue
        for lang, text in by_lang.items():
            rows.append((str(block), str(lang), str(text)))
    return rows


def image_rows(payload: dict[str, Any]) -> list[tuple[int, str]]:
    rows: list[tuple[int, str]] = []
    for key, image in payload.items():
        try:
            rows.append((int(key, 16), str(image)))
        except ValueError:
            log.warning("Skipping image with non-hex key %r", key)
    return rows


# ---------------------------------------------------------------------------
# DuckDB writes
# ---------------------------------------------------------------------------

def _init_db(output_path: Path) -> Any:
    """Create a DuckDB file with schema, return open connection."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    conn: Any = _duckdb.connect(str(output_path))
    for stmt in _SCHEMA_DDL.split(";"):
        stmt = stmt.strip()
        if stmt:
            conn.execute(stmt)
    return conn


def write_index(
    output_path: Path,
    *,
    codepoints: list[tuple[int, str | None, str | None, str | None]],
    blocks: list[tuple[int, int, str]],
    abstracts: list[tuple[str, str, str]] | None = None,
    images: list[tuple[int, str]] | None = None,
) -> dict[str, int]:
    """Write all tables in one transaction and return their row counts."""
    conn = _init_db(output_path)
    try:
        conn.execute("BEGIN TRANSACTION")
        if codepoints:
            conn.executemany(
                "INSERT INTO codepoints (cp, na, na1, age) VALUES (?, ?, ?, ?)",
                codepoints,
            )
        if blocks:
            conn.executemany(
                "INSERT INTO blocks (name, first, last) VALUES (?, ?, ?)",
                [(name, first, last) for first, last, name in blocks],
            )
        conn.executemany(
            "INSERT INTO planes (name, first, last) VALUES (?, ?, ?)",
            plane_rows(),
        )
        if abstracts:
            conn.executemany(
                "INSERT INTO block_abstract (block, lang, abstract) VALUES (?, ?, ?)",
                abstracts,
            )
        if images:
            conn.executemany(
                "INSERT INTO codepoint_image (cp, image) VALUES (?, ?)",
                images,
            )
        conn.execute("COMMIT")
    except Exception:
        conn.execute("ROLLBACK")
        conn.close()
        raise
    try:
        return table_row_counts(conn)
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build a DuckDB codepoint index from UCD text files.",
    )
    parser.add_argument(
        "--unicode-data", type=Path, required=True, help="Path to UnicodeData.txt"
    )
    parser.add_argument(
        "--blocks", type=Path, required=True, help="Path to Blocks.txt"
    )
    parser.add_argument(
        "--derived-age", type=Path, default=None, help="Optional DerivedAge.txt"
    )
    parser.add_argument(
        "--abstracts", type=Path, default=None,
        help="Optional JSON of block abstracts ({block: {lang: text}})",
    )
    parser.add_argument(
        "--images", type=Path, default=None,
        help="Optional JSON of glyph images ({hex_cp: base64_png})",
    )
    parser.add_argument(
        "--output", type=Path, default=settings.db_path,
        help=f"Path to output DuckDB file (default: {settings.db_path})",
    )
    parser.add_argument(
        "--force", action="store_true",
        help="Overwrite output file if it exists",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    settings = Settings.from_env()
    args = build_parser(settings).parse_args(argv)
    configure_logging(settings.log_level, verbose=args.verbose)

    run_id = generate_run_id()
    t0 = time.time()

    for required in (args.unicode_data, args.blocks):
        if not required.exists():
            log.error("Input file not found: %s", required)
            return 1

    output_path: Path = args.output.resolve()
    if output_path.exists():
        if not args.force:
            log.error("Output exists (use --force to overwrite): %s", output_path)
            return 1
        output_path.unlink()

    text = args.unicode_data.read_text(encoding="utf-8").splitlines()
    rows, skipped = parse_unicode_data(text)
    log.info("Parsed %d codepoints (%d malformed lines skipped)", len(rows), skipped)
    if skipped:
        log.warning("%d malformed UnicodeData lines skipped", skipped)

    ages: list[tuple[int, int, str]] = []
    if args.derived_age is not None:
        ages = parse_ranged_file(args.derived_age.read_text(encoding="utf-8").splitlines())
        log.info("Loaded %d age ranges", len(ages))

    blocks = parse_ranged_file(args.blocks.read_text(encoding="utf-8").splitlines())
    log.info("Loaded %d blocks", len(blocks))

    abstracts = abstract_rows(_load_json_object(args.abstracts)) if args.abstracts else []
    images = image_rows(_load_json_object(args.images)) if args.images else []
    t_parse = time.time() - t0

    counts = write_index(
        output_path,
        codepoints=assign_ages(rows, ages),
        blocks=blocks,
        abstracts=abstracts,
        images=images,
    )
    t_total = time.time() - t0
    for table, count in counts.items():
        log.info("  %s: %d rows", table, count)

    manifest = build_manifest(
        run_id=run_id,
        db_path=output_path,
        schema_version=SCHEMA_VERSION,
        row_counts=counts,
        input_source={
            "unicode_data": str(args.unicode_data),
            "blocks": str(args.blocks),
            "derived_age": str(args.derived_age) if args.derived_age else None,
            "abstracts": str(args.abstracts) if args.abstracts else None,
            "images": str(args.images) if args.images else None,
        },
        timings_sec={"parse": round(t_parse, 3), "total": round(t_total, 3)},
        skipped_lines=skipped,
    )
    manifest_path = write_manifest(output_path, manifest)
    log.info("Wrote %s and %s in %.1fs", output_path, manifest_path, t_total)
    return 0


if __name__ == "__main__":
    sys.exit(main())
