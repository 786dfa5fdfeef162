"""Run-manifest utilities for codepoint index build reproducibility."""
from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

import orjson

MANIFEST_VERSION = "1.0"
MANIFEST_FILENAME = "run_manifest.json"

DEFAULT_TABLES: tuple[str, ...] = (
    "codepoints",
    "codepoint_image",
    "blocks",
    "block_abstract",
    "planes",
)


def utc_now_iso() -> str:
    """Return current UTC timestamp in ISO-8601 format."""
    return datetime.now(UTC).isoformat()


def generate_run_id(prefix: str = "codepoint_build") -> str:
    """Generate a compact run id suitable for artifact naming."""
    ts = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
    return f"{prefix}_{ts}_{uuid4().hex[:8]}"


def default_manifest_path_for_db(db_path: Path) -> Path:
    """Return canonical sidecar manifest path for a DuckDB file."""
    return db_path.parent / MANIFEST_FILENAME


def table_row_counts(
    conn: Any,
    *,
    tables: tuple[str, ...] = DEFAULT_TABLES,
) -> dict[str, int]:
    """Read row counts for the index tables from an open connection."""
    existing = {str(r[0]) for r in conn.execute("SHOW TABLES").fetchall()}
    counts: dict[str, int] = {}
    for table in tables:
        if table not in existing:
            counts[table] = 0
            continue
        row = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
        counts[table] = int(row[0]) if row else 0
    return counts


def build_manifest(
    *,
    run_id: str,
    db_path: Path,
    schema_version: str,
    row_counts: dict[str, int],
    input_source: dict[str, Any],
    timings_sec: dict[str, float],
    skipped_lines: int = 0,
) -> dict[str, Any]:
    """Build canonical manifest payload for an index snapshot."""
    return {
        "manifest_version": MANIFEST_VERSION,
        "created_at": utc_now_iso(),
        "run_id": run_id,
        "db_path": str(db_path),
        "schema_version": schema_version,
        "input_source": input_source,
        "table_row_counts": row_counts,
        "timings_sec": timings_sec,
        "skipped_lines": int(skipped_lines),
    }


def write_manifest(db_path: Path, manifest: dict[str, Any]) -> Path:
    """Write the manifest side-by-side with the DB and return its path."""
    path = default_manifest_path_for_db(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(
        orjson.dumps(manifest, option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS)
    )
    return path


def load_manifest(path: Path) -> dict[str, Any]:
    """Load a manifest from JSON."""
    data = orjson.loads(path.read_bytes())
    if not isinstance(data, dict):
        raise ValueError(f"Invalid manifest payload in {path}")
    return data
