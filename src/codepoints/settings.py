"""Environment-driven settings and logging setup."""
from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_DB_PATH = Path("codepoint_index") / "codepoints.duckdb"
DEFAULT_PARSE_STRING_MAXLENGTH = 256
DEFAULT_LOG_LEVEL = "INFO"

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime settings for index consumers.

    Attributes:
        db_path: Location of the DuckDB codepoint index.
        parse_string_maxlength: ``parse_string`` input limit in codepoints.
        log_level: Root logging level name.
    """

    db_path: Path = DEFAULT_DB_PATH
    parse_string_maxlength: int = DEFAULT_PARSE_STRING_MAXLENGTH
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Read ``CODEPOINTS_*`` variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        raw_db = env.get("CODEPOINTS_DB", "").strip()
        return cls(
            db_path=Path(raw_db) if raw_db else DEFAULT_DB_PATH,
            parse_string_maxlength=_positive_int(
                env.get("CODEPOINTS_PARSE_STRING_MAXLENGTH"),
                DEFAULT_PARSE_STRING_MAXLENGTH,
            ),
            log_level=(env.get("CODEPOINTS_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
        )


def _positive_int(raw: str | None, default: int) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        log.warning("Ignoring non-integer setting %r, using %d", raw, default)
        return default
    return value if value > 0 else default


def configure_logging(level: str = DEFAULT_LOG_LEVEL, *, verbose: bool = False) -> None:
    """Configure root logging for scripts."""
    resolved = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
