"""Typed records returned by the codepoint index."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

IMAGE_URI_PREFIX = "data:image/png;base64,"
CONTROL_NAME = "<control>"


@dataclass(frozen=True, slots=True)
class CodepointRecord:
    """Metadata for a single codepoint.

    ``owner`` backlinks to the range set the record was materialized for.
    It is excluded from equality so that records for the same codepoint
    compare equal regardless of which set produced them.
    """

    cp: int
    name: str
    name_is_fallback: bool = False
    image: str = IMAGE_URI_PREFIX
    owner: Any = field(default=None, compare=False, repr=False)

    @property
    def label(self) -> str:
        """``U+XXXX`` notation for the codepoint."""
        return f"U+{self.cp:04X}"

    @property
    def char(self) -> str:
        return chr(self.cp)


@dataclass(frozen=True, slots=True)
class BlockRow:
    """A named Unicode block as stored in the index."""

    name: str
    first: int
    last: int


@dataclass(frozen=True, slots=True)
class PlaneRow:
    """A Unicode plane as stored in the index."""

    name: str
    first: int
    last: int


def display_name(na: str | None, na1: str | None) -> tuple[str, bool]:
    """Derive the display name of a codepoint from its UCD name fields.

    Returns ``(name, is_fallback)``. The Unicode 1.0 name is marked with a
    trailing ``*`` when used in place of the current name; codepoints with
    neither get ``<control>``.
    """
    if na:
        return na, False
    if na1:
        return f"{na1}*", True
    return CONTROL_NAME, True


def image_uri(payload: str | None) -> str:
    """Wrap a base64 PNG payload in a data URI (empty payload if missing)."""
    return IMAGE_URI_PREFIX + (payload or "")


def record_from_row(row: dict[str, Any]) -> CodepointRecord:
    """Build a CodepointRecord from a column-name → value dict."""
    name, is_fallback = display_name(row.get("na"), row.get("na1"))
    return CodepointRecord(
        cp=int(row["cp"]),
        name=name,
        name_is_fallback=is_fallback,
        image=image_uri(row.get("image")),
    )
