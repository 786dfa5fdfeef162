"""Exception hierarchy for the codepoint index and range sets.

Only store failures abort an operation. Lookup misses are raised by point
queries (single codepoint, block, plane) and are expected to be handled by
callers that treat a miss as "nothing there".
"""
from __future__ import annotations


class CodepointsError(Exception):
    """Base exception for all codepoint index errors."""


class StoreError(CodepointsError):
    """Raised when the backing store fails to answer a query."""


class SchemaVersionError(StoreError):
    """Raised when a codepoint DB schema version does not match expected."""


class LookupMissError(CodepointsError):
    """Raised when a point query finds no backing row."""


class CodepointNotFoundError(LookupMissError):
    """Raised when a single codepoint has no record in the store."""

    def __init__(self, cp: int) -> None:
        super().__init__(f"No codepoint U+{cp:04X} in store")
        self.cp = cp


class BlockNotFoundError(LookupMissError):
    """Raised when no block matches a name or contains a codepoint."""


class PlaneNotFoundError(LookupMissError):
    """Raised when no plane matches a name or contains a block."""
