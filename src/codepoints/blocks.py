"""Named sub-ranges: Unicode blocks and planes.

Both are built through a factory over a tagged reference:

* **ByName** — look the row up in the index by (normalized) name.
* **ByRow** — the caller already holds the row, e.g. from a neighbour query.

The reference is resolved to a plain row first; :class:`Block` and
:class:`Plane` are then built from that row alone.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from codepoints.errors import BlockNotFoundError, PlaneNotFoundError
from codepoints.range_set import RangeSet
from codepoints.records import BlockRow, PlaneRow
from codepoints.store import CodepointIndex

DEFAULT_VERSION = "1.0"


@dataclass(frozen=True, slots=True)
class ByName:
    """Reference to a block or plane by name."""

    name: str


@dataclass(frozen=True, slots=True)
class ByRow:
    """Reference to a block or plane whose row is already known."""

    row: BlockRow | PlaneRow


SubRangeRef = ByName | ByRow


def _version_key(age: str) -> tuple[int, ...]:
    return tuple(int(part) for part in age.split(".") if part.isdigit())


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

def resolve_block(ref: SubRangeRef, index: CodepointIndex) -> BlockRow:
    """Resolve *ref* to a block row.

    Raises:
        BlockNotFoundError: No block has the requested name.
    """
    match ref:
        case ByRow(row=BlockRow() as row):
            return row
        case ByRow(row=row):
            raise TypeError(f"Expected a BlockRow, got {type(row).__name__}")
        case ByName(name=name):
            row = index.find_block(name)
            if row is None:
                raise BlockNotFoundError(f"No block named {name}")
            return row


@dataclass
class Block:
    """A block of characters as defined by Unicode.

    ``codepoints`` is a lazy :class:`RangeSet` over the block limits; it
    only queries the index when read.
    """

    row: BlockRow
    index: CodepointIndex = field(repr=False, compare=False)
    codepoints: RangeSet = field(init=False, repr=False, compare=False)
    _abstracts: dict[str, str] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _version: str | None = field(default=None, init=False, repr=False, compare=False)
    _neighbours: dict[str, Block | None] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _plane: Plane | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.codepoints = RangeSet(
            range(self.row.first, self.row.last + 1), self.index
        )

    @classmethod
    def create(cls, ref: SubRangeRef, index: CodepointIndex) -> Block:
        return cls(resolve_block(ref, index), index)

    def __str__(self) -> str:
        return self.row.name

    @property
    def name(self) -> str:
        """The block's official name."""
        return self.row.name

    @property
    def limits(self) -> tuple[int, int]:
        """First and last codepoint of the block definition.

        Unlike :meth:`RangeSet.get_boundaries`, these need not be assigned
        codepoints.
        """
        return self.row.first, self.row.last

    def count(self) -> int:
        """Number of assigned codepoints in this block."""
        return self.index.count_codepoints(self.row.first, self.row.last)

    def prev(self) -> Block | None:
        if "prev" not in self._neighbours:
            row = self.index.block_before(self.row.first)
            self._neighbours["prev"] = (
                None if row is None else Block.create(ByRow(row), self.index)
            )
        return self._neighbours["prev"]

    def next(self) -> Block | None:
        if "next" not in self._neighbours:
            row = self.index.block_after(self.row.last)
            self._neighbours["next"] = (
                None if row is None else Block.create(ByRow(row), self.index)
            )
        return self._neighbours["next"]

    def plane(self) -> Plane:
        """The plane this block belongs to."""
        if self._plane is None:
            row = self.index.plane_containing(self.row.first, self.row.last)
            if row is None:
                raise PlaneNotFoundError(f"No plane found for block {self.row.name}")
            self._plane = Plane.create(ByRow(row), self.index)
        return self._plane

    def abstract(self, lang: str = "en") -> str:
        """The block description in *lang*, ``""`` if there is none."""
        if lang not in self._abstracts:
            self._abstracts[lang] = self.index.block_abstract(self.row.name, lang) or ""
        return self._abstracts[lang]

    def version(self) -> str:
        """The earliest Unicode version with a codepoint in this block."""
        if self._version is None:
            ages = self.index.ages(self.row.first, self.row.last)
            self._version = min(ages, key=_version_key) if ages else DEFAULT_VERSION
        return self._version


def block_for_codepoint(cp: int, index: CodepointIndex) -> Block:
    """Get the block containing *cp*."""
    row = index.block_containing(cp)
    if row is None:
        raise BlockNotFoundError(f"No block contains this codepoint: {cp}")
    return Block.create(ByRow(row), index)


def search_blocks(query: str, index: CodepointIndex) -> list[Block]:
    """Blocks whose name contains *query*, ignoring case, spaces and underscores."""
    return [Block.create(ByRow(row), index) for row in index.search_blocks(query)]


def all_block_names(index: CodepointIndex) -> list[str]:
    """All block names in code order."""
    return index.block_names()


# ---------------------------------------------------------------------------
# Planes
# ---------------------------------------------------------------------------

def resolve_plane(ref: SubRangeRef, index: CodepointIndex) -> PlaneRow:
    """Resolve *ref* to a plane row.

    Raises:
        PlaneNotFoundError: No plane has the requested name.
    """
    match ref:
        case ByRow(row=PlaneRow() as row):
            return row
        case ByRow(row=row):
            raise TypeError(f"Expected a PlaneRow, got {type(row).__name__}")
        case ByName(name=name):
            row = index.find_plane(name)
            if row is None:
                raise PlaneNotFoundError(f"No plane named {name}")
            return row


@dataclass
class Plane:
    """One of the 17 Unicode planes."""

    row: PlaneRow
    index: CodepointIndex = field(repr=False, compare=False)

    @classmethod
    def create(cls, ref: SubRangeRef, index: CodepointIndex) -> Plane:
        return cls(resolve_plane(ref, index), index)

    def __str__(self) -> str:
        return self.row.name

    @property
    def name(self) -> str:
        return self.row.name

    @property
    def limits(self) -> tuple[int, int]:
        return self.row.first, self.row.last

    def blocks(self) -> list[Block]:
        """Blocks inside this plane, in code order."""
        return [
            Block.create(ByRow(row), self.index)
            for row in self.index.blocks_within(self.row.first, self.row.last)
        ]
