"""Tests for codepoints.blocks — named blocks and planes."""
from __future__ import annotations

import pytest

from codepoints.blocks import (
    DEFAULT_VERSION,
    Block,
    ByName,
    ByRow,
    Plane,
    all_block_names,
    block_for_codepoint,
    resolve_block,
    resolve_plane,
    search_blocks,
)
from codepoints.errors import BlockNotFoundError, PlaneNotFoundError
from codepoints.records import BlockRow, PlaneRow
from codepoints.store import CodepointIndex


class TestResolve:
    def test_by_name(self, index: CodepointIndex) -> None:
        row = resolve_block(ByName("GREEK AND COPTIC"), index)
        assert row == BlockRow("Greek and Coptic", 0x370, 0x3FF)

    def test_by_row_skips_lookup(self, index: CodepointIndex) -> None:
        row = BlockRow("Made Up", 0xE000, 0xE0FF)
        assert resolve_block(ByRow(row), index) is row

    def test_unknown_name(self, index: CodepointIndex) -> None:
        with pytest.raises(BlockNotFoundError, match="No block named Klingon"):
            resolve_block(ByName("Klingon"), index)

    def test_wrong_row_type(self, index: CodepointIndex) -> None:
        with pytest.raises(TypeError):
            resolve_block(ByRow(PlaneRow("Basic Multilingual Plane", 0, 0xFFFF)), index)

    def test_plane_by_name(self, index: CodepointIndex) -> None:
        row = resolve_plane(ByName("Supplementary_Multilingual_Plane"), index)
        assert row.first == 0x10000
        with pytest.raises(PlaneNotFoundError):
            resolve_plane(ByName("Plane 9"), index)


class TestBlock:
    def test_canonical_name_and_limits(self, index: CodepointIndex) -> None:
        block = Block.create(ByName("basiclatin"), index)
        assert block.name == "Basic Latin"
        assert str(block) == "Basic Latin"
        assert block.limits == (0, 0x7F)

    def test_codepoints_are_lazy(self, index: CodepointIndex) -> None:
        block = Block.create(ByName("Basic Latin"), index)
        assert block.codepoints.is_materialized is False
        assert block.codepoints.get_boundaries() == (0x00, 0x7F)
        assert len(block.codepoints) == 30

    def test_count(self, index: CodepointIndex) -> None:
        assert Block.create(ByName("Basic Latin"), index).count() == 30
        assert Block.create(ByName("Latin-1 Supplement"), index).count() == 0

    def test_prev_and_next(self, index: CodepointIndex) -> None:
        greek = Block.create(ByName("Greek and Coptic"), index)
        prev = greek.prev()
        nxt = greek.next()
        assert prev is not None and prev.name == "Latin-1 Supplement"
        assert nxt is not None and nxt.name == "Emoticons"
        assert Block.create(ByName("Basic Latin"), index).prev() is None
        assert nxt.next() is None

    def test_neighbours_and_plane_are_cached(
        self, index: CodepointIndex, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        calls: list[str] = []
        for method in ("block_before", "block_after", "plane_containing"):
            original = getattr(index, method)

            def counted(*args, _name=method, _orig=original):
                calls.append(_name)
                return _orig(*args)

            monkeypatch.setattr(index, method, counted)

        latin = Block.create(ByName("Basic Latin"), index)
        assert latin.prev() is None
        assert latin.prev() is None
        assert latin.next() is latin.next()
        assert latin.plane() is latin.plane()
        assert calls == ["block_before", "block_after", "plane_containing"]

    def test_plane(self, index: CodepointIndex) -> None:
        plane = Block.create(ByName("Emoticons"), index).plane()
        assert isinstance(plane, Plane)
        assert plane.name == "Supplementary Multilingual Plane"

    def test_plane_missing(self, index: CodepointIndex) -> None:
        block = Block.create(ByRow(BlockRow("Far Away", 0x30000, 0x3007F)), index)
        with pytest.raises(PlaneNotFoundError):
            block.plane()

    def test_abstract(self, index: CodepointIndex) -> None:
        block = Block.create(ByName("Basic Latin"), index)
        assert block.abstract() == "The ASCII block."
        assert block.abstract("fr") == ""

    def test_version(self, index: CodepointIndex) -> None:
        assert Block.create(ByName("Greek and Coptic"), index).version() == "1.1"
        assert Block.create(ByName("Emoticons"), index).version() == "6.1"
        assert Block.create(ByName("Latin-1 Supplement"), index).version() == DEFAULT_VERSION

    def test_equality_by_row(self, index: CodepointIndex) -> None:
        a = Block.create(ByName("Basic Latin"), index)
        b = Block.create(ByName("basic latin"), index)
        assert a == b


class TestLookups:
    def test_block_for_codepoint(self, index: CodepointIndex) -> None:
        assert block_for_codepoint(0x1F600, index).name == "Emoticons"
        with pytest.raises(BlockNotFoundError):
            block_for_codepoint(0x2000, index)

    def test_search(self, index: CodepointIndex) -> None:
        assert [b.name for b in search_blocks("latin", index)] == [
            "Basic Latin",
            "Latin-1 Supplement",
        ]
        assert search_blocks("xyz", index) == []

    def test_all_names(self, index: CodepointIndex) -> None:
        assert all_block_names(index) == [
            "Basic Latin",
            "Latin-1 Supplement",
            "Greek and Coptic",
            "Emoticons",
        ]


class TestPlane:
    def test_blocks(self, index: CodepointIndex) -> None:
        bmp = Plane.create(ByName("Basic Multilingual Plane"), index)
        assert bmp.limits == (0, 0xFFFF)
        assert [b.name for b in bmp.blocks()] == [
            "Basic Latin",
            "Latin-1 Supplement",
            "Greek and Coptic",
        ]
