"""手牌排序规则测试"""
import pytest
import numpy as np

from core.ordering import (
    SORT_EPSILON,
    compare_tiles,
    sort_hand,
    is_sorted,
    reposition_sort_key,
)
from core.tiles import Tile, TileColor, TileValue, WILDCARD, COLOR_ORDER, create_tile_set


def make_tile(color: str, n: int) -> Tile:
    c = TileColor.BLACK if color == "b" else TileColor.WHITE
    return Tile(id=f"{color}-{n}", color=c, value=TileValue.numeric(n), sort_key=float(n))


def make_wild(color: str, key: float = 100.0) -> Tile:
    c = TileColor.BLACK if color == "b" else TileColor.WHITE
    return Tile(id=f"{color}-wild", color=c, value=WILDCARD, sort_key=key, is_wildcard=True)


class TestCompareTiles:
    """compare_tiles 测试"""

    def test_lower_key_first(self):
        assert compare_tiles(make_tile("w", 1), make_tile("b", 2)) == -1
        assert compare_tiles(make_tile("b", 2), make_tile("w", 1)) == 1

    def test_black_before_white_on_tie(self):
        assert compare_tiles(make_tile("b", 3), make_tile("w", 3)) == -1
        assert compare_tiles(make_tile("w", 3), make_tile("b", 3)) == 1

    def test_within_epsilon_is_tie(self):
        black = make_wild("b", 3.0 + SORT_EPSILON / 2)
        white = make_tile("w", 3)
        assert compare_tiles(black, white) == -1
        assert compare_tiles(white, black) == 1

    def test_same_tile(self):
        tile = make_tile("b", 5)
        assert compare_tiles(tile, tile) == 0


class TestSortHand:
    """sort_hand 测试"""

    def test_basic_order(self):
        hand = [make_tile("w", 5), make_tile("b", 1), make_tile("b", 5), make_tile("w", 0)]
        ids = [t.id for t in sort_hand(hand)]
        assert ids == ["w-0", "b-1", "b-5", "w-5"]

    def test_wildcards_default_to_end(self):
        hand = [make_wild("w"), make_tile("b", 3), make_wild("b"), make_tile("w", 2)]
        ids = [t.id for t in sort_hand(hand)]
        assert ids == ["w-2", "b-3", "b-wild", "w-wild"]

    def test_repositioned_wildcard_between(self):
        hand = [make_tile("b", 2), make_tile("b", 3), make_wild("w", 2.5)]
        ids = [t.id for t in sort_hand(hand)]
        assert ids == ["b-2", "w-wild", "b-3"]

    def test_returns_tuple(self):
        assert isinstance(sort_hand([make_tile("b", 1)]), tuple)

    def test_empty(self):
        assert sort_hand([]) == ()

    def test_idempotent(self):
        rng = np.random.default_rng(7)
        tiles = create_tile_set(num_values=12, include_wildcards=True)
        for _ in range(20):
            idx = rng.choice(len(tiles), size=8, replace=False)
            hand = [tiles[i] for i in idx]
            once = sort_hand(hand)
            assert sort_hand(once) == once
            assert sort_hand(sort_hand(once)) == once

    def test_sorted_property(self):
        """排序后排序键非递减，同键时黑在白前"""
        rng = np.random.default_rng(11)
        tiles = create_tile_set(num_values=12, include_wildcards=True)
        for _ in range(20):
            idx = rng.choice(len(tiles), size=10, replace=False)
            hand = sort_hand(tiles[i] for i in idx)
            for a, b in zip(hand, hand[1:]):
                assert a.sort_key <= b.sort_key + SORT_EPSILON
                if abs(a.sort_key - b.sort_key) <= SORT_EPSILON:
                    assert COLOR_ORDER[a.color] <= COLOR_ORDER[b.color]


class TestIsSorted:
    """is_sorted 测试"""

    def test_sorted(self):
        assert is_sorted([make_tile("b", 0), make_tile("w", 0), make_tile("b", 4)])

    def test_unsorted(self):
        assert not is_sorted([make_tile("w", 0), make_tile("b", 0)])
        assert not is_sorted([make_tile("b", 4), make_tile("b", 1)])

    def test_trivial(self):
        assert is_sorted([])
        assert is_sorted([make_tile("b", 9)])


class TestRepositionSortKey:
    """reposition_sort_key 测试"""

    @pytest.fixture
    def hand(self):
        return sort_hand([make_tile("b", 1), make_tile("w", 3), make_tile("b", 6), make_wild("b")])

    def test_before_first(self, hand):
        assert reposition_sort_key(hand, "b-wild", "b-1") == 0.0

    def test_between_neighbours(self, hand):
        assert reposition_sort_key(hand, "b-wild", "b-6") == 4.5

    def test_to_end(self, hand):
        assert reposition_sort_key(hand, "b-wild", None) == 101.0

    def test_skips_moving_tile(self):
        hand = sort_hand([make_tile("b", 1), make_wild("b", 2.0), make_tile("w", 5)])
        assert reposition_sort_key(hand, "b-wild", "w-5") == 3.0

    def test_moving_tile_first(self):
        hand = sort_hand([make_wild("b", 0.0), make_tile("w", 4)])
        assert reposition_sort_key(hand, "b-wild", "w-4") == 3.5

    def test_drawn_tile_not_in_hand(self, hand):
        # 摸到的百搭牌不在手牌中
        assert reposition_sort_key(hand, "w-wild", "w-3") == 2.0

    def test_empty_hand(self):
        assert reposition_sort_key((), "w-wild", None) == 0.0

    def test_result_sorts_into_place(self, hand):
        key = reposition_sort_key(hand, "b-wild", "w-3")
        moved = sort_hand(t.with_sort_key(key) if t.id == "b-wild" else t for t in hand)
        assert [t.id for t in moved] == ["b-1", "b-wild", "w-3", "b-6"]
