"""
手牌排序规则

排序键升序；排序键相差在 SORT_EPSILON 内视为相同，此时黑色在白色之前
"""
from functools import cmp_to_key
from typing import Iterable, Optional, Sequence, Tuple

from .tiles import Tile, COLOR_ORDER


# 排序键容差 (吸收百搭牌插入产生的小数)
SORT_EPSILON = 1e-3


def compare_tiles(a: Tile, b: Tile) -> int:
    """两张牌的先后关系 (-1 / 0 / 1)"""
    if abs(a.sort_key - b.sort_key) > SORT_EPSILON:
        return -1 if a.sort_key < b.sort_key else 1

    color_a = COLOR_ORDER[a.color]
    color_b = COLOR_ORDER[b.color]
    if color_a != color_b:
        return -1 if color_a < color_b else 1
    return 0


_TILE_KEY = cmp_to_key(compare_tiles)


def sort_hand(tiles: Iterable[Tile]) -> Tuple[Tile, ...]:
    """
    返回排序后的手牌

    Python 排序是稳定的，已排序的手牌再排序不变
    """
    return tuple(sorted(tiles, key=_TILE_KEY))


def is_sorted(tiles: Sequence[Tile]) -> bool:
    """检查手牌是否满足排序规则"""
    return all(compare_tiles(tiles[i], tiles[i + 1]) <= 0 for i in range(len(tiles) - 1))


def reposition_sort_key(
    hand: Sequence[Tile],
    tile_id: str,
    before_tile_id: Optional[str] = None,
) -> float:
    """
    计算百搭牌移动到 before_tile_id 之前时的新排序键

    Args:
        hand: 当前 (已排序) 手牌，可以不包含正在移动的牌 (例如刚摸到的牌)
        tile_id: 正在移动的百搭牌
        before_tile_id: 目标位置右侧的牌；None 表示放到最后

    Returns:
        新排序键
    """
    ids = [t.id for t in hand]

    if before_tile_id is None or before_tile_id not in ids:
        if not hand:
            return 0.0
        return hand[-1].sort_key + 1.0

    index = ids.index(before_tile_id)
    target = hand[index]
    if index == 0:
        return target.sort_key - 1.0

    prev = hand[index - 1]
    if prev.id == tile_id:
        # 移动的牌本来就紧挨在目标左边，跳过它取再左边一张
        if index > 1:
            return (hand[index - 2].sort_key + target.sort_key) / 2.0
        return target.sort_key - 0.5

    return (prev.sort_key + target.sort_key) / 2.0
