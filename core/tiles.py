"""
牌的定义与牌组工厂

标准牌组:
- 黑、白两色，每色数字 0..N-1 各 1 张 (默认 N = 12)
- 可选: 黑、白百搭牌 (wildcard) 各 1 张
"""
from dataclasses import dataclass, replace
from enum import Enum
import operator
from typing import List, Optional, Sequence, Tuple

import numpy as np


class TileColor(Enum):
    """牌色"""
    BLACK = "black"
    WHITE = "white"


# 数字个数 (0-11)
TOTAL_NUMBERS = 12

# 百搭牌默认排序键 (排在手牌末尾)
WILDCARD_SORT_KEY = 100.0

# 同排序键时的颜色次序: 黑在白左
COLOR_ORDER = {
    TileColor.BLACK: 0,
    TileColor.WHITE: 1,
}

COLOR_PREFIX = {
    TileColor.BLACK: "b",
    TileColor.WHITE: "w",
}


@dataclass(frozen=True, slots=True)
class TileValue:
    """
    牌面值 (封闭的标签值)

    要么是非负整数，要么是百搭标记，二者不会相等
    """
    number: Optional[int] = None

    def __post_init__(self):
        if self.number is None:
            return
        if isinstance(self.number, bool) or not isinstance(self.number, (int, np.integer)):
            raise ValueError(f"Tile number must be an integer, got {self.number!r}")
        if self.number < 0:
            raise ValueError(f"Invalid tile number: {self.number!r}")
        object.__setattr__(self, "number", int(self.number))

    @classmethod
    def numeric(cls, number: int) -> 'TileValue':
        return cls(number=operator.index(number))

    @classmethod
    def wildcard(cls) -> 'TileValue':
        return cls(number=None)

    @property
    def is_wildcard(self) -> bool:
        return self.number is None

    def __str__(self) -> str:
        return "-" if self.is_wildcard else str(self.number)


WILDCARD = TileValue.wildcard()


@dataclass(frozen=True)
class Tile:
    """
    不可变牌

    Attributes:
        id: 稳定标识
        color: 牌色
        value: 真实牌面值
        sort_key: 手牌排序键 (普通牌恒等于数字，百搭牌可重新摆放一次)
        revealed: 是否已公开
        owner_id: 持有者 (在牌池中时为 None)
        is_wildcard: 是否百搭牌
        repositioned: 百搭牌是否已被摆放过
    """
    id: str
    color: TileColor
    value: TileValue
    sort_key: float
    revealed: bool = False
    owner_id: Optional[str] = None
    is_wildcard: bool = False
    repositioned: bool = False

    def with_owner(self, owner_id: Optional[str]) -> 'Tile':
        return replace(self, owner_id=owner_id)

    def with_revealed(self) -> 'Tile':
        return replace(self, revealed=True)

    def with_sort_key(self, sort_key: float) -> 'Tile':
        """百搭牌摆放到新位置 (只允许一次，由调用方校验)"""
        return replace(self, sort_key=float(sort_key), repositioned=True)

    def label(self) -> str:
        """可读描述，如 "black 7" 或 "white wildcard" """
        if self.is_wildcard:
            return f"{self.color.value} wildcard"
        return f"{self.color.value} {self.value}"

    def __str__(self) -> str:
        prefix = COLOR_PREFIX[self.color].upper()
        face = str(self.value) if self.revealed else "?"
        return f"{prefix}{face}"


def wildcard_sort_key(num_values: int) -> float:
    """百搭牌初始排序键，严格大于所有数字"""
    return max(WILDCARD_SORT_KEY, float(num_values))


def create_tile_set(
    num_values: int = TOTAL_NUMBERS,
    include_wildcards: bool = False,
) -> List[Tile]:
    """
    生成完整牌组 (未洗牌)

    Args:
        num_values: 数字范围 [0, num_values)
        include_wildcards: 是否加入两张百搭牌

    Returns:
        牌列表，每个数字黑白各一张，百搭牌在最后
    """
    if num_values < 1:
        raise ValueError(f"num_values must be positive, got {num_values}")

    tiles: List[Tile] = []
    for number in range(num_values):
        for color in (TileColor.BLACK, TileColor.WHITE):
            tiles.append(Tile(
                id=f"{COLOR_PREFIX[color]}-{number}",
                color=color,
                value=TileValue.numeric(number),
                sort_key=float(number),
            ))

    if include_wildcards:
        for color in (TileColor.BLACK, TileColor.WHITE):
            tiles.append(Tile(
                id=f"{COLOR_PREFIX[color]}-wild",
                color=color,
                value=WILDCARD,
                sort_key=wildcard_sort_key(num_values),
                is_wildcard=True,
            ))

    return tiles


def shuffle_tiles(tiles: Sequence[Tile], rng: np.random.Generator) -> List[Tile]:
    """均匀随机排列 (不修改输入)"""
    order = rng.permutation(len(tiles))
    return [tiles[i] for i in order]


def value_domain(num_values: int, include_wildcards: bool) -> Tuple[TileValue, ...]:
    """所有可猜的牌面值"""
    values = tuple(TileValue.numeric(n) for n in range(num_values))
    if include_wildcards:
        values += (WILDCARD,)
    return values
