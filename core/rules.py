"""
规则引擎 - 猜牌校验、淘汰与胜负判定

所有方法都是纯函数，无状态
"""
from typing import Optional, Sequence

import numpy as np

from .state import GameState, Phase, Player
from .tiles import Tile, TileValue


class RuleEngine:
    """
    规则引擎

    提供合法性校验、淘汰判定、胜负判定与轮转等功能
    所有方法都是静态方法，无状态
    """

    @staticmethod
    def evaluate_winner(players: Sequence[Player]) -> Optional[str]:
        """
        胜负判定

        仅剩一名未淘汰玩家时返回其 id，否则返回 None

        Args:
            players: 玩家列表

        Returns:
            赢家 id 或 None
        """
        remaining = [p for p in players if not p.eliminated]
        if len(remaining) == 1:
            return remaining[0].id
        return None

    @staticmethod
    def should_eliminate(player: Player) -> bool:
        """手牌已全部公开但尚未标记淘汰"""
        return not player.eliminated and bool(player.hand) and player.all_revealed

    @staticmethod
    def guess_matches(tile: Tile, value: TileValue) -> bool:
        """
        猜测是否命中

        百搭牌只与百搭标记相等
        """
        return tile.value == value

    @staticmethod
    def is_legal_value(state: GameState, value: TileValue) -> bool:
        """猜测值是否在本局的取值范围内"""
        if not isinstance(value, TileValue):
            return False
        if value.is_wildcard:
            return state.include_wildcards
        if isinstance(value.number, bool) or not isinstance(value.number, (int, np.integer)):
            return False
        return 0 <= value.number < state.num_values

    @staticmethod
    def can_guess(
        state: GameState,
        target_player_id: str,
        tile_index: int,
        value: TileValue,
    ) -> bool:
        """
        检查猜测是否合法

        非法情形: 非猜牌阶段、猜自己、目标已淘汰、下标越界、目标牌已公开、取值越界
        """
        if state.phase != Phase.GUESS:
            return False
        if target_player_id == state.current_player_id:
            return False

        target = state.get_player(target_player_id)
        if target is None or target.eliminated:
            return False
        if isinstance(tile_index, bool) or not isinstance(tile_index, (int, np.integer)):
            return False
        if not 0 <= tile_index < len(target.hand):
            return False
        if target.hand[tile_index].revealed:
            return False

        return RuleEngine.is_legal_value(state, value)

    @staticmethod
    def can_reposition(state: GameState, tile_id: str, before_tile_id: Optional[str] = None) -> bool:
        """
        检查百搭牌能否重新摆放

        只能摆放当前玩家自己的百搭牌 (手牌中或刚摸到的)，且每张只能摆放一次
        """
        if state.is_finished:
            return False

        player = state.current_player
        tile = player.find_tile(tile_id)
        if tile is None and state.drawn_tile is not None and state.drawn_tile.id == tile_id:
            tile = state.drawn_tile
        if tile is None or not tile.is_wildcard or tile.repositioned:
            return False

        if before_tile_id is not None:
            if before_tile_id == tile_id:
                return False
            if player.find_tile(before_tile_id) is None:
                return False
        return True

    @staticmethod
    def next_player_id(players: Sequence[Player], current_id: str) -> str:
        """
        按座位顺序找下一个未淘汰玩家

        其他人都已淘汰时返回当前玩家
        """
        ids = [p.id for p in players]
        idx = ids.index(current_id)
        n = len(players)
        for step in range(1, n + 1):
            candidate = players[(idx + step) % n]
            if not candidate.eliminated:
                return candidate.id
        return current_id
