"""
游戏状态定义

使用不可变数据结构，每条命令都产生新状态:
- 宿主持有当前版本，渲染时不会读到半更新的数据
- 便于回放与测试
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

from .config import GameConfig
from .ordering import sort_hand
from .tiles import (
    Tile,
    TileValue,
    TOTAL_NUMBERS,
    create_tile_set,
    shuffle_tiles,
    value_domain,
)


class Phase(Enum):
    """回合阶段"""
    DRAW = "draw"            # 摸牌
    GUESS = "guess"          # 猜牌
    RESOLVE = "resolve"      # 猜中后: 继续猜或结束回合
    GAME_OVER = "game_over"  # 游戏结束


# 回合日志最多保留条数
MAX_LOG_ENTRIES = 50


@dataclass(frozen=True)
class Player:
    """
    玩家

    Attributes:
        id: 玩家标识 (如 "p-0")
        name: 显示名称
        is_bot: 是否由程序控制
        hand: 手牌 (始终有序)
        eliminated: 是否已淘汰 (手牌全部公开)
        avatar: 头像标记
    """
    id: str
    name: str
    is_bot: bool
    hand: Tuple[Tile, ...] = ()
    eliminated: bool = False
    avatar: str = ""

    @property
    def all_revealed(self) -> bool:
        return all(t.revealed for t in self.hand)

    @property
    def hidden_indices(self) -> List[int]:
        """未公开牌的下标"""
        return [i for i, t in enumerate(self.hand) if not t.revealed]

    def with_hand(self, hand) -> 'Player':
        return replace(self, hand=tuple(hand))

    def with_eliminated(self) -> 'Player':
        """淘汰不可撤销"""
        return replace(self, eliminated=True)

    def find_tile(self, tile_id: str) -> Optional[Tile]:
        for tile in self.hand:
            if tile.id == tile_id:
                return tile
        return None


@dataclass(frozen=True)
class GameState:
    """
    不可变游戏状态

    Attributes:
        players: 玩家 (座位顺序)
        current_player_id: 当前行动玩家
        pool: 牌池 (从末尾摸牌)
        phase: 当前阶段
        drawn_tile: 本回合摸到、尚未放入手牌的牌
        winner_id: 赢家
        turn_log: 回合日志 (最新在前，最多 50 条)
        move_number: 回合计数
        num_values: 数字范围
        include_wildcards: 本局是否有百搭牌
    """
    players: Tuple[Player, ...]
    current_player_id: str
    pool: Tuple[Tile, ...]
    phase: Phase
    drawn_tile: Optional[Tile] = None
    winner_id: Optional[str] = None
    turn_log: Tuple[str, ...] = ()
    move_number: int = 1
    num_values: int = TOTAL_NUMBERS
    include_wildcards: bool = False

    @classmethod
    def initial(cls, config: GameConfig, rng: np.random.Generator) -> 'GameState':
        """
        创建初始游戏状态

        洗牌后从牌池头部依次发牌，之后摸牌从牌池末尾进行；
        电脑玩家起手的百搭牌随机摆放

        Args:
            config: 对局配置
            rng: 随机源

        Returns:
            初始状态 (第一位玩家的摸牌阶段)

        Raises:
            ValueError: 配置不合法
        """
        config.validate()

        pool = shuffle_tiles(
            create_tile_set(config.num_values, config.include_wildcards), rng
        )
        hand_size = config.hand_size

        players = []
        for i, details in enumerate(config.players):
            player_id = f"p-{i}"
            dealt, pool = pool[:hand_size], pool[hand_size:]
            hand = [t.with_owner(player_id) for t in dealt]

            if details.is_bot:
                hand = [
                    t.with_sort_key(rng.uniform(0, config.num_values)) if t.is_wildcard else t
                    for t in hand
                ]

            players.append(Player(
                id=player_id,
                name=details.name,
                is_bot=details.is_bot,
                hand=sort_hand(hand),
                avatar=details.avatar,
            ))

        return cls(
            players=tuple(players),
            current_player_id=players[0].id,
            pool=tuple(pool),
            phase=Phase.DRAW,
            turn_log=("Game started!",),
            num_values=config.num_values,
            include_wildcards=config.include_wildcards,
        )

    def replace(self, **changes) -> 'GameState':
        return replace(self, **changes)

    def with_log(self, message: str) -> 'GameState':
        """追加日志 (最新在前)"""
        return replace(self, turn_log=((message,) + self.turn_log)[:MAX_LOG_ENTRIES])

    def with_player(self, player: Player) -> 'GameState':
        """替换同 id 的玩家"""
        return replace(self, players=tuple(
            player if p.id == player.id else p for p in self.players
        ))

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def player_index(self, player_id: str) -> int:
        for i, player in enumerate(self.players):
            if player.id == player_id:
                return i
        raise KeyError(player_id)

    @property
    def current_player(self) -> Player:
        return self.get_player(self.current_player_id)

    @property
    def active_players(self) -> List[Player]:
        """未淘汰的玩家"""
        return [p for p in self.players if not p.eliminated]

    def opponents(self, player_id: Optional[str] = None) -> List[Player]:
        """未淘汰的对手"""
        player_id = player_id or self.current_player_id
        return [p for p in self.players if p.id != player_id and not p.eliminated]

    @property
    def value_domain(self) -> Tuple[TileValue, ...]:
        return value_domain(self.num_values, self.include_wildcards)

    @property
    def is_finished(self) -> bool:
        return self.phase == Phase.GAME_OVER

    @property
    def awaiting_bot(self) -> bool:
        """宿主是否需要调度电脑玩家"""
        return not self.is_finished and self.current_player.is_bot

    def all_tiles(self) -> List[Tile]:
        """所有牌 (手牌 + 摸到的牌 + 牌池)"""
        tiles = [t for p in self.players for t in p.hand]
        if self.drawn_tile is not None:
            tiles.append(self.drawn_tile)
        tiles.extend(self.pool)
        return tiles

    def hand_sizes(self) -> Dict[str, int]:
        return {p.id: len(p.hand) for p in self.players}
