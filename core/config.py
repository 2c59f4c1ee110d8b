"""
对局配置

定义开局所需的玩家名单与牌组参数
"""
from dataclasses import dataclass, field
from typing import List, Optional

from .tiles import TOTAL_NUMBERS


MIN_PLAYERS = 2
MAX_PLAYERS = 4

# 计时器默认秒数 (0 表示不限时)
DEFAULT_TURN_SECONDS = 60

AVATARS = (
    "🐶", "🐱", "🦊", "🐻", "🐼", "🐨", "🐯", "🦁",
)


def default_tiles_per_player(player_count: int) -> int:
    """每人起手牌数: 4 人局 3 张，其余 4 张"""
    return 3 if player_count == 4 else 4


@dataclass
class PlayerConfig:
    """
    玩家配置

    Attributes:
        name: 显示名称
        avatar: 头像标记
        is_bot: 是否由程序控制
    """
    name: str
    avatar: str = ""
    is_bot: bool = False

    @classmethod
    def from_dict(cls, d: dict) -> 'PlayerConfig':
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        return cls(**filtered)


@dataclass
class GameConfig:
    """
    对局配置

    Attributes:
        players: 玩家名单 (座位顺序)
        num_values: 数字范围 [0, num_values)
        include_wildcards: 是否加入百搭牌
        turn_seconds: 每回合限时 (0 = 不限时，由宿主执行)
        tiles_per_player: 起手牌数 (None = 按人数决定)
    """
    players: List[PlayerConfig] = field(default_factory=list)
    num_values: int = TOTAL_NUMBERS
    include_wildcards: bool = False
    turn_seconds: int = DEFAULT_TURN_SECONDS
    tiles_per_player: Optional[int] = None

    @classmethod
    def default(
        cls,
        player_count: int = 2,
        bot_count: int = 1,
        **kwargs,
    ) -> 'GameConfig':
        """
        按开局表单的默认值生成配置

        至少保留一名人类玩家，人类在前、电脑在后
        """
        bot_count = min(bot_count, player_count - 1)
        human_count = max(1, player_count - bot_count)

        players = []
        for i in range(player_count):
            is_bot = i >= human_count
            name = f"Bot {i + 1 - human_count}" if is_bot else f"Player {i + 1}"
            players.append(PlayerConfig(
                name=name,
                avatar=AVATARS[i % len(AVATARS)],
                is_bot=is_bot,
            ))
        return cls(players=players, **kwargs)

    @classmethod
    def from_dict(cls, d: dict) -> 'GameConfig':
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        filtered["players"] = [
            p if isinstance(p, PlayerConfig) else PlayerConfig.from_dict(p)
            for p in filtered.get("players", [])
        ]
        return cls(**filtered)

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def bot_count(self) -> int:
        return sum(1 for p in self.players if p.is_bot)

    @property
    def human_count(self) -> int:
        return self.player_count - self.bot_count

    @property
    def total_tiles(self) -> int:
        return 2 * self.num_values + (2 if self.include_wildcards else 0)

    @property
    def hand_size(self) -> int:
        if self.tiles_per_player is not None:
            return self.tiles_per_player
        return default_tiles_per_player(self.player_count)

    def validate(self):
        """
        检查配置合法性

        起手牌数至少为 1，保证开局时没有人已被淘汰

        Raises:
            ValueError: 配置不合法
        """
        if not MIN_PLAYERS <= self.player_count <= MAX_PLAYERS:
            raise ValueError(
                f"Player count must be {MIN_PLAYERS}-{MAX_PLAYERS}, got {self.player_count}"
            )
        if self.num_values < 1:
            raise ValueError(f"num_values must be positive, got {self.num_values}")
        if self.turn_seconds < 0:
            raise ValueError(f"turn_seconds must be >= 0, got {self.turn_seconds}")
        if self.hand_size < 1:
            raise ValueError(f"Each player needs at least one tile, got {self.hand_size}")
        if self.hand_size * self.player_count > self.total_tiles:
            raise ValueError(
                f"Not enough tiles: {self.player_count} x {self.hand_size} "
                f"> {self.total_tiles}"
            )
