"""
Core Layer - 纯游戏逻辑 (无 IO 依赖)

Modules:
    tiles: 牌定义与牌组工厂
    ordering: 手牌排序规则
    config: 对局配置
    state: 游戏状态
    rules: 规则引擎 (校验、淘汰、胜负)
    actions: 命令类型与合法动作生成
    engine: 回合引擎 (阶段状态机)
"""
from .tiles import (
    TileColor,
    TileValue,
    Tile,
    WILDCARD,
    TOTAL_NUMBERS,
    WILDCARD_SORT_KEY,
    COLOR_ORDER,
    create_tile_set,
    shuffle_tiles,
    value_domain,
)

from .ordering import (
    SORT_EPSILON,
    compare_tiles,
    sort_hand,
    is_sorted,
    reposition_sort_key,
)

from .config import (
    PlayerConfig,
    GameConfig,
    MIN_PLAYERS,
    MAX_PLAYERS,
    AVATARS,
    default_tiles_per_player,
)

from .state import (
    Phase,
    Player,
    GameState,
    MAX_LOG_ENTRIES,
)

from .rules import RuleEngine

from .actions import (
    ActionType,
    Action,
    ActionGenerator,
)

from .engine import TurnEngine

__all__ = [
    # tiles
    "TileColor",
    "TileValue",
    "Tile",
    "WILDCARD",
    "TOTAL_NUMBERS",
    "WILDCARD_SORT_KEY",
    "COLOR_ORDER",
    "create_tile_set",
    "shuffle_tiles",
    "value_domain",
    # ordering
    "SORT_EPSILON",
    "compare_tiles",
    "sort_hand",
    "is_sorted",
    "reposition_sort_key",
    # config
    "PlayerConfig",
    "GameConfig",
    "MIN_PLAYERS",
    "MAX_PLAYERS",
    "AVATARS",
    "default_tiles_per_player",
    # state
    "Phase",
    "Player",
    "GameState",
    "MAX_LOG_ENTRIES",
    # rules
    "RuleEngine",
    # actions
    "ActionType",
    "Action",
    "ActionGenerator",
    # engine
    "TurnEngine",
]
