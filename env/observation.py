"""
观察空间编码

将游戏状态转换为以某一座位为视角的特征数组。
对手未公开的牌只编码颜色与位置，不泄露数值。
"""
from dataclasses import dataclass
from typing import Dict, List, Optional
import numpy as np

from core.actions import Action, ActionGenerator, ActionType
from core.config import MAX_PLAYERS
from core.state import GameState, Phase
from core.tiles import Tile, TileColor, TileValue


PHASES = (Phase.DRAW, Phase.GUESS, Phase.RESOLVE, Phase.GAME_OVER)


def tile_feature_dim(num_values: int) -> int:
    """单张牌特征维度: 取值 one-hot (含百搭) + 颜色 2 + 已公开 1 + 存在 1"""
    return num_values + 1 + 2 + 1 + 1


def encode_tile(tile: Optional[Tile], num_values: int, show_value: bool) -> np.ndarray:
    """
    编码单张牌

    Args:
        tile: 牌 (None 表示空位)
        num_values: 数字范围
        show_value: 是否编码数值
    """
    vec = np.zeros(tile_feature_dim(num_values), dtype=np.float32)
    if tile is None:
        return vec

    if show_value:
        idx = num_values if tile.value.is_wildcard else tile.value.number
        vec[idx] = 1
    vec[num_values + 1 + (0 if tile.color == TileColor.BLACK else 1)] = 1
    vec[num_values + 3] = 1 if tile.revealed else 0
    vec[num_values + 4] = 1
    return vec


@dataclass
class Observation:
    """
    结构化观测

    Attributes:
        hand: 自己的手牌 (max_hand, F)
        opponents: 按座位顺序排列的对手手牌 (max_players-1, max_hand, F)
        drawn_tile: 本回合摸到的牌 (F,)
        phase: 阶段 one-hot (4,)
        eliminated: 各座位淘汰标记 (相对视角) (max_players,)
        pool_size: 牌池剩余比例 (1,)
        is_my_turn: 是否轮到自己
    """
    hand: np.ndarray
    opponents: np.ndarray
    drawn_tile: np.ndarray
    phase: np.ndarray
    eliminated: np.ndarray
    pool_size: np.ndarray
    is_my_turn: bool

    def to_dict(self) -> Dict[str, np.ndarray]:
        """转换为字典格式"""
        return {
            "hand": self.hand,
            "opponents": self.opponents,
            "drawn_tile": self.drawn_tile,
            "phase": self.phase,
            "eliminated": self.eliminated,
            "pool_size": self.pool_size,
        }

    def to_flat_array(self) -> np.ndarray:
        """展平为单一向量"""
        return np.concatenate([
            self.hand.flatten(),
            self.opponents.flatten(),
            self.drawn_tile,
            self.phase,
            self.eliminated,
            self.pool_size,
            np.array([float(self.is_my_turn)], dtype=np.float32),
        ])


class ObservationBuilder:
    """
    观测构建器

    负责将 GameState 转换为 Observation
    """

    def __init__(self, num_values: int = 12, max_players: int = MAX_PLAYERS):
        self.num_values = num_values
        self.max_players = max_players
        self.max_hand = 2 * num_values + 2
        self.feature_dim = tile_feature_dim(num_values)

    def _encode_hand(self, hand, show_hidden: bool) -> np.ndarray:
        matrix = np.zeros((self.max_hand, self.feature_dim), dtype=np.float32)
        for i, tile in enumerate(hand[:self.max_hand]):
            matrix[i] = encode_tile(tile, self.num_values, show_hidden or tile.revealed)
        return matrix

    def build(self, state: GameState, perspective: Optional[str] = None) -> Observation:
        """
        从游戏状态构建观测

        Args:
            state: 游戏状态
            perspective: 视角玩家 id (默认为当前玩家)

        Returns:
            Observation 对象
        """
        if perspective is None:
            perspective = state.current_player_id

        me = state.player_index(perspective)
        n = len(state.players)

        hand = self._encode_hand(state.players[me].hand, show_hidden=True)

        opponents = np.zeros(
            (self.max_players - 1, self.max_hand, self.feature_dim), dtype=np.float32
        )
        eliminated = np.zeros(self.max_players, dtype=np.float32)
        for offset in range(n):
            player = state.players[(me + offset) % n]
            eliminated[offset] = 1 if player.eliminated else 0
            if offset > 0:
                opponents[offset - 1] = self._encode_hand(player.hand, show_hidden=False)

        # 摸到的牌只有本人可见
        drawn = state.drawn_tile
        own_drawn = drawn is not None and drawn.owner_id == perspective
        drawn_tile = encode_tile(drawn, self.num_values, show_value=own_drawn or (
            drawn is not None and drawn.revealed
        ))

        phase = np.zeros(len(PHASES), dtype=np.float32)
        phase[PHASES.index(state.phase)] = 1

        pool_size = np.array(
            [len(state.pool) / max(1, 2 * self.num_values + 2)], dtype=np.float32
        )

        return Observation(
            hand=hand,
            opponents=opponents,
            drawn_tile=drawn_tile,
            phase=phase,
            eliminated=eliminated,
            pool_size=pool_size,
            is_my_turn=state.current_player_id == perspective,
        )


class ActionEncoder:
    """
    动作编码器

    离散动作空间:
    - 0: 摸牌
    - 1: 继续猜
    - 2: 结束回合
    - 3..: 猜牌 (对手相对座位, 牌下标, 取值)

    百搭牌摆放与超时不在动作空间内
    """

    NUM_FIXED = 3

    def __init__(self, num_values: int = 12, max_players: int = MAX_PLAYERS):
        self.num_values = num_values
        self.max_players = max_players
        self.max_hand = 2 * num_values + 2
        self.num_value_slots = num_values + 1
        self.num_actions = (
            self.NUM_FIXED
            + (max_players - 1) * self.max_hand * self.num_value_slots
        )

    def _value_index(self, value: TileValue) -> int:
        return self.num_values if value.is_wildcard else value.number

    def _index_value(self, idx: int) -> TileValue:
        if idx == self.num_values:
            return TileValue.wildcard()
        return TileValue.numeric(idx)

    def encode(self, action: Action, state: GameState, perspective: Optional[str] = None) -> int:
        """
        编码动作

        Raises:
            ValueError: 动作不在动作空间内
        """
        if action.action_type == ActionType.DRAW:
            return 0
        if action.action_type == ActionType.CONTINUE:
            return 1
        if action.action_type == ActionType.END_TURN:
            return 2
        if action.action_type != ActionType.GUESS:
            raise ValueError(f"Action not encodable: {action}")

        perspective = perspective or state.current_player_id
        n = len(state.players)
        offset = (state.player_index(action.target_player_id) - state.player_index(perspective)) % n
        if offset == 0 or action.tile_index >= self.max_hand:
            raise ValueError(f"Action not encodable: {action}")

        return (
            self.NUM_FIXED
            + (offset - 1) * self.max_hand * self.num_value_slots
            + action.tile_index * self.num_value_slots
            + self._value_index(action.value)
        )

    def decode(self, index: int, state: GameState, perspective: Optional[str] = None) -> Optional[Action]:
        """
        解码动作索引

        Returns:
            Action；指向不存在的座位时返回 None

        Raises:
            ValueError: 索引越界
        """
        index = int(index)
        if not 0 <= index < self.num_actions:
            raise ValueError(
                f"Invalid action index: {index}. Valid range: 0-{self.num_actions - 1}"
            )
        if index == 0:
            return Action.draw()
        if index == 1:
            return Action.continue_guessing()
        if index == 2:
            return Action.end_turn()

        rest = index - self.NUM_FIXED
        offset, rest = divmod(rest, self.max_hand * self.num_value_slots)
        tile_index, value_idx = divmod(rest, self.num_value_slots)
        offset += 1

        n = len(state.players)
        if offset >= n:
            return None

        perspective = perspective or state.current_player_id
        target = state.players[(state.player_index(perspective) + offset) % n]
        return Action.guess(target.id, tile_index, self._index_value(value_idx))

    def build_legal_mask(self, state: GameState) -> np.ndarray:
        """当前玩家的合法动作掩码"""
        mask = np.zeros(self.num_actions, dtype=bool)
        for action in self.legal_actions(state):
            mask[self.encode(action, state)] = True
        return mask

    def legal_actions(self, state: GameState) -> List[Action]:
        """动作空间内的合法动作"""
        return ActionGenerator(state).generate_all()

    def get_legal_action_indices(self, state: GameState) -> List[int]:
        return [self.encode(a, state) for a in self.legal_actions(state)]
