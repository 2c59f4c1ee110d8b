"""
奖励函数

支持:
- 终局奖励 (sparse)
- 过程奖励 (shaped): 终局奖励 + 公开对手牌的奖励 - 自己牌被公开的惩罚
"""
from dataclasses import dataclass
from typing import Optional
from enum import Enum

from core.state import GameState


class RewardType(Enum):
    """奖励类型"""
    SPARSE = "sparse"      # 仅终局奖励
    SHAPED = "shaped"      # 过程奖励


@dataclass
class RewardConfig:
    """奖励配置"""
    reward_type: RewardType = RewardType.SPARSE
    win_reward: float = 1.0
    lose_reward: float = -1.0
    reveal_bonus: float = 0.1     # 每公开一张对手牌
    exposed_penalty: float = 0.1  # 每有一张自己的牌被公开


def count_revealed(state: GameState, player_id: str, own: bool) -> int:
    """统计自己 (own=True) 或对手已公开的牌数"""
    return sum(
        1
        for p in state.players
        if (p.id == player_id) == own
        for t in p.hand
        if t.revealed
    )


class RewardCalculator:
    """
    奖励计算器

    根据配置计算不同类型的奖励
    """

    def __init__(self, config: Optional[RewardConfig] = None):
        self.config = config or RewardConfig()

    def compute(
        self,
        state: GameState,
        prev_state: Optional[GameState],
        player_id: str,
    ) -> float:
        """
        计算奖励

        Args:
            state: 当前状态
            prev_state: 前一状态 (用于 shaped 奖励)
            player_id: 计算奖励的玩家视角

        Returns:
            奖励值
        """
        reward = self._sparse_reward(state, player_id)

        if self.config.reward_type == RewardType.SHAPED and prev_state is not None:
            reward += self._shaping(state, prev_state, player_id)

        return reward

    def _sparse_reward(self, state: GameState, player_id: str) -> float:
        """
        稀疏奖励：仅在游戏结束时给予

        Returns:
            胜利: win_reward, 失败: lose_reward, 其他: 0
        """
        if not state.is_finished:
            return 0.0
        if state.winner_id == player_id:
            return self.config.win_reward
        return self.config.lose_reward

    def _shaping(self, state: GameState, prev_state: GameState, player_id: str) -> float:
        revealed_gain = (
            count_revealed(state, player_id, own=False)
            - count_revealed(prev_state, player_id, own=False)
        )
        exposed_gain = (
            count_revealed(state, player_id, own=True)
            - count_revealed(prev_state, player_id, own=True)
        )
        return (
            self.config.reveal_bonus * revealed_gain
            - self.config.exposed_penalty * exposed_gain
        )
