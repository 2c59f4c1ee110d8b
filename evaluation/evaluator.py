"""
智能体与评估器

电脑玩家通过与人类相同的命令接口行动，从不绕过阶段校验
"""
from typing import Dict, List, Optional, Sequence
from dataclasses import dataclass, field
import numpy as np
import logging

from core.actions import Action
from core.config import GameConfig, PlayerConfig
from core.state import GameState, Phase

logger = logging.getLogger(__name__)


@dataclass
class EvalResult:
    """评估结果"""
    win_rate: float
    avg_length: float
    games_played: int
    guess_accuracy: float = 0.0
    unfinished: int = 0
    extra_stats: Dict[str, float] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"EvalResult(win_rate={self.win_rate:.2%}, "
            f"avg_length={self.avg_length:.1f}, "
            f"games={self.games_played})"
        )


class Agent:
    """智能体基类"""

    def __init__(self, name: str = "agent"):
        self.name = name

    def act(self, state: GameState) -> Optional[Action]:
        """为当前玩家选择命令，无事可做时返回 None"""
        raise NotImplementedError

    def reset(self):
        """重置状态"""
        pass


class RandomAgent(Agent):
    """
    随机对手

    摸牌阶段摸牌；猜牌阶段随机选一个未淘汰对手、其一张未公开牌和一个取值；
    决断阶段结束回合。不利用任何已知信息。
    """

    def __init__(
        self,
        name: str = "random",
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ):
        super().__init__(name)
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def _choice(self, items: Sequence):
        return items[int(self.rng.integers(len(items)))]

    def act(self, state: GameState) -> Optional[Action]:
        if state.phase == Phase.DRAW:
            return Action.draw()

        if state.phase == Phase.GUESS:
            opponents = state.opponents()
            if not opponents:
                return None

            target = self._choice(opponents)
            hidden = target.hidden_indices
            if not hidden:
                return None

            tile_index = self._choice(hidden)
            value = self._choice(state.value_domain)
            return Action.guess(target.id, int(tile_index), value)

        if state.phase == Phase.RESOLVE:
            return Action.end_turn()

        return None


class Evaluator:
    """
    评估器

    让被评估的智能体轮流坐不同座位，与对手进行多局对战
    """

    def __init__(
        self,
        player_count: int = 2,
        num_values: int = 12,
        include_wildcards: bool = False,
        max_moves: int = 2000,
        seed: Optional[int] = None,
    ):
        self.player_count = player_count
        self.num_values = num_values
        self.include_wildcards = include_wildcards
        self.max_moves = max_moves
        self.seed = seed

    def _make_config(self, names: List[str]) -> GameConfig:
        return GameConfig(
            players=[PlayerConfig(name=n, is_bot=True) for n in names],
            num_values=self.num_values,
            include_wildcards=self.include_wildcards,
            turn_seconds=0,
        )

    def evaluate(
        self,
        agent: Agent,
        n_games: int = 100,
        opponents: Optional[List[Agent]] = None,
        verbose: bool = False,
    ) -> EvalResult:
        """
        评估智能体

        Args:
            agent: 待评估智能体
            n_games: 游戏数量
            opponents: 对手列表 (默认随机对手)
            verbose: 是否输出详情

        Returns:
            评估结果
        """
        from .arena import Arena

        if opponents is None:
            opponents = [
                RandomAgent(f"opp{i + 1}", seed=None if self.seed is None else self.seed + i + 1)
                for i in range(self.player_count - 1)
            ]
        if len(opponents) != self.player_count - 1:
            raise ValueError(
                f"Expected {self.player_count - 1} opponents, got {len(opponents)}"
            )

        arena = Arena(max_moves=self.max_moves, seed=self.seed)

        wins = 0
        total_length = 0
        guesses = 0
        correct = 0
        unfinished = 0
        total_steps = 0
        eliminated = 0

        for game_idx in range(n_games):
            # 轮流坐不同座位
            agent_seat = game_idx % self.player_count
            seats: List[Agent] = list(opponents)
            seats.insert(agent_seat, agent)

            config = self._make_config([f"{a.name}@{i}" for i, a in enumerate(seats)])
            result = arena.play_match(seats, config)

            if result.winner_seat == agent_seat:
                wins += 1
            if result.winner_seat is None:
                unfinished += 1
            total_length += result.length
            total_steps += result.steps
            if agent_seat in result.elimination_order:
                eliminated += 1
            guesses += result.guesses[agent_seat]
            correct += result.correct_guesses[agent_seat]

            if verbose and (game_idx + 1) % 10 == 0:
                logger.info(f"Game {game_idx + 1}/{n_games}, Win rate: {wins/(game_idx+1):.2%}")

        return EvalResult(
            win_rate=wins / n_games if n_games > 0 else 0.0,
            avg_length=total_length / n_games if n_games > 0 else 0.0,
            games_played=n_games,
            guess_accuracy=correct / guesses if guesses > 0 else 0.0,
            unfinished=unfinished,
            extra_stats={
                "avg_steps": total_steps / n_games if n_games > 0 else 0.0,
                "elimination_rate": eliminated / n_games if n_games > 0 else 0.0,
            },
        )
