"""
对战竞技场

无界面的宿主: 串行地把智能体的命令交给回合引擎，直到分出胜负
"""
from typing import Dict, List, Optional, Sequence, Tuple
from dataclasses import dataclass, field
from collections import defaultdict
from itertools import permutations
import logging

from core.actions import Action, ActionType
from core.config import GameConfig, PlayerConfig
from core.engine import TurnEngine

from .evaluator import Agent

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    """对局结果"""
    agents: Tuple[str, ...]
    winner_seat: Optional[int]
    length: int  # 回合数
    steps: int   # 执行的命令数
    guesses: List[int] = field(default_factory=list)
    correct_guesses: List[int] = field(default_factory=list)
    elimination_order: List[int] = field(default_factory=list)
    truncated: bool = False

    @property
    def winner(self) -> Optional[str]:
        if self.winner_seat is None:
            return None
        return self.agents[self.winner_seat]


@dataclass
class TournamentResult:
    """锦标赛结果"""
    standings: Dict[str, Dict[str, float]]
    total_games: int
    matches: List[MatchResult]

    def get_ranking(self) -> List[Tuple[str, float]]:
        """获取排名"""
        return sorted(
            [(name, stats["win_rate"]) for name, stats in self.standings.items()],
            key=lambda x: x[1],
            reverse=True,
        )

    def __repr__(self) -> str:
        ranking = self.get_ranking()
        lines = [f"Tournament Results ({self.total_games} games):"]
        for i, (name, win_rate) in enumerate(ranking):
            lines.append(f"  {i+1}. {name}: {win_rate:.2%}")
        return "\n".join(lines)


class Arena:
    """
    对战竞技场

    每个座位由一个智能体控制。每次进入新阶段只调用一次该座位的智能体；
    智能体无命令可给或命令被拒绝时，按宿主的超时策略推进。
    """

    def __init__(
        self,
        max_moves: int = 2000,
        seed: Optional[int] = None,
        engine: Optional[TurnEngine] = None,
    ):
        self.max_moves = max_moves
        self.engine = engine or TurnEngine(seed=seed)

    def play_match(
        self,
        agents: Sequence[Agent],
        config: Optional[GameConfig] = None,
    ) -> MatchResult:
        """
        进行一局对战

        Args:
            agents: 按座位排列的智能体
            config: 对局配置 (默认全部为电脑玩家)

        Returns:
            对局结果
        """
        if config is None:
            config = GameConfig(
                players=[PlayerConfig(name=a.name, is_bot=True) for a in agents],
                turn_seconds=0,
            )
        if len(agents) != config.player_count:
            raise ValueError(f"Expected {config.player_count} agents, got {len(agents)}")

        for agent in agents:
            agent.reset()

        state = self.engine.new_game(config)
        seat_of = {p.id: i for i, p in enumerate(state.players)}

        guesses = [0] * len(agents)
        correct = [0] * len(agents)
        eliminated: List[int] = []
        steps = 0

        while not state.is_finished and steps < self.max_moves:
            seat = seat_of[state.current_player_id]
            action = agents[seat].act(state)
            next_state = self.engine.step(state, action) if action is not None else state

            if next_state is state:
                logger.warning(
                    f"{agents[seat].name} gave no valid command ({action}); applying timeout"
                )
                next_state = self.engine.step(state, Action.timeout())
            elif action.action_type == ActionType.GUESS:
                guesses[seat] += 1
                target = next_state.get_player(action.target_player_id)
                if target.hand[action.tile_index].revealed:
                    correct[seat] += 1

            for player in next_state.players:
                if player.eliminated and not state.get_player(player.id).eliminated:
                    eliminated.append(seat_of[player.id])

            state = next_state
            steps += 1

        winner_seat = seat_of[state.winner_id] if state.winner_id is not None else None
        truncated = not state.is_finished
        if truncated:
            logger.warning(f"Match truncated after {steps} steps")

        return MatchResult(
            agents=tuple(a.name for a in agents),
            winner_seat=winner_seat,
            length=state.move_number,
            steps=steps,
            guesses=guesses,
            correct_guesses=correct,
            elimination_order=eliminated,
            truncated=truncated,
        )

    def round_robin(
        self,
        agents: List[Agent],
        games_per_match: int = 10,
        config: Optional[GameConfig] = None,
    ) -> TournamentResult:
        """
        循环赛

        智能体在所有座位排列下对战

        Args:
            agents: 智能体列表 (2-4 个)
            games_per_match: 每种座位排列的对局数
            config: 对局配置模板 (玩家名单会被替换)

        Returns:
            锦标赛结果
        """
        standings = {agent.name: defaultdict(float) for agent in agents}
        all_matches = []

        for perm in permutations(range(len(agents))):
            match_agents = [agents[i] for i in perm]
            match_config = GameConfig(
                players=[PlayerConfig(name=a.name, is_bot=True) for a in match_agents],
                num_values=config.num_values if config else GameConfig().num_values,
                include_wildcards=config.include_wildcards if config else False,
                turn_seconds=0,
            )

            for _ in range(games_per_match):
                result = self.play_match(match_agents, match_config)
                all_matches.append(result)

                for agent in match_agents:
                    standings[agent.name]["games"] += 1
                if result.winner is not None:
                    standings[result.winner]["wins"] += 1

        for name, stats in standings.items():
            stats["win_rate"] = stats["wins"] / stats["games"] if stats["games"] else 0.0

        total = len(all_matches)
        logger.info(f"Round robin finished: {total} games")

        return TournamentResult(
            standings={k: dict(v) for k, v in standings.items()},
            total_games=total,
            matches=all_matches,
        )
