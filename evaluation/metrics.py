"""
评估指标

汇总多局对战的统计数据
"""
from typing import Dict, List, Optional
from collections import defaultdict
import numpy as np

from .arena import MatchResult


class MetricsCollector:
    """
    指标收集器

    按智能体名称汇总胜率、对局长度与猜牌命中率
    """

    def __init__(self):
        self.matches: List[MatchResult] = []
        self._stats: Dict[str, Dict] = defaultdict(lambda: defaultdict(list))

    def add_match(self, result: MatchResult):
        """添加一局结果"""
        self.matches.append(result)

        for seat, name in enumerate(result.agents):
            stats = self._stats[name]
            stats["games"].append(1)
            stats["wins"].append(1 if result.winner_seat == seat else 0)
            stats["lengths"].append(result.length)
            if seat < len(result.guesses):
                stats["guesses"].append(result.guesses[seat])
                stats["correct"].append(result.correct_guesses[seat])
            if seat in result.elimination_order:
                stats["eliminated"].append(1)

    def compute_metrics(self, player: Optional[str] = None) -> Dict[str, float]:
        """
        计算指标

        Args:
            player: 指定智能体，None 表示全局

        Returns:
            指标字典
        """
        if player is not None:
            stats = self._stats[player]
            n_games = len(stats["games"])
            if n_games == 0:
                return {}

            total_guesses = sum(stats["guesses"])
            return {
                "games": n_games,
                "win_rate": sum(stats["wins"]) / n_games,
                "avg_length": float(np.mean(stats["lengths"])),
                "guesses_per_game": total_guesses / n_games,
                "guess_accuracy": (
                    sum(stats["correct"]) / total_guesses if total_guesses else 0.0
                ),
                "elimination_rate": len(stats["eliminated"]) / n_games,
            }

        n_games = len(self.matches)
        if n_games == 0:
            return {}

        finished = [m for m in self.matches if not m.truncated]
        return {
            "games": n_games,
            "finished_rate": len(finished) / n_games,
            "avg_length": float(np.mean([m.length for m in self.matches])),
            "avg_steps": float(np.mean([m.steps for m in self.matches])),
            "first_seat_win_rate": (
                sum(1 for m in finished if m.winner_seat == 0) / len(finished)
                if finished else 0.0
            ),
        }

    def reset(self):
        self.matches.clear()
        self._stats.clear()
