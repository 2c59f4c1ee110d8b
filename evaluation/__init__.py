"""
Evaluation Layer - 智能体与对战

Modules:
    evaluator: 智能体和评估器
    arena: 对战竞技场 (无界面宿主)
    metrics: 评估指标
"""
from .evaluator import (
    EvalResult,
    Agent,
    RandomAgent,
    Evaluator,
)
from .arena import (
    MatchResult,
    TournamentResult,
    Arena,
)
from .metrics import MetricsCollector

__all__ = [
    # evaluator
    "EvalResult",
    "Agent",
    "RandomAgent",
    "Evaluator",
    # arena
    "MatchResult",
    "TournamentResult",
    "Arena",
    # metrics
    "MetricsCollector",
]
