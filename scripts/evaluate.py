#!/usr/bin/env python3
"""
评估脚本

Usage:
    python scripts/evaluate.py --games 200 --players 3
    python scripts/evaluate.py --tournament --players 4 --games 20 --wildcards
    python scripts/evaluate.py --games 100 --output results.json
"""
import argparse
import logging
import sys
from pathlib import Path
import json

# 添加项目根目录到路径
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from core.config import GameConfig, PlayerConfig
from evaluation import Arena, Evaluator, MetricsCollector, RandomAgent

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Coda Evaluation")

    parser.add_argument("--tournament", action="store_true", help="Run round-robin tournament")
    parser.add_argument("--games", type=int, default=100, help="Number of games")
    parser.add_argument("--players", type=int, default=2, help="Players per game (2-4)")
    parser.add_argument("--num-values", type=int, default=12, help="Tile values 0..N-1")
    parser.add_argument("--wildcards", action="store_true", help="Include wildcard tiles")
    parser.add_argument("--max-moves", type=int, default=2000, help="Step cap per game")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--output", type=str, help="Output file for results")
    parser.add_argument("--verbose", action="store_true", help="Verbose output")

    return parser.parse_args()


def evaluate_single(args):
    """评估随机对手基线"""
    evaluator = Evaluator(
        player_count=args.players,
        num_values=args.num_values,
        include_wildcards=args.wildcards,
        max_moves=args.max_moves,
        seed=args.seed,
    )
    agent = RandomAgent("random", seed=args.seed)
    result = evaluator.evaluate(agent, n_games=args.games, verbose=args.verbose)

    logger.info("=" * 50)
    logger.info("Evaluation Results")
    logger.info("=" * 50)
    logger.info(f"Win Rate: {result.win_rate:.2%}")
    logger.info(f"Average Length: {result.avg_length:.1f}")
    logger.info(f"Guess Accuracy: {result.guess_accuracy:.2%}")
    logger.info(f"Unfinished: {result.unfinished}")
    for key, value in result.extra_stats.items():
        logger.info(f"{key}: {value:.3f}")
    logger.info("=" * 50)

    if args.output:
        with open(args.output, "w") as f:
            json.dump({
                "win_rate": result.win_rate,
                "avg_length": result.avg_length,
                "guess_accuracy": result.guess_accuracy,
                "games_played": result.games_played,
                "unfinished": result.unfinished,
                **result.extra_stats,
            }, f, indent=2)
        logger.info(f"Results saved to {args.output}")

    return result


def run_tournament(args):
    """运行锦标赛"""
    agents = [
        RandomAgent(f"random_{i}", seed=None if args.seed is None else args.seed + i)
        for i in range(args.players)
    ]
    logger.info(f"Running tournament with {len(agents)} agents")

    template = GameConfig(
        players=[PlayerConfig(name=a.name, is_bot=True) for a in agents],
        num_values=args.num_values,
        include_wildcards=args.wildcards,
        turn_seconds=0,
    )
    arena = Arena(max_moves=args.max_moves, seed=args.seed)
    result = arena.round_robin(agents, games_per_match=args.games, config=template)

    collector = MetricsCollector()
    for match in result.matches:
        collector.add_match(match)

    logger.info("=" * 50)
    logger.info("Tournament Results")
    logger.info("=" * 50)

    ranking = result.get_ranking()
    for i, (name, win_rate) in enumerate(ranking):
        stats = collector.compute_metrics(name)
        logger.info(
            f"{i+1}. {name}: {win_rate:.2%} "
            f"(accuracy {stats['guess_accuracy']:.2%})"
        )

    overall = collector.compute_metrics()
    logger.info(f"Average Length: {overall['avg_length']:.1f}")
    logger.info(f"First Seat Win Rate: {overall['first_seat_win_rate']:.2%}")
    logger.info("=" * 50)

    if args.output:
        with open(args.output, "w") as f:
            json.dump({
                "rankings": ranking,
                "total_games": result.total_games,
                "overall": overall,
            }, f, indent=2)
        logger.info(f"Results saved to {args.output}")

    return result


def main():
    args = parse_args()

    try:
        if args.tournament:
            run_tournament(args)
        else:
            evaluate_single(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
