#!/usr/bin/env python3
"""
终端对战脚本 (宿主)

Usage:
    python scripts/play.py --mode watch --players 3         # 观看电脑对战
    python scripts/play.py --mode play --players 2 --bots 1  # 与电脑对战
    python scripts/play.py --mode play --players 3 --bots 0 --wildcards

宿主负责: 电脑行动前的延时、回合计时 (超时按超时命令处理)、多名人类轮流时的让座提示
"""
import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Dict, Optional

# 添加项目根目录到路径
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from core.actions import Action
from core.config import GameConfig
from core.engine import TurnEngine
from core.state import GameState, Phase, Player
from core.tiles import TileValue
from evaluation import Agent, RandomAgent

logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)

HELP = """命令:
  d                          摸牌
  g <座位> <下标> <数字|w>    猜牌 (w 表示百搭)
  c                          继续猜
  e                          结束回合
  r <牌id> [右侧牌id]         摆放百搭牌 (省略右侧牌id 表示放到最后)
  h                          帮助
  q                          退出"""


def parse_args():
    parser = argparse.ArgumentParser(description="Coda Play")

    parser.add_argument(
        "--mode",
        type=str,
        default="play",
        choices=["watch", "play"],
        help="Mode: watch bots or play against them",
    )
    parser.add_argument("--players", type=int, default=2, help="Number of players (2-4)")
    parser.add_argument("--bots", type=int, default=1, help="Number of bots (play mode)")
    parser.add_argument("--num-values", type=int, default=12, help="Tile values 0..N-1")
    parser.add_argument("--wildcards", action="store_true", help="Include wildcard tiles")
    parser.add_argument("--timer", type=int, default=60, help="Turn timer in seconds (0 = unlimited)")
    parser.add_argument("--delay", type=float, default=1.5, help="Delay before bot moves")
    parser.add_argument("--games", type=int, default=1, help="Number of games")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")

    return parser.parse_args()


def tile_text(tile, visible: bool) -> str:
    """单张牌显示"""
    color = "B" if tile.color.value == "black" else "W"
    if not visible and not tile.revealed:
        return f"{color}?"
    mark = "*" if tile.revealed else ""
    return f"{color}{tile.value}{mark}"


def print_game_state(state: GameState, viewer: Optional[str]):
    """打印游戏状态 (viewer 为 None 时显示全部牌)"""
    print("\n" + "=" * 60)
    print(f"回合 {state.move_number} | 阶段: {state.phase.value} | 牌池: {len(state.pool)}")
    print("-" * 60)

    for seat, player in enumerate(state.players):
        visible = viewer is None or player.id == viewer
        turn = ">" if player.id == state.current_player_id else " "
        out = " [淘汰]" if player.eliminated else ""
        tiles = "  ".join(
            f"{i}:{tile_text(t, visible)}" for i, t in enumerate(player.hand)
        )
        print(f"{turn} [{seat}] {player.avatar} {player.name}{out}: {tiles}")

    drawn = state.drawn_tile
    if drawn is not None:
        visible = viewer is None or drawn.owner_id == viewer
        print(f"\n摸到的牌: {drawn.id if visible else '?'} {tile_text(drawn, visible)}")

    if state.turn_log:
        print(f"\n日志: {state.turn_log[0]}")
    print("=" * 60)


def parse_command(line: str, state: GameState) -> Optional[Action]:
    """将输入解析为命令，无法解析时返回 None"""
    parts = line.strip().split()
    if not parts:
        return None

    cmd = parts[0].lower()
    if cmd == "d":
        return Action.draw()
    if cmd == "c":
        return Action.continue_guessing()
    if cmd == "e":
        return Action.end_turn()
    if cmd == "r" and len(parts) in (2, 3):
        return Action.reposition(parts[1], parts[2] if len(parts) == 3 else None)
    if cmd == "g" and len(parts) == 4:
        try:
            seat = int(parts[1])
            index = int(parts[2])
            value = TileValue.wildcard() if parts[3].lower() == "w" else TileValue.numeric(int(parts[3]))
        except ValueError:
            return None
        if not 0 <= seat < len(state.players):
            return None
        return Action.guess(state.players[seat].id, index, value)
    return None


def human_turn(engine: TurnEngine, state: GameState, timer: int) -> Optional[GameState]:
    """
    读取一条人类命令并执行

    超过回合限时后输入的命令按超时处理

    Returns:
        新状态；输入 q 时返回 None
    """
    started = time.monotonic()
    while True:
        line = input(f"\n{state.current_player.name} > ").strip()
        if line.lower() == "q":
            return None
        if line.lower() == "h":
            print(HELP)
            continue

        if timer > 0 and time.monotonic() - started > timer:
            print("时间到!")
            return engine.timeout(state)

        action = parse_command(line, state)
        if action is None:
            print("无法识别的命令，输入 h 查看帮助")
            continue

        next_state = engine.step(state, action)
        if next_state is state:
            print("该命令当前不可用")
            continue
        return next_state


def run_game(args, config: GameConfig, engine: TurnEngine, agents: Dict[str, Agent]) -> bool:
    """
    进行一局

    Returns:
        False 表示玩家中途退出
    """
    state = engine.new_game(config)
    humans = [p for p in state.players if not p.is_bot]
    last_human: Optional[str] = None

    while not state.is_finished:
        player: Player = state.current_player

        if player.is_bot:
            print_game_state(state, viewer=humans[0].id if len(humans) == 1 else None)
            time.sleep(args.delay)
            action = agents[player.id].act(state)
            next_state = engine.step(state, action) if action is not None else state
            if next_state is state:
                next_state = engine.timeout(state)
            print(f"\n{player.name}: {action}")
            state = next_state
            continue

        # 多名人类轮流时提示让座
        if len(humans) > 1 and last_human != player.id:
            input(f"\n请把设备交给 {player.avatar} {player.name}，按回车继续...")
        last_human = player.id

        print_game_state(state, viewer=player.id)
        next_state = human_turn(engine, state, config.turn_seconds)
        if next_state is None:
            print("退出游戏")
            return False
        state = next_state

    print_game_state(state, viewer=None)
    winner = state.get_player(state.winner_id)
    print(f"\n游戏结束! 胜者: {winner.avatar} {winner.name}")
    logger.info(f"Game finished after {state.move_number} moves")
    return True


def main():
    args = parse_args()

    bots = args.players if args.mode == "watch" else args.bots
    config = GameConfig.default(
        player_count=args.players,
        bot_count=bots,
        num_values=args.num_values,
        include_wildcards=args.wildcards,
        turn_seconds=args.timer,
    )
    if args.mode == "watch":
        # 观看模式全部为电脑
        for i, p in enumerate(config.players):
            p.is_bot = True
            p.name = f"Bot {i + 1}"

    try:
        config.validate()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    engine = TurnEngine(seed=args.seed)
    agents = {
        f"p-{i}": RandomAgent(p.name, seed=None if args.seed is None else args.seed + i + 1)
        for i, p in enumerate(config.players)
        if p.is_bot
    }

    print("=" * 60)
    print("Coda 猜牌")
    print("=" * 60)
    if args.mode == "play":
        print(HELP)

    for game_idx in range(args.games):
        print(f"\nGame {game_idx + 1}/{args.games}")
        if not run_game(args, config, engine, agents):
            break


if __name__ == "__main__":
    main()
