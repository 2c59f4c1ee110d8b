"""
回合引擎 - 阶段状态机

摸牌 → 猜牌 → (猜中) 决断 → 下一位玩家摸牌，任一时刻判出赢家即进入游戏结束

引擎是纯粹的状态变换: 输入一个 GameState 和一条命令，输出下一个 GameState。
非法命令不报错，原样返回输入状态 (同一对象)，也不写日志。
引擎是单线程的，宿主负责串行化命令。
"""
import logging
from typing import Optional

import numpy as np

from .actions import Action, ActionType
from .config import GameConfig
from .ordering import reposition_sort_key, sort_hand
from .rules import RuleEngine
from .state import GameState, Phase
from .tiles import TileValue

logger = logging.getLogger(__name__)


class TurnEngine:
    """
    回合引擎

    只持有随机源 (洗牌、电脑玩家百搭牌摆放)，不持有对局状态
    """

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ):
        """
        Args:
            rng: 随机源 (优先)
            seed: 随机种子 (未提供 rng 时使用)
        """
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def new_game(self, config: GameConfig) -> GameState:
        """按配置开局"""
        state = GameState.initial(config, self.rng)
        logger.info(
            f"New game: {config.player_count} players, "
            f"{config.num_values} values, wildcards={config.include_wildcards}"
        )
        return state

    def _reject(self, state: GameState, command: str, reason: str) -> GameState:
        logger.debug(f"Rejected {command} in phase {state.phase.value}: {reason}")
        return state

    # ------------------------------------------------------------------
    # 摸牌
    # ------------------------------------------------------------------

    def draw(self, state: GameState) -> GameState:
        """
        摸牌

        牌池为空时直接进入猜牌阶段，不摸牌
        """
        if state.phase != Phase.DRAW:
            return self._reject(state, "draw", "not in draw phase")

        player = state.current_player
        if not state.pool:
            return state.replace(phase=Phase.GUESS).with_log(
                f"Pool empty. {player.name} proceeds to guess."
            )

        tile = state.pool[-1].with_owner(player.id)
        if player.is_bot and tile.is_wildcard:
            tile = tile.with_sort_key(self.rng.uniform(0, state.num_values))

        return state.replace(
            pool=state.pool[:-1],
            drawn_tile=tile,
            phase=Phase.GUESS,
        ).with_log(f"{player.name} drew a {tile.color.value} tile.")

    # ------------------------------------------------------------------
    # 猜牌
    # ------------------------------------------------------------------

    def guess(
        self,
        state: GameState,
        target_player_id: str,
        tile_index: int,
        value: TileValue,
    ) -> GameState:
        """
        猜对手的一张牌

        猜中: 公开该牌，可能淘汰目标并判出赢家，否则进入决断阶段
        猜错: 立即以失败结束回合 (摸到的牌公开)
        """
        if not RuleEngine.can_guess(state, target_player_id, tile_index, value):
            return self._reject(state, "guess", f"{target_player_id}[{tile_index}]={value}")

        actor = state.current_player
        target = state.get_player(target_player_id)
        tile = target.hand[tile_index]

        if not RuleEngine.guess_matches(tile, value):
            state = state.with_log(f"{actor.name} guessed {value}. Wrong guess!")
            return self._finish_turn(state, success=False)

        hand = list(target.hand)
        hand[tile_index] = tile.with_revealed()
        target = target.with_hand(hand)

        shown = "a wildcard" if tile.is_wildcard else str(tile.value)
        state = state.with_player(target).with_log(f"Correct! It was {shown}.")

        state = self._apply_elimination(state, target.id)
        if state.is_finished:
            return state
        return state.replace(phase=Phase.RESOLVE)

    def continue_guessing(self, state: GameState) -> GameState:
        """猜中后继续猜 (仅人类玩家)"""
        if state.phase != Phase.RESOLVE:
            return self._reject(state, "continue", "not in resolve phase")
        if state.current_player.is_bot:
            return self._reject(state, "continue", "automated players do not chain guesses")
        return state.replace(phase=Phase.GUESS)

    def end_turn(self, state: GameState) -> GameState:
        """猜中后主动结束回合"""
        if state.phase != Phase.RESOLVE:
            return self._reject(state, "end_turn", "not in resolve phase")
        return self._finish_turn(state, success=True)

    def timeout(self, state: GameState) -> GameState:
        """
        超时

        摸牌阶段视为摸牌；猜牌/决断阶段视为失败结束回合
        """
        if state.phase == Phase.DRAW:
            return self.draw(state)
        if state.phase in (Phase.GUESS, Phase.RESOLVE):
            state = state.with_log("Time ran out!")
            return self._finish_turn(state, success=False)
        return self._reject(state, "timeout", "game is over")

    # ------------------------------------------------------------------
    # 百搭牌
    # ------------------------------------------------------------------

    def reposition_wildcard(
        self,
        state: GameState,
        tile_id: str,
        before_tile_id: Optional[str] = None,
    ) -> GameState:
        """
        将当前玩家的百搭牌移动到 before_tile_id 之前 (None 为最后)

        每张百搭牌只能移动一次
        """
        if not RuleEngine.can_reposition(state, tile_id, before_tile_id):
            return self._reject(state, "reposition", f"{tile_id} before {before_tile_id}")

        player = state.current_player
        new_key = reposition_sort_key(player.hand, tile_id, before_tile_id)
        state = state.with_log(f"{player.name} placed a wildcard.")

        if state.drawn_tile is not None and state.drawn_tile.id == tile_id:
            return state.replace(drawn_tile=state.drawn_tile.with_sort_key(new_key))

        hand = sort_hand(
            t.with_sort_key(new_key) if t.id == tile_id else t for t in player.hand
        )
        return state.with_player(player.with_hand(hand))

    # ------------------------------------------------------------------
    # 统一入口
    # ------------------------------------------------------------------

    def step(self, state: GameState, action: Action) -> GameState:
        """
        执行一条命令

        Args:
            state: 当前状态
            action: 命令

        Returns:
            新状态 (非法命令返回原状态)
        """
        if action.action_type == ActionType.DRAW:
            return self.draw(state)
        if action.action_type == ActionType.GUESS:
            return self.guess(state, action.target_player_id, action.tile_index, action.value)
        if action.action_type == ActionType.CONTINUE:
            return self.continue_guessing(state)
        if action.action_type == ActionType.END_TURN:
            return self.end_turn(state)
        if action.action_type == ActionType.REPOSITION:
            return self.reposition_wildcard(state, action.tile_id, action.before_tile_id)
        if action.action_type == ActionType.TIMEOUT:
            return self.timeout(state)
        return self._reject(state, str(action), "unknown command")

    # ------------------------------------------------------------------
    # 内部
    # ------------------------------------------------------------------

    def _apply_elimination(self, state: GameState, player_id: str) -> GameState:
        """手牌全部公开则淘汰该玩家，并判定胜负"""
        player = state.get_player(player_id)
        if RuleEngine.should_eliminate(player):
            state = state.with_player(player.with_eliminated())
            state = state.with_log(f"{player.name} is eliminated!")
            logger.debug(f"{player.id} eliminated on move {state.move_number}")

        winner_id = RuleEngine.evaluate_winner(state.players)
        if winner_id is not None:
            winner = state.get_player(winner_id)
            state = state.replace(winner_id=winner_id, phase=Phase.GAME_OVER)
            state = state.with_log(f"{winner.name} wins!")
            logger.info(f"{winner.name} ({winner_id}) wins on move {state.move_number}")
        return state

    def _finish_turn(self, state: GameState, success: bool) -> GameState:
        """
        回合结束

        摸到的牌并入当前玩家手牌 (失败时先公开)，重新排序，
        再轮到下一位未淘汰的玩家
        """
        actor = state.current_player

        if state.drawn_tile is not None:
            tile = state.drawn_tile
            if not success:
                tile = tile.with_revealed()
                state = state.with_log(f"Revealed drawn tile: {tile.label()}")
            state = state.with_player(actor.with_hand(sort_hand(actor.hand + (tile,))))
            state = state.replace(drawn_tile=None)

        next_id = RuleEngine.next_player_id(state.players, actor.id)
        return state.replace(
            current_player_id=next_id,
            phase=Phase.DRAW,
            drawn_tile=None,
            move_number=state.move_number + 1,
        )
