"""
命令 (动作) 定义与合法动作生成器

宿主、电脑玩家与 Gymnasium 环境使用同一套命令
"""
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional

from .rules import RuleEngine
from .state import GameState, Phase
from .tiles import TileValue


class ActionType(IntEnum):
    """命令类型"""
    DRAW = 0        # 摸牌
    GUESS = 1       # 猜牌
    CONTINUE = 2    # 猜中后继续猜
    END_TURN = 3    # 猜中后结束回合
    REPOSITION = 4  # 摆放百搭牌
    TIMEOUT = 5     # 超时 (由宿主计时器触发)


@dataclass(frozen=True, slots=True)
class Action:
    """
    不可变命令

    Attributes:
        action_type: 命令类型
        target_player_id: 猜牌目标玩家
        tile_index: 目标牌在手牌中的下标
        value: 猜测值
        tile_id: 要摆放的百搭牌
        before_tile_id: 摆放到这张牌之前 (None 表示最后)
    """
    action_type: ActionType
    target_player_id: Optional[str] = None
    tile_index: Optional[int] = None
    value: Optional[TileValue] = None
    tile_id: Optional[str] = None
    before_tile_id: Optional[str] = None

    @classmethod
    def draw(cls) -> 'Action':
        return cls(action_type=ActionType.DRAW)

    @classmethod
    def guess(cls, target_player_id: str, tile_index: int, value: TileValue) -> 'Action':
        return cls(
            action_type=ActionType.GUESS,
            target_player_id=target_player_id,
            tile_index=tile_index,
            value=value,
        )

    @classmethod
    def continue_guessing(cls) -> 'Action':
        return cls(action_type=ActionType.CONTINUE)

    @classmethod
    def end_turn(cls) -> 'Action':
        return cls(action_type=ActionType.END_TURN)

    @classmethod
    def reposition(cls, tile_id: str, before_tile_id: Optional[str] = None) -> 'Action':
        return cls(
            action_type=ActionType.REPOSITION,
            tile_id=tile_id,
            before_tile_id=before_tile_id,
        )

    @classmethod
    def timeout(cls) -> 'Action':
        return cls(action_type=ActionType.TIMEOUT)

    @property
    def is_guess(self) -> bool:
        return self.action_type == ActionType.GUESS

    def __str__(self) -> str:
        if self.action_type == ActionType.GUESS:
            return f"guess {self.target_player_id}[{self.tile_index}]={self.value}"
        if self.action_type == ActionType.REPOSITION:
            return f"reposition {self.tile_id} before {self.before_tile_id or 'end'}"
        return self.action_type.name.lower()


class ActionGenerator:
    """
    合法动作生成器

    根据当前状态列出当前玩家可以执行的命令
    """

    def __init__(self, state: GameState):
        self.state = state

    def gen_guesses(self) -> List[Action]:
        """所有合法猜测 (对手 × 未公开牌 × 取值)"""
        state = self.state
        guesses = []
        for target in state.opponents():
            for idx in target.hidden_indices:
                for value in state.value_domain:
                    guesses.append(Action.guess(target.id, idx, value))
        return guesses

    def gen_repositions(self) -> List[Action]:
        """当前玩家所有合法的百搭牌摆放"""
        state = self.state
        if state.is_finished:
            return []

        player = state.current_player
        candidates = [t for t in player.hand if t.is_wildcard and not t.repositioned]
        drawn = state.drawn_tile
        if drawn is not None and drawn.is_wildcard and not drawn.repositioned:
            candidates.append(drawn)

        actions = []
        for tile in candidates:
            actions.append(Action.reposition(tile.id, None))
            for other in player.hand:
                if RuleEngine.can_reposition(state, tile.id, other.id):
                    actions.append(Action.reposition(tile.id, other.id))
        return actions

    def generate_all(self, include_repositions: bool = False) -> List[Action]:
        """
        生成当前阶段的全部合法命令

        Args:
            include_repositions: 是否包含百搭牌摆放

        Returns:
            命令列表 (游戏结束时为空)
        """
        state = self.state
        if state.phase == Phase.DRAW:
            actions = [Action.draw()]
        elif state.phase == Phase.GUESS:
            actions = self.gen_guesses()
        elif state.phase == Phase.RESOLVE:
            actions = [Action.end_turn()]
            if not state.current_player.is_bot:
                actions.insert(0, Action.continue_guessing())
        else:
            return []

        if include_repositions:
            actions.extend(self.gen_repositions())
        return actions
