"""
猜牌游戏 Gymnasium 环境

遵循标准 Gymnasium API。学习者控制一个座位，其余座位由智能体控制。
"""
from typing import Dict, Any, Tuple, Optional, List, Union
import numpy as np

import gymnasium as gym
from gymnasium import spaces

from core.actions import Action, ActionGenerator
from core.config import GameConfig
from core.engine import TurnEngine
from core.state import GameState, Phase

from .observation import ObservationBuilder, ActionEncoder, PHASES
from .reward import RewardCalculator, RewardConfig, RewardType


class CodaEnv(gym.Env):
    """
    猜牌游戏环境

    API:
    - reset() -> observation, info
    - step(action) -> observation, reward, terminated, truncated, info

    step() 执行学习者的一条命令，然后让其他座位行动，直到再次轮到学习者或游戏结束
    """

    metadata = {
        "render_modes": ["human", "ansi"],
        "name": "Coda-v1",
    }

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        agent_seat: int = 0,
        opponents: Optional[List] = None,
        reward_type: str = "sparse",
        render_mode: Optional[str] = None,
        max_opponent_steps: int = 10000,
        seed: Optional[int] = None,
    ):
        """
        Args:
            config: 对局配置 (默认 2 人局，学习者对 1 个电脑)
            agent_seat: 学习者座位
            opponents: 其他座位的智能体 (按座位顺序；默认随机对手)
            reward_type: 奖励类型 ("sparse", "shaped")
            render_mode: 渲染模式 ("human", "ansi", None)
            max_opponent_steps: 单次 step 中对手最多执行的命令数
            seed: 随机种子
        """
        super().__init__()

        self.config = config or GameConfig.default(player_count=2, bot_count=1)
        self.config.validate()
        if not 0 <= agent_seat < self.config.player_count:
            raise ValueError(f"agent_seat out of range: {agent_seat}")
        if self.config.players[agent_seat].is_bot:
            raise ValueError("The learner's seat must not be an automated player")

        self.agent_seat = agent_seat
        self.render_mode = render_mode
        self.max_opponent_steps = max_opponent_steps
        self._seed = seed
        self._custom_opponents = opponents

        self._obs_builder = ObservationBuilder(num_values=self.config.num_values)
        self._action_encoder = ActionEncoder(num_values=self.config.num_values)
        self._reward_calculator = RewardCalculator(
            RewardConfig(reward_type=RewardType(reward_type))
        )

        self._engine: Optional[TurnEngine] = None
        self._opponents: Dict[str, Any] = {}
        self._state: Optional[GameState] = None
        self._prev_state: Optional[GameState] = None
        self._agent_id = f"p-{agent_seat}"

        self._define_spaces()

    def _define_spaces(self):
        """定义观测和动作空间"""
        builder = self._obs_builder
        self.action_space = spaces.Discrete(self._action_encoder.num_actions)
        self.observation_space = spaces.Dict({
            "hand": spaces.Box(0, 1, shape=(builder.max_hand, builder.feature_dim), dtype=np.float32),
            "opponents": spaces.Box(
                0, 1,
                shape=(builder.max_players - 1, builder.max_hand, builder.feature_dim),
                dtype=np.float32,
            ),
            "drawn_tile": spaces.Box(0, 1, shape=(builder.feature_dim,), dtype=np.float32),
            "phase": spaces.Box(0, 1, shape=(len(PHASES),), dtype=np.float32),
            "eliminated": spaces.Box(0, 1, shape=(builder.max_players,), dtype=np.float32),
            "pool_size": spaces.Box(0, 1, shape=(1,), dtype=np.float32),
        })

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        重置环境

        Args:
            seed: 随机种子
            options: 额外选项

        Returns:
            (observation, info) 元组
        """
        super().reset(seed=seed if seed is not None else self._seed)
        self._seed = None

        self._engine = TurnEngine(rng=self.np_random)
        self._opponents = self._build_opponents()

        self._state = self._engine.new_game(self.config)
        self._prev_state = None
        self._advance_opponents()

        obs = self._build_observation()
        info = self._build_info()

        if self.render_mode == "human":
            self.render()

        return obs, info

    def _build_opponents(self) -> Dict[str, Any]:
        from evaluation.evaluator import RandomAgent

        seats = [i for i in range(self.config.player_count) if i != self.agent_seat]
        if self._custom_opponents is not None:
            if len(self._custom_opponents) != len(seats):
                raise ValueError(
                    f"Expected {len(seats)} opponents, got {len(self._custom_opponents)}"
                )
            agents = list(self._custom_opponents)
        else:
            agents = [RandomAgent(f"random-{i}", rng=self.np_random) for i in seats]

        for agent in agents:
            agent.reset()
        return {f"p-{seat}": agent for seat, agent in zip(seats, agents)}

    def step(
        self,
        action: Union[int, Action],
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        执行动作

        Args:
            action: 动作索引或 Action 对象

        Returns:
            (observation, reward, terminated, truncated, info) 元组
        """
        if self._state is None:
            raise RuntimeError("Environment not reset. Call reset() first.")
        if self._state.is_finished:
            raise RuntimeError("Episode is over. Call reset() first.")

        self._prev_state = self._state
        concrete_action = self._decode_action(action)

        if concrete_action is None or not self._is_valid_action(concrete_action):
            # 非法动作：给予惩罚并保持状态
            obs = self._build_observation()
            info = self._build_info()
            info["error"] = "Invalid action"
            return obs, -1.0, False, False, info

        self._state = self._engine.step(self._state, concrete_action)
        self._advance_opponents()

        obs = self._build_observation()
        reward = self._reward_calculator.compute(self._state, self._prev_state, self._agent_id)
        terminated = self._state.is_finished
        truncated = False
        info = self._build_info()

        if self.render_mode == "human":
            self.render()

        return obs, reward, terminated, truncated, info

    def _advance_opponents(self):
        """让其他座位行动，直到轮到学习者或游戏结束"""
        steps = 0
        state = self._state
        while (
            not state.is_finished
            and state.current_player_id != self._agent_id
            and steps < self.max_opponent_steps
        ):
            agent = self._opponents[state.current_player_id]
            action = agent.act(state)
            next_state = self._engine.step(state, action) if action is not None else state
            if next_state is state:
                next_state = self._engine.timeout(state)
            state = next_state
            steps += 1
        self._state = state

    def _decode_action(self, action: Union[int, Action]) -> Optional[Action]:
        """解码动作"""
        if isinstance(action, Action):
            return action
        if isinstance(action, (int, np.integer)):
            return self._action_encoder.decode(int(action), self._state)
        raise ValueError(f"Invalid action type: {type(action)}")

    def _is_valid_action(self, action: Action) -> bool:
        """验证动作合法性"""
        return action in ActionGenerator(self._state).generate_all(include_repositions=True)

    def _build_observation(self) -> Dict[str, np.ndarray]:
        """构建观测"""
        return self._obs_builder.build(self._state, self._agent_id).to_dict()

    def _build_info(self) -> Dict[str, Any]:
        """构建 info 字典"""
        info = {
            "current_player": self._state.current_player_id,
            "phase": self._state.phase.value,
            "move_number": self._state.move_number,
            "pool_size": len(self._state.pool),
        }

        if not self._state.is_finished and self._state.current_player_id == self._agent_id:
            info["legal_action_mask"] = self._action_encoder.build_legal_mask(self._state)

        if self._state.phase == Phase.GAME_OVER:
            info["winner"] = self._state.winner_id
            info["is_winner"] = self._state.winner_id == self._agent_id

        return info

    def render(self) -> Optional[str]:
        """渲染环境"""
        if self.render_mode == "ansi" or self.render_mode == "human":
            return self._render_text()
        return None

    def _render_text(self) -> str:
        """文本渲染 (学习者视角)"""
        state = self._state
        lines = []
        lines.append("=" * 50)
        lines.append(f"Move {state.move_number} | Phase: {state.phase.value} | Pool: {len(state.pool)}")
        lines.append(f"Current Player: {state.current_player.name}")

        for player in state.players:
            if player.id == self._agent_id:
                hand = " ".join(
                    f"{t.color.value[0].upper()}{t.value}{'*' if t.revealed else ''}"
                    for t in player.hand
                )
            else:
                hand = " ".join(str(t) for t in player.hand)
            flag = " (out)" if player.eliminated else ""
            lines.append(f"{player.name}{flag}: {hand}")

        if state.drawn_tile is not None and state.current_player_id == self._agent_id:
            lines.append(f"Drawn: {state.drawn_tile.label()}")

        if state.is_finished:
            lines.append(f"Winner: {state.get_player(state.winner_id).name}")

        lines.append("=" * 50)

        output = "\n".join(lines)
        if self.render_mode == "human":
            print(output)
        return output

    def close(self):
        """关闭环境"""
        pass

    @property
    def state(self) -> Optional[GameState]:
        """获取当前状态 (用于调试)"""
        return self._state

    @property
    def agent_id(self) -> str:
        """学习者的玩家 id"""
        return self._agent_id

    def get_legal_actions(self) -> List[Action]:
        """获取当前合法动作 (动作空间内)"""
        if self._state is None or self._state.is_finished:
            return []
        return ActionGenerator(self._state).generate_all()

    def sample_action(self) -> int:
        """随机采样一个合法动作索引"""
        indices = self._action_encoder.get_legal_action_indices(self._state)
        if not indices:
            return 0
        return int(indices[int(self.np_random.integers(len(indices)))])


def make_env(
    env_id: str = "Coda-v1",
    **kwargs
) -> gym.Env:
    """
    工厂函数：创建环境

    Args:
        env_id: 环境 ID
        **kwargs: 环境参数 (max_steps 会套上 LearnerStepLimit)

    Returns:
        CodaEnv 实例
    """
    from .wrappers import LearnerStepLimit

    max_steps = kwargs.pop("max_steps", None)
    env = CodaEnv(**kwargs)
    if max_steps is not None:
        env = LearnerStepLimit(env, max_steps=max_steps)
    return env
