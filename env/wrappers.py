"""
环境包装器

- ActionMaskObservation: 把合法动作掩码并入观测 (支持 action masking 的算法)
- FlattenObservation: 字典观测展平为向量
- LearnerStepLimit: 限制学习者每局的决策次数
- RecordMatchStatistics: 局末在 info 中汇总本局统计
"""
from typing import Any, Dict, Optional, Tuple
import numpy as np

import gymnasium as gym
from gymnasium import Wrapper, spaces

from .reward import count_revealed


class ActionMaskObservation(Wrapper):
    """在字典观测中加入 "action_mask" (轮到学习者时为合法动作，否则全 0)"""

    def __init__(self, env: gym.Env):
        super().__init__(env)
        n = env.action_space.n
        self.observation_space = spaces.Dict({
            **env.observation_space.spaces,
            "action_mask": spaces.Box(0, 1, shape=(n,), dtype=np.float32),
        })

    def _with_mask(self, obs: Dict[str, np.ndarray], info: Dict[str, Any]) -> Dict[str, np.ndarray]:
        mask = info.get("legal_action_mask")
        if mask is None:
            mask = np.zeros(self.action_space.n, dtype=np.float32)
        return {**obs, "action_mask": mask.astype(np.float32)}

    def reset(self, **kwargs):
        obs, info = self.env.reset(**kwargs)
        return self._with_mask(obs, info), info

    def step(self, action):
        obs, reward, terminated, truncated, info = self.env.step(action)
        return self._with_mask(obs, info), reward, terminated, truncated, info


class FlattenObservation(Wrapper):
    """按观测空间的键顺序展平字典观测"""

    def __init__(self, env: gym.Env):
        super().__init__(env)
        self._keys = list(env.observation_space.spaces.keys())
        flat_dim = sum(
            int(np.prod(env.observation_space.spaces[k].shape)) for k in self._keys
        )
        self.observation_space = spaces.Box(0.0, 1.0, shape=(flat_dim,), dtype=np.float32)

    def observation(self, obs: Dict[str, np.ndarray]) -> np.ndarray:
        return np.concatenate([
            np.asarray(obs[k], dtype=np.float32).ravel() for k in self._keys
        ])

    def reset(self, **kwargs) -> Tuple[np.ndarray, Dict]:
        obs, info = self.env.reset(**kwargs)
        return self.observation(obs), info

    def step(self, action) -> Tuple[np.ndarray, float, bool, bool, Dict]:
        obs, reward, terminated, truncated, info = self.env.step(action)
        return self.observation(obs), reward, terminated, truncated, info


class LearnerStepLimit(Wrapper):
    """
    学习者决策次数上限

    对手的行动不计入；达到上限时 truncated=True
    """

    def __init__(self, env: gym.Env, max_steps: int = 500):
        super().__init__(env)
        self.max_steps = max_steps
        self._step_count = 0

    def reset(self, **kwargs):
        self._step_count = 0
        return self.env.reset(**kwargs)

    def step(self, action):
        obs, reward, terminated, truncated, info = self.env.step(action)
        self._step_count += 1

        if not terminated and self._step_count >= self.max_steps:
            truncated = True
            info["step_limit"] = self.max_steps

        return obs, reward, terminated, truncated, info


class RecordMatchStatistics(Wrapper):
    """
    局末在 info["episode"] 中记录:
    累计奖励、决策次数、非法动作次数、揭开的对手牌数、自己被公开的牌数、赢家
    """

    def __init__(self, env: gym.Env):
        super().__init__(env)
        self._reset_counters()

    def _reset_counters(self):
        self._episode_reward = 0.0
        self._episode_length = 0
        self._invalid_actions = 0

    def reset(self, **kwargs):
        obs, info = self.env.reset(**kwargs)
        self._reset_counters()
        return obs, info

    def step(self, action):
        obs, reward, terminated, truncated, info = self.env.step(action)

        self._episode_reward += reward
        self._episode_length += 1
        if "error" in info:
            self._invalid_actions += 1

        if terminated or truncated:
            base = self.env.unwrapped
            state = base.state
            info["episode"] = {
                "r": self._episode_reward,
                "l": self._episode_length,
                "invalid": self._invalid_actions,
                "revealed": count_revealed(state, base.agent_id, own=False),
                "exposed": count_revealed(state, base.agent_id, own=True),
                "winner": state.winner_id,
                "moves": state.move_number,
            }

        return obs, reward, terminated, truncated, info


def wrap_env(
    env: gym.Env,
    mask_actions: bool = False,
    flatten_obs: bool = False,
    record_stats: bool = True,
    max_steps: Optional[int] = None,
) -> gym.Env:
    """
    应用常用包装器组合

    Args:
        env: CodaEnv
        mask_actions: 观测中加入动作掩码
        flatten_obs: 展平观测 (在加入掩码之后)
        record_stats: 记录本局统计
        max_steps: 学习者决策次数上限

    Returns:
        包装后的环境
    """
    if record_stats:
        env = RecordMatchStatistics(env)

    if max_steps is not None:
        env = LearnerStepLimit(env, max_steps=max_steps)

    if mask_actions:
        env = ActionMaskObservation(env)

    if flatten_obs:
        env = FlattenObservation(env)

    return env
