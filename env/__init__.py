"""
Environment Layer - Gymnasium 兼容环境

Modules:
    coda_env: 主环境类
    observation: 观测与动作编码
    reward: 奖励函数
    wrappers: 环境包装器
"""
from .coda_env import (
    CodaEnv,
    make_env,
)

from .observation import (
    Observation,
    ObservationBuilder,
    ActionEncoder,
    encode_tile,
    tile_feature_dim,
)

from .reward import (
    RewardType,
    RewardConfig,
    RewardCalculator,
)

from .wrappers import (
    ActionMaskObservation,
    FlattenObservation,
    LearnerStepLimit,
    RecordMatchStatistics,
    wrap_env,
)

__all__ = [
    # env
    "CodaEnv",
    "make_env",
    # observation
    "Observation",
    "ObservationBuilder",
    "ActionEncoder",
    "encode_tile",
    "tile_feature_dim",
    # reward
    "RewardType",
    "RewardConfig",
    "RewardCalculator",
    # wrappers
    "ActionMaskObservation",
    "FlattenObservation",
    "LearnerStepLimit",
    "RecordMatchStatistics",
    "wrap_env",
]
