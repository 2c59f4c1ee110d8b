"""环境层测试"""
import pytest
import numpy as np

from core.actions import Action, ActionType
from core.config import GameConfig, PlayerConfig
from core.engine import TurnEngine
from core.state import Phase
from core.tiles import TileValue


def human_vs_bots(n: int = 2, **kwargs) -> GameConfig:
    players = [PlayerConfig("learner")] + [
        PlayerConfig(f"bot{i}", is_bot=True) for i in range(1, n)
    ]
    return GameConfig(players=players, turn_seconds=0, **kwargs)


class TestObservationBuilder:
    """ObservationBuilder 测试"""

    def test_shapes(self):
        from env.observation import ObservationBuilder, tile_feature_dim

        state = TurnEngine(seed=0).new_game(human_vs_bots(3))
        builder = ObservationBuilder(num_values=12)
        obs = builder.build(state, "p-0")

        feature_dim = tile_feature_dim(12)
        assert obs.hand.shape == (26, feature_dim)
        assert obs.opponents.shape == (3, 26, feature_dim)
        assert obs.drawn_tile.shape == (feature_dim,)
        assert obs.phase.shape == (4,)
        assert obs.eliminated.shape == (4,)
        assert obs.is_my_turn

    def test_own_hand_values_visible(self):
        from env.observation import ObservationBuilder

        state = TurnEngine(seed=0).new_game(human_vs_bots(2))
        obs = ObservationBuilder(num_values=12).build(state, "p-0")
        for i, tile in enumerate(state.players[0].hand):
            assert obs.hand[i, tile.value.number] == 1

    def test_hidden_opponent_values(self):
        """对手未公开的牌不泄露数值"""
        from env.observation import ObservationBuilder

        state = TurnEngine(seed=0).new_game(human_vs_bots(2))
        obs = ObservationBuilder(num_values=12).build(state, "p-0")
        n_tiles = len(state.players[1].hand)
        assert obs.opponents[0, :n_tiles, :13].sum() == 0
        # 颜色与存在标记仍可见
        assert obs.opponents[0, :n_tiles, -1].sum() == n_tiles

    def test_revealed_opponent_values(self):
        from env.observation import ObservationBuilder

        state = TurnEngine(seed=0).new_game(human_vs_bots(2))
        opp = state.players[1]
        hand = list(opp.hand)
        hand[0] = hand[0].with_revealed()
        state = state.with_player(opp.with_hand(hand))

        obs = ObservationBuilder(num_values=12).build(state, "p-0")
        assert obs.opponents[0, 0, hand[0].value.number] == 1

    def test_drawn_tile_private(self):
        from env.observation import ObservationBuilder

        engine = TurnEngine(seed=0)
        state = engine.draw(engine.new_game(human_vs_bots(2)))
        builder = ObservationBuilder(num_values=12)

        mine = builder.build(state, "p-0")
        theirs = builder.build(state, "p-1")
        assert mine.drawn_tile[:13].sum() == 1
        assert theirs.drawn_tile[:13].sum() == 0

    def test_to_flat_array(self):
        from env.observation import ObservationBuilder

        state = TurnEngine(seed=0).new_game(human_vs_bots(2))
        flat = ObservationBuilder(num_values=12).build(state).to_flat_array()
        assert isinstance(flat, np.ndarray)
        assert flat.ndim == 1


class TestActionEncoder:
    """ActionEncoder 测试"""

    @pytest.fixture
    def state(self):
        engine = TurnEngine(seed=0)
        return engine.draw(engine.new_game(human_vs_bots(3, include_wildcards=True)))

    def test_fixed_indices(self, state):
        from env.observation import ActionEncoder

        encoder = ActionEncoder(num_values=12)
        assert encoder.encode(Action.draw(), state) == 0
        assert encoder.encode(Action.continue_guessing(), state) == 1
        assert encoder.encode(Action.end_turn(), state) == 2
        assert encoder.decode(0, state) == Action.draw()

    def test_guess_roundtrip(self, state):
        from env.observation import ActionEncoder

        encoder = ActionEncoder(num_values=12)
        for action in [
            Action.guess("p-1", 0, TileValue.numeric(0)),
            Action.guess("p-2", 3, TileValue.numeric(11)),
            Action.guess("p-2", 1, TileValue.wildcard()),
        ]:
            index = encoder.encode(action, state)
            assert encoder.decode(index, state) == action

    def test_relative_seats(self, state):
        from env.observation import ActionEncoder

        encoder = ActionEncoder(num_values=12)
        action = Action.guess("p-0", 0, TileValue.numeric(5))
        # 从 p-1 看，p-0 是相对座位 2
        index = encoder.encode(action, state, perspective="p-1")
        assert encoder.decode(index, state, perspective="p-1") == action

    def test_not_encodable(self, state):
        from env.observation import ActionEncoder

        encoder = ActionEncoder(num_values=12)
        with pytest.raises(ValueError):
            encoder.encode(Action.reposition("b-wild"), state)
        with pytest.raises(ValueError):
            encoder.encode(Action.guess("p-0", 0, TileValue.numeric(1)), state)

    def test_decode_out_of_range(self, state):
        from env.observation import ActionEncoder

        encoder = ActionEncoder(num_values=12)
        with pytest.raises(ValueError):
            encoder.decode(encoder.num_actions, state)
        with pytest.raises(ValueError):
            encoder.decode(-1, state)

    def test_decode_missing_seat(self, state):
        from env.observation import ActionEncoder

        encoder = ActionEncoder(num_values=12)
        # 3 人局没有相对座位 3
        index = encoder.NUM_FIXED + 2 * encoder.max_hand * encoder.num_value_slots
        assert encoder.decode(index, state) is None

    def test_legal_mask(self, state):
        from env.observation import ActionEncoder

        encoder = ActionEncoder(num_values=12)
        mask = encoder.build_legal_mask(state)
        assert mask.shape == (encoder.num_actions,)
        assert not mask[0]
        hidden = sum(len(p.hidden_indices) for p in state.opponents())
        assert mask.sum() == hidden * 13


class TestRewardCalculator:
    """奖励计算测试"""

    def test_sparse(self):
        from env.reward import RewardCalculator

        state = TurnEngine(seed=0).new_game(human_vs_bots(2))
        calc = RewardCalculator()
        assert calc.compute(state, None, "p-0") == 0.0

        over = state.replace(phase=Phase.GAME_OVER, winner_id="p-0")
        assert calc.compute(over, state, "p-0") == 1.0
        assert calc.compute(over, state, "p-1") == -1.0

    def test_shaped(self):
        from env.reward import RewardCalculator, RewardConfig, RewardType

        state = TurnEngine(seed=0).new_game(human_vs_bots(2))
        opp = state.players[1]
        hand = list(opp.hand)
        hand[0] = hand[0].with_revealed()
        after = state.with_player(opp.with_hand(hand))

        calc = RewardCalculator(RewardConfig(reward_type=RewardType.SHAPED))
        assert calc.compute(after, state, "p-0") == pytest.approx(0.1)
        assert calc.compute(after, state, "p-1") == pytest.approx(-0.1)


class TestCodaEnv:
    """CodaEnv 测试"""

    def test_creation(self):
        from env.coda_env import CodaEnv

        env = CodaEnv()
        assert env.action_space is not None
        assert env.observation_space is not None

    def test_bot_seat_rejected(self):
        from env.coda_env import CodaEnv

        with pytest.raises(ValueError):
            CodaEnv(config=human_vs_bots(2), agent_seat=1)

    def test_reset(self):
        from env.coda_env import CodaEnv

        env = CodaEnv(seed=42)
        obs, info = env.reset()

        assert env.observation_space.contains(obs)
        assert info["current_player"] == "p-0"
        assert info["phase"] == "draw"
        assert info["legal_action_mask"][0]
        assert info["legal_action_mask"].sum() == 1

    def test_reset_deterministic(self):
        from env.coda_env import CodaEnv

        env = CodaEnv()
        env.reset(seed=7)
        first = env.state
        env.reset(seed=7)
        assert env.state == first

    def test_step_before_reset(self):
        from env.coda_env import CodaEnv

        with pytest.raises(RuntimeError):
            CodaEnv().step(0)

    def test_draw_step(self):
        from env.coda_env import CodaEnv

        env = CodaEnv(seed=42)
        env.reset()
        obs, reward, terminated, truncated, info = env.step(0)

        assert info["phase"] == "guess"
        assert reward == 0.0
        assert not terminated
        assert not truncated
        assert not info["legal_action_mask"][0]

    def test_invalid_action(self):
        from env.coda_env import CodaEnv

        env = CodaEnv(seed=42)
        env.reset()
        before = env.state
        obs, reward, terminated, truncated, info = env.step(2)

        assert reward == -1.0
        assert "error" in info
        assert env.state is before

    def test_opponents_play_after_learner(self):
        from env.coda_env import CodaEnv

        env = CodaEnv(config=human_vs_bots(3), seed=3)
        env.reset()
        env.step(0)
        env.step(env.sample_action())

        state = env.state
        assert state.is_finished or state.current_player_id == "p-0"

    def test_learner_in_later_seat(self):
        from env.coda_env import CodaEnv

        config = GameConfig(
            players=[
                PlayerConfig("bot", is_bot=True),
                PlayerConfig("learner"),
            ],
            turn_seconds=0,
        )
        env = CodaEnv(config=config, agent_seat=1, seed=0)
        env.reset()
        assert env.state.current_player_id == "p-1" or env.state.is_finished

    def test_full_episode(self):
        from env.coda_env import CodaEnv

        env = CodaEnv(config=human_vs_bots(2), seed=11)
        obs, info = env.reset()

        terminated = False
        for _ in range(5000):
            action = env.sample_action()
            assert info["legal_action_mask"][action]
            obs, reward, terminated, truncated, info = env.step(action)
            if terminated:
                break

        assert terminated
        assert info["winner"] in ("p-0", "p-1")
        assert reward == (1.0 if info["is_winner"] else -1.0)
        with pytest.raises(RuntimeError):
            env.step(0)

    def test_render(self):
        from env.coda_env import CodaEnv

        env = CodaEnv(render_mode="ansi", seed=0)
        env.reset()
        output = env.render()
        assert "Phase: draw" in output


class TestWrappers:
    """包装器测试"""

    def test_make_env_step_limit(self):
        from env.coda_env import make_env
        from env.wrappers import LearnerStepLimit

        env = make_env(max_steps=1, seed=0)
        assert isinstance(env, LearnerStepLimit)
        env.reset()
        _, _, terminated, truncated, info = env.step(0)
        assert not terminated
        assert truncated
        assert info["step_limit"] == 1

    def test_action_mask_observation(self):
        from env.coda_env import CodaEnv
        from env.wrappers import ActionMaskObservation

        env = ActionMaskObservation(CodaEnv(seed=0))
        obs, info = env.reset()
        assert env.observation_space.contains(obs)
        assert np.array_equal(obs["action_mask"].astype(bool), info["legal_action_mask"])

    def test_flatten(self):
        from env.coda_env import CodaEnv
        from env.wrappers import ActionMaskObservation, FlattenObservation

        env = FlattenObservation(ActionMaskObservation(CodaEnv(seed=0)))
        obs, _ = env.reset()
        assert obs.shape == env.observation_space.shape
        assert obs.dtype == np.float32

    def test_record_statistics(self):
        from env.coda_env import CodaEnv
        from env.wrappers import RecordMatchStatistics

        env = RecordMatchStatistics(CodaEnv(seed=5))
        env.reset()
        env.step(2)  # 摸牌阶段不能结束回合
        info = {}
        for _ in range(5000):
            _, _, terminated, _, info = env.step(env.unwrapped.sample_action())
            if terminated:
                break

        stats = info["episode"]
        assert stats["l"] > 1
        assert stats["invalid"] == 1
        assert stats["winner"] in ("p-0", "p-1")
        assert stats["revealed"] >= 0

    def test_wrap_env(self):
        from env.coda_env import CodaEnv
        from env.wrappers import wrap_env

        env = wrap_env(CodaEnv(seed=0), mask_actions=True, flatten_obs=True, max_steps=10)
        obs, _ = env.reset()
        assert obs.ndim == 1
        assert env.observation_space.contains(obs)
