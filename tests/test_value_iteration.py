"""Tests for the value-iteration agent."""

import math
import unittest

from zerosum_dp.agents.value_iteration import ValueIterationAgent
from zerosum_dp.envs.tabular import TabularMDP
from zerosum_dp.envs.nim_v1 import AGENT_LOST, AGENT_WON, NimCfg, NimState, NimV1
from zerosum_dp.utils.mdp_core import ModelContractError

from fixture_models import loop_or_exit, two_moves


class TestValueIterationAgent(unittest.TestCase):

    def test_two_moves_scenario(self):
        agent = ValueIterationAgent(two_moves(), gamma=0.9, iterations=50)
        pi = agent.train()
        self.assertEqual(dict(pi), {"S": "A1"})
        self.assertAlmostEqual(agent.values()["S"], 1.0)

    def test_single_sweep(self):
        agent = ValueIterationAgent(loop_or_exit(), gamma=0.9, iterations=1)
        agent.iterate()
        V = agent.values()
        self.assertAlmostEqual(V["A"], 0.5)
        self.assertAlmostEqual(V["B"], 2.0)

    def test_sweeps_read_previous_round_only(self):
        # D is swept before C, so an in-place update would let C see D = 1.
        chain = TabularMDP(
            {"D": {"d": [("T", 1.0, 1.0)]}, "C": {"c": [("D", 1.0, 0.0)]}},
            terminals=["T"],
        )
        agent = ValueIterationAgent(chain, gamma=0.9, iterations=1)
        agent.iterate()
        self.assertEqual(agent.values()["C"], 0.0)
        agent.iterate()
        self.assertAlmostEqual(agent.values()["C"], 0.9)

    def test_converges_to_optimal(self):
        agent = ValueIterationAgent(loop_or_exit(), gamma=0.9, iterations=300)
        pi = agent.train()
        V = agent.values()
        self.assertAlmostEqual(V["A"], 5.0, places=6)
        self.assertAlmostEqual(V["B"], 4.5, places=6)
        self.assertEqual(dict(pi), {"A": "stay", "B": "left"})

    def test_policy_covers_non_terminal_states_only(self):
        env = NimV1(NimCfg(max_stones=10))
        pi = ValueIterationAgent(env).train()
        self.assertEqual(set(pi), {NimState(n, 1) for n in range(1, 11)})
        self.assertNotIn(AGENT_WON, pi)
        self.assertNotIn(AGENT_LOST, pi)

    def test_values_are_finite(self):
        for model in (two_moves(), loop_or_exit(), NimV1(NimCfg())):
            agent = ValueIterationAgent(model, gamma=0.95, iterations=100)
            agent.train()
            self.assertTrue(all(math.isfinite(v) for v in agent.values().values()))

    def test_terminal_values_never_change(self):
        for k in (1, 5, 50):
            agent = ValueIterationAgent(loop_or_exit({"T": 3.0}), gamma=0.9, iterations=k)
            agent.train()
            self.assertEqual(agent.values()["T"], 3.0)

    def test_extract_policy_is_idempotent(self):
        agent = ValueIterationAgent(NimV1(NimCfg()), gamma=0.9, iterations=20)
        agent.iterate()
        self.assertEqual(agent.extract_policy(), agent.extract_policy())

    def test_train_again_continues_from_current_values(self):
        once = ValueIterationAgent(loop_or_exit(), gamma=0.9, iterations=2)
        once.train()
        twice = ValueIterationAgent(loop_or_exit(), gamma=0.9, iterations=1)
        twice.train()
        twice.train()
        for s, v in once.values().items():
            self.assertAlmostEqual(twice.values()[s], v)

    def test_policy_is_read_only_snapshot(self):
        agent = ValueIterationAgent(two_moves())
        self.assertEqual(dict(agent.policy()), {})
        pi = agent.train()
        with self.assertRaises(TypeError):
            pi["S"] = "A2"

    def test_nim_perfect_opponent_strategy(self):
        env = NimV1(NimCfg(max_stones=21, max_take=3, opponent="perfect"))
        agent = ValueIterationAgent(env, gamma=0.9, iterations=50)
        pi = agent.train()
        for n in range(1, 22):
            if (n - 1) % 4:
                self.assertEqual(pi[NimState(n, 1)], (n - 1) % 4)
        self.assertEqual(agent.values()[NimState(1, 1)], -1.0)

    def test_invalid_parameters(self):
        with self.assertRaises(ValueError):
            ValueIterationAgent(two_moves(), gamma=0.0)
        with self.assertRaises(ValueError):
            ValueIterationAgent(two_moves(), gamma=1.5)
        with self.assertRaises(ValueError):
            ValueIterationAgent(two_moves(), iterations=0)

    def test_malformed_model_fails_on_construction(self):
        with self.assertRaises(ModelContractError):
            ValueIterationAgent(two_moves(), states=["S", "T1"])


if __name__ == '__main__':
    unittest.main()
