"""Tests for the model contract checks and outcome sampling."""

import unittest

import numpy as np

from zerosum_dp.envs.nim_v1 import NimCfg, NimState, NimV1
from zerosum_dp.envs.tabular import TabularMDP
from zerosum_dp.utils.mdp_core import ModelContractError, Outcome, check_model, sample_outcome

from fixture_models import loop_or_exit, two_moves


class TestCheckModel(unittest.TestCase):

    def test_well_formed_models_pass(self):
        for model in (two_moves(), loop_or_exit(), NimV1(NimCfg())):
            check_model(model, list(model.states()))

    def test_missing_next_state(self):
        model = two_moves()
        with self.assertRaises(ModelContractError):
            check_model(model, ["S", "T1"])

    def test_probabilities_must_sum_to_one(self):
        model = TabularMDP({"S": {"a": [("T", 0.5, 0.0), ("T", 0.4, 0.0)]}}, terminals=["T"])
        with self.assertRaisesRegex(ModelContractError, "sum to"):
            check_model(model, model.states())

    def test_probability_out_of_range(self):
        model = TabularMDP({"S": {"a": [("T", 1.5, 0.0), ("T", -0.5, 0.0)]}}, terminals=["T"])
        with self.assertRaises(ModelContractError):
            check_model(model, model.states())

    def test_non_terminal_without_actions(self):
        model = TabularMDP({"S": {}}, terminals=["T"])
        with self.assertRaisesRegex(ModelContractError, "no legal actions"):
            check_model(model, model.states())

    def test_empty_outcomes(self):
        model = TabularMDP({"S": {"a": []}}, terminals=["T"])
        with self.assertRaisesRegex(ModelContractError, "no outcomes"):
            check_model(model, model.states())

    def test_duplicate_states(self):
        model = two_moves()
        with self.assertRaises(ModelContractError):
            check_model(model, ["S", "T1", "T2", "T1"])

    def test_contract_error_is_value_error(self):
        self.assertTrue(issubclass(ModelContractError, ValueError))


class TestSampleOutcome(unittest.TestCase):

    def test_deterministic_transition(self):
        rng = np.random.default_rng(0)
        out = sample_outcome(two_moves(), "S", "A1", rng)
        self.assertEqual(out, Outcome("T1", 1.0, 1.0))

    def test_frequencies_follow_probabilities(self):
        env = NimV1(NimCfg(max_stones=5, max_take=3))
        rng = np.random.default_rng(123)
        n = 3000
        counts = {}
        for _ in range(n):
            out = sample_outcome(env, NimState(5, 1), 1, rng)
            counts[out.next_state] = counts.get(out.next_state, 0) + 1
        self.assertEqual(set(counts), {NimState(3, 1), NimState(2, 1), NimState(1, 1)})
        for c in counts.values():
            self.assertAlmostEqual(c / n, 1 / 3, delta=0.05)

    def test_same_seed_same_draws(self):
        env = NimV1(NimCfg())
        a = [sample_outcome(env, NimState(10, 1), 2, np.random.default_rng(9)) for _ in range(5)]
        b = [sample_outcome(env, NimState(10, 1), 2, np.random.default_rng(9)) for _ in range(5)]
        self.assertEqual(a, b)


if __name__ == '__main__':
    unittest.main()
