from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from zerosum_dp.agents.planning.bellman import (
    ValueTable,
    greedy_action,
    initial_values,
)
from zerosum_dp.utils.config import validate_gamma, validate_iterations
from zerosum_dp.utils.mdp_core import Action, MDPModel, State, check_model

log = logging.getLogger(__name__)


class ValueIterationAgent:
    """Compute state values and a greedy policy via Value Iteration.

    Runs a fixed budget of ``iterations`` synchronous Bellman optimality
    sweeps, then extracts the greedy policy. There is no stopping rule:
    larger budgets trade runtime for values closer to optimal.

    Args:
        model: MDP model; the opponent's moves are part of its transitions.
        states: Enumerated states (terminal ones included). Defaults to
            ``model.states()``.
        gamma: Discount factor in (0, 1].
        iterations: Number of sweeps K.

    Raises:
        ModelContractError: If the model is malformed over ``states``.
        ValueError: On an out-of-range ``gamma`` or ``iterations``.
    """

    def __init__(
        self,
        model: MDPModel,
        states: Optional[Iterable[State]] = None,
        gamma: float = 0.9,
        iterations: int = 50,
    ):
        self.model = model
        self.states = list(model.states() if states is None else states)
        self.gamma = validate_gamma(gamma)
        self.iterations = validate_iterations(iterations)
        check_model(model, self.states)
        self.non_terminal = [s for s in self.states if not model.is_terminal(s)]
        self.V: ValueTable = initial_values(model, self.states)
        self.pi: Dict[State, Action] = {}
        self.last_delta = 0.0

    def iterate(self) -> ValueTable:
        """Run K sweeps of the Bellman optimality backup.

        Sweeps start from the current values, which are V0 on a fresh agent.
        Terminal states keep their initial value.
        """
        for k in range(self.iterations):
            # fresh table per sweep; updates only read last round's values
            V_new = self.V.copy()
            # terminal states are skipped and keep their fixed value
            for s in self.non_terminal:
                # best one-step lookahead over legal actions
                _, V_new[s] = greedy_action(self.model, s, self.V, self.gamma)
            # track the largest change this sweep (diagnostic only)
            self.last_delta = V_new.max_change(self.V)
            self.V = V_new
            log.debug("value iteration sweep %d/%d: max change %.3g", k + 1, self.iterations, self.last_delta)
        return self.V

    def extract_policy(self) -> Dict[State, Action]:
        """Greedy policy w.r.t. the current values, one action per non-terminal state."""
        pi: Dict[State, Action] = {}
        for s in self.non_terminal:
            # ties go to the first legal action
            pi[s], _ = greedy_action(self.model, s, self.V, self.gamma)
        return pi

    def train(self) -> Mapping[State, Action]:
        self.iterate()
        self.pi = self.extract_policy()
        log.info(
            "value iteration: %d states, %d sweeps, final max change %.3g",
            len(self.states), self.iterations, self.last_delta,
        )
        return self.policy()

    def policy(self) -> Mapping[State, Action]:
        return MappingProxyType(dict(self.pi))

    def values(self) -> Dict[State, float]:
        return self.V.snapshot()
