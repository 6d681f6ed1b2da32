from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Union

import numpy as np

from zerosum_dp.agents.planning.bellman import (
    ValueTable,
    action_value,
    greedy_action,
    initial_values,
    iterate_until,
)
from zerosum_dp.utils.config import validate_delta, validate_gamma
from zerosum_dp.utils.mdp_core import Action, MDPModel, State, check_model

log = logging.getLogger(__name__)

# Seed used for the initial policy when none is given.
DEFAULT_SEED = 0


class PolicyIterationAgent:
    """Compute optimal values and policy via Policy Iteration.

    Alternates between policy evaluation (synchronous Bellman expectation
    sweeps under the current policy until the largest change is <= ``delta``)
    and policy improvement (greedy w.r.t. the evaluated values) until the
    policy no longer changes.

    There are finitely many deterministic policies over a finite state and
    action space, and an improvement step never lowers any state's value. The
    outer loop therefore stops, and it stops at a policy that is greedy with
    respect to its own value function, i.e. a fixed point of the Bellman
    optimality operator. Evaluation converges because the evaluation operator
    is a contraction for ``gamma < 1``; no sweep cap is applied.

    Args:
        model: MDP model; the opponent's moves are part of its transitions.
        states: Enumerated states (terminal ones included). Defaults to
            ``model.states()``.
        gamma: Discount factor in (0, 1].
        delta: Convergence threshold for policy evaluation.
        rng: Seed or ``numpy`` Generator used for the random initial policy.
            Defaults to ``DEFAULT_SEED`` so runs are reproducible.

    Raises:
        ModelContractError: If the model is malformed over ``states``.
        ValueError: On an out-of-range ``gamma`` or ``delta``.
    """

    def __init__(
        self,
        model: MDPModel,
        states: Optional[Iterable[State]] = None,
        gamma: float = 0.9,
        delta: float = 0.1,
        rng: Union[int, np.random.Generator] = DEFAULT_SEED,
    ):
        self.model = model
        self.states = list(model.states() if states is None else states)
        self.gamma = validate_gamma(gamma)
        self.delta = validate_delta(delta)
        check_model(model, self.states)
        self.rng = rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)
        self.V: ValueTable = initial_values(model, self.states)
        self.pi: Dict[State, Action] = {}
        self.rounds = 0
        self.sweeps = 0
        self._init_random_policy()

    def _init_random_policy(self) -> None:
        for s in self.states:
            # terminal states get no policy entry
            if self.model.is_terminal(s):
                continue
            actions = list(self.model.legal_actions(s))
            if actions:
                self.pi[s] = actions[int(self.rng.integers(len(actions)))]

    def _evaluation_sweep(self) -> float:
        # Jacobi sweep: read the frozen previous table, write a fresh one
        V_new = self.V.copy()
        for s, a in self.pi.items():
            V_new[s] = action_value(self.model, s, a, self.V, self.gamma)
        # largest change this sweep; terminals never move
        change = V_new.max_change(self.V)
        self.V = V_new
        return change

    def evaluate_policy(self, delta: Optional[float] = None) -> int:
        """Evaluate the current policy until a sweep changes no value by more than ``delta``.

        Returns:
            Number of sweeps performed.
        """
        tol = self.delta if delta is None else validate_delta(delta)
        n = iterate_until(self._evaluation_sweep, lambda change: change <= tol)
        self.sweeps += n
        log.debug("policy evaluation converged after %d sweeps", n)
        return n

    def improve_policy(self) -> bool:
        """Make the policy greedy w.r.t. the current values.

        Returns:
            True if any state's action changed.
        """
        changed = 0
        for s in self.pi:
            best_a, _ = greedy_action(self.model, s, self.V, self.gamma)
            # compare by equality; models may build fresh action objects per call
            if best_a != self.pi[s]:
                self.pi[s] = best_a
                changed += 1
        log.debug("policy improvement changed %d states", changed)
        return changed > 0

    def _round(self) -> bool:
        self.evaluate_policy(self.delta)
        self.rounds += 1
        return self.improve_policy()

    def train(self) -> Mapping[State, Action]:
        """Alternate evaluation and improvement until the policy is stable."""
        n = iterate_until(self._round, lambda changed: not changed)
        log.info(
            "policy iteration: %d states, stable after %d rounds (%d evaluation sweeps)",
            len(self.states), n, self.sweeps,
        )
        return self.policy()

    def policy(self) -> Mapping[State, Action]:
        return MappingProxyType(dict(self.pi))

    def values(self) -> Dict[State, float]:
        return self.V.snapshot()
