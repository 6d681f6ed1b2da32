from __future__ import annotations

"""Bellman backups shared by the value- and policy-iteration agents.

The value function lives in a ``ValueTable``: states are mapped once to a
stable integer id and values are kept in a flat ``numpy`` array. Each sweep
works on a fresh ``copy()`` of the previous table, so every update in round
``i`` reads only round ``i - 1`` values.
"""

from typing import Any, Callable, Dict, Iterable, List, Tuple, TypeVar

import numpy as np

from zerosum_dp.utils.mdp_core import Action, MDPModel, ModelContractError, State

T = TypeVar("T")


class ValueTable:
    """Mapping state -> value backed by a flat float array."""

    def __init__(self, states: Iterable[State], values: Iterable[float] | None = None):
        self.states: List[State] = list(states)
        self.index: Dict[State, int] = {s: i for i, s in enumerate(self.states)}
        if len(self.index) != len(self.states):
            raise ModelContractError("state list contains duplicates")
        if values is None:
            self.v = np.zeros(len(self.states), dtype=float)
        else:
            self.v = np.array(list(values), dtype=float)
            if self.v.shape != (len(self.states),):
                raise ValueError(f"expected {len(self.states)} values, got {self.v.shape[0]}")

    def __len__(self) -> int:
        return len(self.states)

    def __contains__(self, state: State) -> bool:
        return state in self.index

    def __getitem__(self, state: State) -> float:
        try:
            return float(self.v[self.index[state]])
        except KeyError:
            raise ModelContractError(f"no value entry for state {state!r}") from None

    def __setitem__(self, state: State, value: float) -> None:
        try:
            self.v[self.index[state]] = value
        except KeyError:
            raise ModelContractError(f"no value entry for state {state!r}") from None

    def copy(self) -> "ValueTable":
        """Return a table with the same states and an independent value array."""
        new = ValueTable.__new__(ValueTable)
        # states and index are never mutated, so they can be shared
        new.states = self.states
        new.index = self.index
        new.v = self.v.copy()
        return new

    def max_change(self, other: "ValueTable") -> float:
        """Largest absolute per-state difference to ``other``."""
        if not len(self.v):
            # empty table
            return 0.0
        return float(np.max(np.abs(self.v - other.v)))

    def snapshot(self) -> Dict[State, float]:
        return dict(zip(self.states, self.v.tolist()))


def initial_values(model: MDPModel, states: Iterable[State]) -> ValueTable:
    """V0: 0.0 for non-terminal states, the model's fixed value for terminals."""
    table = ValueTable(states)
    for s in table.states:
        if model.is_terminal(s):
            table[s] = model.terminal_value(s)
    return table


def action_value(model: MDPModel, state: State, action: Action, values: ValueTable, gamma: float) -> float:
    """Expected discounted return of ``action`` at ``state`` under ``values``.

    Computes ``sum(p * (r + gamma * V[s']))`` over the model's outcomes. Does
    not modify ``values``.

    Raises:
        ModelContractError: If a next state has no entry in ``values``.
    """
    total = 0.0
    # expectation over outcomes; a missing V[s2] raises instead of reading 0
    for s2, p, r in model.outcomes(state, action):
        total += p * (r + gamma * values[s2])
    return total


def greedy_action(model: MDPModel, state: State, values: ValueTable, gamma: float) -> Tuple[Action, float]:
    """Best action at ``state`` and its value under ``values``.

    Ties go to the action reported first by ``model.legal_actions``. This is
    deterministic for a stable action order but otherwise arbitrary.

    Raises:
        ModelContractError: If ``state`` has no legal actions.
    """
    best_a: Any = None
    best = -np.inf
    found = False
    for a in model.legal_actions(state):
        val = action_value(model, state, a, values, gamma)
        # strict > keeps the first action on ties
        if not found or val > best:
            best = val
            best_a = a
            found = True
    if not found:
        raise ModelContractError(f"non-terminal state {state!r} has no legal actions")
    return best_a, best


def iterate_until(step: Callable[[], T], converged: Callable[[T], bool]) -> int:
    """Run ``step`` until ``converged(step())`` holds; return the step count.

    No step cap. Termination comes from the caller's loop: policy evaluation
    is a contraction for gamma < 1 and policy iteration walks a finite
    policy space.
    """
    n = 0
    while True:
        n += 1
        if converged(step()):
            return n
