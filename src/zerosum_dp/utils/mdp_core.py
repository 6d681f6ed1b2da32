from __future__ import annotations

import math
from typing import Any, Hashable, Iterable, List, NamedTuple, Sequence

import numpy as np

State = Hashable
Action = Hashable

# Tolerance used when checking that outcome probabilities sum to one.
PROB_TOL = 1e-9


class ModelContractError(ValueError):
    """Raised when an MDP model breaks the contract the solvers rely on."""


class Outcome(NamedTuple):
    """One possible result of taking an action.

    Attributes:
        next_state: Resulting state.
        probability: Transition probability in [0, 1].
        reward: Immediate reward for the transition.
    """
    next_state: Any
    probability: float
    reward: float


class MDPModel:
    """Minimal finite MDP interface consumed by the solvers.

    States and actions can be any hashable types. Rewards are from the
    perspective of the agent being solved for; in a two-player game the
    opponent's reply is part of the transition model.
    """

    def states(self) -> Iterable[State]:
        """Return all enumerated states, terminal ones included."""
        raise NotImplementedError

    def is_terminal(self, state: State) -> bool:
        raise NotImplementedError

    def legal_actions(self, state: State) -> Sequence[Action]:
        """Return legal actions at ``state`` in a deterministic order."""
        raise NotImplementedError

    def outcomes(self, state: State, action: Action) -> Sequence[Outcome]:
        """Return the outcomes of ``action``; probabilities sum to 1."""
        raise NotImplementedError

    def terminal_value(self, state: State) -> float:
        """Fixed value of a terminal state. Solvers never overwrite it."""
        return 0.0


def check_model(model: MDPModel, states: Sequence[State]) -> None:
    """Validate ``model`` over ``states`` before solving.

    Args:
        model: The MDP model to check.
        states: Enumerated state list the solver will use.

    Raises:
        ModelContractError: On duplicate states, a non-terminal state without
            legal actions, an empty outcome list, a probability outside [0, 1],
            probabilities not summing to 1, or a next state that is not part of
            ``states``.
    """
    known = set(states)
    if len(known) != len(states):
        raise ModelContractError("state list contains duplicates")
    for s in states:
        if model.is_terminal(s):
            continue
        actions = list(model.legal_actions(s))
        if not actions:
            raise ModelContractError(f"non-terminal state {s!r} has no legal actions")
        for a in actions:
            outs = list(model.outcomes(s, a))
            if not outs:
                raise ModelContractError(f"action {a!r} at {s!r} has no outcomes")
            total = 0.0
            for out in outs:
                if not 0.0 <= out.probability <= 1.0:
                    raise ModelContractError(
                        f"probability {out.probability} out of range for {a!r} at {s!r}"
                    )
                if out.next_state not in known:
                    raise ModelContractError(
                        f"next state {out.next_state!r} reached from {s!r} via {a!r} is not enumerated"
                    )
                total += out.probability
            if not math.isclose(total, 1.0, rel_tol=0.0, abs_tol=PROB_TOL):
                raise ModelContractError(
                    f"probabilities for {a!r} at {s!r} sum to {total}, expected 1.0"
                )


def sample_outcome(model: MDPModel, state: State, action: Action, rng: np.random.Generator) -> Outcome:
    """Draw one outcome of ``action`` at ``state`` according to its probabilities."""
    outs: List[Outcome] = list(model.outcomes(state, action))
    if not outs:
        raise ModelContractError(f"action {action!r} at {state!r} has no outcomes")
    probs = np.array([o.probability for o in outs], dtype=float)
    idx = int(rng.choice(len(outs), p=probs / probs.sum()))
    return outs[idx]
