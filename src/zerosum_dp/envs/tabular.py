from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from zerosum_dp.utils.mdp_core import Action, MDPModel, ModelContractError, Outcome, State


class TabularMDP(MDPModel):
    """MDP given as an explicit transition table.

    ``transitions`` maps each non-terminal state to an ordered mapping
    ``action -> [(next_state, probability, reward), ...]``. Action order is the
    mapping's insertion order and is the order used for tie-breaking.
    """

    def __init__(
        self,
        transitions: Mapping[State, Mapping[Action, Iterable[Sequence[Any]]]],
        terminals: Iterable[State] = (),
        terminal_values: Optional[Mapping[State, float]] = None,
    ):
        self._table: Dict[State, Dict[Action, List[Outcome]]] = {
            s: {a: [Outcome(o[0], float(o[1]), float(o[2])) for o in outs] for a, outs in acts.items()}
            for s, acts in transitions.items()
        }
        self._terminals = list(terminals)
        overlap = set(self._terminals) & set(self._table)
        if overlap:
            raise ModelContractError(f"terminal states must not have transitions: {sorted(map(repr, overlap))}")
        self._terminal_values: Dict[State, float] = {
            s: float(v) for s, v in (terminal_values or {}).items()
        }
        unknown = set(self._terminal_values) - set(self._terminals)
        if unknown:
            raise ModelContractError(f"terminal values given for non-terminal states: {sorted(map(repr, unknown))}")

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "TabularMDP":
        """Build a model from a JSON-style dict.

        Keys: ``transitions`` (``{state: {action: [[next, p, r], ...]}}``),
        ``terminals`` (list of states) and optional ``terminal_values``.

        Raises:
            ModelContractError: If ``transitions`` is missing or empty.
        """
        if not data.get("transitions"):
            raise ModelContractError("table model needs a non-empty \"transitions\" mapping")
        return TabularMDP(
            transitions=data["transitions"],
            terminals=data.get("terminals", []),
            terminal_values=data.get("terminal_values"),
        )

    @staticmethod
    def from_json(path: Path) -> "TabularMDP":
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return TabularMDP.from_dict(data)

    def states(self) -> List[State]:
        return list(self._table) + self._terminals

    def is_terminal(self, state: State) -> bool:
        return state not in self._table

    def legal_actions(self, state: State) -> List[Action]:
        return list(self._table.get(state, {}))

    def outcomes(self, state: State, action: Action) -> List[Outcome]:
        try:
            return list(self._table[state][action])
        except KeyError:
            raise ModelContractError(f"action {action!r} is not legal at {state!r}") from None

    def terminal_value(self, state: State) -> float:
        return self._terminal_values.get(state, 0.0)
