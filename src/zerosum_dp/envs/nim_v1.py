from __future__ import annotations

"""Misère Nim V1 as a single-agent MDP.

Two players alternately take between 1 and ``max_take`` stones from a pile;
whoever takes the last stone loses. The solved player (the agent, ``to_move
== 1``) always moves first from its own states. The opponent's reply is
folded into the transition model, so each agent move yields a distribution
over the agent's next decision states.

This module defines:
- ``NimState``: ``(stones, to_move)`` state tuples.
- Dataclasses ``Rewards`` and ``NimCfg`` for model configuration.
- Class ``NimV1`` implementing ``MDPModel``.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal, NamedTuple

from zerosum_dp.utils.mdp_core import MDPModel, ModelContractError, Outcome

AGENT, OPPONENT = 1, -1


class NimState(NamedTuple):
    stones: int
    to_move: int


# Terminal states: no stones left and it is the agent's turn means the
# opponent took the last stone; the opposite means the agent did.
AGENT_WON = NimState(0, AGENT)
AGENT_LOST = NimState(0, OPPONENT)


@dataclass
class Rewards:
    """Rewards seen by the agent.

    Attributes:
        win: Reward when the opponent is forced to take the last stone.
        lose: Reward when the agent takes the last stone.
        living: Reward for a move that does not end the game.
    """
    win: float = 1.0
    lose: float = -1.0
    living: float = 0.0


@dataclass
class NimCfg:
    """Nim configuration.

    Attributes:
        max_stones: Initial pile size.
        max_take: Largest number of stones a player may take.
        opponent: ``"random"`` (uniform over legal takes) or ``"perfect"``
            (plays the misère strategy whenever it can).
        rewards: Reward specification.
    """
    max_stones: int = 21
    max_take: int = 3
    opponent: Literal["random", "perfect"] = "random"
    rewards: Rewards = field(default_factory=Rewards)


class NimV1(MDPModel):
    """Misère Nim from the agent's side against a fixed opponent."""

    def __init__(self, cfg: NimCfg):
        if cfg.max_stones < 1 or cfg.max_take < 1:
            raise ValueError(f"max_stones and max_take must be positive, got {cfg.max_stones}, {cfg.max_take}")
        if cfg.opponent not in ("random", "perfect"):
            raise ValueError(f"Unknown opponent: {cfg.opponent!r}")
        self.cfg = cfg
        self.rew = cfg.rewards

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "NimV1":
        nim = data.get("nim", {})
        return NimV1(NimCfg(
            max_stones=int(nim.get("max_stones", 21)),
            max_take=int(nim.get("max_take", 3)),
            opponent=nim.get("opponent", "random"),
            rewards=Rewards(**data.get("rewards", {})),
        ))

    @staticmethod
    def from_json(path: Path) -> "NimV1":
        """Load a ``NimV1`` from a JSON file.

        The JSON supports keys ``nim.max_stones``, ``nim.max_take``,
        ``nim.opponent`` and ``rewards`` (``win``, ``lose``, ``living``).
        """
        return NimV1.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))

    @property
    def start(self) -> NimState:
        return NimState(self.cfg.max_stones, AGENT)

    def states(self) -> List[NimState]:
        return [NimState(n, AGENT) for n in range(1, self.cfg.max_stones + 1)] + [AGENT_WON, AGENT_LOST]

    def is_terminal(self, state: NimState) -> bool:
        return state.stones == 0

    def _takes(self, stones: int) -> List[int]:
        return list(range(1, min(self.cfg.max_take, stones) + 1))

    def legal_actions(self, state: NimState) -> List[int]:
        if state.to_move != AGENT:
            return []
        return self._takes(state.stones)

    def opponent_reply(self, stones: int) -> Dict[int, float]:
        """Distribution over the opponent's takes with ``stones`` left."""
        takes = self._takes(stones)
        if self.cfg.opponent == "random":
            return {t: 1.0 / len(takes) for t in takes}
        # leave a pile of 1 mod (max_take + 1) when possible
        t = (stones - 1) % (self.cfg.max_take + 1)
        return {t if t > 0 else 1: 1.0}

    def outcomes(self, state: NimState, action: int) -> List[Outcome]:
        if action not in self.legal_actions(state):
            raise ModelContractError(f"action {action!r} is not legal at {state!r}")
        left = state.stones - action
        if left == 0:
            return [Outcome(AGENT_LOST, 1.0, self.rew.lose)]
        outs = []
        for take, p in self.opponent_reply(left).items():
            after = left - take
            if after == 0:
                outs.append(Outcome(AGENT_WON, p, self.rew.win))
            else:
                outs.append(Outcome(NimState(after, AGENT), p, self.rew.living))
        return outs
