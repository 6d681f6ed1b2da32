from __future__ import annotations

import argparse
import logging
from pathlib import Path

import coloredlogs
import numpy as np

from zerosum_dp.agents.policy_iteration import PolicyIterationAgent
from zerosum_dp.envs.nim_v1 import AGENT_WON, NimV1
from zerosum_dp.utils.config import SolverCfg, load_json
from zerosum_dp.utils.mdp_core import sample_outcome

log = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parents[1]


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Play Nim episodes with a policy-iteration agent.")
    parser.add_argument("--config", type=Path, default=ROOT / "config" / "nim_v1.json")
    parser.add_argument("--episodes", type=int, default=5)
    parser.add_argument("--seed", type=int, default=123)
    args = parser.parse_args()

    coloredlogs.install(level="INFO")

    data = load_json(args.config)
    env = NimV1.from_dict(data)
    scfg = SolverCfg.from_dict(data.get("solver", {}))
    agent = PolicyIterationAgent(env, gamma=scfg.gamma, delta=scfg.delta, rng=scfg.rng_seed)
    pi = agent.train()
    rng = np.random.default_rng(args.seed)

    wins = 0
    for ep in range(1, args.episodes + 1):
        s = env.start
        total_r = 0.0
        t = 0
        while not env.is_terminal(s):
            a = pi[s]
            s2, _p, r = sample_outcome(env, s, a, rng)
            total_r += r
            print(f"ep={ep:02d} t={t:03d} stones={s.stones:2d} take={a} -> stones={s2.stones:2d} r={r:+.1f}")
            s = s2
            t += 1
        wins += s == AGENT_WON
        print(f"--> {'won' if s == AGENT_WON else 'lost'} at t={t}, total_r={total_r:+.1f}\n")

    log.info("Agent won %d/%d episodes", wins, args.episodes)
