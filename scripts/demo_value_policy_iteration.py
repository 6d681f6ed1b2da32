from __future__ import annotations

import argparse
import logging
from pathlib import Path

import coloredlogs

from zerosum_dp.agents.policy_iteration import PolicyIterationAgent
from zerosum_dp.agents.value_iteration import ValueIterationAgent
from zerosum_dp.envs.nim_v1 import NimV1
from zerosum_dp.envs.tabular import TabularMDP
from zerosum_dp.utils.config import SolverCfg, load_json

log = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CONFIGS = {"nim": "nim_v1.json", "table": "two_moves.json"}


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Solve a game MDP with value and policy iteration.")
    parser.add_argument("--config", type=Path, default=None,
                        help="defaults to config/nim_v1.json or config/two_moves.json by --model")
    parser.add_argument("--model", choices=("nim", "table"), default="nim")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    coloredlogs.install(level=args.log_level)

    if args.config is None:
        args.config = ROOT / "config" / DEFAULT_CONFIGS[args.model]

    data = load_json(args.config)
    model = NimV1.from_dict(data) if args.model == "nim" else TabularMDP.from_dict(data)
    scfg = SolverCfg.from_dict(data.get("solver", {}))
    log.info("Loaded %s from %s", type(model).__name__, args.config)

    vi = ValueIterationAgent(model, gamma=scfg.gamma, iterations=scfg.iterations)
    pi_vi = vi.train()
    V_vi = vi.values()

    pia = PolicyIterationAgent(model, gamma=scfg.gamma, delta=scfg.delta, rng=scfg.rng_seed)
    pi_pi = pia.train()
    V_pi = pia.values()

    print("state            | V (VI)  | V (PI)  | a (VI) | a (PI)")
    print("-----------------+---------+---------+--------+-------")
    for s in model.states():
        a_vi = pi_vi.get(s, "-")
        a_pi = pi_pi.get(s, "-")
        print(f"{str(s):<16} | {V_vi[s]:+.4f} | {V_pi[s]:+.4f} | {str(a_vi):>6} | {str(a_pi):>5}")

    disagree = [s for s in pi_vi if pi_vi[s] != pi_pi.get(s)]
    if disagree:
        log.warning("Policies differ in %d states (ties or too few VI sweeps)", len(disagree))
