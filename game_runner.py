"""
Command-line match runner.

    python game_runner.py --scenario storage/scenarios/skirmish.json --ticks 300
"""

import argparse
import json

from agents import AgentSpec
from env.scenario import load_scenario
from infra.logger import configure_logging, get_logger
from runtime import GameRunner

log = get_logger(__name__)


def parse_overrides(pairs):
    """Turn ["runner_count=0", "retreat_hp_ratio=0.2"] into a dict; values are JSON when they parse."""
    overrides = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise SystemExit(f"--set expects KEY=VALUE, got {pair!r}")
        try:
            overrides[key] = json.loads(raw)
        except json.JSONDecodeError:
            overrides[key] = raw
    return overrides


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run the squad controller against a declared scenario")
    parser.add_argument("--scenario", help="Scenario JSON file (default: empty arena)")
    parser.add_argument("--ticks", type=int, default=None, help="Stop after this many ticks")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG shows every decision)")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    parser.add_argument("--no-logfile", action="store_true", help="Log to stdout only")
    parser.add_argument("--set", action="append", default=[], metavar="KEY=VALUE",
                        help="Override a controller threshold, e.g. --set runner_count=0 (repeatable)")
    args = parser.parse_args(argv)

    configure_logging(
        args.log_level,
        json=args.json_logs,
        **({"logfile": None} if args.no_logfile else {}),
    )

    scenario = load_scenario(args.scenario)
    if args.set:
        overrides = parse_overrides(args.set)
        scenario.agent = AgentSpec.from_dict(scenario.agent).with_config(**overrides).to_dict()

    runner = GameRunner(scenario)
    frames = runner.run(args.ticks)
    failures = sum(len(f.failures) for f in frames)
    log.info("Ran %s ticks, %s rejected orders", len(frames), failures)
    print(json.dumps(runner.status(), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
