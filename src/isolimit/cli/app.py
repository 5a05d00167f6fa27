"""Command-line interface for isolimit using argparse."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from isolimit.analytical import calculate_all
from isolimit.budget import result_budget
from isolimit.calibrator import CalibratorConfig, calculate_for_target
from isolimit.core.errors import CalculationError
from isolimit.core.models import MeasurementInput
from isolimit.monte_carlo import MonteCarloConfig, run_monte_carlo_simulation

logger = logging.getLogger(__name__)


def _load_json(path: Path):
    return json.loads(path.read_text())


def _load_measurement(path: Path) -> MeasurementInput:
    return MeasurementInput.from_dict(_load_json(path))


def _emit(payload: Dict[str, Any], output: Optional[Path]) -> None:
    text = json.dumps(payload, indent=2, allow_nan=False)
    if output is None:
        print(text)
    else:
        output.write_text(text)
        print(f"Wrote results to {output}")


def _emit_outcome(outcome, args: argparse.Namespace, **to_dict_kwargs) -> int:
    if isinstance(outcome, CalculationError):
        _emit(outcome.to_dict(), args.output)
        return 1
    _emit(outcome.to_dict(**to_dict_kwargs), args.output)
    if getattr(args, "budget", False) and outcome.variance_components is not None:
        print(result_budget(outcome).summary_table())
    return 0


def cmd_calculate(args: argparse.Namespace) -> int:
    params = _load_measurement(args.input)
    return _emit_outcome(calculate_all(params), args)


def cmd_target(args: argparse.Namespace) -> int:
    params = _load_measurement(args.input)
    config = CalibratorConfig(max_iterations=args.max_iterations)
    return _emit_outcome(calculate_for_target(params, args.target_limit, config), args)


def cmd_monte_carlo(args: argparse.Namespace) -> int:
    params = _load_measurement(args.input)
    if args.num_simulations is not None:
        params.num_simulations = args.num_simulations
    config = MonteCarloConfig(chunk_size=args.chunk_size, workers=args.workers)
    outcome = run_monte_carlo_simulation(params, args.seed, config=config)
    return _emit_outcome(outcome, args, include_histogram=args.histogram)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ISO 11929 decision threshold and detection limit calculator")
    parser.add_argument("--verbose", "-v", action="count", default=0, help="Increase log verbosity")
    subparsers = parser.add_subparsers(dest="command", required=True)

    calc = subparsers.add_parser("calculate", help="Analytical characteristic limits")
    calc.add_argument("--input", type=Path, required=True, help="JSON file of measurement fields")
    calc.add_argument("--output", type=Path)
    calc.add_argument("--budget", action="store_true", help="Print the uncertainty budget table")
    calc.set_defaults(func=cmd_calculate)

    target = subparsers.add_parser("target", help="Find k1-beta for a target detection limit")
    target.add_argument("--input", type=Path, required=True)
    target.add_argument("--target-limit", type=float, required=True)
    target.add_argument("--max-iterations", type=int, default=CalibratorConfig.max_iterations)
    target.add_argument("--output", type=Path)
    target.add_argument("--budget", action="store_true")
    target.set_defaults(func=cmd_target)

    mc = subparsers.add_parser("monte-carlo", help="Monte Carlo characteristic limits")
    mc.add_argument("--input", type=Path, required=True)
    mc.add_argument("--num-simulations", type=int)
    mc.add_argument("--seed", type=int)
    mc.add_argument("--workers", type=int, default=1)
    mc.add_argument("--chunk-size", type=int, default=MonteCarloConfig.chunk_size)
    mc.add_argument("--histogram", action="store_true", help="Include the simulated sample")
    mc.add_argument("--output", type=Path)
    mc.set_defaults(func=cmd_monte_carlo)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = logging.WARNING if args.verbose == 0 else (logging.INFO if args.verbose == 1 else logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
