import argparse
import logging
import sys
from typing import List, Optional

from . import token_config
from .clock import SystemClock
from .errors import ScorchError
from .fixed_point import format_units, to_base_units
from .params import VESTING_CLIFF, VESTING_TOTAL, SECONDS_PER_DAY
from .reporting import frame_to_records, ledger_snapshot, release_table, save_output
from .simulation import run_scenario


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scorch-econ",
        description="SCORCH token economics: release projections and scenario simulation.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    project = sub.add_parser("project", help="Project the linear release of an entitlement.")
    project.add_argument("--amount", required=True, help="Entitlement in whole tokens, e.g. 1000 or 12.5")
    project.add_argument("--months", type=int, default=13)
    project.add_argument("--step-days", type=int, default=30)
    project.add_argument("--cliff-days", type=int, default=VESTING_CLIFF // SECONDS_PER_DAY)
    project.add_argument("--total-days", type=int, default=VESTING_TOTAL // SECONDS_PER_DAY)

    simulate = sub.add_parser("simulate", help="Replay a scenario from a JSON configuration file.")
    simulate.add_argument("config", help="Path to the JSON configuration")
    simulate.add_argument("--days", type=int, default=None, help="Stop after this scenario day")
    simulate.add_argument("--strict", action="store_true", help="Abort on the first rejected step")
    simulate.add_argument("--save", action="store_true", help="Save a JSON report (local or S3)")
    return parser


def cmd_project(args) -> int:
    amount = to_base_units(args.amount)
    if args.total_days <= 0 or not 0 <= args.cliff_days <= args.total_days:
        raise token_config.ConfigValidationError("Cliff must lie between 0 and the total vesting days")
    table = release_table(
        amount,
        SystemClock().now(),
        months=args.months,
        step_days=args.step_days,
        cliff=args.cliff_days * SECONDS_PER_DAY,
        duration=args.total_days * SECONDS_PER_DAY,
    )
    print(f"Release projection for {format_units(amount)} SCORCH "
          f"(cliff {args.cliff_days}d, vesting {args.total_days}d)")
    print(table[["month", "day", "vested_tokens", "vested_pct"]].to_string(index=False))
    return 0


def cmd_simulate(args) -> int:
    config = token_config.load_configuration(args.config)
    economy = config.build()
    results = run_scenario(economy, config.scenario, until_day=args.days, strict=args.strict)

    for outcome in results:
        marker = "✅" if outcome["status"] == "ok" else "❌"
        detail = outcome.get("error", "")
        print(f"{marker} day {outcome['day']:>4} {outcome['action']:<16} {detail}".rstrip())

    metrics = economy.metrics.get_current_metrics()
    print("\nLedger metrics")
    for key in ("total_supply", "minted", "tax_burned", "burned", "transfer_volume"):
        print(f"  {key:<16} {format_units(metrics[key])}")
    print(f"  {'token_velocity':<16} {metrics['token_velocity']:.4f}")

    snapshot = ledger_snapshot(economy.ledger)
    if not snapshot.empty:
        print("\nBalances")
        print(snapshot[["address", "tokens", "share"]].to_string(index=False))

    if args.save:
        report = {
            "config": args.config,
            "day": economy.day(),
            "steps": results,
            "metrics": dict(metrics),
            "history": economy.metrics.get_historical_analysis(),
            "balances": frame_to_records(snapshot),
            "presale_events": [event.to_dict() for event in economy.presale.events],
        }
        location = save_output(report, "simulation")
        print(f"\n✅ Saved report: {location}")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=getattr(logging, token_config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)
    try:
        if args.command == "project":
            return cmd_project(args)
        return cmd_simulate(args)
    except (ScorchError, ValueError, OSError) as e:
        # ConfigValidationError and malformed JSON are ValueErrors
        print(f"❌ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
