"""
Game P&L projection — console runner
=====================================

Loads an exported plan (JSON), runs the projection, and prints the dashboard
summary followed by the monthly income statement.

Run: game-pnl plan.json [--preset retention.json] [--ltv-days 180] [--net]
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import pandas as pd

from core.errors import PlanError
from engine.session import PlanSession
from kpi.summary import summarize_plan
from planning.snapshot import validate_snapshot

logger = logging.getLogger(__name__)

STATEMENT_COLUMNS = [
    "label", "new_users", "dau", "gross_revenue", "net_sales",
    "cm1", "marketing_cost", "cm2", "fc", "profit", "acc_profit",
]


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="game-pnl", description=__doc__.strip().splitlines()[0])
    p.add_argument("plan", help="exported plan JSON")
    p.add_argument("--preset", help="retention preset JSON applied to the default curve")
    p.add_argument("--mode", choices=["log_linear", "smart_curvature"], help="override interpolation mode")
    p.add_argument("--ltv-days", type=int, default=90)
    p.add_argument("--roi-months", type=int, default=12)
    p.add_argument("--net", action="store_true", help="report LTV after channel fees")
    p.add_argument("--roas", action="store_true", help="report ROAS instead of ROI")
    p.add_argument("--all-columns", action="store_true", help="print every waterfall line")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    session = PlanSession()
    try:
        session.import_snapshot(args.plan)
        if args.preset:
            session.apply_retention_preset(args.preset)
        if args.mode:
            session.set_retention_mode(args.mode)
    except (OSError, PlanError) as exc:
        logger.error("Could not load plan: %s", exc)
        return 1

    snapshot = session.snapshot
    check = validate_snapshot(snapshot)
    if check.warnings:
        logger.warning("Plan check:\n%s", check.summary())
    else:
        logger.debug("Plan check: %s", check.summary())
    summary = summarize_plan(
        session.result.pl_rows,
        snapshot.retention_model,
        snapshot.settings,
        ltv_days=args.ltv_days,
        ltv_mode="net" if args.net else "gross",
        roi_months=args.roi_months,
        roi_mode="marketing" if args.roas else "full",
    )

    frame = session.result.pl_frame()
    if not args.all_columns:
        frame = frame[STATEMENT_COLUMNS]

    with pd.option_context("display.max_columns", None, "display.width", 200, "display.float_format", "{:,.0f}".format):
        print(summary.to_dataframe().to_string(index=False))
        print()
        print(frame.to_string(index=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
