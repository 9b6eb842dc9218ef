"""Command-line front end: arrange items from CSV files and print the groups.

Examples:
    group-arranger --items people.csv --rules rules.csv --groups cars.csv
    group-arranger --items people.csv --rules rules.csv --max-groups 4 --max-size 5 --min-size 2 --timeout-secs 30
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

from config import CFG, STRATEGIES
from io_files import read_groups_from_csv, read_items_from_csv, read_rules_from_csv, write_report
from models import ConfigurationError, Group, UnsupportedRuleError, uniform_groups
from render import render_report
from solver.orchestrator import solve_arrangement

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_FATAL = 2


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="group-arranger",
        description="Arrange tagged items into capacity-limited groups following weighted rules.",
    )
    ap.add_argument("--items", required=True, help="CSV of items: ID column, then one column per tag")
    ap.add_argument("--rules", required=True, help="CSV of rules: TagName, RuleType, Weight")
    ap.add_argument("--groups", default="", help="CSV of groups: GroupName, MinSize, MaxSize")
    ap.add_argument("--min-size", type=int, default=0, help="minimum size of a group (without --groups)")
    ap.add_argument("--max-size", type=int, default=0, help="maximum size of a group (without --groups)")
    ap.add_argument("--max-groups", type=int, default=0, help="number of groups (without --groups)")
    ap.add_argument(
        "--timeout-secs",
        type=float,
        default=CFG.TIMEOUT_SECS,
        help="after this many seconds, return the best arrangement found so far (0 = no limit)",
    )
    ap.add_argument("--strategy", choices=STRATEGIES, default=None, help="search strategy (default: GA_STRATEGY)")
    ap.add_argument("--report", action="store_true", help="also write the report to GA_REPORT_OUT")
    ap.add_argument("-v", "--verbose", action="store_true", help="log search progress to stderr")
    return ap


def _groups_from_args(args: argparse.Namespace) -> List[Group]:
    if args.groups:
        return read_groups_from_csv(args.groups)
    return uniform_groups(args.max_groups, args.min_size, args.max_size)


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    if not args.groups and (args.max_groups <= 0 or args.max_size <= 0):
        ap.print_usage(sys.stderr)
        print("either --groups or --max-size and --max-groups are required", file=sys.stderr)
        return EXIT_ERROR

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        items = read_items_from_csv(args.items)
        rules = read_rules_from_csv(args.rules)
        groups = _groups_from_args(args)
    except (OSError, ConfigurationError) as e:
        print(f"error reading input: {e}", file=sys.stderr)
        return EXIT_ERROR

    try:
        result = solve_arrangement(items, rules, groups, timeout_secs=args.timeout_secs, strategy=args.strategy)
    except UnsupportedRuleError as e:
        print(f"fatal: {e}", file=sys.stderr)
        return EXIT_FATAL

    if not result["ok"]:
        print(f"error computing arrangement: {result['reason']}", file=sys.stderr)
        return EXIT_ERROR

    sys.stdout.write(render_report(result["groups"]))
    if result.get("note"):
        print(f"note: {result['note']}", file=sys.stderr)
    if args.report:
        path = write_report(result["groups"], os.getcwd())
        print(f"report written to {path}", file=sys.stderr)
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
