"""Knapsack trace solver CLI.

Solves one knapsack instance and prints the full DP document (items, table
trace, backtracked path, optimal value) as JSON on stdout.

Usage:
    python main.py 01 10 4 2,3 3,4 4,5 5,6          # 0/1 knapsack
    python main.py 2d 10 8 2 3,2,4 4,5,6            # capacity2 before n
    python main.py kth 3 2 3 1,1 1,1 1,2            # K before n
    python main.py depend 10 3 4,5,0 2,3,1 3,4,1    # parent is 1-based, 0 = main
    python main.py tree 5 3 2,3,0 1,2,1 2,4,1 --log-dir logs
    python main.py 01 10 2 2,3 3,4 --csv trace.csv  # also export the trace
"""

import argparse
import json
import sys

from config import SolverConfig
from errors import ConfigError, ContractViolation, InputError
from models import Variant
from parsing import parse_arguments
from solver import solve


def build_parser():
    parser = argparse.ArgumentParser(
        description='Solve a knapsack variant and print the traced DP as JSON',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Item formats:
  01, complete, count, kth   w,v
  2d                         w,m,v
  multiple                   w,v,c
  group                      w,v,g
  depend, tree               w,v,p
  mixed                      w,v,t[,c]   (t: 0 once, 1 unbounded, 2 multiple)
        """
    )
    parser.add_argument('variant', choices=[v.value for v in Variant],
                        help='Knapsack variant to solve')
    parser.add_argument('args', nargs='*',
                        help='Header values (capacity [capacity2|K] n) followed by n item tokens')
    parser.add_argument('--config', type=str, default=None,
                        help='JSON file with SolverConfig overrides')
    parser.add_argument('--log-dir', type=str, default=None,
                        help='Enable run logging and write logs/metrics to this directory')
    parser.add_argument('--no-trace', action='store_true',
                        help='Count cells but do not emit trace steps')
    parser.add_argument('--csv', type=str, default=None,
                        help='Also export the trace steps to this CSV file')
    parser.add_argument('--indent', type=int, default=None,
                        help='Pretty-print the JSON document')
    return parser


def load_config(args):
    """Config file (or KNAPSACK_* environment) overridden by command-line flags."""
    if args.config:
        config = SolverConfig.from_json(args.config)
    else:
        config = SolverConfig.from_env()
    overrides = {}
    if args.log_dir:
        overrides["enable_logging"] = True
        overrides["log_dir"] = args.log_dir
        overrides["instance_name"] = f"{args.variant}_cli"
    if args.no_trace:
        overrides["record_trace"] = False
    return config.with_overrides(**overrides) if overrides else config


def error_document(exc):
    return {"code": 400, "error": str(exc)}


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args)
        parsed = parse_arguments(args.variant, args.args)
        result = solve(parsed.catalog, parsed.capacity, capacity2=parsed.capacity2,
                       k=parsed.k, config=config)
    except (InputError, ContractViolation, ConfigError) as exc:
        print(json.dumps(error_document(exc)))
        return 1

    print(json.dumps(result.to_dict(), indent=args.indent))

    if args.csv:
        from analysis import export_trace_csv
        export_trace_csv(result, args.csv)
        print(f"Trace exported to: {args.csv}", file=sys.stderr)
    return 0


if __name__ == '__main__':
    sys.exit(main())
