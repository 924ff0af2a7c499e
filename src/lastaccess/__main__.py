import argparse
import json
import sys

from loguru import logger

from .codeviews.LastAccess.LastAccess_driver import LastAccessDriver
from .errors import MalformedInputError
from .tree_parser.json_parser import load_function


def _build_parser():
    p = argparse.ArgumentParser(
        prog="lastaccess",
        description="Report which accesses of each binding are provably its last access",
    )
    p.add_argument("file", help="Function body serialised as JSON")
    p.add_argument(
        "--binding", "-b", action="append", default=None,
        help="Binding to analyse; repeatable (default: parameters and locals)",
    )
    p.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
    p.add_argument("--output", "-o", default=None, help="Write the CFG graph next to this path")
    p.add_argument("--format", choices=["json", "dot", "all"], default="dot", help="Graph format for --output")
    p.add_argument("--no-reachability", action="store_true", help="Exclude whole backward-goto spans")
    p.add_argument("--verbose", "-v", action="store_true", help="Log analysis details")
    return p


def main(argv=None):
    args = _build_parser().parse_args(argv)
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "WARNING")

    try:
        function = load_function(args.file)
        driver = LastAccessDriver(
            function,
            output_file=args.output,
            graph_format=args.format,
            properties={"LastAccess": {"goto_reachability": not args.no_reachability}},
        )
    except MalformedInputError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    report = driver.report(args.binding)
    if args.json:
        print(json.dumps({"function": function.name, "bindings": report}, indent=2))
        return 0

    print(f"function {function.name}")
    for name, entry in report.items():
        if not entry["last_access"]:
            print(f"  {name}: no provable last access")
            continue
        for hit in entry["last_access"]:
            print(f"  {name}: site {hit['site']}  {hit['label']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
