#!/usr/bin/env python
"""Run canondiff comparison scenarios from command line."""

import argparse
import json
import logging
import sys
from pathlib import Path

from canondiff import run_tests


def main():
    parser = argparse.ArgumentParser(
        description="Run canondiff comparison scenarios",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_scenarios.py report.json scenarios/
  python run_scenarios.py -c suite.yaml -r report.json -d scenarios/
  python run_scenarios.py --config suite.yaml --report report.json --scenarios scenarios/ -v
        """
    )

    parser.add_argument(
        "report",
        nargs="?",
        help="Path to output JSON report file"
    )
    parser.add_argument(
        "scenarios",
        nargs="?",
        help="Path to folder containing scenario files (.json, .yaml, .yml)"
    )

    # Also support named arguments
    parser.add_argument("-c", "--config", help="Path to YAML suite config (default options)")
    parser.add_argument("-r", "--report", dest="report_named", help="Path to output report")
    parser.add_argument("-d", "--scenarios", dest="scenarios_named", help="Path to scenarios folder")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress console output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    # Use named args if positional not provided
    report_path = args.report or args.report_named
    scenarios_path = args.scenarios or args.scenarios_named

    if not report_path:
        parser.error("Report path is required")
    if not scenarios_path:
        parser.error("Scenarios path is required")

    if args.config and not Path(args.config).exists():
        print(f"Error: Config file not found: {args.config}", file=sys.stderr)
        return 1

    if not Path(scenarios_path).exists():
        print(f"Error: Scenarios folder not found: {scenarios_path}", file=sys.stderr)
        return 1

    if not args.quiet:
        print(f"Config: {args.config or '(defaults)'}")
        print(f"Scenarios: {scenarios_path}")
        print(f"Report: {report_path}\n")

    report = run_tests(
        config_path=args.config,
        scenario_folder=scenarios_path,
        print_report=not args.quiet
    )

    with open(report_path, 'w', encoding='utf-8') as f:
        json.dump(report.to_dict(), indent=2, fp=f, ensure_ascii=False)

    if not args.quiet:
        print(f"\nReport saved to: {report_path}")

    return 0 if report.failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
