"""
Command-line interface for seamscan.

Runs the seam rules over syntax-tree snapshots exported by a front-end and
prints the findings.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from seamscan import __version__
from seamscan.config import REPORT_FORMATS, ScanConfig, create_default_config, find_config
from seamscan.errors import SeamScanError
from seamscan.reporting.formatters import format_report, format_rules
from seamscan.scanner import exceeds_threshold, rule_descriptors, rule_severities, scan_paths


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FINDINGS = 2
EXIT_ERROR = 1


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seamscan",
        description="Detect code patterns that block test seams.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  seamscan scan ./snapshots                     # Scan every snapshot in a directory
  seamscan scan OrderService.json               # Scan a single snapshot
  seamscan scan . --format sarif -o out.sarif   # SARIF output to file
  seamscan rules                                # List the rule catalog
  seamscan init                                 # Create a config file
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", help="Scan syntax-tree snapshots")
    scan_parser.add_argument("paths", nargs="*", default=["."], help="Snapshot files or directories (default: .)")
    scan_parser.add_argument("-c", "--config", help="Path to YAML/JSON config file")
    scan_parser.add_argument("-f", "--format", choices=REPORT_FORMATS, help="Output format (overrides config)")
    scan_parser.add_argument("-o", "--output", help="Write output to file instead of stdout")
    scan_parser.add_argument("-j", "--jobs", type=int, help="Number of parallel workers (overrides config)")
    scan_parser.add_argument("--color", action="store_true", help="Colorize text output")

    rules_parser = subparsers.add_parser("rules", help="List available rules")
    rules_parser.add_argument("-c", "--config", help="Path to YAML/JSON config file")

    init_parser = subparsers.add_parser("init", help="Create a configuration file")
    init_parser.add_argument("-f", "--force", action="store_true", help="Overwrite existing config file")
    return parser


def _load_config(path: Optional[str], start: str) -> ScanConfig:
    return ScanConfig.load(path or find_config(start))


def cmd_scan(args: argparse.Namespace) -> int:
    config = _load_config(args.config, args.paths[0])
    report = scan_paths(args.paths, config, max_workers=args.jobs)

    severities = rule_severities(config)
    fmt = args.format or config.report_format()
    output = format_report(report, fmt, rule_descriptors(), severities, color=args.color and not args.output)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        logger.info("Results written to %s", args.output)
    else:
        sys.stdout.write(output)

    if exceeds_threshold(report, severities, config.fail_on_severity()):
        return EXIT_FINDINGS
    return EXIT_OK


def cmd_rules(args: argparse.Namespace) -> int:
    config = _load_config(args.config, ".")
    descriptors = list(rule_descriptors().values())
    active = {
        descriptor.rule_id: config.rule_enabled(descriptor.rule_id, descriptor.enabled_by_default)
        for descriptor in descriptors
    }
    sys.stdout.write(format_rules(descriptors, active))
    return EXIT_OK


def cmd_init(args: argparse.Namespace) -> int:
    target = Path(".seamscan.yaml")
    if target.exists() and not args.force:
        logger.error("%s already exists; use --force to overwrite", target)
        return EXIT_ERROR
    target.write_text(create_default_config(), encoding="utf-8")
    sys.stdout.write(f"Created {target}\n")
    return EXIT_OK


COMMANDS = {
    "scan": cmd_scan,
    "rules": cmd_rules,
    "init": cmd_init,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return COMMANDS[args.command](args)
    except SeamScanError as e:
        logger.error("%s", e)
        return EXIT_ERROR
