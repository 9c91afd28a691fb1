#!/usr/bin/env python3
"""Command line entry point.

Exit codes:
  0  run acceptable (no FAILED tool, SKIPPED within --max-skipped)
  1  run completed but not acceptable
  2  configuration or authentication failure (no tool was run)
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

import anyio

from ajax_conformance.catalog import CATALOG, select_tools
from ajax_conformance.config import load_config
from ajax_conformance.errors import AuthenticationError, ConfigurationError
from ajax_conformance.runner import run_discovery, run_harness

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_NOT_ACCEPTABLE = 1
EXIT_SETUP_FAILED = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ajax-conformance",
        description="Drive the admin UI, trigger cataloged async actions and verify their responses",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("HARNESS_LOG_LEVEL", "WARNING"),
        help="Python logging level (defaults to $HARNESS_LOG_LEVEL or WARNING)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add_target_options(cmd: argparse.ArgumentParser) -> None:
        cmd.add_argument("--env-file", help="KEY=VALUE file to read settings from (default: ./.env)")
        cmd.add_argument("--base-url", help="Target site URL (overrides $WP_URL)")
        cmd.add_argument("--username", help="Admin username (overrides $WP_USERNAME)")
        cmd.add_argument("--password", help="Admin password (overrides $WP_PASSWORD)")
        cmd.add_argument("--headed", action="store_true", help="Show the browser window")
        cmd.add_argument(
            "--browser",
            dest="browser_type",
            choices=["chromium", "firefox", "webkit"],
            help="Browser engine (overrides $PLAYWRIGHT_BROWSER)",
        )
        cmd.add_argument("--no-preflight", action="store_true", help="Skip the HTTP reachability probe")

    run = sub.add_parser("run", help="Run the tool catalog and write the report")
    add_target_options(run)
    run.add_argument("--tool", action="append", dest="tools", metavar="NAME", help="Only run this tool (repeatable)")
    run.add_argument("--report", dest="report_path", help="Report JSON path (overrides $HARNESS_REPORT_PATH)")
    run.add_argument("--max-skipped", type=int, help="Largest SKIPPED count still considered acceptable")

    discover = sub.add_parser("discover", help="Record the interactive elements of every admin tab")
    add_target_options(discover)
    discover.add_argument("--output", dest="discovery_path", help="Discovery JSON path")

    sub.add_parser("list", help="Print the tool catalog")
    return parser


def _list_catalog() -> int:
    for number, spec in enumerate(CATALOG, start=1):
        expected = spec.action_id or " | ".join(f"*{f}*" for f in spec.action_contains)
        optional = " (traffic optional)" if spec.traffic_optional else ""
        print(f"{number:2}. {spec.name:<26} {spec.tab_name:<16} {expected}{optional}")
    return EXIT_OK


def _load(args: argparse.Namespace):
    overrides = {
        "base_url": args.base_url,
        "username": args.username,
        "password": args.password,
        "browser_type": args.browser_type,
        "headless": False if args.headed else None,
        "preflight": False if args.no_preflight else None,
    }
    for name in ("report_path", "max_skipped", "discovery_path"):
        overrides[name] = getattr(args, name, None)
    return load_config(env_file=args.env_file, **overrides)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "list":
        return _list_catalog()

    try:
        config = _load(args)
        if args.command == "discover":
            anyio.run(run_discovery, config)
            return EXIT_OK
        specs = select_tools(args.tools)
        report = anyio.run(run_harness, config, specs)
    except ConfigurationError as exc:
        print(f"❌ Configuration error: {exc}", file=sys.stderr)
        return EXIT_SETUP_FAILED
    except AuthenticationError as exc:
        logger.error("Authentication failed: %s", exc)
        print(f"❌ Authentication failed: {exc}", file=sys.stderr)
        return EXIT_SETUP_FAILED

    return EXIT_OK if report.acceptable else EXIT_NOT_ACCEPTABLE


if __name__ == "__main__":
    sys.exit(main())
