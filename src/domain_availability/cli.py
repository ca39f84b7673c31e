"""
Command-line interface for the domain availability engine.

This module provides the ``domain-availability`` entry point with commands
for:
- check: Check keyword x TLD combinations
- tlds: List the enabled TLDs
- refresh: Refresh the TLD registry from the bootstrap source
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from . import __version__
from .audit_logger import AuditLogger
from .config import SystemConfig, load_config_from_env
from .enums import LogLevel
from .exceptions import ValidationError
from .keywords import normalize_tld, process_keywords, unique_in_order
from .service import DomainCheckService

EXIT_AVAILABLE = 0
EXIT_NONE_AVAILABLE = 1
EXIT_VALIDATION_ERROR = 2


def _split_tlds(values: list[str]) -> list[str]:
    tlds = []
    for value in values:
        tlds.extend(part for part in (normalize_tld(p) for p in value.split(",")) if part)
    return unique_in_order(tlds)


def _create_logger(config: SystemConfig, verbose: bool) -> AuditLogger:
    level = LogLevel.DEBUG if verbose else config.logging.level
    return AuditLogger(output_format=config.logging.output_format, min_level=level)


def _load_config(args: argparse.Namespace) -> SystemConfig:
    env_file = Path(args.env_file) if args.env_file else None
    return load_config_from_env(env_file)


async def run_check(args: argparse.Namespace, config: SystemConfig) -> int:
    """
    Check keywords against TLDs and print the results.

    Returns:
        Exit code (0 if any domain is available, 1 if none, 2 on invalid input)
    """
    keywords = process_keywords(args.keywords)
    tlds = _split_tlds(args.tlds)

    if not keywords:
        print("Error: No valid keywords after filtering", file=sys.stderr)
        return EXIT_VALIDATION_ERROR
    if not tlds:
        print("Error: No valid TLDs after filtering", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    max_keywords = args.max_keywords or config.batch.max_keywords
    max_tlds = args.max_tlds or config.batch.max_tlds
    limit_applied = len(keywords) > max_keywords or len(tlds) > max_tlds
    checked_keywords = keywords[:max_keywords]
    checked_tlds = tlds[:max_tlds]

    logger = _create_logger(config, args.verbose)
    service = DomainCheckService(config, logger=logger)
    try:
        await service.start(schedule_refresh=False)
        report = await service.check_domains_report(checked_keywords, checked_tlds)
    except ValidationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR
    finally:
        await service.close()

    if args.json:
        payload = {
            "success": True,
            "results": [r.to_dict() for r in report.results],
            "stats": report.stats.to_dict(),
            "limitApplied": limit_applied,
            "requestedKeywords": len(keywords),
            "processedKeywords": len(checked_keywords),
            "requestedTlds": len(tlds),
            "processedTlds": len(checked_tlds),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        if limit_applied:
            print(f"Note: limited to {max_keywords} keywords and {max_tlds} TLDs")
        for result in report.results:
            status = "available" if result.available else "taken"
            line = f"{result.domain:<40} {status:<10} [{result.method.value}]"
            if result.error:
                line += f"  error: {result.error}"
            elif result.registration_date:
                line += f"  registered {result.registration_date}"
                if result.domain_age is not None:
                    line += f" ({result.domain_age} days)"
            print(line)

        stats = report.stats
        print(
            f"\n{stats.total} checked: {stats.available} available, "
            f"{stats.unavailable} taken, {stats.errors} errors "
            f"in {stats.execution_time_ms:.0f}ms"
        )

    return EXIT_AVAILABLE if report.stats.available > 0 else EXIT_NONE_AVAILABLE


async def run_tlds(args: argparse.Namespace, config: SystemConfig) -> int:
    """List the enabled TLDs."""
    logger = _create_logger(config, args.verbose)
    service = DomainCheckService(config, logger=logger)
    try:
        await service.start(schedule_refresh=False)
        configs = service.get_enabled_configs()
    finally:
        await service.close()

    if args.json:
        print(json.dumps([c.to_dict() for c in configs], ensure_ascii=False, indent=2))
    else:
        for tld_config in configs:
            whois = f"  whois: {tld_config.whois_server}" if tld_config.whois_server else ""
            print(f"{tld_config.display_name:<20} {len(tld_config.rdap_servers)} RDAP server(s){whois}")
        print(f"\n{len(configs)} TLDs enabled")
    return 0


async def run_refresh(args: argparse.Namespace, config: SystemConfig) -> int:
    """Force a registry refresh. Exit code 0 on success, 1 on failure."""
    logger = _create_logger(config, args.verbose)
    service = DomainCheckService(config, logger=logger)
    try:
        await service.start(schedule_refresh=False)
        refreshed = await service.refresh()
        tld_count = len(service.get_enabled_configs())
    finally:
        await service.close()

    if refreshed:
        print(f"Registry refreshed: {tld_count} TLDs enabled")
        return 0
    print("Registry refresh failed, keeping existing data", file=sys.stderr)
    return 1


def cmd_check(args: argparse.Namespace) -> int:
    """Handle the 'check' command."""
    return asyncio.run(run_check(args, _load_config(args)))


def cmd_tlds(args: argparse.Namespace) -> int:
    """Handle the 'tlds' command."""
    return asyncio.run(run_tlds(args, _load_config(args)))


def cmd_refresh(args: argparse.Namespace) -> int:
    """Handle the 'refresh' command."""
    return asyncio.run(run_refresh(args, _load_config(args)))


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--env-file",
        help="Path to a .env file with configuration overrides",
    )
    common.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    parser = argparse.ArgumentParser(
        prog="domain-availability",
        description="Check domain availability over RDAP with WHOIS fallback",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'check' command
    check_parser = subparsers.add_parser(
        "check",
        parents=[common],
        help="Check keyword x TLD combinations",
    )
    check_parser.add_argument(
        "keywords",
        nargs="+",
        help="Keywords to check (comma, semicolon or space separated)",
    )
    check_parser.add_argument(
        "--tlds", "-t",
        action="append",
        required=True,
        help="TLDs to check, comma separated (e.g., com,net); may be repeated",
    )
    check_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the JSON response instead of text",
    )
    check_parser.add_argument(
        "--max-keywords",
        type=_positive_int,
        help="Maximum number of keywords to check (default from config)",
    )
    check_parser.add_argument(
        "--max-tlds",
        type=_positive_int,
        help="Maximum number of TLDs to check (default from config)",
    )
    check_parser.set_defaults(func=cmd_check)

    # 'tlds' command
    tlds_parser = subparsers.add_parser(
        "tlds",
        parents=[common],
        help="List enabled TLDs",
    )
    tlds_parser.add_argument(
        "--json",
        action="store_true",
        help="Print JSON instead of text",
    )
    tlds_parser.set_defaults(func=cmd_tlds)

    # 'refresh' command
    refresh_parser = subparsers.add_parser(
        "refresh",
        parents=[common],
        help="Refresh the TLD registry from the bootstrap source",
    )
    refresh_parser.set_defaults(func=cmd_refresh)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
