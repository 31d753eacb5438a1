# FILE: declfix/cli.py
"""
declfix command line.

Usage:
    python -m declfix fix path/to/file.js [more.js ...] [--dry-run]
    python -m declfix fix services/ --recursive --timestamped-backup
    python -m declfix scan-modules ROOT
    python -m declfix scan-classes ROOT
    python -m declfix seed-kv
    python -m declfix smoke

Exit codes: 0 success (including "nothing to fix"), 1 any failure,
2 usage error (argparse).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from declfix import __version__
from declfix.config import Settings, load_settings
from declfix.errors import KVStoreError
from declfix.rewrite.pipeline import fix_file
from declfix.tools.file_walker import iter_fix_targets, scan_class_like, scan_module_syntax
from declfix.tools.kv_store import ConsulKVClient, seed_config
from declfix.tools.smoke import run_smoke

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def _print_err(msg: str) -> None:
    print(msg, file=sys.stderr)


# =============================================================================
# COMMANDS
# =============================================================================

def cmd_fix(args: argparse.Namespace, settings: Settings) -> int:
    suffix = args.backup_suffix or settings.backup_suffix
    timestamped = args.timestamped_backup or settings.timestamped_backups

    if not timestamped:
        logger.info("[cli] Single-slot backups: a re-run overwrites %s files", suffix)

    failures = 0
    processed = 0
    for path in iter_fix_targets(args.paths, recursive=args.recursive):
        processed += 1
        report = fix_file(
            path,
            dry_run=args.dry_run,
            backup_suffix=suffix,
            timestamped_backup=timestamped,
            on_progress=print,
        )
        if not report.ok:
            failures += 1
            _print_err(report.error)

    if processed == 0:
        _print_err("No files to process.")
        return 1
    if failures:
        _print_err(f"{failures} of {processed} file(s) failed.")
        return 1

    if not args.dry_run:
        print("Done! Restart the application to check that the issue is resolved.")
    return 0


def cmd_scan_modules(args: argparse.Namespace, settings: Settings) -> int:
    if not os.path.isdir(args.root):
        _print_err(f"Error: Directory not found: {args.root}")
        return 1

    print("Scanning project for ES module syntax...")
    issues = scan_module_syntax(args.root)
    if not issues:
        print("No ES module syntax found!")
        return 0

    print(f"Found {len(issues)} file(s) with ES module syntax:")
    for issue in issues:
        print(f"\nFile: {os.path.relpath(issue.path, args.root)}")
        print(f"  - Has import statements: {'Yes' if issue.has_import else 'No'}")
        print(f"  - Has export statements: {'Yes' if issue.has_export else 'No'}")
    return 0


def cmd_scan_classes(args: argparse.Namespace, settings: Settings) -> int:
    if not os.path.isdir(args.root):
        _print_err(f"Error: Directory not found: {args.root}")
        return 1

    print("Scanning project for potential class-like structure issues...")
    issues = scan_class_like(args.root)
    if not issues:
        print("No potential class-like structure issues found!")
        return 0

    print(f"Found {len(issues)} file(s) with potential class-like structure issues:")
    for issue in issues:
        print(
            f"  {os.path.relpath(issue.path, args.root)}: "
            f"{issue.method_count} method-like definition(s), {issue.this_usages} 'this.' usage(s)"
        )
    return 0


async def _seed(settings: Settings, prefix: str) -> List[str]:
    async with ConsulKVClient(settings.consul_base_url, timeout=settings.http_timeout_s) as client:
        return await seed_config(client, prefix, on_progress=print)


def cmd_seed_kv(args: argparse.Namespace, settings: Settings) -> int:
    prefix = args.prefix or settings.consul_prefix
    print("=== Initializing KV configuration ===")
    try:
        keys = asyncio.run(_seed(settings, prefix))
    except KVStoreError as e:
        logger.error("[cli] KV seeding failed: %s", e)
        _print_err(f"Initialization failed: {e}")
        return 1
    print(f"=== Initialization completed: {len(keys)} key(s) written ===")
    return 0


def cmd_smoke(args: argparse.Namespace, settings: Settings) -> int:
    print("=== Development Environment Test ===\n")
    report = asyncio.run(run_smoke(settings))
    print(report.format())
    return 0 if report.all_passed else 1


# =============================================================================
# ENTRY POINT
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="declfix",
        description="Restore missing `function` keywords in JavaScript sources",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Logging level (default: DECLFIX_LOG_LEVEL or WARNING)")
    parser.add_argument("--env-file", default=None, help="Load environment variables from this file")

    sub = parser.add_subparsers(dest="command", required=True)

    p_fix = sub.add_parser("fix", help="Rewrite bare declarations into function declarations")
    p_fix.add_argument("paths", nargs="+", help="Files (or directories with --recursive)")
    p_fix.add_argument("--dry-run", action="store_true", help="Report only, write nothing")
    p_fix.add_argument("--recursive", action="store_true", help="Walk directories for .js files")
    p_fix.add_argument(
        "--timestamped-backup",
        action="store_true",
        help="Keep every backup as <file>.<UTC timestamp>.bak instead of one .bak slot",
    )
    p_fix.add_argument("--backup-suffix", default=None, help="Backup suffix (default: .bak)")
    p_fix.set_defaults(func=cmd_fix)

    p_mod = sub.add_parser("scan-modules", help="Find files using ES module syntax")
    p_mod.add_argument("root")
    p_mod.set_defaults(func=cmd_scan_modules)

    p_cls = sub.add_parser("scan-classes", help="Find class bodies that lost their class wrapper")
    p_cls.add_argument("root")
    p_cls.set_defaults(func=cmd_scan_classes)

    p_kv = sub.add_parser("seed-kv", help="Seed reverse-proxy configuration into the KV store")
    p_kv.add_argument("--prefix", default=None, help="Key prefix (default: CONSUL_PREFIX or traefik)")
    p_kv.set_defaults(func=cmd_seed_kv)

    p_smoke = sub.add_parser("smoke", help="Run environment health checks")
    p_smoke.set_defaults(func=cmd_smoke)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Precedence: process environment, then --env-file, then the nearest .env
    # (load_dotenv never overrides a variable that is already set)
    if args.env_file:
        load_dotenv(args.env_file)
    load_dotenv(find_dotenv(usecwd=True))
    settings = load_settings()

    level = (args.log_level or settings.log_level).upper()
    logging.basicConfig(level=getattr(logging, level, logging.WARNING), format=LOG_FORMAT)

    return args.func(args, settings)


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
