# FILE: declfix/rewrite/pipeline.py
"""
Declaration Fix Pipeline - one file, start to finish.

    read -> scan -> classify -> report -> backup -> rewrite -> atomic write

Ordering guarantees:
    - Nothing is written when no candidate is accepted (no backup either).
    - The backup is written, and must succeed, BEFORE the source is replaced.
    - The source is replaced atomically; it is never partially written.

Errors are raised as DeclfixError subclasses by the steps and converted into
a FAILED FixReport here. Each file is independent: processing several files
is just calling `fix_file` for each.

v1.0 (2026-10-02): Initial implementation.
v1.1 (2026-10-09): Dry-run mode, timestamped backups, Latin-1 fallback.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, List, Optional, Tuple

from declfix.errors import (
    DeclfixError,
    SourceNotFoundError,
    SourceReadError,
    TargetWriteError,
)

from .backup import DEFAULT_BACKUP_SUFFIX, atomic_write_bytes, write_backup
from .classifier import accepted, classify_all
from .models import CandidateMatch, FixReport, FixStatus
from .rewriter import rewrite
from .scanner import scan_candidates

logger = logging.getLogger(__name__)

ProgressFn = Callable[[str], None]


# =============================================================================
# READ
# =============================================================================

def resolve_source(path: str) -> str:
    """Absolute, symlink-resolved path of an existing regular file."""
    try:
        resolved = os.path.realpath(path)
    except (OSError, ValueError) as e:
        raise SourceNotFoundError(path, f"Cannot resolve path {path}: {e}") from e

    if not os.path.exists(resolved):
        raise SourceNotFoundError(path)
    if not os.path.isfile(resolved):
        raise SourceNotFoundError(path, f"Not a regular file: {path}")
    return resolved


def read_source(path: str) -> Tuple[bytes, str, str]:
    """
    Read raw bytes and decode them.

    Returns (raw_bytes, text, encoding). Files that are not valid UTF-8 are
    decoded as Latin-1, which maps every byte 1:1 and round-trips exactly.
    """
    try:
        with open(path, "rb") as f:
            raw = f.read()
    except OSError as e:
        raise SourceReadError(path, e) from e

    try:
        return raw, raw.decode("utf-8"), "utf-8"
    except UnicodeDecodeError:
        logger.info("[pipeline] %s is not valid UTF-8, decoding as latin-1", path)
        return raw, raw.decode("latin-1"), "latin-1"


# =============================================================================
# REPORTING
# =============================================================================

def describe_match(index: int, match: CandidateMatch) -> str:
    """`1. async name(params) at position 42` (1-based index)."""
    prefix = "async " if match.is_async else ""
    return f"{index}. {prefix}{match.name}({match.params}) at position {match.start_offset}"


def format_matches(path: str, matches: List[CandidateMatch]) -> List[str]:
    lines = [f"Found {len(matches)} potential issue(s) in {path}:"]
    lines.extend(describe_match(i, m) for i, m in enumerate(matches, start=1))
    return lines


# =============================================================================
# PIPELINE
# =============================================================================

def fix_text(text: str) -> Tuple[str, List[CandidateMatch]]:
    """Pure in-memory variant: (rewritten_text, accepted_matches)."""
    classifications = classify_all(text, scan_candidates(text))
    result = rewrite(text, classifications)
    return result.text, [c.match for c in accepted(classifications)]


def fix_file(
    path: str,
    dry_run: bool = False,
    backup_suffix: str = DEFAULT_BACKUP_SUFFIX,
    timestamped_backup: bool = False,
    on_progress: Optional[ProgressFn] = None,
) -> FixReport:
    """
    Run the full pipeline over one file and report the outcome.

    Never raises DeclfixError; failures come back as FixStatus.FAILED with
    the message in `error`.
    """
    _emit = on_progress or (lambda msg: None)
    report = FixReport(path=path, status=FixStatus.FAILED)

    try:
        source = resolve_source(path)
        raw, text, encoding = read_source(source)
        _emit(f"Successfully read {path}")

        candidates = scan_candidates(text)
        classifications = classify_all(text, candidates)
        hits = accepted(classifications)
        report.candidates = len(candidates)
        report.accepted = [c.match for c in hits]

        if not hits:
            report.status = FixStatus.NO_MATCHES
            _emit(f"No problematic declarations found in {path}.")
            return report

        for line in format_matches(path, report.accepted):
            _emit(line)

        result = rewrite(text, classifications)

        if dry_run:
            report.status = FixStatus.DRY_RUN
            report.edits_applied = result.edits_applied
            _emit(f"Dry run: {result.edits_applied} edit(s) not written to {path}")
            return report

        # The backup sits next to the path the caller named, even when that
        # path is a symlink; the rewrite goes to the resolved target.
        report.backup = write_backup(
            os.path.abspath(path), raw, suffix=backup_suffix, timestamped=timestamped_backup
        )
        _emit(f"Created backup at {report.backup.backup_path}")

        try:
            atomic_write_bytes(source, result.text.encode(encoding))
        except OSError as e:
            raise TargetWriteError(source, e, report.backup.backup_path) from e

        report.edits_applied = result.edits_applied
        report.status = FixStatus.FIXED
        logger.info("[pipeline] %s: %d edit(s) applied", source, result.edits_applied)
        _emit(f"Successfully fixed {path} ({result.edits_applied} edit(s))")
        return report

    except DeclfixError as e:
        logger.error("[pipeline] %s", e)
        report.status = FixStatus.FAILED
        report.error = str(e)
        return report
