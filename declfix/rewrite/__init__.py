# FILE: declfix/rewrite/__init__.py
"""Declaration rewrite engine.

Contains:
- scanner.py: candidate search (`[async ]name(params) {`)
- classifier.py: preceding-character heuristic (Accept/Reject)
- rewriter.py: ordered edits applied in one pass with offset drift
- backup.py: backup-before-mutation and atomic writes
- pipeline.py: per-file orchestration and reporting
"""

from declfix.rewrite.backup import atomic_write_bytes, backup_path_for, write_backup
from declfix.rewrite.classifier import accepted, classify, classify_all
from declfix.rewrite.models import (
    BackupRecord,
    CandidateMatch,
    Classification,
    Edit,
    FixReport,
    FixStatus,
    RewriteResult,
    Verdict,
)
from declfix.rewrite.pipeline import fix_file, fix_text
from declfix.rewrite.rewriter import apply_edits, build_edits, canonical_form, rewrite
from declfix.rewrite.scanner import scan_candidates

__all__ = [
    "BackupRecord",
    "CandidateMatch",
    "Classification",
    "Edit",
    "FixReport",
    "FixStatus",
    "RewriteResult",
    "Verdict",
    "accepted",
    "apply_edits",
    "atomic_write_bytes",
    "backup_path_for",
    "build_edits",
    "canonical_form",
    "classify",
    "classify_all",
    "fix_file",
    "fix_text",
    "rewrite",
    "scan_candidates",
    "write_backup",
]
