# FILE: declfix/rewrite/models.py
"""
Data models for the declaration rewrite pipeline.

Every object here lives for the processing of one file only. Offsets always
refer to the ORIGINAL buffer, never to the rewritten one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# =============================================================================
# SCAN / CLASSIFY
# =============================================================================

@dataclass(frozen=True)
class CandidateMatch:
    """A span matching `[async ]name(params) {` before any context check."""
    raw_text: str
    start_offset: int
    end_offset: int
    is_async: bool
    name: str
    params: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "raw_text": self.raw_text,
            "start_offset": self.start_offset,
            "end_offset": self.end_offset,
            "is_async": self.is_async,
            "name": self.name,
            "params": self.params,
        }


class Verdict(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"


@dataclass(frozen=True)
class Classification:
    """Verdict for one candidate plus the context that produced it."""
    match: CandidateMatch
    verdict: Verdict
    preceding_char: Optional[str] = None  # None = top of file
    reason: str = ""

    @property
    def accepted(self) -> bool:
        return self.verdict is Verdict.ACCEPT


# =============================================================================
# REWRITE
# =============================================================================

@dataclass(frozen=True)
class Edit:
    """Replace original span [start, end) with `replacement`."""
    start: int
    end: int
    replacement: str

    @property
    def length_delta(self) -> int:
        return len(self.replacement) - (self.end - self.start)


@dataclass
class RewriteResult:
    text: str
    edits_applied: int = 0
    # Effective start of each edit in the rewritten buffer (original + drift)
    effective_offsets: List[int] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.edits_applied > 0


# =============================================================================
# BACKUP / REPORT
# =============================================================================

@dataclass(frozen=True)
class BackupRecord:
    source_path: str
    backup_path: str
    size_bytes: int
    created_at: str  # ISO-8601 UTC


class FixStatus(str, Enum):
    FIXED = "fixed"
    NO_MATCHES = "no_matches"
    DRY_RUN = "dry_run"
    FAILED = "failed"


@dataclass
class FixReport:
    """Outcome of running the pipeline over one file."""
    path: str
    status: FixStatus
    candidates: int = 0
    accepted: List[CandidateMatch] = field(default_factory=list)
    edits_applied: int = 0
    backup: Optional[BackupRecord] = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status is not FixStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "status": self.status.value,
            "candidates": self.candidates,
            "accepted": [m.to_dict() for m in self.accepted],
            "edits_applied": self.edits_applied,
            "backup_path": self.backup.backup_path if self.backup else None,
            "error": self.error,
        }
