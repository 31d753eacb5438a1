# FILE: declfix/rewrite/scanner.py
"""
Pattern Scanner - candidate declaration finder.

Regex-based search for fragments shaped like `[async ]name(params) {`.
This is NOT a parser: it knows nothing about strings, comments or nesting.
Whether a candidate is a real problem is decided later by the classifier.

Known limitation: `params` is everything up to the FIRST `)`. Parameter
lists that themselves contain parentheses (e.g. `foo(a = bar()) {`) are
captured incorrectly, or not at all.

v1.0 (2026-10-02): Initial implementation.
"""

from __future__ import annotations

import logging
import re
from typing import List

from .models import CandidateMatch

logger = logging.getLogger(__name__)


# =============================================================================
# PATTERN
# =============================================================================

# group 1: optional `async ` modifier, group 2: name, group 3: raw params.
# Names are whole JS identifiers (`$` included), never the tail of one.
DECLARATION_PATTERN = re.compile(r"(?<![\w$])(async\s+)?([\w$]+)\s*\(([^)]*)\)\s*\{")

KNOWN_LIMITATIONS = (
    "parameter lists containing parentheses are captured only up to the first ')'",
)


# =============================================================================
# SCAN
# =============================================================================

def scan_candidates(text: str) -> List[CandidateMatch]:
    """
    Return every non-overlapping candidate in document order.

    Matching is a single forward pass: text consumed by one match is never
    looked at again, so the resulting spans are disjoint and ascending.
    """
    candidates: List[CandidateMatch] = []

    for m in DECLARATION_PATTERN.finditer(text):
        candidates.append(CandidateMatch(
            raw_text=m.group(0),
            start_offset=m.start(),
            end_offset=m.end(),
            is_async=m.group(1) is not None,
            name=m.group(2),
            params=m.group(3),
        ))

    logger.debug("[scanner] %d candidate(s) in %d chars", len(candidates), len(text))
    return candidates
