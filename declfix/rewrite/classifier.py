# FILE: declfix/rewrite/classifier.py
"""
Context Classifier - decides which candidates are real problems.

Classification heuristic (single-character lookback):
    Look at the nearest non-whitespace character BEFORE the candidate in the
    original buffer.

    '{'  -> first member of an object/class body or nested block  -> REJECT
    '='  -> right-hand side of an assignment                      -> REJECT
    ':'  -> object property value                                 -> REJECT
    ','  -> list element / argument / later object member         -> REJECT
    anything else, or top of file                                 -> ACCEPT

An accepted candidate is assumed to be a standalone declaration that lost
its `function` keyword. This is a heuristic, not a proof: a method that
follows another method in a class body (`} foo() {`) is accepted too.

Two extra guards only ever turn ACCEPT into REJECT:
    - the preceding word is `function` (or a class-member modifier), i.e.
      the fragment is already canonical, which keeps the rewrite idempotent;
    - the captured name is a keyword that takes parentheses (`if (x) {`).
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional

from .models import CandidateMatch, Classification, Verdict

logger = logging.getLogger(__name__)


# =============================================================================
# HEURISTIC CONSTANTS
# =============================================================================

REJECT_PRECEDING_CHARS = frozenset({"{", "=", ":", ","})

# Keywords that are legitimately followed by `(...) {`
RESERVED_NAMES = frozenset({
    "if", "for", "while", "switch", "catch", "with", "function",
    "return", "typeof", "await", "yield", "new", "delete", "void",
    "in", "of", "instanceof", "super",
})

# A candidate directly after one of these words is not missing anything
_QUALIFIED_PREFIX_RE = re.compile(r"(?:^|[^\w$])(function|static|get|set)$")


# =============================================================================
# CLASSIFY
# =============================================================================

def preceding_significant_char(text: str, offset: int) -> Optional[str]:
    """Nearest non-whitespace character before `offset`, or None at top of file."""
    before = text[:offset].rstrip()
    return before[-1] if before else None


def classify(text: str, match: CandidateMatch) -> Classification:
    """Classify one candidate against the original buffer."""
    prev = preceding_significant_char(text, match.start_offset)

    if prev in REJECT_PRECEDING_CHARS:
        return Classification(match, Verdict.REJECT, prev, f"preceded by '{prev}'")

    if match.name in RESERVED_NAMES:
        return Classification(match, Verdict.REJECT, prev, f"'{match.name}' is a keyword")

    qualified = _QUALIFIED_PREFIX_RE.search(text[:match.start_offset].rstrip())
    if qualified:
        return Classification(
            match, Verdict.REJECT, prev, f"already qualified by '{qualified.group(1)}'"
        )

    return Classification(match, Verdict.ACCEPT, prev, "bare declaration")


def classify_all(text: str, matches: Iterable[CandidateMatch]) -> List[Classification]:
    results = [classify(text, m) for m in matches]
    logger.debug(
        "[classifier] %d/%d candidate(s) accepted",
        sum(1 for c in results if c.accepted), len(results),
    )
    return results


def accepted(classifications: Iterable[Classification]) -> List[Classification]:
    return [c for c in classifications if c.accepted]
