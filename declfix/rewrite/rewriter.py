# FILE: declfix/rewrite/rewriter.py
"""
Offset Rewriter - turns accepted classifications into the canonical form.

Edits are kept as an explicit ascending list and applied in ONE linear copy
pass over the original buffer: copy the untouched slice, splice the
replacement, move on, copy the remainder. No in-place string surgery.

Offset drift:
    A replacement gains the `function ` keyword and loses any extra
    whitespace the original had, so everything after it shifts. The running
    `offset_delta` is the sum of (len(replacement) - len(original)) for all
    edits applied so far; an edit whose original start is S lands at
    S + offset_delta in the output.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

from .models import CandidateMatch, Classification, Edit, RewriteResult

logger = logging.getLogger(__name__)


def canonical_form(match: CandidateMatch) -> str:
    """`[async ]function name(params) {`"""
    prefix = "async " if match.is_async else ""
    return f"{prefix}function {match.name}({match.params}) {{"


def build_edits(classifications: Iterable[Classification]) -> List[Edit]:
    """
    One edit per ACCEPT classification, in ascending original order.

    Raises ValueError if the input is out of order or overlaps; applying such
    edits would corrupt the buffer.
    """
    edits: List[Edit] = []
    last_end = -1

    for c in classifications:
        if not c.accepted:
            continue
        m = c.match
        if m.start_offset < last_end:
            raise ValueError(
                f"edit at {m.start_offset} overlaps or precedes previous edit ending at {last_end}"
            )
        edits.append(Edit(start=m.start_offset, end=m.end_offset, replacement=canonical_form(m)))
        last_end = m.end_offset

    return edits


def apply_edits(text: str, edits: Sequence[Edit]) -> RewriteResult:
    """Apply ascending, non-overlapping edits in a single left-to-right pass."""
    if not edits:
        return RewriteResult(text=text, edits_applied=0)

    parts: List[str] = []
    effective: List[int] = []
    cursor = 0
    offset_delta = 0

    for edit in edits:
        if edit.start < cursor:
            raise ValueError(f"edit at {edit.start} is out of order (cursor at {cursor})")

        parts.append(text[cursor:edit.start])
        effective.append(edit.start + offset_delta)
        parts.append(edit.replacement)

        logger.debug(
            "[rewriter] edit %d..%d -> output %d (delta %+d)",
            edit.start, edit.end, edit.start + offset_delta, offset_delta,
        )
        offset_delta += edit.length_delta
        cursor = edit.end

    parts.append(text[cursor:])
    new_text = "".join(parts)

    if len(new_text) != len(text) + offset_delta:
        raise ValueError(
            f"rewritten length {len(new_text)} does not match "
            f"{len(text)} + drift {offset_delta}"
        )

    return RewriteResult(text=new_text, edits_applied=len(edits), effective_offsets=effective)


def rewrite(text: str, classifications: Iterable[Classification]) -> RewriteResult:
    return apply_edits(text, build_edits(classifications))
