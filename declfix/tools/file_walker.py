# FILE: declfix/tools/file_walker.py
"""
Directory walker and whole-tree source scans.

`walk_tree` is the single traversal primitive: it yields (path, is_dir)
pairs, skipping ignored directory names and files whose extension is not
listed. The scans below are line-anchored regex checks, not parsers:

- module syntax: files using ES-module `import ... from` / `export` syntax
  (a problem in a CommonJS project),
- class-like structures: files with bare method-like definitions at line
  start AND `this.` usage, i.e. class bodies that lost their class wrapper.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Sequence, Tuple

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_EXTENSIONS: Tuple[str, ...] = (".js",)
DEFAULT_IGNORE_DIRS: Tuple[str, ...] = ("node_modules", ".git", "logs")

IMPORT_RE = re.compile(r"^\s*import\s+.*?from\s+['\"][^'\"]+['\"]", re.MULTILINE)
EXPORT_RE = re.compile(
    r"^\s*export\s+(?:default\s+)?(?:const|let|var|function|class|\{)", re.MULTILINE
)

METHOD_LINE_RE = re.compile(r"^\s*(async\s+)?([\w$]+)\s*\(([^)]*)\)\s*\{", re.MULTILINE)
THIS_USAGE_RE = re.compile(r"\bthis\.\w+")


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass(frozen=True)
class ModuleSyntax:
    has_import: bool
    has_export: bool

    @property
    def any(self) -> bool:
        return self.has_import or self.has_export


@dataclass(frozen=True)
class ModuleSyntaxIssue:
    path: str
    has_import: bool
    has_export: bool


@dataclass(frozen=True)
class ClassLikeIssue:
    path: str
    method_count: int
    this_usages: int


# =============================================================================
# WALK
# =============================================================================

def walk_tree(
    root: str,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    ignore_dirs: Iterable[str] = DEFAULT_IGNORE_DIRS,
) -> Iterator[Tuple[str, bool]]:
    """
    Yield (path, is_dir) for every non-ignored directory and every file with
    a listed extension under `root`, depth-first, entries sorted by name.
    """
    ignored = set(ignore_dirs)
    exts = tuple(extensions)

    try:
        with os.scandir(root) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        logger.warning("[walker] Cannot list %s: %s", root, e)
        return

    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            if entry.name in ignored:
                continue
            yield entry.path, True
            yield from walk_tree(entry.path, exts, ignored)
        elif entry.is_file() and os.path.splitext(entry.name)[1] in exts:
            yield entry.path, False


def iter_files(root: str, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> Iterator[str]:
    for path, is_dir in walk_tree(root, extensions):
        if not is_dir:
            yield path


def iter_fix_targets(
    paths: Iterable[str],
    recursive: bool = False,
    extensions: Sequence[str] = DEFAULT_EXTENSIONS,
) -> Iterator[str]:
    """
    Expand CLI arguments into files to fix.

    Files (and anything that doesn't exist, so the pipeline can report it)
    pass through unchanged; directories are walked only when `recursive`.
    """
    for p in paths:
        if os.path.isdir(p):
            if recursive:
                yield from iter_files(p, extensions)
            else:
                logger.warning("[walker] Skipping directory %s (use --recursive)", p)
        else:
            yield p


# =============================================================================
# SCANS
# =============================================================================

def _read(path: str) -> str:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def detect_module_syntax(text: str) -> ModuleSyntax:
    return ModuleSyntax(
        has_import=bool(IMPORT_RE.search(text)),
        has_export=bool(EXPORT_RE.search(text)),
    )


def scan_module_syntax(root: str, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> List[ModuleSyntaxIssue]:
    """Files under `root` that use ES-module import/export syntax."""
    issues: List[ModuleSyntaxIssue] = []
    for path in iter_files(root, extensions):
        try:
            syntax = detect_module_syntax(_read(path))
        except OSError as e:
            logger.error("[walker] Error scanning file %s: %s", path, e)
            continue
        if syntax.any:
            issues.append(ModuleSyntaxIssue(path, syntax.has_import, syntax.has_export))
    return issues


def scan_class_like(root: str, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> List[ClassLikeIssue]:
    """Files under `root` with line-start method definitions that also use `this.`."""
    issues: List[ClassLikeIssue] = []
    for path in iter_files(root, extensions):
        try:
            text = _read(path)
        except OSError as e:
            logger.error("[walker] Error scanning file %s: %s", path, e)
            continue
        methods = len(METHOD_LINE_RE.findall(text))
        this_usages = len(THIS_USAGE_RE.findall(text))
        if methods and this_usages:
            issues.append(ClassLikeIssue(path, methods, this_usages))
    return issues
