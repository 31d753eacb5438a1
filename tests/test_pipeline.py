# FILE: tests/test_pipeline.py
"""Tests for the per-file fix pipeline.

Covers the end-to-end guarantees: backup before mutation, no-op safety,
idempotence, failure handling at each I/O step.
"""

import os
import re
import sys
from pathlib import Path

# Add project root to path
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import pytest

from declfix.errors import BackupWriteError
from declfix.rewrite import pipeline
from declfix.rewrite.models import FixStatus
from declfix.rewrite.pipeline import describe_match, fix_file, fix_text, read_source

EXPECTED_EXAMPLE = (
    "function processData(x) {\n"
    "  return x;\n"
    "}\n"
    "const obj = { handler: function(y) { return y; } };"
)


def _backups(directory: Path):
    return sorted(p.name for p in directory.iterdir() if p.name.endswith(".bak"))


# =============================================================================
# Happy path
# =============================================================================

class TestFixFile:

    def test_example_scenario(self, js_file, example_source):
        report = fix_file(str(js_file))

        assert report.status is FixStatus.FIXED
        assert report.candidates == 2
        assert [m.name for m in report.accepted] == ["processData"]
        assert report.edits_applied == 1
        assert js_file.read_text(encoding="utf-8") == EXPECTED_EXAMPLE
        assert _backups(js_file.parent) == ["configManager.js.bak"]
        assert Path(report.backup.backup_path).read_text(encoding="utf-8") == example_source

    def test_backup_matches_pre_run_bytes(self, tmp_path):
        original = b"// \xc3\xa9t\xc3\xa9\r\nrun(a) {\r\n}\r\n"
        src = tmp_path / "a.js"
        src.write_bytes(original)

        report = fix_file(str(src))

        assert report.status is FixStatus.FIXED
        assert (tmp_path / "a.js.bak").read_bytes() == original
        assert src.read_bytes() == original.replace(b"run(a) {", b"function run(a) {")

    def test_backup_happens_before_mutation(self, js_file, example_source, monkeypatch):
        seen = {}
        real_write_backup = pipeline.write_backup

        def _spy(source, raw, **kwargs):
            seen["target_at_backup_time"] = Path(source).read_text(encoding="utf-8")
            return real_write_backup(source, raw, **kwargs)

        monkeypatch.setattr(pipeline, "write_backup", _spy)
        fix_file(str(js_file))

        assert seen["target_at_backup_time"] == example_source
        assert js_file.read_text(encoding="utf-8") == EXPECTED_EXAMPLE

    def test_progress_messages(self, js_file):
        messages = []
        fix_file(str(js_file), on_progress=messages.append)

        assert f"Found 1 potential issue(s) in {js_file}:" in messages
        assert "1. processData(x) at position 0" in messages
        found_at = messages.index("1. processData(x) at position 0")
        backup_at = next(i for i, m in enumerate(messages) if m.startswith("Created backup at"))
        assert found_at < backup_at
        assert messages[-1].startswith("Successfully fixed")

    def test_timestamped_backup(self, js_file):
        report = fix_file(str(js_file), timestamped_backup=True)

        assert re.search(r"configManager\.js\.\d{8}T\d{6}Z\.bak$", report.backup.backup_path)
        assert not (js_file.parent / "configManager.js.bak").exists()

    def test_latin1_source_round_trips(self, tmp_path):
        original = b"caf\xe9();\nfoo(x) {\n}\n"
        src = tmp_path / "legacy.js"
        src.write_bytes(original)

        report = fix_file(str(src))

        assert report.status is FixStatus.FIXED
        assert src.read_bytes() == b"caf\xe9();\nfunction foo(x) {\n}\n"
        assert (tmp_path / "legacy.js.bak").read_bytes() == original


# =============================================================================
# No-op / dry run / idempotence
# =============================================================================

class TestNoOp:

    def test_no_candidates_touches_nothing(self, tmp_path):
        src = tmp_path / "clean.js"
        src.write_text("const a = 1;\nmodule.exports = { a };\n", encoding="utf-8")
        before = src.stat()

        report = fix_file(str(src))

        assert report.status is FixStatus.NO_MATCHES
        assert report.ok
        assert src.read_text(encoding="utf-8") == "const a = 1;\nmodule.exports = { a };\n"
        assert src.stat().st_mtime_ns == before.st_mtime_ns
        assert _backups(tmp_path) == []

    def test_only_rejected_candidates_touches_nothing(self, tmp_path):
        text = "const o = {\n  run(a) {\n  },\n  stop(b) {\n  }\n};\n"
        src = tmp_path / "obj.js"
        src.write_text(text, encoding="utf-8")

        report = fix_file(str(src))

        assert report.status is FixStatus.NO_MATCHES
        assert report.candidates == 2
        assert src.read_text(encoding="utf-8") == text
        assert _backups(tmp_path) == []

    def test_dry_run_writes_nothing(self, js_file, example_source):
        report = fix_file(str(js_file), dry_run=True)

        assert report.status is FixStatus.DRY_RUN
        assert report.edits_applied == 1
        assert js_file.read_text(encoding="utf-8") == example_source
        assert _backups(js_file.parent) == []

    def test_second_run_finds_nothing(self, js_file, example_source):
        first = fix_file(str(js_file))
        second = fix_file(str(js_file))

        assert first.status is FixStatus.FIXED
        assert second.status is FixStatus.NO_MATCHES
        assert second.accepted == []
        assert js_file.read_text(encoding="utf-8") == EXPECTED_EXAMPLE
        # The no-op second run leaves the first backup alone
        assert (js_file.parent / "configManager.js.bak").read_text(encoding="utf-8") == example_source

    def test_fix_text_is_idempotent(self):
        text = "a() {\n}\nasync b(x) {\n}\nif (x) {\n}\n"
        once, hits = fix_text(text)
        twice, hits_again = fix_text(once)

        assert len(hits) == 2
        assert hits_again == []
        assert twice == once


# =============================================================================
# Failures
# =============================================================================

class TestFailures:

    def test_missing_file(self, tmp_path):
        report = fix_file(str(tmp_path / "nope.js"))

        assert report.status is FixStatus.FAILED
        assert not report.ok
        assert "File not found" in report.error

    def test_directory_is_not_a_source(self, tmp_path):
        report = fix_file(str(tmp_path))

        assert report.status is FixStatus.FAILED
        assert "Not a regular file" in report.error

    def test_read_failure_skips_backup(self, js_file, monkeypatch):
        def _deny(*args, **kwargs):
            raise PermissionError("denied")

        monkeypatch.setattr(pipeline, "open", _deny, raising=False)

        report = fix_file(str(js_file))

        assert report.status is FixStatus.FAILED
        assert "Error reading file" in report.error
        assert _backups(js_file.parent) == []

    def test_backup_failure_leaves_source_untouched(self, js_file, example_source, monkeypatch):
        def _fail(source, raw, **kwargs):
            raise BackupWriteError(source + ".bak", OSError("disk full"))

        monkeypatch.setattr(pipeline, "write_backup", _fail)

        report = fix_file(str(js_file))

        assert report.status is FixStatus.FAILED
        assert "disk full" in report.error
        assert js_file.read_text(encoding="utf-8") == example_source

    def test_target_failure_after_backup_is_recoverable(self, js_file, example_source, monkeypatch):
        def _fail(path, data):
            raise OSError("read-only file system")

        monkeypatch.setattr(pipeline, "atomic_write_bytes", _fail)

        report = fix_file(str(js_file))

        assert report.status is FixStatus.FAILED
        assert "recoverable from" in report.error
        assert js_file.read_text(encoding="utf-8") == example_source
        assert (js_file.parent / "configManager.js.bak").read_text(encoding="utf-8") == example_source


# =============================================================================
# Helpers
# =============================================================================

class TestHelpers:

    def test_describe_match(self):
        from declfix.rewrite.scanner import scan_candidates

        text = "x;\nasync load(id, opts) {"
        (m,) = scan_candidates(text)
        assert describe_match(3, m) == "3. async load(id, opts) at position 3"

    def test_read_source_utf8(self, tmp_path):
        p = tmp_path / "u.js"
        p.write_bytes("é".encode("utf-8"))

        raw, text, encoding = read_source(str(p))

        assert raw == b"\xc3\xa9"
        assert text == "é"
        assert encoding == "utf-8"

    @pytest.mark.skipif(os.name == "nt", reason="symlinks")
    def test_symlink_resolves_to_target(self, tmp_path, example_source):
        real = tmp_path / "real"
        real.mkdir()
        target = real / "t.js"
        target.write_text(example_source, encoding="utf-8")
        link = tmp_path / "link.js"
        link.symlink_to(target)
        messages = []

        report = fix_file(str(link), on_progress=messages.append)

        assert report.status is FixStatus.FIXED
        assert link.is_symlink()
        assert target.read_text(encoding="utf-8") == EXPECTED_EXAMPLE
        # Backup follows the input path, not the resolved target
        assert report.backup.backup_path == str(tmp_path / "link.js.bak")
        assert (tmp_path / "link.js.bak").read_text(encoding="utf-8") == example_source
        assert not (real / "t.js.bak").exists()
        assert f"Created backup at {tmp_path / 'link.js.bak'}" in messages

    def test_report_to_dict(self, js_file):
        data = fix_file(str(js_file), dry_run=True).to_dict()

        assert data["status"] == "dry_run"
        assert data["candidates"] == 2
        assert [m["name"] for m in data["accepted"]] == ["processData"]
        assert data["accepted"][0]["start_offset"] == 0
        assert data["backup_path"] is None
