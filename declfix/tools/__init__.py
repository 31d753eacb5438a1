# FILE: declfix/tools/__init__.py
"""Environment tooling around the rewrite engine: tree scans, KV seeding, smoke checks."""
