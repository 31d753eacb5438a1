# FILE: declfix/__init__.py
"""declfix: restores missing `function` keywords in loosely written JS sources."""

__version__ = "1.1.0"
