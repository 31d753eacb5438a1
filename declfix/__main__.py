# FILE: declfix/__main__.py
from declfix.cli import run

run()
