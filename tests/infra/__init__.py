"""Shared test infrastructure: builders and hypothesis strategies."""

from pathlib import Path

TESTS_ROOT = Path(__file__).parent.parent
