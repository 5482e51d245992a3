import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from aihistory.config import ParserSettings, ResolverSettings
from aihistory.sources import default_registry


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep developer AIHISTORY_* variables out of every test."""
    for key in list(os.environ):
        if key.startswith("AIHISTORY_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def parser_settings() -> ParserSettings:
    return ParserSettings()


@pytest.fixture
def registry(parser_settings):
    return default_registry(parser_settings)


@pytest.fixture
def resolver_settings() -> ResolverSettings:
    # Small ceiling so size-limit paths are cheap to exercise
    return ResolverSettings(max_bytes=1024, connect_attempts=2)
