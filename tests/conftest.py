"""
Test configuration: repo root on sys.path and a throwaway SQLite store per test.
"""

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from repository import Store  # noqa: E402


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{(tmp_path / 'shiftlog.db').as_posix()}"


@pytest.fixture
def store(db_url):
    with Store(db_url) as s:
        yield s
