"""Pytest configuration for openwork runtime tests.

Ensures the project root is in sys.path so imports work correctly, and
points OPENWORK_HOME at a temporary directory for every test.
"""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture(autouse=True)
def openwork_home(tmp_path, monkeypatch):
    home = tmp_path / "openwork-home"
    monkeypatch.setenv("OPENWORK_HOME", str(home))
    return home


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "workspace"
    root.mkdir()
    return root
