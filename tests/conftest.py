"""Shared test fixtures for hcserver tests."""

from pathlib import Path

import pytest


@pytest.fixture
def server_root(tmp_path: Path) -> Path:
    """Create an empty server directory.

    Structure:
        tmp_path/
            server/
    """
    root = tmp_path / "server"
    root.mkdir()
    return root
