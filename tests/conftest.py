"""
Shared fixtures.
"""

import pytest

from seamscan.core.tree import TreeBuilder


@pytest.fixture
def builder():
    return TreeBuilder("src/App/Service.cs")


@pytest.fixture
def snapshot_dir(tmp_path):
    directory = tmp_path / "snapshots"
    directory.mkdir()
    return directory
