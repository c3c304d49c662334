"""Shared fixtures for the DazzleTreeStore test suite."""

import pytest

from dazzletreestore.aio import MockChildLoader
from dazzletreestore.testing import build_sample_tree, sample_loader_data


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: long-running tests excluded by run_tests.py")


@pytest.fixture
def sample_tree():
    return build_sample_tree()


@pytest.fixture
def mock_loader():
    return MockChildLoader(sample_loader_data())
