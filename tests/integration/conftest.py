"""Conftest for integration tests - automatically mark them as integration tests."""

import pytest


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
