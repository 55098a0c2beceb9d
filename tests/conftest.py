"""Pytest configuration and fixtures."""

import logging

import pytest


@pytest.fixture
def restore_root_logger():
    """Restore root logger handlers and level after a logging test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
