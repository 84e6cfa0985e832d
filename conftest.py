"""
Pytest configuration for the littlefs-upload test suite.

Tests marked `integration` need a real mklittlefs on PATH and only run with
the --full flag.
"""

import pytest


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--full",
        action="store_true",
        default=False,
        help="Run full test suite including integration tests (slow)",
    )


def pytest_configure(config):
    """Register markers."""
    config.addinivalue_line(
        "markers", "integration: needs external tools, run with --full"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --full is given."""
    if config.getoption("--full"):
        return

    skip_integration = pytest.mark.skip(reason="integration test, use --full to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)
