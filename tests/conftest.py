"""Shared fixtures for gql-pyclient tests."""

from pathlib import Path

import pytest

from gql_pyclient.core import SchemaParser, TypeTracker, reset_tracker

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(scope="session")
def schema_path() -> Path:
    """Path to the shop SDL used across the test suite."""
    return FIXTURES / "shop.graphqls"


@pytest.fixture(scope="session")
def bundle(schema_path):
    """Type bundle parsed from the shop SDL."""
    return SchemaParser(str(schema_path)).parse_all()


@pytest.fixture
def tracker():
    """A private tracker that is already recording."""
    tracker = TypeTracker()
    tracker.start()
    return tracker


@pytest.fixture(autouse=True)
def clean_default_tracker():
    """Leave the process-wide tracker off and empty around every test."""
    reset_tracker()
    yield
    reset_tracker()
