"""
Shared fixtures for the migrator test-suite.
"""

import pytest

from models import UnknownAction
from tests.fakes import FakeDestinationProvider


@pytest.fixture
def events():
    """Ordered log of provider calls, shared by source and destination fakes."""
    return []


@pytest.fixture
def destination(events):
    return FakeDestinationProvider(events=events)


@pytest.fixture
def unknown_action():
    return UnknownAction(kind="parameter")
