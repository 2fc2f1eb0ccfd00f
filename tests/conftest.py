"""
Shared fixtures for the barberslot test suite.
"""

import pytest

from helpers import at


@pytest.fixture
def monday():
    return at("2024-11-25 00:00")
