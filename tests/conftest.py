"""
Shared fixtures for logisentry tests.
"""
import pytest

from logisentry.core.domain.security import AccountProfile
from tests.helpers import AS_OF


@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def accounts():
    return [
        AccountProfile(id="A", role="analyst", name="Avery", email="avery@example.com"),
        AccountProfile(id="B", role="operator", name="Jordan", email="jordan@example.com"),
        AccountProfile(id="C", role="admin", name="Riley", email="riley@example.com"),
    ]
