import os

# Settings() requires these at import time. They must be set before any
# resilience_hub module is imported by the test files.
os.environ.setdefault("POSTGRES_USER", "test")
os.environ.setdefault("POSTGRES_PASSWORD", "test")
os.environ.setdefault("POSTGRES_DB", "resiliencehub_test")
os.environ.setdefault("DB_HOST", "localhost")
os.environ.setdefault("DB_PORT", "5432")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

import pytest

from tests.mocks import FIXED_NOW, mock_user
from resilience_hub.services.active_user import InMemorySelectionStore, can_view


# Fixtures defined here are automatically available to all test files in the backend/tests/ directory.

@pytest.fixture
def now():
    """Wednesday 2026-10-14 12:00 UTC, passed to every time-dependent function."""
    return FIXED_NOW


# USER FIXTURES
# id 10: therapist, id 20: admin, id 30/31: clients of therapist 10,
# id 40: client of another therapist.

@pytest.fixture
def directory() -> dict:
    """In-memory user table keyed by id."""
    users = [
        mock_user(user_id=10, role="therapist"),
        mock_user(user_id=20, role="admin"),
        mock_user(user_id=30, role="client", therapist_id=10),
        mock_user(user_id=31, role="client", therapist_id=10),
        mock_user(user_id=40, role="client", therapist_id=99),
    ]
    return {user.id: user for user in users}


@pytest.fixture
def grant(directory):
    """Grant check backed by the in-memory directory instead of the database."""
    def check(viewer, client_id):
        return can_view(viewer, directory.get(client_id))
    return check


@pytest.fixture
def store() -> InMemorySelectionStore:
    return InMemorySelectionStore()
