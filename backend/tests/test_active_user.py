from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from resilience_hub.api.dependencies import get_active_user
from resilience_hub.services.active_user import (
    VIEWER_ROLES,
    InMemorySelectionStore,
    UserColumnSelectionStore,
    can_view,
    clear_viewing_client,
    resolve_active_user,
    select_viewing_client,
)
from tests.mocks import mock_user

# Users come from the `directory` fixture in conftest.py:
# 10 therapist, 20 admin, 30/31 clients of therapist 10, 40 client of someone else.


class TestCanView:
    """Tests for the can_view grant check."""

    def test_therapist_sees_own_clients_only(self, directory):
        therapist = directory[10]
        assert can_view(therapist, directory[30]) is True
        assert can_view(therapist, directory[40]) is False

    def test_admin_sees_any_client(self, directory):
        admin = directory[20]
        assert can_view(admin, directory[30]) is True
        assert can_view(admin, directory[40]) is True

    def test_staff_accounts_are_not_viewable(self, directory):
        assert can_view(directory[20], directory[10]) is False

    def test_missing_client(self, directory):
        assert can_view(directory[20], None) is False

    def test_clients_see_nobody(self, directory):
        assert can_view(directory[30], directory[31]) is False

    def test_viewer_roles(self):
        assert VIEWER_ROLES == {"therapist", "admin"}


class TestResolveActiveUser:
    """Tests for resolve_active_user."""

    def test_anonymous_resolves_to_none(self, store, grant):
        assert resolve_active_user(None, None, store, grant) is None

    def test_client_sees_own_data(self, directory, store, grant):
        active = resolve_active_user(directory[30], None, store, grant)

        assert active.active_user_id == 30
        assert active.is_viewing_client_data is False
        assert active.api_path == "/api/users/30"
        assert active.role == "client"

    def test_client_stale_selection_is_cleared(self, directory, grant):
        client = directory[30]
        store  = InMemorySelectionStore({30: 42})

        active = resolve_active_user(client, None, store, grant)

        assert active.active_user_id == 30
        assert store.get(client) is None

    def test_client_ignores_context(self, directory, store, grant):
        active = resolve_active_user(directory[30], 31, store, grant)
        assert active.active_user_id == 30

    def test_therapist_without_selection_sees_own_id(self, directory, store, grant):
        active = resolve_active_user(directory[10], None, store, grant)

        assert active.active_user_id == 10
        assert active.is_viewing_client_data is False

    def test_persisted_selection_is_used(self, directory, grant):
        store  = InMemorySelectionStore({10: 30})
        active = resolve_active_user(directory[10], None, store, grant)

        assert active.active_user_id == 30
        assert active.is_viewing_client_data is True
        assert active.api_path == "/api/users/30"

    def test_context_beats_persisted_selection(self, directory, grant):
        store  = InMemorySelectionStore({10: 30})
        active = resolve_active_user(directory[10], 31, store, grant)

        assert active.active_user_id == 31
        # The context choice is for this request only
        assert store.get(directory[10]) == 30

    def test_context_outside_grant_is_denied(self, directory, store, grant):
        with pytest.raises(PermissionError):
            resolve_active_user(directory[10], 40, store, grant)

    def test_context_equal_to_own_id(self, directory, store, grant):
        active = resolve_active_user(directory[10], 10, store, grant)
        assert active.is_viewing_client_data is False

    def test_revoked_persisted_selection_falls_back(self, directory, grant):
        """A client reassigned to another therapist drops out of the selection."""
        store = InMemorySelectionStore({10: 40})

        active = resolve_active_user(directory[10], None, store, grant)

        assert active.active_user_id == 10
        assert store.get(directory[10]) is None

    def test_admin_views_any_client(self, directory, store, grant):
        active = resolve_active_user(directory[20], 40, store, grant)
        assert active.active_user_id == 40
        assert active.role == "admin"

    def test_unknown_role_is_treated_as_client(self, store, grant):
        user   = mock_user(user_id=50, role="auditor")
        active = resolve_active_user(user, 30, store, grant)
        assert active.active_user_id == 50


class TestSelectViewingClient:
    """Tests for select_viewing_client and clear_viewing_client."""

    def test_select_persists(self, directory, store, grant):
        active = select_viewing_client(directory[10], 31, store, grant)

        assert active.active_user_id == 31
        assert store.get(directory[10]) == 31

    def test_select_outside_grant_is_denied(self, directory, store, grant):
        with pytest.raises(PermissionError):
            select_viewing_client(directory[10], 40, store, grant)
        assert store.get(directory[10]) is None

    def test_clients_cannot_select(self, directory, store, grant):
        with pytest.raises(PermissionError):
            select_viewing_client(directory[30], 31, store, grant)

    def test_selecting_self_clears(self, directory, grant):
        store  = InMemorySelectionStore({10: 30})
        active = select_viewing_client(directory[10], 10, store, grant)

        assert active.active_user_id == 10
        assert store.get(directory[10]) is None

    def test_clear(self, directory, grant):
        store  = InMemorySelectionStore({10: 30})
        active = clear_viewing_client(directory[10], store)

        assert active.active_user_id == 10
        assert store.get(directory[10]) is None


class TestUserColumnSelectionStore:
    """Tests for the database-backed selection store, using a mocked session."""

    def test_set_writes_the_column_and_commits(self):
        db   = MagicMock()
        user = mock_user(user_id=10, role="therapist")

        UserColumnSelectionStore(db).set(user, 30)

        assert user.current_viewing_client_id == 30
        db.commit.assert_called_once()

    def test_clear_without_selection_does_not_write(self):
        db   = MagicMock()
        user = mock_user(user_id=10, role="therapist")

        UserColumnSelectionStore(db).clear(user)

        db.commit.assert_not_called()

    def test_failed_commit_rolls_back(self):
        db = MagicMock()
        db.commit.side_effect = OperationalError("UPDATE users", {}, Exception("db down"))
        user = mock_user(user_id=10, role="therapist")

        with pytest.raises(OperationalError):
            UserColumnSelectionStore(db).set(user, 30)

        db.rollback.assert_called_once()


class TestGetActiveUserDependency:
    """Tests for the get_active_user dependency, using a mocked session."""

    def test_failed_clear_of_stale_selection_returns_503(self):
        db = MagicMock()
        db.commit.side_effect = OperationalError("UPDATE users", {}, Exception("db down"))
        client = mock_user(user_id=30, role="client", current_viewing_client_id=40)

        with pytest.raises(HTTPException) as exc_info:
            get_active_user(viewing_client_id=None, current_user=client, db=db)

        assert exc_info.value.status_code == 503
        db.rollback.assert_called_once()

    def test_denied_header_returns_403(self, directory):
        db = MagicMock()
        db.query.return_value.filter.return_value.first.return_value = directory[40]

        with pytest.raises(HTTPException) as exc_info:
            get_active_user(viewing_client_id=40, current_user=directory[10], db=db)

        assert exc_info.value.status_code == 403
