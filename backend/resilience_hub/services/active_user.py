"""
Decides whose data a request works on.

Clients always see their own records. Therapists and admins may open a
client's dashboards: the choice comes either from the request itself (the
``X-Viewing-Client-Id`` header) or from the selection persisted on their
user row, and always has to pass the grant check. Everything downstream
receives the resolved id explicitly and never looks at the session again.
"""
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from resilience_hub.core.logging import get_logger
from resilience_hub.models.users import USER_ROLES, User

logger = get_logger(__name__)

CLIENT_ROLE  = "client"
VIEWER_ROLES = frozenset(USER_ROLES) - {CLIENT_ROLE}

GrantCheck = Callable[[Any, int], bool]


@dataclass(frozen=True)
class ActiveUser:
    user_id               : int
    active_user_id        : int
    is_viewing_client_data: bool
    api_path              : str
    role                  : str


def _active(user: Any, active_user_id: int) -> ActiveUser:
    return ActiveUser(
        user_id                = user.id,
        active_user_id         = active_user_id,
        is_viewing_client_data = active_user_id != user.id,
        api_path               = f"/api/users/{active_user_id}",
        role                   = _role_of(user),
    )


def _role_of(user: Any) -> str:
    # Unknown roles get the most restricted behaviour
    role = (getattr(user, "role", None) or CLIENT_ROLE).lower()
    return role if role in VIEWER_ROLES else CLIENT_ROLE


# SELECTION STORES

class ViewingSelectionStore(Protocol):
    """Where a therapist's or admin's viewing choice is kept between requests."""

    def get(self, user: Any) -> Optional[int]: ...

    def set(self, user: Any, client_id: int) -> None: ...

    def clear(self, user: Any) -> None: ...


class UserColumnSelectionStore:
    """
    Keeps the selection in users.current_viewing_client_id through the
    request's session. Concurrent writers (several open tabs) are
    last-write-wins.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, user: User) -> Optional[int]:
        return user.current_viewing_client_id

    def set(self, user: User, client_id: int) -> None:
        self._write(user, client_id)

    def clear(self, user: User) -> None:
        if user.current_viewing_client_id is not None:
            self._write(user, None)

    def _write(self, user: User, client_id: Optional[int]) -> None:
        try:
            user.current_viewing_client_id = client_id
            self.db.add(user)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error(
                "Failed to persist viewing selection",
                exc_info=True,
                extra={"user_id": user.id}
            )
            raise


class InMemorySelectionStore:
    """Process-local store keyed by user id."""

    def __init__(self, selections: Optional[dict[int, int]] = None):
        self.selections: dict[int, int] = dict(selections or {})

    def get(self, user: Any) -> Optional[int]:
        return self.selections.get(user.id)

    def set(self, user: Any, client_id: int) -> None:
        self.selections[user.id] = client_id

    def clear(self, user: Any) -> None:
        self.selections.pop(user.id, None)


# GRANT CHECK

def can_view(viewer: Any, client: Optional[Any]) -> bool:
    """
    Whether viewer may open the dashboards of client.

    - admin:     any existing user with the client role.
    - therapist: only clients assigned to them.
    - client:    nobody else.
    """
    if client is None or _role_of(client) != CLIENT_ROLE:
        return False

    role = _role_of(viewer)

    if role == "admin":
        return True

    if role == "therapist":
        return client.therapist_id == viewer.id

    return False


def db_grant_check(db: Session) -> GrantCheck:
    """can_view bound to a session, loading the client row by id."""

    def check(viewer: Any, client_id: int) -> bool:
        client = db.query(User).filter(User.id == client_id).first()
        return can_view(viewer, client)

    return check


# RESOLUTION

def resolve_active_user(
    user: Optional[Any],
    context_client_id: Optional[int],
    store: ViewingSelectionStore,
    grant: GrantCheck
) -> Optional[ActiveUser]:
    """
    Resolves the id whose records this request may read.

    Precedence: request context, then the persisted selection, then the
    caller's own id.

    Args:
        user:              Authenticated user, None for anonymous callers.
        context_client_id: Client chosen for this request only.
        store:             Persisted viewing selection.
        grant:             Grant check, (viewer, client_id) -> bool.

    Returns:
        ActiveUser, or None when nobody is authenticated. Callers must not
        fetch anything in that case.

    Raises:
        PermissionError: The context client is not viewable by this user.
    """
    if user is None:
        return None

    if _role_of(user) == CLIENT_ROLE:
        if store.get(user) is not None:
            logger.info("Clearing stale viewing selection of a client", extra={"user_id": user.id})
            store.clear(user)
        return _active(user, user.id)

    if context_client_id is not None:
        if context_client_id == user.id:
            return _active(user, user.id)

        if not grant(user, context_client_id):
            logger.warning(
                f"Denied viewing client {context_client_id}",
                extra={"user_id": user.id}
            )
            raise PermissionError(f"Not allowed to view client {context_client_id}")

        return _active(user, context_client_id)

    persisted = store.get(user)

    if persisted is None or persisted == user.id:
        return _active(user, user.id)

    if not grant(user, persisted):
        logger.warning(
            f"Persisted viewing client {persisted} is no longer viewable, falling back to own data",
            extra={"user_id": user.id}
        )
        store.clear(user)
        return _active(user, user.id)

    return _active(user, persisted)


def select_viewing_client(
    user: Any,
    client_id: int,
    store: ViewingSelectionStore,
    grant: GrantCheck
) -> ActiveUser:
    """
    Persists a viewing selection after the grant check.

    Raises:
        PermissionError: user is a client, or may not view client_id.
    """
    if _role_of(user) == CLIENT_ROLE:
        raise PermissionError("Clients cannot view other users")

    if client_id == user.id:
        store.clear(user)
        return _active(user, user.id)

    if not grant(user, client_id):
        raise PermissionError(f"Not allowed to view client {client_id}")

    store.set(user, client_id)

    logger.info(f"Viewing client {client_id}", extra={"user_id": user.id})

    return _active(user, client_id)


def clear_viewing_client(user: Any, store: ViewingSelectionStore) -> ActiveUser:
    """Drops the persisted selection, the user is back on their own data."""
    store.clear(user)
    return _active(user, user.id)
