from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from resilience_hub.core.database import get_db
from resilience_hub.core.logging import get_logger
from resilience_hub.core.security import decode_access_token
from resilience_hub.models.users import User
from resilience_hub.services.active_user import (
    ActiveUser,
    UserColumnSelectionStore,
    db_grant_check,
    resolve_active_user,
)

logger = get_logger(__name__)

# Tokens are issued by the records backend's login endpoint.
# Pointing Swagger UI at it lets "Authorize" attach the Bearer token
# when trying the insights endpoints by hand.
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/v1/auth/login"
)

VIEWING_CLIENT_HEADER = "X-Viewing-Client-Id"


def get_current_user(
    db: Session = Depends(get_db), token: str = Depends(oauth2_scheme)
) -> User:
    """
    Dependency function to extract and validate the JWT token from the incoming request.

    Args:
        db (Session): The active database session injected by FastAPI.
        token (str): The Bearer token extracted from the Authorization header.

    Returns:
        User: The SQLAlchemy User row corresponding to the token subject.

    Raises:
        HTTPException: 401 if the token is invalid, expired, or its user no longer exists.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = decode_access_token(token)
    if user_id is None:
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        # A deleted account must not keep reading data with an old token
        raise credentials_exception

    return user


def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Dependency function to ensure the authenticated user account is currently active.

    Raises:
        HTTPException: If the user account has been disabled or suspended.
    """
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user account"
        )
    return current_user


def get_active_user(
    viewing_client_id: Optional[int] = Header(
        default=None,
        alias=VIEWING_CLIENT_HEADER,
        description="Client whose data a therapist or admin wants for this request only."
    ),
    current_user: User = Depends(get_current_active_user),
    db: Session        = Depends(get_db)
) -> ActiveUser:
    """
    Resolves whose records the request works on.

    Returns:
        ActiveUser: The resolved identity. Routers pass active_user_id
                    explicitly to the fetch layer.

    Raises:
        HTTPException: 403 if the requested client is not viewable,
                       503 if the selection could not be written.
    """
    try:
        active = resolve_active_user(
            user              = current_user,
            context_client_id = viewing_client_id,
            store             = UserColumnSelectionStore(db),
            grant             = db_grant_check(db),
        )
    except PermissionError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e)
        )
    except SQLAlchemyError:
        # Grant lookups and clearing a stale selection both hit the database
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Records database unavailable."
        )

    return active
