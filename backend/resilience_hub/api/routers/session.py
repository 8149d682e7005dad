from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from resilience_hub.api.dependencies import get_active_user, get_current_active_user
from resilience_hub.core.database import get_db
from resilience_hub.core.logging import get_logger
from resilience_hub.models.users import User
from resilience_hub.schemas.insights import ActiveUserResponse, ViewingClientIn
from resilience_hub.services.active_user import (
    ActiveUser,
    UserColumnSelectionStore,
    clear_viewing_client,
    db_grant_check,
    select_viewing_client,
)

router = APIRouter()
logger = get_logger(__name__)

# Endpoints:
#   GET    /api/v1/session/active-user     -> whose data this request works on
#   PUT    /api/v1/session/viewing-client  -> persist a therapist/admin viewing choice
#   DELETE /api/v1/session/viewing-client  -> back to own data


def _response(active: ActiveUser) -> ActiveUserResponse:
    return ActiveUserResponse(**asdict(active))


# GET /api/v1/session/active-user

@router.get("/active-user", response_model=ActiveUserResponse, status_code=status.HTTP_200_OK)
def get_active_user_info(
    active: ActiveUser = Depends(get_active_user)
) -> ActiveUserResponse:
    """
    Returns the resolved active user. Dashboards call this first and then
    request data for active_user_id.
    """
    return _response(active)


# PUT /api/v1/session/viewing-client

@router.put("/viewing-client", response_model=ActiveUserResponse, status_code=status.HTTP_200_OK)
def set_viewing_client(
    body        : ViewingClientIn,
    current_user: User    = Depends(get_current_active_user),
    db          : Session = Depends(get_db)
) -> ActiveUserResponse:
    """
    Stores which client a therapist or admin is looking at. The choice
    survives reloads until it is cleared or replaced.
    """
    try:
        active = select_viewing_client(
            user      = current_user,
            client_id = body.client_id,
            store     = UserColumnSelectionStore(db),
            grant     = db_grant_check(db),
        )
    except PermissionError as e:
        logger.warning(
            f"Viewing selection rejected: {e}",
            extra={"user_id": current_user.id}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e)
        )
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not save the viewing selection."
        )

    return _response(active)


# DELETE /api/v1/session/viewing-client

@router.delete("/viewing-client", response_model=ActiveUserResponse, status_code=status.HTTP_200_OK)
def delete_viewing_client(
    current_user: User    = Depends(get_current_active_user),
    db          : Session = Depends(get_db)
) -> ActiveUserResponse:
    try:
        active = clear_viewing_client(current_user, UserColumnSelectionStore(db))
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not clear the viewing selection."
        )

    logger.info("Viewing selection cleared.", extra={"user_id": current_user.id})

    return _response(active)
