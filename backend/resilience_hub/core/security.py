from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union
from jose import jwt, JWTError
from resilience_hub.core.config import settings

# Tokens are issued by the records backend. This service shares the HS256
# secret so it can verify them, and create_access_token is kept for
# service-to-service calls and the test-suite.
ALGORITHM = settings.JWT_ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

def create_access_token(subject: Union[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Creates a JSON Web Token (JWT) using the configured HS256 algorithm.

    Args:
        subject (Union[str, Any]): The subject of the token, typically the user ID.
        expires_delta (timedelta, optional): Custom expiration time. If not provided,
                                             defaults to ACCESS_TOKEN_EXPIRE_MINUTES.

    Returns:
        str: The encoded JWT string.
    """
    if expires_delta:

        expire = datetime.now(timezone.utc) + expires_delta

    else:

        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    # The payload strictly contains the standard "exp" (expiration time)
    # and "sub" (subject identifier) claims.
    to_encode = {"exp": expire, "sub": str(subject)}

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[int]:
    """
    Verifies a bearer token and extracts the user id from its subject.

    Args:
        token (str): The encoded JWT.

    Returns:
        Optional[int]: The user id, or None when the token is expired,
                       tampered with, or carries no usable subject.
    """
    try:

        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])

        subject = payload.get("sub")

        if subject is None:

            return None

        return int(subject)

    except (JWTError, ValueError, TypeError):

        return None
