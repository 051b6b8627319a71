"""Shared API dependencies for identity and database access."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from school_forum.core.settings import settings
from school_forum.db.session import get_db
from school_forum.schemas.principal import Principal

# Read endpoints work anonymously, so a missing header is not an error here;
# services raise AuthenticationRequired when a command needs a principal.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def principal_from_token(token: str) -> Principal:
    """Decode a bearer token issued by the identity provider.

    The token must carry `sub` (user id), `role` and `name` claims.

    Raises:
        HTTPException: If the token is invalid or lacks the required claims.
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise _credentials_exception() from err

    try:
        return Principal(
            id=payload.get("sub"),
            role=payload.get("role"),
            display_name=payload.get("name"),
        )
    except PydanticValidationError as err:
        raise _credentials_exception() from err


def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Principal | None:
    """Return the principal for the request, or None for anonymous callers."""
    if credentials is None:
        return None
    return principal_from_token(credentials.credentials)


# Type alias for current principal dependency
PrincipalDep = Annotated[Principal | None, Depends(get_current_principal)]
