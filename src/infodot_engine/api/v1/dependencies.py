"""Shared API dependencies for authentication and engine construction."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from infodot_engine.core.settings import settings
from infodot_engine.db.session import get_db
from infodot_engine.services.engine import InteractionEngine

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()
optional_bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def _credentials_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_user_id(token: str) -> int:
    """Return the integer user id carried in the token's ``sub`` claim.

    Raises:
        HTTPException: If the token is invalid or carries no usable subject
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as err:
        raise _credentials_error() from err

    subject = payload.get("sub")
    if subject is None:
        raise _credentials_error()
    try:
        return int(subject)
    except (TypeError, ValueError) as err:
        raise _credentials_error() from err


def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> int:
    """Get the authenticated user's id from the bearer JWT."""
    return decode_user_id(credentials.credentials)


def get_optional_user_id(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(optional_bearer_scheme)
    ],
) -> int | None:
    """Like get_current_user_id, but anonymous requests yield None."""
    if credentials is None:
        return None
    return decode_user_id(credentials.credentials)


def get_engine(request: Request, db: SessionDep) -> InteractionEngine:
    """Build the per-request engine over the process-wide collaborators."""
    state = request.app.state
    return InteractionEngine(
        db,
        state.cache,
        getattr(state, "broadcaster", None),
        getattr(state, "search_index", None),
    )


# Type aliases for common dependencies
CurrentUserDep = Annotated[int, Depends(get_current_user_id)]
OptionalUserDep = Annotated[int | None, Depends(get_optional_user_id)]
EngineDep = Annotated[InteractionEngine, Depends(get_engine)]
