from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session
import logging

from rentflow.core.security import decode_access_token
from rentflow.database import get_db
from rentflow.models.user import User
from rentflow.services.authorization import AuthorizationContext, build_authorization_context
from rentflow.services.lease_lifecycle import LeaseLifecycleOrchestrator
from rentflow.services.store import EntityStore

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    Get current authenticated user from JWT token.
    Returns 401 if token is invalid or user not found.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)

        # User id is stored in the "sub" claim
        user_id = UUID(payload.get("sub") or "")

    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        raise credentials_exception
    except ValueError:
        logger.warning("Token 'sub' is missing or not a UUID")
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id).first()

    if user is None or not user.is_active:
        logger.warning(f"User not found or inactive: {user_id}")
        raise credentials_exception

    return user


def get_auth_context(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AuthorizationContext:
    """Caller identity plus company roles, as the lease engine expects it."""
    return build_authorization_context(db, current_user)


def get_lifecycle(db: Session = Depends(get_db)) -> LeaseLifecycleOrchestrator:
    return LeaseLifecycleOrchestrator(EntityStore(db))
