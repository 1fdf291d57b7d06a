# ============================================================================
# FILE: agenda/api/dependencies.py
# Authentication dependencies: JWT bearer tokens issued by the auth provider
# ============================================================================
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
from jose import JWTError, jwt
from uuid import UUID

from agenda.config.database import get_db
from agenda.config.settings import settings
from agenda.core.security import AuthScope
from agenda.models.appointment import ActorType
from agenda.models.user import User, StaffRole
from agenda.services.availability.slot_cache import SlotCache

# ============================================================================
# Security Schemes
# ============================================================================

jwt_security = HTTPBearer(
    scheme_name="JWT Bearer Token",
    description="Enter your JWT access token"
)


# ============================================================================
# JWT Token Functions
# ============================================================================

def verify_access_token(token: str) -> dict:
    """
    Verify and decode a JWT access token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Could not validate credentials: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("type", "access") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload


# ============================================================================
# JWT Authentication Dependencies
# ============================================================================

async def get_current_user(
        credentials: HTTPAuthorizationCredentials = Depends(jwt_security),
        db: Session = Depends(get_db)
) -> User:
    """
    Dependency to get the current authenticated user from JWT access token.

    Raises:
        HTTPException 401: If token is invalid or user not found
    """
    payload = verify_access_token(credentials.credentials)

    user_id_str: Optional[str] = payload.get("sub")
    if user_id_str is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID in token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.id == user_id).first()

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    return user


async def get_auth_scope(current_user: User = Depends(get_current_user)) -> AuthScope:
    """
    Resolve the dashboard user to the calendars they may change.

    Owners and managers cover every professional; staff accounts linked to a
    professional only cover that professional.
    """
    if not current_user.establishment_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User not associated with an establishment"
        )

    if current_user.role in (StaffRole.OWNER, StaffRole.MANAGER):
        return AuthScope(
            establishment_id=current_user.establishment_id,
            user_id=current_user.id,
            actor_type=ActorType.ADMIN.value
        )

    return AuthScope(
        establishment_id=current_user.establishment_id,
        professional_id=current_user.professional_id,
        user_id=current_user.id,
        actor_type=ActorType.STAFF.value
    )


def get_slot_cache() -> SlotCache:
    """Dependency returning the slot cache (overridden in tests)"""
    return SlotCache()
