"""
Caller identity dependencies.

Token issuance lives outside this service; the gateway in front of it
forwards the authenticated caller as the ``user_id`` query parameter.
"""
from fastapi import Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bus_reservation.core.database import get_db
from bus_reservation.models import User


async def get_current_user(
    user_id: int = Query(..., gt=0, description="Authenticated caller's user ID"),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the caller against the user directory"""
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Require admin role for access"""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions",
        )
    return current_user
