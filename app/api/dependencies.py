"""
API Dependencies for authentication and authorization
"""
from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional

from app.db.session import get_db
from app.models import Member, Staff, StaffRole
from app.services.auth_service import auth_service, TOKEN_KIND_STAFF, TOKEN_KIND_MEMBER
from app.services.member_service import member_service


security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _decode(credentials: Optional[HTTPAuthorizationCredentials], kind: str) -> str:
    """Return the ``sub`` claim of a valid token of the given kind"""
    if not credentials:
        raise _unauthorized("Missing authorization header")

    payload = auth_service.decode_access_token(credentials.credentials)
    if not payload:
        raise _unauthorized("Invalid or expired token")

    subject = payload.get("sub")
    if not subject or payload.get("kind") != kind:
        raise _unauthorized("Invalid token payload")
    return subject


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> int:
    """
    Get the identity account ID from a staff JWT.

    SECURITY: Always requires valid JWT token - no bypasses in any environment.
    """
    subject = _decode(credentials, TOKEN_KIND_STAFF)
    try:
        return int(subject)
    except ValueError:
        raise _unauthorized("Invalid user ID in token")


async def get_current_staff(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
) -> Staff:
    """
    Get the active staff row for the signed-in account.

    The staff row's organization scopes every dashboard query.
    """
    result = await db.execute(
        select(Staff)
        .where(Staff.user_id == user_id, Staff.is_active == True)
        .order_by(Staff.id)
        .limit(1)
    )
    staff = result.scalar_one_or_none()

    if not staff:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No staff access for this account"
        )

    return staff


def require_roles(*roles: StaffRole):
    """
    Dependency factory for role-based access control.
    Usage: current_staff: Staff = Depends(require_roles(*CHECK_IN_ROLES))
    """
    def check_staff_role(current_staff: Staff = Depends(get_current_staff)) -> Staff:
        if current_staff.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions"
            )
        return current_staff

    return check_staff_role


async def get_current_phone(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Verified phone number from a member session token"""
    return _decode(credentials, TOKEN_KIND_MEMBER)


async def get_current_member(
    organization_id: int = Query(..., description="Organization the app is connected to"),
    phone: str = Depends(get_current_phone),
    db: AsyncSession = Depends(get_db)
) -> Member:
    """Member record for the verified phone inside the selected organization"""
    member = await member_service.get_member_by_phone(db, organization_id, phone)
    if not member:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Member not found"
        )
    return member
