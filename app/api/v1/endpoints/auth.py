from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select
import logging

from app.core.config import settings
from app.db.session import get_db
from app.models import User, Staff
from app.schemas.user import (
    StaffLogin, StaffToken, StaffResponse, OtpRequest, OtpVerify,
    MemberSessionToken,
)
from app.schemas.organization import OrganizationSignup, SignupResponse, OrganizationResponse
from app.services.auth_service import auth_service, OtpError
from app.services.email_service import email_service
from app.services.member_service import member_service, next_onboarding_step
from app.services.organization_service import organization_service
from app.services.sms_service import sms_service

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/auth", tags=["Authentication"])


def _expires_in() -> int:
    return settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


# Send a one-time code to a member's phone
@router.post("/otp/request", status_code=status.HTTP_200_OK)
async def request_otp(
    otp_request: OtpRequest,
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    Issue a one-time code and deliver it by SMS.
    Always returns success so phone numbers cannot be enumerated.
    """
    code = await auth_service.issue_otp(db, otp_request.phone)

    sent = sms_service.send_otp(otp_request.phone, code)
    if not sent:
        logger.warning(f"OTP for {otp_request.phone} was not delivered by SMS")

    return {"message": "Verification code sent", "phone": otp_request.phone}


# Verify a one-time code and start a member session
@router.post("/otp/verify", response_model=MemberSessionToken)
async def verify_otp(
    verification: OtpVerify,
    db: AsyncSession = Depends(get_db)
) -> MemberSessionToken:
    """
    Verify the code and return a member session token.
    When ``organization_id`` is supplied the response says whether the member
    still has to complete their profile.
    """
    try:
        await auth_service.verify_otp(db, verification.phone, verification.code)
    except OtpError as e:
        raise HTTPException(
            status_code=(
                status.HTTP_429_TOO_MANY_REQUESTS if e.too_many_attempts
                else status.HTTP_400_BAD_REQUEST
            ),
            detail=str(e)
        )

    next_step = None
    if verification.organization_id is not None:
        member = await member_service.get_member_by_phone(
            db, verification.organization_id, verification.phone
        )
        next_step = next_onboarding_step(member)

    return MemberSessionToken(
        access_token=auth_service.create_member_token(verification.phone),
        expires_in=_expires_in(),
        phone=verification.phone,
        next_step=next_step,
    )


# Staff email/password sign-in
@router.post("/login", response_model=StaffToken)
async def login(
    credentials: StaffLogin,
    db: AsyncSession = Depends(get_db)
) -> StaffToken:
    """
    Authenticate staff and return a JWT.
    Implements account locking after failed attempts.
    """
    user = await auth_service.authenticate_user(db, credentials.email, credentials.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(
        select(Staff)
        .where(Staff.user_id == user.id, Staff.is_active == True)
        .order_by(Staff.id)
        .limit(1)
    )
    staff = result.scalar_one_or_none()
    if not staff:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No staff access for this account"
        )

    return StaffToken(
        access_token=auth_service.create_staff_token(user),
        expires_in=_expires_in(),
        staff=StaffResponse.model_validate(staff),
    )


# Create an organization and its first admin
@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    signup_data: OrganizationSignup,
    db: AsyncSession = Depends(get_db)
) -> SignupResponse:
    """
    Staff signup.
    Creates the identity account first, then the organization with the
    account as admin. Returns the generated organization code.
    """
    result = await db.execute(
        select(User).where(User.email == signup_data.admin_email.lower())
    )
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    user = await auth_service.create_user(
        db, signup_data.admin_email, signup_data.admin_password, signup_data.admin_name
    )
    await db.commit()
    # The bootstrap may roll back, which expires ``user``
    user_id, user_email = user.id, user.email
    access_token = auth_service.create_staff_token(user)

    try:
        organization = await organization_service.bootstrap_organization(
            db,
            org_name=signup_data.org_name,
            org_type=signup_data.org_type.value,
            admin_user_id=user_id,
            admin_name=signup_data.admin_name,
            admin_email=user_email,
        )
    except (ValueError, SQLAlchemyError) as e:
        logger.error(f"Organization signup error for user {user_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Something went wrong. Please try again."
        )

    email_sent = email_service.send_organization_welcome_email(
        admin_name=signup_data.admin_name,
        admin_email=user_email,
        org_name=organization.name,
        org_code=organization.org_code,
        primary_color=organization.primary_color or settings.DEFAULT_PRIMARY_COLOR,
    )
    if not email_sent:
        logger.warning(f"Welcome email not sent to {user_email}")

    return SignupResponse(
        access_token=access_token,
        expires_in=_expires_in(),
        org_code=organization.org_code,
        organization=OrganizationResponse.model_validate(organization),
    )
