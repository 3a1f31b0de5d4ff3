"""
Authentication service: JWT issuance, staff passwords and member phone OTP
"""
import secrets
from datetime import datetime, timedelta
from typing import Optional
import logging

from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_

from app.core.config import settings
from app.models.user import User, PhoneOtp

logger = logging.getLogger(__name__)

TOKEN_KIND_STAFF = "staff"
TOKEN_KIND_MEMBER = "member"


class OtpError(Exception):
    """Raised when a one-time code cannot be accepted"""

    def __init__(self, message: str, too_many_attempts: bool = False):
        super().__init__(message)
        self.too_many_attempts = too_many_attempts


class AuthService:
    """Authentication service for JWT, passwords and one-time codes"""

    def __init__(self):
        self.pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
        self.algorithm = settings.ALGORITHM
        self.secret_key = settings.SECRET_KEY
        self.access_token_expire_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt"""
        return self.pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash"""
        return self.pwd_context.verify(plain_password, hashed_password)

    def create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token"""
        to_encode = data.copy()

        if expires_delta:
            expire = datetime.utcnow() + expires_delta
        else:
            expire = datetime.utcnow() + timedelta(minutes=self.access_token_expire_minutes)

        to_encode.update({"exp": expire})
        encoded_jwt = jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)
        return encoded_jwt

    def decode_access_token(self, token: str) -> Optional[dict]:
        """Decode and validate a JWT access token"""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
            return payload
        except JWTError:
            return None

    def create_staff_token(self, user: User) -> str:
        return self.create_access_token(
            data={"sub": str(user.id), "email": user.email, "kind": TOKEN_KIND_STAFF}
        )

    def create_member_token(self, phone: str) -> str:
        return self.create_access_token(data={"sub": phone, "kind": TOKEN_KIND_MEMBER})

    async def authenticate_user(self, db: AsyncSession, email: str, password: str) -> Optional[User]:
        """Authenticate a staff account with email and password"""
        result = await db.execute(
            select(User).where(
                and_(
                    User.email == email.lower(),
                    User.is_active == True
                )
            )
        )
        user = result.scalar_one_or_none()

        if not user:
            return None

        # Check if account is locked
        if user.locked_until and user.locked_until > datetime.utcnow():
            logger.info(f"Login rejected for locked account {user.id}")
            return None

        if not self.verify_password(password, user.password_hash):
            user.failed_login_attempts = (user.failed_login_attempts or 0) + 1

            if user.failed_login_attempts >= settings.MAX_FAILED_LOGINS:
                user.locked_until = datetime.utcnow() + timedelta(minutes=settings.LOCKOUT_MINUTES)
                logger.warning(f"Account {user.id} locked after {user.failed_login_attempts} failed logins")

            await db.commit()
            return None

        # Reset failed attempts on successful login
        user.failed_login_attempts = 0
        user.locked_until = None
        user.last_login = datetime.utcnow()
        await db.commit()

        return user

    async def create_user(self, db: AsyncSession, email: str, password: str, full_name: str) -> User:
        """Create an identity account; flushed but not committed"""
        user = User(
            email=email.lower(),
            password_hash=self.hash_password(password),
            full_name=full_name,
            is_active=True,
            failed_login_attempts=0,
        )
        db.add(user)
        await db.flush()
        return user

    # ==================== PHONE OTP ====================

    def generate_otp_code(self) -> str:
        """Numeric code of OTP_LENGTH digits"""
        return "".join(secrets.choice("0123456789") for _ in range(settings.OTP_LENGTH))

    async def issue_otp(self, db: AsyncSession, phone: str) -> str:
        """
        Create a new one-time code for ``phone``.

        Earlier unconsumed codes for the same phone are invalidated so only the
        latest SMS works. Returns the plain code for delivery.
        """
        now = datetime.utcnow()
        result = await db.execute(
            select(PhoneOtp).where(
                PhoneOtp.phone == phone,
                PhoneOtp.consumed_at.is_(None),
            )
        )
        for previous in result.scalars().all():
            previous.consumed_at = now

        code = self.generate_otp_code()
        db.add(PhoneOtp(
            phone=phone,
            code_hash=self.hash_password(code),
            expires_at=now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
            attempts=0,
        ))
        await db.commit()
        return code

    async def verify_otp(self, db: AsyncSession, phone: str, code: str) -> None:
        """
        Check ``code`` against the latest outstanding code for ``phone``.

        Raises:
            OtpError: If there is no valid code, it expired, or it does not match
        """
        result = await db.execute(
            select(PhoneOtp)
            .where(PhoneOtp.phone == phone, PhoneOtp.consumed_at.is_(None))
            .order_by(PhoneOtp.id.desc())
            .limit(1)
        )
        otp = result.scalar_one_or_none()

        if not otp or otp.is_expired:
            raise OtpError("Code expired. Please request a new one.")

        if otp.attempts >= settings.OTP_MAX_ATTEMPTS:
            raise OtpError("Too many attempts. Please request a new code.", too_many_attempts=True)

        if not self.verify_password(code, otp.code_hash):
            otp.attempts += 1
            await db.commit()
            raise OtpError("Invalid code. Please try again.")

        otp.consumed_at = datetime.utcnow()
        await db.commit()


# Global auth service instance
auth_service = AuthService()
