"""
PyTest configuration and fixtures for Sanctum Check-in API tests
"""
import pytest
import pytest_asyncio
from datetime import date
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.client.api import RemoteDataService
from app.db.session import get_db
from app.models.base import Base
from app.models import (
    FamilyGroup, Member, MemberStatus, Organization, RelationshipType, Staff, StaffRole, User,
)
from app.services.auth_service import auth_service
from app.services.member_service import generate_qr_token
from app.services.s3_service import StorageUploadError, get_s3_service


# Test database setup - Using async SQLite with aiosqlite
SQLALCHEMY_TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
STAFF_PASSWORD = "Test123!@#"


class FakeS3Service:
    """Records uploads instead of calling S3"""

    def __init__(self):
        self.uploads = []
        self.fail = False

    def upload_base64_image(self, payload, prefix, owner_id, bucket_name=None):
        if self.fail:
            raise StorageUploadError("S3 upload failed: simulated outage")
        key = f"{prefix}-{owner_id}-{len(self.uploads)}.jpg"
        self.uploads.append((key, payload, bucket_name))
        return f"https://test-bucket.s3.amazonaws.com/{key}"


@pytest_asyncio.fixture(scope="function")
async def db_session():
    """
    Create a fresh in-memory database for each test.
    """
    engine = create_async_engine(
        SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def fake_s3():
    return FakeS3Service()


@pytest_asyncio.fixture(scope="function")
async def client(db_session, fake_s3):
    """
    HTTP client bound to the app with the database and storage overridden.
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_s3_service] = lambda: fake_s3

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def organization(db_session):
    """Active organization with the kiosk switched on"""
    org = Organization(
        name="Lotus Temple",
        slug="lotus-temple",
        org_code="LOTUS-TEMPLE1",
        primary_color="#4A2040",
        is_active=True,
        settings={"type": "temple", "kiosk": {"enabled": True}},
    )
    db_session.add(org)
    await db_session.commit()
    await db_session.refresh(org)
    return org


@pytest_asyncio.fixture
async def other_organization(db_session):
    """Second tenant for cross-organization tests"""
    org = Organization(
        name="Grace Church",
        slug="grace-church",
        org_code="GRACE-CHURCH",
        is_active=True,
        settings={"type": "church"},
    )
    db_session.add(org)
    await db_session.commit()
    await db_session.refresh(org)
    return org


@pytest.fixture
def make_staff(db_session):
    """
    Factory: create a user with a staff row and return (staff, auth headers).
    """
    async def _make_staff(organization, role=StaffRole.ADMIN, email=None):
        email = email or f"{role.value}-{organization.id}@example.com"
        user = User(
            email=email,
            password_hash=auth_service.hash_password(STAFF_PASSWORD),
            full_name=f"{role.value.title()} User",
            is_active=True,
            failed_login_attempts=0,
        )
        db_session.add(user)
        await db_session.flush()

        staff = Staff(
            organization_id=organization.id,
            user_id=user.id,
            name=user.full_name,
            email=email,
            role=role,
            is_active=True,
        )
        db_session.add(staff)
        await db_session.commit()
        await db_session.refresh(staff)

        token = auth_service.create_staff_token(user)
        return staff, {"Authorization": f"Bearer {token}"}

    return _make_staff


@pytest_asyncio.fixture
async def admin_headers(make_staff, organization):
    _, headers = await make_staff(organization, StaffRole.ADMIN)
    return headers


@pytest.fixture
def make_member(db_session):
    """
    Factory: create a member who is the prime member of a new family group.
    """
    async def _make_member(
        organization,
        first_name,
        last_name,
        phone=None,
        status=MemberStatus.ACTIVE,
        with_token=True,
        photo_url="https://test-bucket.s3.amazonaws.com/photo.jpg",
    ):
        family_group = FamilyGroup(organization_id=organization.id)
        db_session.add(family_group)
        await db_session.flush()

        member = Member(
            organization_id=organization.id,
            family_group_id=family_group.id,
            phone=phone,
            first_name=first_name,
            last_name=last_name,
            photo_url=photo_url,
            status=status,
            is_prime_member=True,
            is_independent=True,
            relationship_to_prime=RelationshipType.SELF,
            membership_date=date.today(),
            qr_token=generate_qr_token() if with_token else None,
        )
        db_session.add(member)
        await db_session.flush()
        family_group.prime_member_id = member.id
        await db_session.commit()
        await db_session.refresh(member)
        return member

    return _make_member


@pytest.fixture
def staff_password():
    return STAFF_PASSWORD


@pytest.fixture
def member_headers():
    """Factory: auth headers for a verified member phone"""
    def _member_headers(phone: str) -> dict:
        token = auth_service.create_member_token(phone)
        return {"Authorization": f"Bearer {token}"}

    return _member_headers


@pytest.fixture
def remote(client):
    """Device-side API wrapper talking to the app in-process"""
    return RemoteDataService("http://test/api/v1", client=client)
