"""
PyTest configuration and fixtures for VentureFlow backend tests
"""
import pyotp
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.api.dependencies import get_totp_verifier
from app.db.session import get_db
from app.models import AdminUser, AdminRole, AdminStatus, ChecklistTemplate, User, UserType
from app.models.base import Base
from app.services.auth_service import auth_service, USER_SCOPE, ADMIN_SCOPE
from app.services.email_service import email_service
from app.services.presence import presence_tracker
from app.services.totp_service import TotpVerifier


# Test database setup - Using async SQLite with aiosqlite
SQLALCHEMY_TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Every TOTP check in the tests runs against this instant
FROZEN_NOW = 1_760_000_010

USER_PASSWORD = "Test123!@#"
ADMIN_PASSWORD = "Admin123!@#"


def wrong_code(verifier: TotpVerifier, secret: str, at=FROZEN_NOW) -> str:
    """A well-formed code that is not valid anywhere in the accepted window"""
    valid = {
        verifier.code_at(secret, at + offset * verifier.interval)
        for offset in range(-verifier.valid_window, verifier.valid_window + 1)
    }
    for candidate in ("000000", "111111", "222222", "333333"):
        if candidate not in valid:
            return candidate
    raise AssertionError("unreachable")


@pytest.fixture
def totp() -> TotpVerifier:
    """Verifier with a frozen clock so codes are deterministic"""
    return TotpVerifier(issuer="VentureFlow", interval=30, valid_window=1, clock=lambda: FROZEN_NOW)


@pytest.fixture(autouse=True)
def reset_presence():
    presence_tracker.clear()
    yield
    presence_tracker.clear()


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Capture outgoing email instead of calling SES"""
    outbox = []

    def fake_send(to_emails, subject, html_body, text_body=None):
        outbox.append({"to": to_emails, "subject": subject, "html": html_body})
        return True

    monkeypatch.setattr(email_service, "_send_email", fake_send)
    return outbox


@pytest_asyncio.fixture(scope="function")
async def db_session():
    """
    Create a fresh database for each test.
    The engine is per test so it is bound to the test's event loop.
    """
    engine = create_async_engine(
        SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with session_maker() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session, totp):
    """
    Async HTTP client with the database and TOTP verifier overridden.
    The lifespan is not run, so no connection to the real database is made.
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_totp_verifier] = lambda: totp

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _add(db_session, obj):
    db_session.add(obj)
    await db_session.commit()
    await db_session.refresh(obj)
    return obj


@pytest_asyncio.fixture
async def test_user(db_session):
    """
    Create a verified founder in the database.
    """
    return await _add(db_session, User(
        email="test@example.com",
        password_hash=auth_service.hash_password(USER_PASSWORD),
        full_name="Test Founder",
        user_type=UserType.FOUNDER,
        company_name="Acme Robotics",
        is_active=True,
        is_verified=True,
        failed_login_attempts=0
    ))


@pytest_asyncio.fixture
async def visitor_user(db_session):
    return await _add(db_session, User(
        email="visitor@example.com",
        password_hash=auth_service.hash_password(USER_PASSWORD),
        full_name="Vera Visitor",
        user_type=UserType.VISITOR,
        company_working_at="Blue Fund",
        is_active=True,
        is_verified=True,
    ))


@pytest_asyncio.fixture
async def two_factor_user(db_session):
    """
    Founder with 2FA enabled.
    """
    return await _add(db_session, User(
        email="secure@example.com",
        password_hash=auth_service.hash_password(USER_PASSWORD),
        full_name="Secure Founder",
        user_type=UserType.FOUNDER,
        is_active=True,
        is_verified=True,
        two_factor_enabled=True,
        two_factor_secret=pyotp.random_base32(),
    ))


@pytest_asyncio.fixture
async def super_admin(db_session):
    return await _add(db_session, AdminUser(
        email="root@ventureflow.io",
        name="Root Admin",
        password_hash=auth_service.hash_password(ADMIN_PASSWORD),
        role=AdminRole.SUPER_ADMIN,
        status=AdminStatus.ACTIVE,
        added_by="bootstrap",
    ))


@pytest_asyncio.fixture
async def admin_user(db_session, super_admin):
    """
    Create a regular (non-super) admin in the database.
    """
    return await _add(db_session, AdminUser(
        email="staff@ventureflow.io",
        name="Staff Admin",
        password_hash=auth_service.hash_password(ADMIN_PASSWORD),
        role=AdminRole.ADMIN,
        status=AdminStatus.ACTIVE,
        added_by=super_admin.email,
    ))


@pytest_asyncio.fixture
async def templates(db_session):
    """
    A small checklist catalog.
    """
    items = [
        ChecklistTemplate(text="Complete your company profile", category="Company Profile"),
        ChecklistTemplate(text="Upload your pitch deck", category="Pitch Materials"),
        ChecklistTemplate(text="Set your fundraising target", category="Fundraising"),
        ChecklistTemplate(text="Enable two-factor authentication", category="Account Security"),
    ]
    db_session.add_all(items)
    await db_session.commit()
    for item in items:
        await db_session.refresh(item)
    return items


def bearer_headers(subject_id: int, scope: str) -> dict:
    token = auth_service.create_access_token({"sub": str(subject_id), "scope": scope})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def auth_headers(test_user):
    """
    Get authentication headers for test user.
    """
    return bearer_headers(test_user.id, USER_SCOPE)


@pytest_asyncio.fixture
async def super_admin_headers(super_admin):
    return bearer_headers(super_admin.id, ADMIN_SCOPE)


@pytest_asyncio.fixture
async def admin_headers(admin_user):
    """
    Get authentication headers for the regular admin.
    """
    return bearer_headers(admin_user.id, ADMIN_SCOPE)
