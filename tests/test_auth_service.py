# =============================================================================
# BARANGAY AUTH SERVICE - AUTH SERVICE TESTS
# =============================================================================
# File: tests/test_auth_service.py
# Description: Service-level tests against a real SQLite database
# =============================================================================

from datetime import datetime, timedelta, timezone

import pytest
from passlib.context import CryptContext
from sqlalchemy import select, func

from barangay_auth.auth.repository import (
    UserRepository,
    SessionRepository,
    LoginAttemptRepository,
    AuditLogRepository,
)
from barangay_auth.auth.schemas import RegisterRequest
from barangay_auth.auth.service import AuthService
from barangay_auth.core.exceptions import (
    AccountPendingError,
    AccountRejectedError,
    AccountInactiveError,
    ConflictError,
    InvalidCredentialsError,
    InvalidTokenError,
    MissingFieldError,
    PasswordValidationError,
    RateLimitExceeded,
    ValidationError,
)
from barangay_auth.core.security import jwt_manager, hash_opaque
from barangay_auth.db.models import AccountStatus, AuditAction, LoginAttempt, Resident, Session
from barangay_auth.session.manager import SessionManager
from barangay_auth.session.models import ClientContext
from barangay_auth.session.rate_limit import InMemoryRateLimiter, RateLimitPolicy


CLIENT = ClientContext(ip_address="203.0.113.7", user_agent="pytest")


def make_form(**overrides) -> RegisterRequest:
    data = {
        "firstName": "Juan",
        "lastName": "Dela Cruz",
        "dateOfBirth": "1995-06-15",
        "purok": "Purok 3",
        "phoneNumber": "09171234567",
        "username": "juan",
        "email": "juan@example.com",
        "password": "SecurePass1!",
        "acceptedTerms": True,
        "acceptedPrivacy": True,
    }
    data.update(overrides)
    return RegisterRequest.model_validate(data)


@pytest.fixture
def login_limiter() -> InMemoryRateLimiter:
    return InMemoryRateLimiter(
        RateLimitPolicy(name="login", max_attempts=5, window_seconds=900, count_on="failure")
    )


@pytest.fixture
def service(db_session, login_limiter) -> AuthService:
    return AuthService(db_session, login_limiter=login_limiter)


async def activate(db_session, username: str) -> None:
    repo = UserRepository(db_session)
    user = await repo.get_by_username(username)
    await repo.update(user, status=AccountStatus.ACTIVE, verified_at=datetime.now(timezone.utc))
    await db_session.commit()


async def count_attempts(db_session, **filters) -> int:
    query = select(func.count()).select_from(LoginAttempt)
    for key, value in filters.items():
        query = query.where(getattr(LoginAttempt, key) == value)
    return (await db_session.execute(query)).scalar()


async def count_sessions(db_session) -> int:
    return (await db_session.execute(select(func.count()).select_from(Session))).scalar()


# =============================================================================
# REGISTRATION
# =============================================================================

@pytest.mark.asyncio
class TestRegister:

    async def test_creates_pending_resident(self, service, db_session):
        result = await service.register(make_form(username="Juan", email="Juan@Example.com"), CLIENT)

        assert result.status == AccountStatus.PENDING
        assert result.email == "juan@example.com"

        user = await UserRepository(db_session).get_by_id(result.reference_id)
        assert user.username == "juan"
        assert user.role == "resident"
        assert user.password_hash.startswith("$argon2")
        assert user.verified_at is None

        profile = (
            await db_session.execute(select(Resident).where(Resident.user_id == user.id))
        ).scalar_one()
        assert profile.purok == "Purok 3"

    async def test_writes_registration_audit_entry(self, service, db_session):
        result = await service.register(make_form(), CLIENT)

        entries = await AuditLogRepository(db_session).recent()
        assert len(entries) == 1
        entry = entries[0]
        assert entry.action_type == AuditAction.USER_REGISTRATION
        assert entry.user_id is None
        assert entry.resource_type == "users"
        assert entry.resource_id == result.reference_id
        assert entry.details == {"email": "juan@example.com", "username": "juan"}
        assert entry.ip_address == "203.0.113.7"

    async def test_missing_fields_listed_together(self, service):
        with pytest.raises(MissingFieldError) as exc_info:
            await service.register(make_form(purok="", email=None, password=None), CLIENT)

        assert exc_info.value.fields == ["purok", "email", "password"]

    async def test_validation_order_username_before_password(self, service):
        with pytest.raises(ValidationError, match="between 3 and 20"):
            await service.register(make_form(username="jd", password="weak"), CLIENT)

    async def test_weak_password(self, service):
        with pytest.raises(PasswordValidationError):
            await service.register(make_form(password="alllowercase1!"), CLIENT)

    async def test_duplicate_username_case_insensitive(self, service):
        await service.register(make_form(), CLIENT)

        with pytest.raises(ConflictError, match="Username already taken"):
            await service.register(make_form(username="JUAN", email="other@example.com"), CLIENT)

    async def test_duplicate_email(self, service):
        await service.register(make_form(), CLIENT)

        with pytest.raises(ConflictError, match="Email already registered"):
            await service.register(make_form(username="juan2"), CLIENT)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"username": "juan\n", "email": "other@example.com"},
            {"username": "juan2", "email": "juan@example.com\n"},
        ],
    )
    async def test_trailing_newline_is_not_a_new_identity(self, service, db_session, overrides):
        await service.register(make_form(), CLIENT)

        with pytest.raises(ValidationError):
            await service.register(make_form(**overrides), CLIENT)

        assert await UserRepository(db_session).exists_username("juan2") is False

    async def test_phone_stored_as_digits(self, service, db_session):
        result = await service.register(make_form(phoneNumber="+63 917-123-4567"), CLIENT)

        user = await UserRepository(db_session).get_by_id(result.reference_id)
        assert user.phone_number == "639171234567"

    async def test_failed_registration_writes_nothing(self, service, db_session):
        with pytest.raises(ValidationError):
            await service.register(make_form(phoneNumber="12345"), CLIENT)

        assert await UserRepository(db_session).get_by_username("juan") is None
        assert await AuditLogRepository(db_session).recent() == []


# =============================================================================
# LOGIN
# =============================================================================

@pytest.mark.asyncio
class TestLogin:

    async def test_success_by_username_or_email(self, service, db_session):
        await service.register(make_form(), CLIENT)
        await activate(db_session, "juan")

        by_name = await service.login("juan", "SecurePass1!", CLIENT)
        by_email = await service.login("JUAN@example.com", "SecurePass1!", CLIENT)

        assert by_name.user.username == "juan"
        assert by_email.user.id == by_name.user.id
        assert await count_attempts(db_session, identifier="juan", success=True) == 2

    async def test_success_creates_session_matching_token(self, service, db_session):
        await service.register(make_form(), CLIENT)
        await activate(db_session, "juan")

        result = await service.login("juan", "SecurePass1!", CLIENT, remember_me=True)

        payload = jwt_manager.verify_token(result.access_token, "access")
        stored = await SessionRepository(db_session).get_by_id(payload.sid)
        assert stored.user_id == payload.sub
        assert stored.token_hash == hash_opaque(result.access_token)
        assert stored.refresh_token_hash == hash_opaque(result.refresh_token)
        assert stored.remember_me is True
        assert stored.revoked_at is None

        lifetime = stored.expires_at.replace(tzinfo=None) - stored.created_at.replace(tzinfo=None)
        assert abs(lifetime - timedelta(hours=24)) < timedelta(minutes=1)

        user = await UserRepository(db_session).get_by_id(payload.sub)
        assert user.last_login_at is not None

    async def test_unknown_account_records_raw_identifier(self, service, db_session):
        with pytest.raises(InvalidCredentialsError):
            await service.login("Nobody", "Whatever1!", CLIENT)

        assert await count_attempts(db_session, identifier="Nobody", success=False) == 1

    async def test_wrong_password_records_canonical_username(self, service, db_session):
        await service.register(make_form(), CLIENT)
        await activate(db_session, "juan")

        with pytest.raises(InvalidCredentialsError):
            await service.login("juan@example.com", "WrongPass1!", CLIENT)

        assert await count_attempts(db_session, identifier="juan", success=False) == 1

    async def test_unknown_and_wrong_password_are_indistinguishable(self, service, db_session):
        await service.register(make_form(), CLIENT)
        await activate(db_session, "juan")

        with pytest.raises(InvalidCredentialsError) as unknown:
            await service.login("nobody", "WrongPass1!", CLIENT)
        with pytest.raises(InvalidCredentialsError) as wrong:
            await service.login("juan", "WrongPass1!", CLIENT)

        assert unknown.value.to_dict() == wrong.value.to_dict()

    async def test_pending_account(self, service, db_session):
        result = await service.register(make_form(), CLIENT)

        with pytest.raises(AccountPendingError) as exc_info:
            await service.login("juan", "SecurePass1!", CLIENT)

        assert exc_info.value.details == {"referenceId": result.reference_id}
        assert await count_attempts(db_session) == 0
        assert await count_sessions(db_session) == 0

    async def test_rejected_account(self, service, db_session):
        await service.register(make_form(), CLIENT)
        repo = UserRepository(db_session)
        await repo.update(await repo.get_by_username("juan"), status=AccountStatus.REJECTED)
        await db_session.commit()

        with pytest.raises(AccountRejectedError):
            await service.login("juan", "SecurePass1!", CLIENT)

        assert await count_attempts(db_session) == 0
        assert await count_sessions(db_session) == 0

    async def test_disabled_account(self, service, db_session):
        await service.register(make_form(), CLIENT)
        repo = UserRepository(db_session)
        await repo.update(await repo.get_by_username("juan"), status=AccountStatus.DISABLED)
        await db_session.commit()

        with pytest.raises(AccountInactiveError):
            await service.login("juan", "SecurePass1!", CLIENT)

        assert await count_attempts(db_session) == 0
        assert await count_sessions(db_session) == 0

    async def test_missing_credentials(self, service):
        with pytest.raises(ValidationError) as exc_info:
            await service.login("", "SecurePass1!", CLIENT)

        assert exc_info.value.message == "Username/Email and password are required"

    async def test_sixth_attempt_rate_limited(self, service, db_session):
        await service.register(make_form(), CLIENT)
        await activate(db_session, "juan")

        for _ in range(5):
            with pytest.raises(InvalidCredentialsError):
                await service.login("juan", "WrongPass1!", CLIENT)

        with pytest.raises(RateLimitExceeded):
            await service.login("juan", "SecurePass1!", CLIENT)

        # The rejected attempt never reached the ledger
        assert await count_attempts(db_session) == 5

    async def test_username_and_email_share_one_budget(self, service, db_session):
        await service.register(make_form(), CLIENT)
        await activate(db_session, "juan")

        for identifier in ("juan", "juan", "juan", "juan@example.com", "juan@example.com"):
            with pytest.raises(InvalidCredentialsError):
                await service.login(identifier, "WrongPass1!", CLIENT)

        with pytest.raises(RateLimitExceeded):
            await service.login("juan@example.com", "SecurePass1!", CLIENT)
        with pytest.raises(RateLimitExceeded):
            await service.login("juan", "SecurePass1!", CLIENT)

    async def test_legacy_bcrypt_hash_upgraded_on_login(self, service, db_session):
        await service.register(make_form(), CLIENT)
        repo = UserRepository(db_session)
        user = await repo.get_by_username("juan")
        legacy = CryptContext(schemes=["bcrypt"], bcrypt__rounds=4).hash("SecurePass1!")
        await repo.update(user, status=AccountStatus.ACTIVE, password_hash=legacy)
        await db_session.commit()

        await service.login("juan", "SecurePass1!", CLIENT)

        refreshed = await repo.get_by_id(user.id)
        assert refreshed.password_hash.startswith("$argon2")

    async def test_concurrent_logins_each_get_a_session(self, service, db_session):
        await service.register(make_form(), CLIENT)
        await activate(db_session, "juan")

        first = await service.login("juan", "SecurePass1!", CLIENT)
        second = await service.login("juan", "SecurePass1!", CLIENT)

        first_sid = jwt_manager.verify_token(first.access_token, "access").sid
        second_sid = jwt_manager.verify_token(second.access_token, "access").sid
        manager = SessionManager(db_session)
        assert first_sid != second_sid
        assert await manager.is_session_live(first_sid)
        assert await manager.is_session_live(second_sid)


# =============================================================================
# REFRESH / LOGOUT
# =============================================================================

@pytest.mark.asyncio
class TestTokens:

    async def test_refresh_keeps_session(self, service, db_session):
        await service.register(make_form(), CLIENT)
        await activate(db_session, "juan")
        tokens = await service.login("juan", "SecurePass1!", CLIENT)

        refreshed = await service.refresh(tokens.refresh_token)

        old = jwt_manager.verify_token(tokens.access_token, "access")
        new = jwt_manager.verify_token(refreshed.access_token, "access")
        assert new.sub == old.sub
        assert new.sid == old.sid
        assert new.role == "resident"

    async def test_refresh_rejects_access_token(self, service, db_session):
        await service.register(make_form(), CLIENT)
        await activate(db_session, "juan")
        tokens = await service.login("juan", "SecurePass1!", CLIENT)

        with pytest.raises(InvalidTokenError):
            await service.refresh(tokens.access_token)

    async def test_refresh_for_deleted_account(self, service):
        orphan = jwt_manager.issue_refresh_token("no-such-account", "sid")

        with pytest.raises(InvalidTokenError, match="Invalid refresh token"):
            await service.refresh(orphan)

    async def test_refresh_requires_token(self, service):
        with pytest.raises(ValidationError):
            await service.refresh(None)

    async def test_logout_revokes_and_is_idempotent(self, service, db_session):
        await service.register(make_form(), CLIENT)
        await activate(db_session, "juan")
        tokens = await service.login("juan", "SecurePass1!", CLIENT)
        sid = jwt_manager.verify_token(tokens.access_token, "access").sid

        await service.logout(tokens.access_token, sid)
        await service.logout(tokens.access_token, sid)

        manager = SessionManager(db_session)
        assert await manager.is_session_live(sid) is False
        stored = await SessionRepository(db_session).get_by_id(sid)
        assert stored.revoked_at is not None
