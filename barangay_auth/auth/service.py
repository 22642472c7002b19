# =============================================================================
# BARANGAY AUTH SERVICE - AUTH SERVICE
# =============================================================================
# File: auth/service.py
# Description: Business logic layer for authentication operations
#              Orchestrates repository, security, session and rate-limit parts
# =============================================================================

from typing import Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from barangay_auth.auth.repository import (
    UserRepository,
    LoginAttemptRepository,
    AuditLogRepository,
)
from barangay_auth.auth.schemas import (
    RegisterRequest,
    RegisterResponse,
    LoginResponse,
    LoginUser,
    RefreshResponse,
    UserProfile,
    RegistrationStatusResponse,
)
from barangay_auth.db.models import User, AccountRole, AccountStatus, AuditAction
from barangay_auth.session.manager import SessionManager
from barangay_auth.session.models import ClientContext
from barangay_auth.session.rate_limit import RateLimiter
from barangay_auth.core.security import (
    password_manager,
    jwt_manager,
    password_validator,
    generate_session_id,
)
from barangay_auth.core.exceptions import (
    ValidationError,
    ConflictError,
    InvalidCredentialsError,
    InvalidTokenError,
    AccountPendingError,
    AccountRejectedError,
    AccountInactiveError,
    NotFoundError,
)
from barangay_auth.utils.helpers import mask_identifier, truncate_string
from barangay_auth.utils.validators import (
    require_fields,
    require_consent,
    validate_username,
    validate_email,
    validate_phone,
    validate_age,
)


logger = logging.getLogger(__name__)


REGISTRATION_REQUIRED_FIELDS = (
    "firstName",
    "lastName",
    "dateOfBirth",
    "purok",
    "phoneNumber",
    "username",
    "email",
    "password",
)


class AuthService:
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    AUTHENTICATION SERVICE                                │
    │  Business logic layer handling all authentication operations            │
    │  Coordinates between repositories, security, and session management     │
    └─────────────────────────────────────────────────────────────────────────┘

    Responsibilities:
        - Resident self-registration (accounts start pending)
        - Login with attempt ledger and rate limiting
        - Access token refresh
        - Logout (session revocation)
        - Profile, availability and registration-status lookups

    The service commits its own writes. Failed login attempts are committed
    before the error is raised so they survive the request's rollback.
    """

    def __init__(
        self,
        session: AsyncSession,
        login_limiter: Optional[RateLimiter] = None,
        register_limiter: Optional[RateLimiter] = None,
    ):
        """
        Initialize service with database session.

        Args:
            session: SQLAlchemy async session
            login_limiter: Limiter gating login attempts
            register_limiter: Limiter gating registrations
        """
        self._session = session
        self._user_repo = UserRepository(session)
        self._attempt_repo = LoginAttemptRepository(session)
        self._audit_repo = AuditLogRepository(session)
        self._session_manager = SessionManager(session)
        self._login_limiter = login_limiter
        self._register_limiter = register_limiter

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    async def register(
        self,
        data: RegisterRequest,
        client: ClientContext,
    ) -> RegisterResponse:
        """
        Register a new resident account in pending status.

        Validation runs in a fixed order and stops at the first failing
        step; nothing is written until every check has passed.

        Args:
            data: Registration form
            client: Request origin

        Returns:
            RegisterResponse: referenceId, email and status ("pending")

        Raises:
            RateLimitExceeded: Too many registrations from this client
            MissingFieldError: One or more required fields absent
            ConsentRequiredError: Terms or privacy policy not accepted
            ValidationError: Username, email, phone or age rule broken
            PasswordValidationError: Password too weak
            ConflictError: Username or email already in use
        """
        limiter_key = client.ip_address or "unknown"
        if self._register_limiter:
            await self._register_limiter.enforce(limiter_key)

        require_fields(data.model_dump(by_alias=True), REGISTRATION_REQUIRED_FIELDS)
        require_consent(data.accepted_terms, data.accepted_privacy)

        validate_username(data.username)
        validate_email(data.email)
        password_validator.ensure_valid(data.password)
        phone_number = validate_phone(data.phone_number)
        date_of_birth = validate_age(data.date_of_birth)

        await self._ensure_identity_available(data.username, data.email)

        password_hash = await run_in_threadpool(password_manager.hash_password, data.password)

        try:
            user = await self._user_repo.create(
                username=data.username,
                email=data.email,
                password_hash=password_hash,
                role=AccountRole.RESIDENT,
                status=AccountStatus.PENDING,
                first_name=data.first_name,
                last_name=data.last_name,
                date_of_birth=date_of_birth,
                phone_number=phone_number,
                purok=data.purok,
            )
            await self._user_repo.create_resident_profile(user)
            await self._audit_repo.create(
                action_type=AuditAction.USER_REGISTRATION,
                resource_type="users",
                resource_id=user.id,
                details={"email": user.email, "username": user.username},
                ip_address=client.ip_address,
                user_agent=truncate_string(client.user_agent),
            )
            await self._session.commit()
        except IntegrityError:
            # Lost a race against a concurrent registration
            await self._session.rollback()
            await self._ensure_identity_available(data.username, data.email)
            raise ConflictError("Username or email already in use")

        if self._register_limiter:
            await self._register_limiter.record(limiter_key, success=True)

        logger.info(f"Registered pending account {user.id} ({mask_identifier(user.username)})")

        return RegisterResponse(
            reference_id=user.id,
            email=user.email,
            status=user.status,
        )

    async def _ensure_identity_available(self, username: str, email: str) -> None:
        if await self._user_repo.exists_username(username):
            raise ConflictError("Username already taken", field="username")
        if await self._user_repo.exists_email(email):
            raise ConflictError("Email already registered", field="email")

    # =========================================================================
    # LOGIN
    # =========================================================================

    async def login(
        self,
        identifier: Optional[str],
        password: Optional[str],
        client: ClientContext,
        remember_me: bool = False,
    ) -> LoginResponse:
        """
        Authenticate by username or email and open a session.

        Flow:
            1. Rate-limit check (key: identifier, or client IP when empty;
               a found account is also checked under its username)
            2. Look up the account (case-insensitive username OR email)
            3. Reject pending / rejected / otherwise inactive accounts
            4. Verify password
            5. Issue tokens, store session, stamp last login, log attempt

        Raises:
            RateLimitExceeded: Too many failed attempts for this key
            ValidationError: Identifier or password missing
            InvalidCredentialsError: Unknown account or wrong password
            AccountPendingError: Awaiting approval (carries referenceId)
            AccountRejectedError: Registration was rejected
            AccountInactiveError: Any other non-active status
        """
        identifier = (identifier or "").strip()
        limiter_key = identifier.lower() or client.ip_address or "unknown"

        if self._login_limiter:
            await self._login_limiter.enforce(limiter_key)

        if not identifier or not password:
            await self._record_limiter_failure(limiter_key)
            raise ValidationError(
                "Username/Email and password are required",
                error_code="MISSING_CREDENTIALS",
            )

        user = await self._user_repo.get_by_identifier(identifier)

        if user is None:
            await self._record_failed_attempt(identifier, client, limiter_key)
            raise InvalidCredentialsError()

        self._ensure_can_login(user)

        # Username and email logins share the account's bucket
        limiter_keys = [limiter_key]
        if user.username != limiter_key:
            limiter_keys.append(user.username)
            if self._login_limiter:
                await self._login_limiter.enforce(user.username)

        is_valid = await run_in_threadpool(
            password_manager.verify_password, password, user.password_hash
        )
        if not is_valid:
            await self._record_failed_attempt(user.username, client, *limiter_keys)
            raise InvalidCredentialsError()

        if password_manager.needs_rehash(user.password_hash):
            new_hash = await run_in_threadpool(password_manager.hash_password, password)
            await self._user_repo.update_password_hash(user, new_hash)
            logger.info(f"Upgraded password hash for account {user.id}")

        session_id = generate_session_id()
        access_token = jwt_manager.issue_access_token(user.id, user.role, session_id)
        refresh_token = jwt_manager.issue_refresh_token(user.id, session_id)

        await self._session_manager.create_session(
            account_id=user.id,
            session_id=session_id,
            access_token=access_token,
            refresh_token=refresh_token,
            client=client,
            remember_me=remember_me,
        )
        await self._user_repo.update_last_login(user)
        await self._attempt_repo.record(
            identifier=user.username,
            success=True,
            ip_address=client.ip_address,
            user_agent=truncate_string(client.user_agent),
        )
        await self._session.commit()

        if self._login_limiter:
            await self._login_limiter.record(limiter_key, success=True)

        logger.info(f"Login succeeded for account {user.id}")

        return LoginResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            user=LoginUser(
                id=user.id,
                username=user.username,
                email=user.email,
                role=user.role,
            ),
        )

    @staticmethod
    def _ensure_can_login(user: User) -> None:
        if user.status == AccountStatus.PENDING:
            raise AccountPendingError(reference_id=user.id)
        if user.status == AccountStatus.REJECTED:
            raise AccountRejectedError()
        if user.status != AccountStatus.ACTIVE:
            raise AccountInactiveError()

    async def _record_failed_attempt(
        self,
        identifier: str,
        client: ClientContext,
        *limiter_keys: str,
    ) -> None:
        await self._attempt_repo.record(
            identifier=identifier,
            success=False,
            ip_address=client.ip_address,
            user_agent=truncate_string(client.user_agent),
        )
        await self._session.commit()
        for key in limiter_keys:
            await self._record_limiter_failure(key)
        logger.warning(
            f"Failed login for {mask_identifier(identifier)} from {client.ip_address}"
        )

    async def _record_limiter_failure(self, limiter_key: str) -> None:
        if self._login_limiter:
            await self._login_limiter.record(limiter_key, success=False)

    # =========================================================================
    # TOKEN REFRESH / LOGOUT
    # =========================================================================

    async def refresh(self, refresh_token: Optional[str]) -> RefreshResponse:
        """
        Mint a new access token from a refresh token.

        The new token keeps the refresh token's session id. Account status is
        not re-checked and the refresh token is not rotated.

        Raises:
            ValidationError: No token supplied
            InvalidTokenError: Bad, expired or wrong-type token, or the
                account no longer exists
        """
        if not refresh_token:
            raise ValidationError("Refresh token required", error_code="REFRESH_TOKEN_REQUIRED")

        try:
            payload = jwt_manager.verify_token(refresh_token, "refresh")
        except InvalidTokenError as e:
            raise InvalidTokenError("Invalid refresh token", details=e.details)

        user = await self._user_repo.get_by_id(payload.sub)
        if user is None:
            raise InvalidTokenError("Invalid refresh token")

        access_token = jwt_manager.issue_access_token(user.id, user.role, payload.sid)
        return RefreshResponse(access_token=access_token)

    async def logout(self, access_token: str, session_id: Optional[str] = None) -> None:
        """
        Revoke the session behind an access token. Idempotent.
        """
        revoked = await self._session_manager.revoke_session(access_token, session_id)
        await self._session.commit()
        if revoked:
            logger.info(f"Session {session_id} revoked by logout")

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    async def me(self, account_id: str) -> UserProfile:
        """
        Raises:
            NotFoundError: If the account no longer exists
        """
        user = await self._user_repo.get_by_id(account_id)
        if user is None:
            raise NotFoundError("User not found")
        return UserProfile.model_validate(user)

    async def check_username_available(self, username: str) -> bool:
        return not await self._user_repo.exists_username(username)

    async def check_email_available(self, email: str) -> bool:
        return not await self._user_repo.exists_email(email)

    async def registration_status(self, account_id: str) -> RegistrationStatusResponse:
        """
        Public status lookup by reference id. Needs no authentication.

        Raises:
            NotFoundError: If no account has this id
        """
        user = await self._user_repo.get_by_id(account_id)
        if user is None:
            raise NotFoundError("User not found")

        return RegistrationStatusResponse(
            status=user.status,
            email=user.email,
            reference_id=user.id,
            created_at=user.created_at,
            verified_at=user.verified_at,
            rejected_at=user.rejected_at,
            rejection_reason=user.rejection_reason,
        )
