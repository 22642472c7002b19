# =============================================================================
# BARANGAY AUTH SERVICE - CORE SECURITY MODULE
# =============================================================================
# File: core/security.py
# Description: Password hashing, JWT issuance/verification and token digests
#              Argon2id by default with bcrypt support for legacy hashes
# =============================================================================

from typing import Optional, Dict, Any, Literal, List
from datetime import datetime, timedelta, timezone
from uuid import uuid4
import hashlib
import string

from passlib.context import CryptContext
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, InvalidHash, VerificationError
from jose import jwt, JWTError, ExpiredSignatureError
from pydantic import BaseModel, ConfigDict

from barangay_auth.core.config import settings
from barangay_auth.core.exceptions import (
    InvalidTokenError,
    TokenExpiredError,
    PasswordValidationError,
)


TokenType = Literal["access", "refresh"]


# =============================================================================
# PASSWORD HASHER CONFIGURATION
# =============================================================================

class PasswordManager:
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    PASSWORD HASHING MANAGER                              │
    │  Salted, deliberately slow one-way hashing                              │
    │  Argon2id for new hashes, bcrypt accepted for legacy accounts           │
    └─────────────────────────────────────────────────────────────────────────┘

    Accounts imported from the previous deployment carry bcrypt hashes
    ("$2a$10$..."). They verify normally and are upgraded to the preferred
    algorithm on the next successful login.
    """

    def __init__(
        self,
        algorithm: Optional[str] = None,
        time_cost: Optional[int] = None,
        memory_cost: Optional[int] = None,
        parallelism: Optional[int] = None,
        bcrypt_rounds: Optional[int] = None,
    ):
        """Initialize password manager with configured algorithms."""
        self._argon2_hasher = PasswordHasher(
            time_cost=time_cost or settings.argon2_time_cost,
            memory_cost=memory_cost or settings.argon2_memory_cost,
            parallelism=parallelism or settings.argon2_parallelism,
            hash_len=32,
            salt_len=16,
        )

        self._bcrypt_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=bcrypt_rounds or settings.bcrypt_rounds,
        )

        self._preferred_algorithm = algorithm or settings.password_hash_algorithm

    def hash_password(self, password: str) -> str:
        """
        Hash a password using the configured algorithm.

        Example:
            >>> pm = PasswordManager()
            >>> pm.hash_password("SecurePassword123!").startswith("$argon2id$")
            True
        """
        if self._preferred_algorithm == "argon2":
            return self._argon2_hasher.hash(password)
        return self._bcrypt_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its stored hash.

        The comparison is delegated to the hashing library. Unknown or
        corrupt hashes simply fail verification.
        """
        if not hashed_password:
            return False

        if hashed_password.startswith("$argon2"):
            try:
                return self._argon2_hasher.verify(hashed_password, plain_password)
            except (VerifyMismatchError, VerificationError, InvalidHash):
                return False

        if hashed_password.startswith("$2"):
            try:
                return self._bcrypt_context.verify(plain_password, hashed_password)
            except ValueError:
                return False

        return False

    def needs_rehash(self, hashed_password: str) -> bool:
        """
        Check if a stored hash should be replaced with the current algorithm.
        """
        if self._preferred_algorithm == "argon2":
            if not hashed_password.startswith("$argon2"):
                return True
            try:
                return self._argon2_hasher.check_needs_rehash(hashed_password)
            except InvalidHash:
                return True
        return not hashed_password.startswith("$2")


# =============================================================================
# JWT TOKEN PAYLOAD MODEL
# =============================================================================

class TokenPayload(BaseModel):
    """
    Decoded JWT claims.

    Attributes:
        sub: Account ID
        type: "access" or "refresh"
        role: Account role (access tokens only)
        sid: Session the token pair was issued for
        jti: Unique token identifier
    """
    model_config = ConfigDict(from_attributes=True)

    sub: str
    type: TokenType
    role: Optional[str] = None
    sid: Optional[str] = None
    jti: str
    iat: datetime
    exp: datetime


# =============================================================================
# JWT TOKEN MANAGER
# =============================================================================

class JWTManager:
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    JWT TOKEN MANAGER                                     │
    │  Issues and verifies HMAC-signed access and refresh tokens              │
    └─────────────────────────────────────────────────────────────────────────┘

    Token Types:
        - Access Token:  24 hours, carries the account role
        - Refresh Token: 7 days, only mints new access tokens

    Both types share one signing key; the "type" claim is what keeps a
    refresh token from being accepted as an access token.
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        access_token_expire: Optional[timedelta] = None,
        refresh_token_expire: Optional[timedelta] = None,
    ):
        """Initialize JWT manager with configured settings."""
        self._secret_key = secret_key or settings.jwt_secret_key
        self._algorithm = algorithm or settings.jwt_algorithm
        self._access_token_expire = access_token_expire or timedelta(
            hours=settings.jwt_access_token_expire_hours
        )
        self._refresh_token_expire = refresh_token_expire or timedelta(
            days=settings.jwt_refresh_token_expire_days
        )

    @property
    def access_token_ttl(self) -> int:
        """Access token lifetime in seconds."""
        return int(self._access_token_expire.total_seconds())

    def _encode(
        self,
        user_id: str,
        token_type: TokenType,
        expires_delta: timedelta,
        additional_claims: Optional[Dict[str, Any]] = None,
    ) -> str:
        now = datetime.now(timezone.utc)
        claims: Dict[str, Any] = {
            "sub": user_id,
            "type": token_type,
            "jti": str(uuid4()),
            "iat": now,
            "exp": now + expires_delta,
        }
        if additional_claims:
            claims.update(additional_claims)

        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def issue_access_token(
        self,
        user_id: str,
        role: str,
        session_id: Optional[str] = None,
    ) -> str:
        """
        Create a signed access token.

        Args:
            user_id: Account identifier (subject)
            role: Account role for authorization
            session_id: Session the token belongs to

        Returns:
            str: Encoded JWT
        """
        claims: Dict[str, Any] = {"role": role}
        if session_id:
            claims["sid"] = session_id
        return self._encode(user_id, "access", self._access_token_expire, claims)

    def issue_refresh_token(
        self,
        user_id: str,
        session_id: Optional[str] = None,
    ) -> str:
        """Create a signed refresh token."""
        claims = {"sid": session_id} if session_id else None
        return self._encode(user_id, "refresh", self._refresh_token_expire, claims)

    def decode_token(self, token: str) -> TokenPayload:
        """
        Decode and validate a JWT token.

        Raises:
            TokenExpiredError: If token has expired
            InvalidTokenError: If token is malformed or signature is invalid
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
            )
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except JWTError as e:
            raise InvalidTokenError(details={"error": str(e)})

        try:
            return TokenPayload(
                sub=payload["sub"],
                type=payload["type"],
                role=payload.get("role"),
                sid=payload.get("sid"),
                jti=payload.get("jti", ""),
                iat=datetime.fromtimestamp(payload.get("iat", 0), tz=timezone.utc),
                exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (KeyError, ValueError) as e:
            raise InvalidTokenError(details={"error": f"malformed claims: {e}"})

    def verify_token(self, token: str, expected_type: TokenType) -> TokenPayload:
        """
        Verify a token and check its type.

        Raises:
            TokenExpiredError: If token has expired
            InvalidTokenError: If token is invalid or of the wrong type
        """
        payload = self.decode_token(token)

        if payload.type != expected_type:
            raise InvalidTokenError(
                details={"expected_type": expected_type, "actual_type": payload.type}
            )

        return payload


# =============================================================================
# PASSWORD VALIDATION
# =============================================================================

class PasswordValidator:
    """
    Password strength rules.

    Rules:
        - Minimum 8 characters
        - At least one ASCII uppercase letter
        - At least one ASCII lowercase letter
        - At least one ASCII digit
        - At least one special character from !@#$%^&*
    """

    SPECIAL_CHARACTERS = frozenset("!@#$%^&*")

    @classmethod
    def validate(cls, password: str) -> tuple[bool, List[str]]:
        """
        Validate password strength.

        Returns:
            tuple[bool, list[str]]: (is_valid, every violated rule in order)
        """
        errors = []

        if len(password) < 8:
            errors.append("Password must be at least 8 characters long")
        if not any(c in string.ascii_uppercase for c in password):
            errors.append("Password must contain at least one uppercase letter")
        if not any(c in string.ascii_lowercase for c in password):
            errors.append("Password must contain at least one lowercase letter")
        if not any(c in string.digits for c in password):
            errors.append("Password must contain at least one number")
        if not any(c in cls.SPECIAL_CHARACTERS for c in password):
            errors.append("Password must contain at least one special character (!@#$%^&*)")

        return len(errors) == 0, errors

    @classmethod
    def ensure_valid(cls, password: str) -> None:
        """
        Raises:
            PasswordValidationError: If password doesn't meet requirements
        """
        is_valid, errors = cls.validate(password)
        if not is_valid:
            raise PasswordValidationError(errors)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def hash_opaque(token: str) -> str:
    """SHA-256 hex digest of a token, used for storage and lookup."""
    return hashlib.sha256(token.encode()).hexdigest()


def generate_session_id() -> str:
    """Generate a unique session identifier."""
    return str(uuid4())


# =============================================================================
# SINGLETON INSTANCES
# =============================================================================

password_manager = PasswordManager()
jwt_manager = JWTManager()
password_validator = PasswordValidator()
