"""
Password hashing and bearer token utilities.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog
from pydantic import BaseModel, Field, ValidationError

logger = structlog.get_logger(__name__)


class InvalidTokenError(Exception):
    """Raised when a token fails signature, expiry or claim checks."""


class TokenClaims(BaseModel):
    """Identity carried by an access token."""
    user_id: int = Field(..., description="Identifier of the authenticated user")
    login: str = Field(..., description="Login of the authenticated user")
    issued_at: Optional[datetime] = Field(None, description="Token issue time")
    expires_at: datetime = Field(..., description="Token expiry time")


class PasswordHasher:
    """Salted one-way hashing of user passwords with bcrypt."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """
        Hash a plain-text password.

        Args:
            password: Password as submitted by the user

        Returns:
            bcrypt hash with the salt embedded
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """
        Check a plain-text password against a stored hash.

        Args:
            password: Password as submitted by the user
            password_hash: Hash stored for the user

        Returns:
            True if the password matches, False otherwise
        """
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            logger.warning("Stored password hash is malformed")
            return False


class TokenManager:
    """Issues and verifies signed, time-bounded access tokens."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, user_id: int, login: str) -> str:
        """
        Issue an access token for a user.

        Args:
            user_id: User identifier
            login: User login

        Returns:
            Encoded JWT
        """
        issued_at = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "login": login,
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode a token and validate its signature, expiry and claims.

        Args:
            token: Encoded JWT

        Returns:
            Decoded claims

        Raises:
            InvalidTokenError: If any check fails
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.PyJWTError as e:
            raise InvalidTokenError(str(e)) from e

        try:
            return TokenClaims(
                user_id=int(payload["sub"]),
                login=payload.get("login", ""),
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc) if "iat" in payload else None,
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (ValueError, TypeError, ValidationError) as e:
            raise InvalidTokenError(f"Malformed token claims: {e}") from e
