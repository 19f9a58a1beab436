"""
VideoTube Backend — Password Hashing and JWT Tokens
=====================================================

What:  bcrypt password hashing and HS256 JWT issue/verify helpers.
Who:   Used by the User model (hash on assignment, password check, token
       generation), UserService (login/refresh) and the auth dependency.

Token shapes:
    access  → {"_id", "username", "email", "fullname", "iat", "exp"}
    refresh → {"_id", "iat", "exp"}
"""

import datetime
from typing import Any, Dict

import bcrypt
import jwt

from app.config import settings
from app.exceptions import AuthenticationError

BCRYPT_ROUNDS = 10


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Compare a candidate password with a stored bcrypt hash."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


class TokenManager:
    """Signs and verifies one kind of JWT (access or refresh)."""

    algorithm = "HS256"

    def __init__(self, secret: str, expiry: datetime.timedelta):
        self._secret = secret
        self.expiry = expiry

    def create(self, claims: Dict[str, Any]) -> str:
        """Encode claims with iat/exp added."""
        now = datetime.datetime.now(datetime.timezone.utc)
        payload = {
            **claims,
            "iat": int(now.timestamp()),
            "exp": int((now + self.expiry).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def decode(self, token: str) -> Dict[str, Any]:
        """
        Decode and validate a token.

        Raises:
            AuthenticationError: token expired, malformed or wrongly signed
        """
        try:
            return jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError(message="Token has expired")
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(
                message="Invalid token",
                context={"error_type": type(e).__name__},
            )


access_tokens = TokenManager(settings.access_token_secret, settings.access_token_expiry)
refresh_tokens = TokenManager(settings.refresh_token_secret, settings.refresh_token_expiry)
