"""
JWT token management utilities.

Principals are provisioned and authenticated upstream; this service only
issues and verifies bearer tokens whose subject is the principal id.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from campus_exit.config.settings import settings
from campus_exit.core.exceptions import AuthenticationError
from campus_exit.core.logging import get_logger

logger = get_logger(__name__)


class JWTManager:
    """
    JWT token manager for bearer authentication.

    Handles creation and validation of access tokens.
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        access_token_expire_minutes: Optional[int] = None,
    ):
        self.secret_key = secret_key or settings.JWT_SECRET_KEY
        self.algorithm = algorithm or settings.JWT_ALGORITHM
        self.access_token_expire_minutes = (
            access_token_expire_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    def create_access_token(
        self,
        principal_id: str,
        additional_claims: Optional[Dict[str, Any]] = None,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """
        Create JWT access token.

        Args:
            principal_id: Principal identifier placed in ``sub``
            additional_claims: Additional claims to include
            expires_delta: Custom expiration time

        Returns:
            Encoded JWT token
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.access_token_expire_minutes))

        payload = {
            "sub": str(principal_id),
            "token_type": "access",
            "iat": now,
            "exp": expire,
            "jti": secrets.token_hex(16),
        }

        if additional_claims:
            payload.update(additional_claims)

        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode JWT token.

        Raises:
            AuthenticationError: If the token is expired, malformed or has no subject
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.warning("Token verification failed: token expired")
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Token verification failed: {e}")
            raise AuthenticationError("Invalid token")

        if not payload.get("sub"):
            raise AuthenticationError("Token has no subject")
        return payload

    def get_principal_id(self, token: str) -> str:
        """Extract the principal id from a verified token."""
        return str(self.verify_token(token)["sub"])


def get_jwt_manager() -> JWTManager:
    return JWTManager()
