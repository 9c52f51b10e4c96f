"""
Course Marketplace Token Security

Access-token issuance and verification. Signing is delegated to PyJWT;
this module only decides what goes into a token and how failures surface.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import jwt
import structlog

from .config import Settings, get_settings
from .exceptions import AuthenticationError

logger = structlog.get_logger()


@dataclass(frozen=True)
class TokenClaims:
    """Verified identity carried by an access token."""

    user_id: UUID
    email: str
    role: str


def create_access_token(
    user_id: UUID,
    email: str,
    role: str,
    settings: Optional[Settings] = None,
    now: Optional[datetime] = None,
) -> str:
    """Sign an access token for a user."""
    settings = settings or get_settings()
    issued_at = now or datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: Optional[Settings] = None) -> TokenClaims:
    """
    Verify a token and return its claims.

    Raises:
        AuthenticationError: token is expired, malformed or badly signed
    """
    settings = settings or get_settings()
    try:
        claims = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
        return TokenClaims(
            user_id=UUID(claims["sub"]),
            email=claims.get("email", ""),
            role=claims.get("role", ""),
        )

    except jwt.ExpiredSignatureError:
        logger.debug("Access token expired")
        raise AuthenticationError("Token expired")
    except (jwt.InvalidTokenError, ValueError) as e:
        logger.debug("Access token rejected", error=str(e))
        raise AuthenticationError("Invalid token")
