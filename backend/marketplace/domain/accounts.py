"""
Account Provisioning

Validation and normalization of new accounts. Rules are checked in a fixed
order and the first failure wins, so error messages are deterministic:

1. email has a local@domain.tld shape
2. password is at least 8 characters and fits bcrypt's 72-byte input
3. trimmed name is at least 2 characters
4. instructors carry a trimmed bio of at least 50 characters

Passwords are hashed with bcrypt in a worker thread and are only ever
compared through ``bcrypt.checkpw``.
"""

import asyncio
import re
from dataclasses import dataclass
from typing import Optional

import bcrypt
import structlog

from ..core.exceptions import ValidationError
from ..models import UserRole

logger = structlog.get_logger()

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_BYTES = 72
MIN_NAME_LENGTH = 2
MIN_INSTRUCTOR_BIO_LENGTH = 50
ADMIN_DEFAULT_BIO = "Platform Administrator"

DEFAULT_AVATARS = {
    UserRole.STUDENT: "https://api.dicebear.com/7.x/avataaars/svg?seed=student",
    UserRole.INSTRUCTOR: "https://api.dicebear.com/7.x/avataaars/svg?seed=instructor",
    UserRole.ADMIN: "https://api.dicebear.com/7.x/avataaars/svg?seed=admin",
}


@dataclass(frozen=True)
class AccountData:
    """Raw account input as received from a caller."""

    email: str
    password: str
    name: str
    role: UserRole = UserRole.STUDENT
    avatar: Optional[str] = None
    bio: Optional[str] = None


@dataclass(frozen=True)
class ProvisionedAccount:
    """Normalized account ready to be persisted."""

    email: str
    password_hash: str
    name: str
    role: UserRole
    avatar: str
    bio: Optional[str]

    def to_record(self) -> dict:
        return {
            "email": self.email,
            "password_hash": self.password_hash,
            "name": self.name,
            "role": self.role.value,
            "avatar": self.avatar,
            "bio": self.bio,
        }


def normalize_email(email: str) -> str:
    """Lowercase and trim an email; storage and lookup both go through here."""
    return email.strip().lower()


def validate_email(email: str) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email.strip()) is not None


def validate_account_data(data: AccountData) -> None:
    """Raise ValidationError for the first rule the input breaks."""
    if not validate_email(data.email or ""):
        raise ValidationError("Invalid email format", details={"field": "email"})

    if len(data.password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            details={"field": "password"},
        )

    if len(data.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
            details={"field": "password"},
        )

    if len((data.name or "").strip()) < MIN_NAME_LENGTH:
        raise ValidationError(
            f"Name must be at least {MIN_NAME_LENGTH} characters",
            details={"field": "name"},
        )

    if data.role == UserRole.INSTRUCTOR:
        if len((data.bio or "").strip()) < MIN_INSTRUCTOR_BIO_LENGTH:
            raise ValidationError(
                f"Instructor bio must be at least {MIN_INSTRUCTOR_BIO_LENGTH} characters",
                details={"field": "bio"},
            )


def _default_bio(data: AccountData) -> Optional[str]:
    bio = data.bio.strip() if data.bio else None
    if not bio and data.role == UserRole.ADMIN:
        return ADMIN_DEFAULT_BIO
    return bio or None


async def hash_password(password: str, rounds: int) -> str:
    """bcrypt hash computed off the event loop."""
    hashed = await asyncio.to_thread(
        bcrypt.hashpw, password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)
    )
    return hashed.decode("utf-8")


async def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return await asyncio.to_thread(
            bcrypt.checkpw, encoded, password_hash.encode("utf-8")
        )
    except ValueError:
        # Malformed stored hash
        logger.warning("Stored password hash is malformed")
        return False


async def provision_account(data: AccountData, rounds: int) -> ProvisionedAccount:
    """Validate, normalize and hash a new account."""
    validate_account_data(data)

    password_hash = await hash_password(data.password, rounds)
    account = ProvisionedAccount(
        email=normalize_email(data.email),
        password_hash=password_hash,
        name=data.name.strip(),
        role=data.role,
        avatar=data.avatar or DEFAULT_AVATARS[data.role],
        bio=_default_bio(data),
    )

    logger.debug("Account provisioned", email=account.email, role=account.role.value)
    return account
