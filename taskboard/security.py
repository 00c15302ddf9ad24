"""
Identity primitives shared by the boundary layer and the services.

- ``ActingUser`` is the resolved principal handed to every service call.
- ``PasswordVerifier`` wraps bcrypt for hashing and re-authentication.
- Bearer tokens are HS256 JWTs whose ``sub`` claim carries the user id.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from taskboard.config import settings
from taskboard.models import RoleName, User


@dataclass(frozen=True)
class ActingUser:
    id: int
    roles: frozenset[RoleName] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return RoleName.ADMIN in self.roles

    @classmethod
    def from_user(cls, user: User) -> "ActingUser":
        return cls(id=user.id, roles=user.role_names)


class PasswordVerifier:
    """bcrypt-backed credential hashing and verification."""

    def hash(self, plain_password: str) -> str:
        hashed = bcrypt.hashpw(plain_password.encode("utf-8"), bcrypt.gensalt())
        return hashed.decode("utf-8")

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        try:
            return bcrypt.checkpw(
                plain_password.encode("utf-8"), hashed_password.encode("utf-8")
            )
        except ValueError:
            # Stored value is not a bcrypt hash.
            return False


password_verifier = PasswordVerifier()


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    """Sign a token for *user_id*. Used by the seed script and the test suite."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=24))
    payload = {"sub": str(user_id), "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_user_id(token: str) -> int | None:
    """Return the user id carried by *token*, or None if it does not verify."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        return None
    return int(subject)
