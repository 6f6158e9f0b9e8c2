"""Caller identity handed to every event operation.

Tokens are issued by the portal's auth service; this module only decodes
them and normalizes the role claims into a set of role tags.
"""

from collections import abc
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Iterable
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from src.config.settings import settings


class Role(str, Enum):
    RESIDENT = "RESIDENT"
    SK_OFFICER = "SK_OFFICER"
    SK_CHAIRMAN = "SK_CHAIRMAN"
    SYSTEM_ADMIN = "SYSTEM_ADMIN"


STAFF_ROLES = frozenset({Role.SK_OFFICER.value, Role.SK_CHAIRMAN.value, Role.SYSTEM_ADMIN.value})


def normalize_roles(raw: Any) -> frozenset[str]:
    """Accept a single role string, a list of roles, or nothing."""
    if raw is None:
        return frozenset()
    if isinstance(raw, (str, Role)):
        raw = [raw]
    elif isinstance(raw, abc.Mapping) or not isinstance(raw, abc.Iterable):
        raise ValueError(f"Unsupported roles claim: {raw!r}")
    roles = set()
    for role in raw:
        value = role.value if isinstance(role, Role) else str(role)
        if value.strip():
            roles.add(value.strip().upper())
    return frozenset(roles)


@dataclass(frozen=True)
class Identity:
    user_id: UUID
    roles: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def with_roles(cls, user_id: UUID, roles: Iterable[str | Role] | str | None) -> "Identity":
        return cls(user_id=user_id, roles=normalize_roles(roles))

    @property
    def is_staff(self) -> bool:
        return bool(self.roles & STAFF_ROLES)


def create_access_token(
    user_id: UUID,
    roles: Iterable[str | Role],
    expires_delta: timedelta | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    expires_delta = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": str(user_id),
        "roles": sorted(normalize_roles(list(roles))),
        "iat": now,
        "exp": now + expires_delta,
        "type": "access",
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def identity_from_token(token: str) -> Identity:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as exc:
        raise ValueError("Invalid token") from exc

    if payload.get("type", "access") != "access":
        raise ValueError("Invalid token type")
    subject = payload.get("sub")
    if not subject:
        raise ValueError("Invalid authentication payload")
    try:
        user_id = UUID(str(subject))
    except ValueError as exc:
        raise ValueError("Invalid subject") from exc

    # older tokens carry a single "role" claim instead of "roles"
    raw_roles = payload.get("roles", payload.get("role"))
    return Identity(user_id=user_id, roles=normalize_roles(raw_roles))


bearer_scheme = HTTPBearer(auto_error=False)


def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    """Dependency resolving the authenticated caller."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return identity_from_token(credentials.credentials)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
