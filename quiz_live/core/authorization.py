"""Role-based capability checks for administrative operations."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from quiz_live.core.errors import Forbidden, NotAuthenticated
from quiz_live.core.models import Identity


@dataclass(slots=True, frozen=True)
class Authorization:
    allowed: bool
    role: str | None
    required: frozenset[str]

    @property
    def reason(self) -> str:
        if self.allowed:
            return "ok"
        if self.role is None:
            return "No verified identity."
        roles = " or ".join(sorted(self.required))
        return f"Role '{self.role}' is not permitted; requires {roles}."


def authorize(user: Identity | None, required_roles: Iterable[str]) -> Authorization:
    required = frozenset(required_roles)
    if user is None:
        return Authorization(allowed=False, role=None, required=required)
    return Authorization(allowed=user.role in required, role=user.role, required=required)


def require_role(user: Identity | None, required_roles: Iterable[str]) -> Identity:
    """Return ``user`` if it holds one of ``required_roles``, else raise."""
    result = authorize(user, required_roles)
    if result.role is None:
        raise NotAuthenticated(result.reason)
    if not result.allowed:
        raise Forbidden(result.reason)
    return user
