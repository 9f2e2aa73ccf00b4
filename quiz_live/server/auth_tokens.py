"""Verification of the bearer tokens issued by the main platform."""

from __future__ import annotations

import logging
import os
from typing import Any, Protocol

from jose import JWTError, jwt

from quiz_live.core.models import Identity

logger = logging.getLogger(__name__)

SECRET_KEY = os.getenv("JWT_SECRET", "dev-secret")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")


class TokenVerifier(Protocol):
    def verify(self, token: str | None) -> Identity | None: ...


class JwtTokenVerifier:
    """Maps an HS256 token carrying ``id`` (or ``sub``) and ``role`` claims to an identity."""

    def __init__(self, secret_key: str = SECRET_KEY, algorithm: str = ALGORITHM) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm

    def verify(self, token: str | None) -> Identity | None:
        if not token:
            return None
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as exc:
            logger.info("Rejected token: %s", exc)
            return None
        return _identity_from_claims(payload)

    def issue(self, user_id: int, role: str, **claims: Any) -> str:
        """Sign a token for ``user_id``; used by tests and local tooling."""
        to_encode = {"id": user_id, "role": role, **claims}
        return jwt.encode(to_encode, self._secret_key, algorithm=self._algorithm)


def _identity_from_claims(payload: dict[str, Any]) -> Identity | None:
    raw_id = payload.get("id", payload.get("sub"))
    role = payload.get("role")
    if raw_id is None or not isinstance(role, str) or not role:
        return None
    try:
        user_id = int(raw_id)
    except (TypeError, ValueError):
        return None
    return Identity(user_id=user_id, role=role)
