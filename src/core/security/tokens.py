from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from src.core.errors import InvalidTokenError

ALGORITHM = "HS256"
DEFAULT_EXPIRES_IN_SECONDS = 3600

_EXPIRES_IN_PATTERN = re.compile(r"^(\d+)([smhd])$")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_expires_in(value: str) -> int:
    """Convert ``"<n><s|m|h|d>"`` into seconds.

    Anything that does not match falls back to one hour rather than failing,
    so a typo in configuration yields short-lived tokens.
    """
    match = _EXPIRES_IN_PATTERN.match(value.strip()) if value else None
    if match is None:
        return DEFAULT_EXPIRES_IN_SECONDS
    amount, unit = match.groups()
    return int(amount) * _UNIT_SECONDS[unit]


@dataclass(frozen=True, slots=True)
class AccessClaims:
    subject: str
    email: str
    organization_id: str
    role: str
    issued_at: int | None = None
    expires_at: int | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "sub": self.subject,
            "email": self.email,
            "organization_id": self.organization_id,
            "role": self.role,
        }


class TokenIssuer:
    def __init__(
        self,
        *,
        access_secret: str,
        refresh_secret: str,
        access_expires_in: str = "1h",
        refresh_expires_in: str = "7d",
        clock: Clock | None = None,
    ) -> None:
        if not access_secret or not refresh_secret:
            raise ValueError("Access and refresh token secrets must be configured")
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh token secrets must differ")

        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.access_expires_in_seconds = parse_expires_in(access_expires_in)
        self.refresh_expires_in_seconds = parse_expires_in(refresh_expires_in)
        self._clock = clock or _utcnow

    def _sign(self, payload: dict[str, Any], secret: str, lifetime_seconds: int) -> str:
        issued_at = self._clock()
        claims = dict(payload)
        claims["iat"] = int(issued_at.timestamp())
        claims["exp"] = int((issued_at + timedelta(seconds=lifetime_seconds)).timestamp())
        return jwt.encode(claims, secret, algorithm=ALGORITHM)

    def issue_access_token(self, claims: AccessClaims) -> str:
        return self._sign(claims.to_payload(), self.access_secret, self.access_expires_in_seconds)

    def issue_refresh_token(self, subject_id: str) -> str:
        return self._sign({"sub": str(subject_id)}, self.refresh_secret, self.refresh_expires_in_seconds)

    def verify(self, token: str, secret: str) -> dict[str, Any]:
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise InvalidTokenError() from exc

        expires_at = claims.get("exp")
        subject = claims.get("sub")
        if not isinstance(expires_at, int) or not isinstance(subject, str) or not subject:
            raise InvalidTokenError()
        if expires_at <= int(self._clock().timestamp()):
            raise InvalidTokenError()
        return claims

    def verify_access_token(self, token: str) -> AccessClaims:
        claims = self.verify(token, self.access_secret)
        try:
            return AccessClaims(
                subject=claims["sub"],
                email=claims["email"],
                organization_id=claims["organization_id"],
                role=claims["role"],
                issued_at=claims.get("iat"),
                expires_at=claims["exp"],
            )
        except KeyError as exc:
            raise InvalidTokenError() from exc

    def verify_refresh_token(self, token: str) -> str:
        return self.verify(token, self.refresh_secret)["sub"]
