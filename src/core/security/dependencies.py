from __future__ import annotations

from src.core.config import Settings
from src.core.security.passwords import PasswordHasher
from src.core.security.tokens import Clock, TokenIssuer


def build_password_hasher(settings: Settings) -> PasswordHasher:
    if not 4 <= settings.password_hash_rounds <= 31:
        raise ValueError("PASSWORD_HASH_ROUNDS must be between 4 and 31")
    return PasswordHasher(rounds=settings.password_hash_rounds)


def build_token_issuer(settings: Settings, clock: Clock | None = None) -> TokenIssuer:
    return TokenIssuer(
        access_secret=settings.jwt_secret,
        refresh_secret=settings.jwt_refresh_secret,
        access_expires_in=settings.jwt_expires_in,
        refresh_expires_in=settings.jwt_refresh_expires_in,
        clock=clock,
    )
