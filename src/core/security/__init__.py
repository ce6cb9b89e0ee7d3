from src.core.security.dependencies import build_password_hasher, build_token_issuer
from src.core.security.passwords import PasswordHasher, validate_password_strength
from src.core.security.tokens import AccessClaims, TokenIssuer, parse_expires_in

__all__ = [
    "AccessClaims",
    "PasswordHasher",
    "TokenIssuer",
    "build_password_hasher",
    "build_token_issuer",
    "parse_expires_in",
    "validate_password_strength",
]
