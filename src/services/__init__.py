from src.services.auth_service import AuthResult, AuthService

__all__ = ["AuthResult", "AuthService"]
