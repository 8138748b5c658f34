from .service import AuthError, AuthService, Principal

__all__ = ["AuthError", "AuthService", "Principal"]
