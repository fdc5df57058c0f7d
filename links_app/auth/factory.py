"""
Factory for the configured identity provider.
"""

from enum import Enum

from .strategies import HeaderIdentityProvider, IdentityProvider, JWTIdentityProvider
from links_app.config import settings


class AuthBackend(Enum):
    """Available identity providers"""
    JWT = "jwt"
    HEADER = "header"


class IdentityProviderFactory:
    @staticmethod
    def create(backend: AuthBackend) -> IdentityProvider:
        if backend == AuthBackend.JWT:
            return JWTIdentityProvider(
                secret_key=settings.jwt_secret_key,
                algorithm=settings.jwt_algorithm,
                expire_minutes=settings.access_token_expire_minutes,
            )
        if backend == AuthBackend.HEADER:
            return HeaderIdentityProvider(settings.auth_header)
        raise ValueError(f"Unknown auth backend: {backend}")
