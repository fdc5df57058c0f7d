"""
Pluggable identity resolution for the authenticated link API.
"""

from .strategies import IdentityProvider, JWTIdentityProvider, HeaderIdentityProvider
from .factory import IdentityProviderFactory, AuthBackend

__all__ = [
    "IdentityProvider",
    "JWTIdentityProvider",
    "HeaderIdentityProvider",
    "IdentityProviderFactory",
    "AuthBackend",
]
