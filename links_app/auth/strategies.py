"""
Identity providers.

The service layer never looks up who is calling; routes resolve an identity
through one of these and pass it down explicitly. A provider returns None
when the request carries no usable identity.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Request
from jose import JWTError, jwt


class IdentityProvider(ABC):
    @abstractmethod
    def resolve(self, request: Request) -> Optional[str]:
        """Return the caller's user id, or None."""
        pass


class JWTIdentityProvider(IdentityProvider):
    """
    Bearer tokens signed with a shared secret; the user id is the "sub" claim.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def create_token(self, user_id: str, expires_delta: Optional[timedelta] = None) -> str:
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=self.expire_minutes))
        return jwt.encode({"sub": user_id, "exp": expire}, self.secret_key, algorithm=self.algorithm)

    def resolve(self, request: Request) -> Optional[str]:
        header = request.headers.get("authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token:
            return None
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None
        subject = payload.get("sub")
        return str(subject) if subject else None


class HeaderIdentityProvider(IdentityProvider):
    """
    Trusts a header set by an upstream auth proxy.
    Only safe when the service is not reachable around that proxy.
    """

    def __init__(self, header_name: str = "X-User-Id"):
        self.header_name = header_name

    def resolve(self, request: Request) -> Optional[str]:
        value = request.headers.get(self.header_name, "").strip()
        return value or None
