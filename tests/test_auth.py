"""
Tests for identity providers.
"""
from datetime import timedelta

import pytest
from starlette.requests import Request

from links_app.auth.factory import AuthBackend, IdentityProviderFactory
from links_app.auth.strategies import HeaderIdentityProvider, JWTIdentityProvider


def request_with(headers: dict) -> Request:
    raw = [(name.lower().encode(), value.encode()) for name, value in headers.items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


class TestJWTIdentityProvider:
    provider = JWTIdentityProvider(secret_key="unit-secret")

    def test_round_trip(self):
        token = self.provider.create_token("user_42")
        assert self.provider.resolve(request_with({"Authorization": f"Bearer {token}"})) == "user_42"

    def test_missing_header(self):
        assert self.provider.resolve(request_with({})) is None

    def test_wrong_scheme(self):
        token = self.provider.create_token("user_42")
        assert self.provider.resolve(request_with({"Authorization": f"Basic {token}"})) is None

    def test_wrong_secret(self):
        token = JWTIdentityProvider(secret_key="other-secret").create_token("user_42")
        assert self.provider.resolve(request_with({"Authorization": f"Bearer {token}"})) is None

    def test_expired_token(self):
        token = self.provider.create_token("user_42", expires_delta=timedelta(minutes=-5))
        assert self.provider.resolve(request_with({"Authorization": f"Bearer {token}"})) is None


class TestHeaderIdentityProvider:
    def test_reads_header(self):
        provider = HeaderIdentityProvider("X-Auth-User")
        assert provider.resolve(request_with({"X-Auth-User": "user_7"})) == "user_7"

    def test_blank_header(self):
        provider = HeaderIdentityProvider("X-Auth-User")
        assert provider.resolve(request_with({"X-Auth-User": "   "})) is None


class TestIdentityProviderFactory:
    @pytest.mark.parametrize("backend, expected", [
        (AuthBackend.JWT, JWTIdentityProvider),
        (AuthBackend.HEADER, HeaderIdentityProvider),
    ])
    def test_create(self, backend, expected):
        assert isinstance(IdentityProviderFactory.create(backend), expected)
