# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Unit tests for scalebox._auth module."""

from __future__ import annotations

import pytest

from scalebox._auth import AuthHeaders, resolve_auth
from scalebox._defaults import ConnectionConfig
from scalebox.exceptions import ScaleboxAuthenticationError


class TestAuthHeaders:
    """Tests for AuthHeaders dataclass."""

    def test_truthy_when_headers_present(self) -> None:
        auth = AuthHeaders(headers={"X-API-Key": "k"}, strategy="api_key")
        assert bool(auth) is True

    def test_falsy_when_empty(self) -> None:
        auth = AuthHeaders(headers={}, strategy="api_key")
        assert bool(auth) is False

    def test_is_frozen(self) -> None:
        """Test AuthHeaders is immutable."""
        auth = AuthHeaders(headers={}, strategy="api_key")
        with pytest.raises(AttributeError):
            auth.strategy = "access_token"  # type: ignore[misc]


class TestResolveAuth:
    """Tests for resolve_auth function."""

    def test_api_key_takes_priority(self) -> None:
        """Test the API key wins and the access token rides along."""
        auth = resolve_auth(ConnectionConfig(api_key="key", access_token="tok"))

        assert auth.strategy == "api_key"
        assert auth.headers == {"X-API-Key": "key", "X-Access-Token": "tok"}

    def test_access_token_only(self) -> None:
        auth = resolve_auth(ConnectionConfig(access_token="tok"))

        assert auth.strategy == "access_token"
        assert auth.headers == {"Authorization": "Bearer root", "X-Access-Token": "tok"}

    def test_custom_headers_merged(self) -> None:
        """Test config headers are merged over the auth headers."""
        config = ConnectionConfig(api_key="key", headers={"X-Trace": "1", "X-API-Key": "other"})

        auth = resolve_auth(config)

        assert auth.headers == {"X-API-Key": "other", "X-Trace": "1"}

    def test_from_env(self, mock_api_key: str) -> None:
        """Test credentials picked up from the environment."""
        auth = resolve_auth(ConnectionConfig.from_env())
        assert auth.headers["X-API-Key"] == mock_api_key

    def test_no_credentials(self) -> None:
        """Test missing credentials raise ScaleboxAuthenticationError."""
        with pytest.raises(ScaleboxAuthenticationError, match="SCALEBOX_API_KEY"):
            resolve_auth(ConnectionConfig.from_env())
