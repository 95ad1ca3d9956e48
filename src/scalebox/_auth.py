# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Authentication resolution for the scalebox client.

Supports two auth strategies:
1. API key: SCALEBOX_API_KEY -> X-API-Key header (control plane)
2. Access token: SCALEBOX_ACCESS_TOKEN -> Authorization + X-Access-Token headers
   (in-sandbox process and execution services)

Resolution order: the API key takes priority if present.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from scalebox._defaults import ConnectionConfig
from scalebox.exceptions import ScaleboxAuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthHeaders:
    """Resolved authentication headers and strategy used."""

    headers: dict[str, str]
    strategy: Literal["api_key", "access_token"]

    def __bool__(self) -> bool:
        """Return True if any auth headers are present."""
        return bool(self.headers)


class _AuthMode:
    """Configuration for an authentication mode."""

    def __init__(self, try_auth: Callable[[ConnectionConfig], AuthHeaders | None]) -> None:
        self.try_auth = try_auth


def resolve_auth(config: ConnectionConfig) -> AuthHeaders:
    """Resolve authentication headers for the given config.

    Tries each auth mode in priority order (defined in _AUTH_MODES) and
    returns the first one that succeeds. Custom ``config.headers`` are
    merged on top.

    Raises:
        ScaleboxAuthenticationError: If neither an API key nor an access
            token is configured
    """
    for mode in _AUTH_MODES:
        auth = mode.try_auth(config)
        if auth is not None:
            logger.debug("Using %s authentication", auth.strategy)
            return AuthHeaders(headers={**auth.headers, **config.headers}, strategy=auth.strategy)

    raise ScaleboxAuthenticationError(
        "No credentials found. Set SCALEBOX_API_KEY or SCALEBOX_ACCESS_TOKEN, "
        "or pass api_key/access_token in ConnectionConfig."
    )


def _try_api_key_auth(config: ConnectionConfig) -> AuthHeaders | None:
    if not config.api_key:
        return None
    headers = {"X-API-Key": config.api_key}
    # The in-sandbox services also need the access token when both are present
    if config.access_token:
        headers["X-Access-Token"] = config.access_token
    return AuthHeaders(headers=headers, strategy="api_key")


def _try_access_token_auth(config: ConnectionConfig) -> AuthHeaders | None:
    if not config.access_token:
        return None
    return AuthHeaders(
        headers={
            "Authorization": "Bearer root",
            "X-Access-Token": config.access_token,
        },
        strategy="access_token",
    )


# Auth modes in priority order - first successful returns
_AUTH_MODES = [
    _AuthMode(try_auth=_try_api_key_auth),
    _AuthMode(try_auth=_try_access_token_auth),
]
