# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any

DEFAULT_API_URL: str = "https://api.scalebox.dev"

# Default timeout for unary API requests (seconds). Streams use their own timeout.
DEFAULT_REQUEST_TIMEOUT_SECONDS: float = 30.0

# Default lifetime of a started command stream (seconds)
DEFAULT_COMMAND_TIMEOUT_SECONDS: float = 60.0

# Default code execution timeout (seconds)
DEFAULT_EXECUTION_TIMEOUT_SECONDS: float = 300.0

# Ask the server to push keepalive events so idle proxies don't drop the stream
KEEPALIVE_PING_INTERVAL_SECONDS: int = 50
KEEPALIVE_PING_HEADER: str = "Keepalive-Ping-Interval"

DEFAULT_POLL_INTERVAL_SECONDS: float = 1.0
DEFAULT_POLL_TIMEOUT_SECONDS: float = 300.0
DEFAULT_IMPORT_POLL_INTERVAL_SECONDS: float = 5.0
DEFAULT_IMPORT_POLL_TIMEOUT_SECONDS: float = 600.0

# Jitter added to each poll sleep is uniform in [0, min(MAX, RATIO * interval))
MAX_POLL_JITTER_SECONDS: float = 0.5
POLL_JITTER_RATIO: float = 0.1

DEFAULT_PTY_COLS: int = 80
DEFAULT_PTY_ROWS: int = 24
PTY_TERM: str = "xterm-256color"

DEFAULT_SHELL: str = "/bin/bash"
DEFAULT_CONTEXT_CWD: str = "/tmp"

_TRUTHY = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ConnectionConfig:
    """Immutable connection settings shared by every client in this package.

    Explicit values take precedence over environment variables. Use
    ``ConnectionConfig.from_env()`` to pick up ``SCALEBOX_*`` variables.

    Example:
        ```python
        config = ConnectionConfig.from_env(request_timeout_seconds=10)
        config = config.with_overrides(domain="sbx-123.scalebox.dev")
        ```
    """

    api_url: str = DEFAULT_API_URL
    api_key: str | None = None
    access_token: str | None = None
    domain: str | None = None
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    debug: bool = False
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, **overrides: Any) -> ConnectionConfig:
        """Build a config from ``SCALEBOX_*`` env vars, then apply overrides.

        Overrides set to None are ignored so callers can forward optional
        CLI arguments unchanged.
        """
        values: dict[str, Any] = {
            "api_url": os.environ.get("SCALEBOX_API_URL") or DEFAULT_API_URL,
            "api_key": os.environ.get("SCALEBOX_API_KEY") or None,
            "access_token": (
                os.environ.get("SCALEBOX_ACCESS_TOKEN")
                or os.environ.get("SCALEBOX_ENVD_ACCESS_TOKEN")
                or None
            ),
            "domain": os.environ.get("SCALEBOX_DOMAIN") or None,
            "debug": os.environ.get("SCALEBOX_DEBUG", "").lower() in _TRUTHY,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        values["api_url"] = values["api_url"].rstrip("/")
        return cls(**values)

    @property
    def base_url(self) -> str:
        """URL for in-sandbox services, derived from ``domain``.

        Local domains get plain http; anything else gets https.
        """
        if not self.domain:
            return self.api_url
        if self.domain.startswith(("http://", "https://")):
            return self.domain.rstrip("/")
        if "localhost" in self.domain or "127.0.0.1" in self.domain:
            return f"http://{self.domain}"
        return f"https://{self.domain}"

    def with_overrides(self, **kwargs: Any) -> ConnectionConfig:
        """Create a new config with some values overridden."""
        return replace(self, **kwargs)
