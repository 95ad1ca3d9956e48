# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Generic poll-until-terminal loop with deadline, jitter and cancellation.

Sandbox lifecycle waits and import-job waits both run through
``poll_until``; they differ only in the fetch function and the target set.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

from scalebox._defaults import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_POLL_TIMEOUT_SECONDS,
    MAX_POLL_JITTER_SECONDS,
    POLL_JITTER_RATIO,
)
from scalebox.exceptions import PollCancelledError, PollTimeoutError, ScaleboxError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StatusSnapshot:
    """One observation of a sandbox or job status. Replaced wholesale on every poll."""

    id: str
    status: str
    substatus: str | None = None
    reason: str | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any], *, id_key: str = "sandbox_id") -> StatusSnapshot:
        """Build a snapshot from a REST payload (snake_case or camelCase keys)."""
        head, *rest = id_key.split("_")
        camel_id = head + "".join(part.capitalize() for part in rest)
        updated_at = payload.get("updated_at") or payload.get("updatedAt")
        return cls(
            id=str(payload.get(id_key) or payload.get(camel_id) or payload.get("id") or ""),
            status=str(payload.get("status") or ""),
            substatus=payload.get("substatus") or None,
            reason=payload.get("reason") or None,
            updated_at=(
                datetime.fromisoformat(updated_at.replace("Z", "+00:00"))
                if isinstance(updated_at, str)
                else None
            ),
        )

    def __str__(self) -> str:
        detail = f"/{self.substatus}" if self.substatus else ""
        reason = f" ({self.reason})" if self.reason else ""
        return f"{self.status}{detail}{reason}"


def status_in(targets: Iterable[str]) -> Callable[[StatusSnapshot], bool]:
    """Build a case-insensitive "status is one of targets" predicate."""
    wanted = frozenset(t.lower() for t in targets)
    if not wanted:
        raise ValueError("targets must not be empty")

    def is_terminal(snapshot: StatusSnapshot) -> bool:
        return snapshot.status.lower() in wanted

    return is_terminal


def poll_delay(interval_seconds: float, *, rng: Callable[[], float] = random.random) -> float:
    """Interval plus jitter uniform in ``[0, min(MAX, RATIO * interval))``."""
    jitter_cap = min(MAX_POLL_JITTER_SECONDS, POLL_JITTER_RATIO * interval_seconds)
    return interval_seconds + rng() * jitter_cap


def _describe(snapshot: Any) -> str:
    if snapshot is None:
        return "no status observed"
    return f"last status: {snapshot}"


async def _sleep(delay: float, cancel_event: asyncio.Event | None) -> None:
    """Sleep for ``delay`` seconds, returning early if ``cancel_event`` is set."""
    if cancel_event is None:
        await asyncio.sleep(delay)
        return
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except TimeoutError:
        pass


async def poll_until(
    fetch_status: Callable[[], Awaitable[T]],
    is_terminal: Callable[[T], bool],
    *,
    timeout_seconds: float = DEFAULT_POLL_TIMEOUT_SECONDS,
    interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
    cancel_event: asyncio.Event | None = None,
    description: str = "status",
) -> T:
    """Poll ``fetch_status`` until ``is_terminal`` accepts a snapshot.

    A snapshot that is already terminal returns after exactly one fetch,
    without sleeping.

    Args:
        fetch_status: Coroutine function returning the current snapshot
        is_terminal: Predicate deciding when to stop
        timeout_seconds: Overall deadline, measured with a monotonic clock
        interval_seconds: Base delay between polls; jitter is added on top
        cancel_event: Setting this event cancels polling, including a sleep
            in progress
        description: What is being polled, for error messages

    Returns:
        The first snapshot accepted by ``is_terminal``

    Raises:
        PollCancelledError: If ``cancel_event`` was set
        PollTimeoutError: If the deadline passed. ``last_snapshot`` holds the
            most recent observation.
    """
    deadline = time.monotonic() + timeout_seconds
    last: T | None = None

    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise PollCancelledError(f"Polling {description} aborted")

        if time.monotonic() >= deadline:
            try:
                last = await fetch_status()
            except ScaleboxError as e:
                logger.debug("Diagnostic fetch for %s failed: %s", description, e)
            raise PollTimeoutError(
                f"Polling {description} timed out after {timeout_seconds}s ({_describe(last)})",
                last_snapshot=last,
            )

        last = await fetch_status()
        if is_terminal(last):
            return last
        logger.debug("Polled %s: %s", description, last)

        remaining = deadline - time.monotonic()
        await _sleep(max(0.0, min(poll_delay(interval_seconds), remaining)), cancel_event)
