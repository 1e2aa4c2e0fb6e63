"""
Stabilization poller.

Before any session is attached, the device must report that its target
state has been fully applied, otherwise the containers we bind to may
still be starting or about to be replaced.

Policy:
- One get_status() call per attempt, fixed delay between attempts
- No upper bound by default (wait for the device forever)
- Optional max_attempts / timeout raising SettleTimeoutError
- A retryable DeviceStatusError is transient by default: logged, counted
  as an attempt, and polling continues. Non-retryable ones (4xx, malformed
  body) and other exceptions propagate.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field

from livesync.device import DeviceStateProvider, DeviceStatus
from livesync.errors import DeviceStatusError, SettleTimeoutError
from livesync.observability import LiveSyncLogger

from .backoff import BackoffStrategy, ConstantBackoff

logger = logging.getLogger(__name__)

DEVICE_STATUS_SETTLE_CHECK_INTERVAL = 0.5  # seconds


@dataclass
class SettlePolicy:
    """
    How long and how often to poll for a settled device.

    Example:
        policy = SettlePolicy(max_attempts=120)  # give up after ~1 minute
    """

    backoff: BackoffStrategy = field(
        default_factory=lambda: ConstantBackoff(delay=DEVICE_STATUS_SETTLE_CHECK_INTERVAL)
    )
    max_attempts: int | None = None
    timeout: float | None = None
    retry_on_error: bool = True

    def is_exhausted(self, attempts: int, elapsed: float) -> bool:
        if self.max_attempts is not None and attempts >= self.max_attempts:
            return True
        if self.timeout is not None and elapsed >= self.timeout:
            return True
        return False


class StabilizationPoller:
    """
    Polls a state provider until the device reports "applied".

    The last fetched state is kept in `last_state`; after settling it is
    the snapshot sessions resolve their containers from.
    """

    def __init__(
        self,
        provider: DeviceStateProvider,
        policy: SettlePolicy | None = None,
        log: LiveSyncLogger | None = None,
    ):
        self.provider = provider
        self.policy = policy or SettlePolicy()
        self.log = log or LiveSyncLogger()
        self.last_state: DeviceStatus | None = None
        self.attempts = 0

    async def await_settled(self) -> DeviceStatus:
        """
        Wait until the device state has settled.

        Returns:
            The settled DeviceStatus (also stored in last_state)

        Raises:
            SettleTimeoutError: If the policy bound is exceeded
            DeviceStatusError: If a fetch fails with a non-retryable error,
                or with any error when retry_on_error is False
        """
        self.policy.backoff.reset()
        self.attempts = 0
        started = time.monotonic()

        while True:
            self.attempts += 1
            try:
                self.last_state = await self.provider.get_status()
            except DeviceStatusError as e:
                if not self.policy.retry_on_error or not e.retryable:
                    logger.error(f"Device state fetch failed, aborting: {e}")
                    raise
                self.log.warning(
                    f"Failed to fetch device state, will retry: {e}",
                    attempt=self.attempts,
                )
            else:
                if self.last_state.is_settled:
                    logger.debug(f"Device state settled after {self.attempts} attempt(s)")
                    return self.last_state

            elapsed = time.monotonic() - started
            if self.policy.is_exhausted(self.attempts, elapsed):
                raise SettleTimeoutError(self.attempts, elapsed)

            delay = self.policy.backoff.get_delay(self.attempts)
            self.log.debug(
                f"Device state not settled, retrying in {delay * 1000:.0f}ms"
            )
            await asyncio.sleep(delay)


async def await_settled(
    provider: DeviceStateProvider,
    policy: SettlePolicy | None = None,
    log: LiveSyncLogger | None = None,
) -> DeviceStatus:
    """
    Poll `provider` until the device reports a fully-applied state.

    Example:
        status = await await_settled(DeviceAPI.for_address("192.168.1.20"))
    """
    return await StabilizationPoller(provider, policy, log).await_settled()


__all__ = [
    "DEVICE_STATUS_SETTLE_CHECK_INTERVAL",
    "SettlePolicy",
    "StabilizationPoller",
    "await_settled",
]
