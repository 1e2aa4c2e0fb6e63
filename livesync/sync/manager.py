"""
Live update manager.

Entry point of the sync engine:

    1. wait for the device state to settle
    2. build one UpdateSession per buildable service
    3. start every session's watcher

Example:
    async with LiveSyncManager(
        context_root="/src/project",
        composition=composition,
        build_tasks=build_tasks,
        diff_engine_factory=make_engine,
        settings=LiveSyncSettings(device_address="192.168.1.20"),
    ) as manager:
        await stop_event.wait()

Without an explicit provider the manager talks to the supervisor at
settings.device_base_url and closes that client on close().
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType

from livesync.compose import BuildTask, Composition
from livesync.config import LiveSyncSettings
from livesync.device import DeviceAPI, DeviceStateProvider, DeviceStatus
from livesync.observability import JSONLogSink, LiveSyncLogger, StandardLogSink

from .diff import DiffEngineFactory
from .factory import build_sessions
from .session import UpdateSession
from .settle import StabilizationPoller
from .watcher import WatcherFactory, watcher_factory

logger = logging.getLogger(__name__)


class LiveSyncManager:
    """
    Owns the set of update sessions for one composition.

    Sessions live until close(). Nothing is persisted across restarts.
    """

    def __init__(
        self,
        context_root: str,
        composition: Composition,
        build_tasks: list[BuildTask],
        diff_engine_factory: DiffEngineFactory,
        provider: DeviceStateProvider | None = None,
        watcher_factory: WatcherFactory | None = None,
        settings: LiveSyncSettings | None = None,
        log: LiveSyncLogger | None = None,
    ):
        self.context_root = context_root
        self.composition = composition
        self.build_tasks = build_tasks
        self.diff_engine_factory = diff_engine_factory
        self.settings = settings or LiveSyncSettings()
        self._owns_provider = provider is None
        self.provider = provider or DeviceAPI(
            self.settings.device_base_url,
            timeout=self.settings.request_timeout,
        )
        self.watcher_factory = watcher_factory or _default_watcher_factory(self.settings)
        self.log = log or _default_logger(self.settings)
        self.poller = StabilizationPoller(
            provider,
            policy=self.settings.settle_policy(),
            log=self.log,
        )
        self._sessions: dict[str, UpdateSession] = {}

    @property
    def sessions(self) -> Mapping[str, UpdateSession]:
        return MappingProxyType(self._sessions)

    @property
    def last_state(self) -> DeviceStatus | None:
        return self.poller.last_state

    async def init(self) -> None:
        """
        Settle, build sessions and start watching.

        Raises:
            ConfigurationError: If the composition does not match the device
            SettleTimeoutError: If a settle bound is configured and exceeded
        """
        if self._sessions:
            raise RuntimeError("LiveSyncManager is already initialized")

        self.log.livepush("Waiting for device state to settle...")
        settled = await self.poller.await_settled()

        sessions = build_sessions(
            self.composition,
            self.build_tasks,
            settled,
            self.context_root,
            diff_engine_factory=self.diff_engine_factory,
            watcher_factory=self.watcher_factory,
            log=self.log,
        )

        started: list[UpdateSession] = []
        try:
            for session in sessions.values():
                session.start()
                started.append(session)
        except Exception:
            logger.error("Failed to start watchers, closing started sessions", exc_info=True)
            for session in started:
                await session.close()
            raise

        self._sessions = sessions
        logger.info(f"Live updates active for services: {sorted(sessions)}")

    async def close(self) -> None:
        """Stop all watchers, wait for in-flight updates and close an owned client."""
        sessions, self._sessions = self._sessions, {}
        for session in sessions.values():
            await session.close()
        if sessions:
            logger.info(f"Live updates stopped for services: {sorted(sessions)}")
        if self._owns_provider:
            await self.provider.close()

    async def stale_services(self, state: DeviceStatus | None = None) -> list[str]:
        """
        Services whose bound container is no longer the running one.

        Detection only: stale sessions keep targeting their old container.
        Fetches a fresh state from the provider when none is given.
        """
        if state is None:
            state = await self.provider.get_status()

        stale: list[str] = []
        for name, session in self._sessions.items():
            container = state.container_for(name)
            if container is None or container.container_id != session.container_id:
                stale.append(name)
                self.log.warning(
                    f"Container for service {name} was replaced; live updates "
                    f"still target {session.container_id[:12]}",
                    service=name,
                )
        return stale

    async def __aenter__(self) -> LiveSyncManager:
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"LiveSyncManager(context_root='{self.context_root}', sessions={sorted(self._sessions)})"


def _default_watcher_factory(settings: LiveSyncSettings) -> WatcherFactory:
    return watcher_factory(ignore_patterns=settings.ignore_patterns)


def _default_logger(settings: LiveSyncSettings) -> LiveSyncLogger:
    return LiveSyncLogger(sink=JSONLogSink() if settings.json_logs else StandardLogSink())


__all__ = [
    "LiveSyncManager",
]
