"""
Session factory.

Builds one UpdateSession per buildable service from the composition, the
build tasks, and the settled device state.

Fails closed: every service is validated before any session is built,
and a ConfigurationError for any service aborts the whole set. Starting
sessions is left to the caller, so a failed build never leaves watchers
running.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from livesync.compose import BuildTask, Composition, find_build_task
from livesync.device import DeviceStatus
from livesync.errors import ConfigurationError, DiffEngineInitError
from livesync.observability import LiveSyncLogger

from .diff import DiffEngineFactory
from .executor import ActionExecutor
from .session import UpdateSession
from .watcher import WatcherFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SessionPlan:
    """Validated inputs for one session."""

    service_name: str
    context: str
    dockerfile: str
    container_id: str


def plan_sessions(
    composition: Composition,
    build_tasks: list[BuildTask],
    settled_state: DeviceStatus,
    context_root: str,
) -> list[SessionPlan]:
    """
    Validate the composition against build tasks and device state.

    Raises:
        ConfigurationError: For the first inconsistent service
    """
    plans: list[SessionPlan] = []

    for service_name, service in composition.services.items():
        build_task = find_build_task(build_tasks, service_name)
        if build_task is None:
            raise ConfigurationError(
                f"Could not find a build task for service: {service_name}",
                service_name,
            )

        # Image-only services have nothing to sync
        if service.build is None:
            continue

        if build_task.dockerfile is None:
            raise ConfigurationError(
                f"Could not detect dockerfile for service: {service_name}",
                service_name,
            )

        container = settled_state.container_for(service_name)
        if container is None:
            raise ConfigurationError(
                f"Could not find container on-device for service: {service_name}",
                service_name,
            )

        context = os.path.normpath(
            os.path.join(os.path.abspath(context_root), service.build.context)
        )
        plans.append(
            SessionPlan(
                service_name=service_name,
                context=context,
                dockerfile=build_task.dockerfile,
                container_id=container.container_id,
            )
        )

    return plans


def build_sessions(
    composition: Composition,
    build_tasks: list[BuildTask],
    settled_state: DeviceStatus,
    context_root: str,
    *,
    diff_engine_factory: DiffEngineFactory,
    watcher_factory: WatcherFactory,
    log: LiveSyncLogger | None = None,
) -> dict[str, UpdateSession]:
    """
    Create (but do not start) one UpdateSession per buildable service.

    A diff engine that fails to initialize costs only its own service:
    the error is logged and the remaining sessions are still built.

    Raises:
        ConfigurationError: If any service is inconsistent (no sessions built)
    """
    log = log or LiveSyncLogger()
    plans = plan_sessions(composition, build_tasks, settled_state, context_root)
    executor = ActionExecutor(log=log)
    sessions: dict[str, UpdateSession] = {}

    for plan in plans:
        try:
            diff_engine = _create_diff_engine(diff_engine_factory, plan)
        except DiffEngineInitError as e:
            log.error(
                f"Live updates disabled for service {plan.service_name}: {e}",
                service=plan.service_name,
            )
            continue

        sessions[plan.service_name] = UpdateSession(
            service_name=plan.service_name,
            context=plan.context,
            container_id=plan.container_id,
            diff_engine=diff_engine,
            watcher=watcher_factory(plan.context),
            executor=executor,
            log=log,
        )
        logger.debug(
            f"Built session for {plan.service_name}: context={plan.context}, "
            f"container={plan.container_id[:12]}"
        )

    return sessions


def _create_diff_engine(factory: DiffEngineFactory, plan: SessionPlan):
    try:
        return factory(plan.dockerfile, plan.context, plan.container_id)
    except DiffEngineInitError as e:
        if e.service_name is None:
            e.service_name = plan.service_name
        raise
    except Exception as e:
        raise DiffEngineInitError(
            "Could not initialize diff engine",
            plan.service_name,
            cause=e,
        ) from e


__all__ = [
    "SessionPlan",
    "build_sessions",
    "plan_sessions",
]
