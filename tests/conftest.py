"""
Pytest configuration and fixtures for livesync tests.
"""

import asyncio
import sys
import time
from pathlib import Path

import pytest

# Add the repository root to path for imports
# This allows `from livesync.sync import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from livesync.compose import BuildTask, Composition  # noqa: E402
from livesync.device import DeviceStatus  # noqa: E402
from livesync.observability import LiveSyncLogger  # noqa: E402


# =============================================================================
# Fake collaborators
# =============================================================================


class RecordingSink:
    """LogSink that keeps every record for assertions."""

    def __init__(self):
        self.records = []

    def _record(self, level, message, context):
        self.records.append((level, message, context))

    def debug(self, message, **context):
        self._record("debug", message, context)

    def info(self, message, **context):
        self._record("info", message, context)

    def warning(self, message, **context):
        self._record("warning", message, context)

    def error(self, message, **context):
        self._record("error", message, context)

    def messages(self, level=None):
        return [m for lvl, m, _ in self.records if level is None or lvl == level]

    def livepush_messages(self):
        return [m for _, m, ctx in self.records if ctx.get("category") == "livepush"]


class FakeStateProvider:
    """Returns queued states in order; the last one repeats."""

    def __init__(self, states):
        self.states = list(states)
        self.calls = 0

    async def get_status(self):
        index = min(self.calls, len(self.states) - 1)
        self.calls += 1
        state = self.states[index]
        if isinstance(state, Exception):
            raise state
        return state


class FakeWatcher:
    """Watcher that emits events on demand."""

    def __init__(self, root):
        self.root = root
        self.sink = None
        self.stopped = False

    @property
    def is_running(self):
        return self.sink is not None and not self.stopped

    def start(self, sink):
        self.sink = sink

    def stop(self):
        self.stopped = True

    def emit(self, path, kind):
        return self.sink(path, kind)


class FakeDiffEngine:
    """
    Diff engine with scripted actions.

    actions_for maps a path to the action groups it needs; unknown paths
    need nothing. perform_delay simulates slow container work.
    """

    def __init__(self, actions_for=None, perform_delay=0.0, diff_delay=0.0, fail_on=None):
        self.actions_for = actions_for or {}
        self.perform_delay = perform_delay
        self.diff_delay = diff_delay
        self.fail_on = fail_on
        self.diff_calls = []
        self.perform_calls = []
        self.timeline = []

    async def actions_needed(self, batch):
        self.diff_calls.append(batch)
        self.timeline.append(("diff", batch.paths[0] if batch.paths else None, time.monotonic()))
        if self.diff_delay:
            await asyncio.sleep(self.diff_delay)
        actions = []
        for path in batch.paths:
            actions.extend(self.actions_for.get(path, []))
        return actions

    async def perform_actions(self, batch, actions):
        self.timeline.append(("start", actions[0], time.monotonic()))
        self.perform_calls.append((batch, list(actions)))
        if self.perform_delay:
            await asyncio.sleep(self.perform_delay)
        if self.fail_on is not None and self.fail_on in actions:
            self.timeline.append(("fail", actions[0], time.monotonic()))
            raise RuntimeError(f"command failed: {actions[0]}")
        self.timeline.append(("end", actions[0], time.monotonic()))
        return True


def make_state(app_state="applied", containers=None):
    return DeviceStatus.model_validate(
        {
            "status": "success",
            "appState": app_state,
            "containers": [
                {"serviceName": name, "containerId": cid, "status": "Running"}
                for name, cid in (containers or {}).items()
            ],
        }
    )


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def log(sink):
    return LiveSyncLogger(sink=sink)


@pytest.fixture
def settled_state():
    """Device state with running web and api containers."""
    return make_state(
        "applied",
        {"web": "c0ffee" + "0" * 58, "api": "beef" + "1" * 60},
    )


@pytest.fixture
def composition():
    """Two buildable services and one image-only service."""
    return Composition.from_dict(
        {
            "version": "2.1",
            "services": {
                "web": {"build": {"context": "./web"}},
                "api": {"build": "./api"},
                "redis": {"image": "redis:alpine"},
            },
        }
    )


@pytest.fixture
def build_tasks():
    return [
        BuildTask(service_name="web", dockerfile="FROM node\nCOPY . /usr/src/app\n"),
        BuildTask(service_name="api", dockerfile="FROM python:3.11\nCOPY . /app\n"),
        BuildTask(service_name="redis"),
    ]


@pytest.fixture
def watchers():
    """Created FakeWatchers, keyed by root."""
    return {}


@pytest.fixture
def fake_watcher_factory(watchers):
    def create(context):
        watcher = FakeWatcher(context)
        watchers[context] = watcher
        return watcher

    return create
