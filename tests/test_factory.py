"""
Tests for session construction.
"""

import os

import pytest
from conftest import FakeDiffEngine, make_state

from livesync.compose import BuildTask, Composition
from livesync.errors import ConfigurationError, DiffEngineInitError
from livesync.sync import UpdateSession, build_sessions, plan_sessions


@pytest.fixture
def engines():
    return {}


@pytest.fixture
def engine_factory(engines):
    def create(dockerfile, context, container_id):
        engine = FakeDiffEngine()
        engines[os.path.basename(context)] = (engine, dockerfile, context, container_id)
        return engine

    return create


class TestBuildSessions:
    """Tests for build_sessions()."""

    def test_one_session_per_buildable_service(
        self, composition, build_tasks, settled_state, tmp_path, engine_factory, fake_watcher_factory
    ):
        sessions = build_sessions(
            composition,
            build_tasks,
            settled_state,
            str(tmp_path),
            diff_engine_factory=engine_factory,
            watcher_factory=fake_watcher_factory,
        )

        assert sorted(sessions) == ["api", "web"]
        assert all(isinstance(s, UpdateSession) for s in sessions.values())

    def test_binds_dockerfile_context_and_container(
        self, composition, build_tasks, settled_state, tmp_path, engines, engine_factory, fake_watcher_factory
    ):
        sessions = build_sessions(
            composition,
            build_tasks,
            settled_state,
            str(tmp_path),
            diff_engine_factory=engine_factory,
            watcher_factory=fake_watcher_factory,
        )

        _, dockerfile, context, container_id = engines["web"]
        assert dockerfile == build_tasks[0].dockerfile
        assert context == str(tmp_path / "web")
        assert container_id == settled_state.container_for("web").container_id
        assert sessions["web"].context == context
        assert sessions["web"].container_id == container_id

    def test_does_not_start_watchers(
        self, composition, build_tasks, settled_state, tmp_path, engine_factory, fake_watcher_factory, watchers
    ):
        build_sessions(
            composition,
            build_tasks,
            settled_state,
            str(tmp_path),
            diff_engine_factory=engine_factory,
            watcher_factory=fake_watcher_factory,
        )

        assert len(watchers) == 2
        assert not any(w.is_running for w in watchers.values())

    def test_missing_build_task_fails_closed(
        self, composition, build_tasks, settled_state, tmp_path, engine_factory, fake_watcher_factory, watchers
    ):
        tasks = [t for t in build_tasks if t.service_name != "api"]

        with pytest.raises(ConfigurationError) as exc_info:
            build_sessions(
                composition,
                tasks,
                settled_state,
                str(tmp_path),
                diff_engine_factory=engine_factory,
                watcher_factory=fake_watcher_factory,
            )

        assert exc_info.value.service_name == "api"
        assert "Could not find a build task for service: api" in str(exc_info.value)
        assert watchers == {}

    def test_missing_build_task_for_image_service_fails(
        self, composition, build_tasks, settled_state, tmp_path, engine_factory, fake_watcher_factory
    ):
        tasks = [t for t in build_tasks if t.service_name != "redis"]

        with pytest.raises(ConfigurationError) as exc_info:
            build_sessions(
                composition,
                tasks,
                settled_state,
                str(tmp_path),
                diff_engine_factory=engine_factory,
                watcher_factory=fake_watcher_factory,
            )

        assert exc_info.value.service_name == "redis"

    def test_missing_dockerfile_fails_closed(
        self, composition, build_tasks, settled_state, tmp_path, engine_factory, fake_watcher_factory, watchers
    ):
        tasks = [BuildTask(service_name="web"), *build_tasks[1:]]

        with pytest.raises(ConfigurationError, match="Could not detect dockerfile for service: web"):
            build_sessions(
                composition,
                tasks,
                settled_state,
                str(tmp_path),
                diff_engine_factory=engine_factory,
                watcher_factory=fake_watcher_factory,
            )

        assert watchers == {}

    def test_missing_container_fails_closed(
        self, composition, build_tasks, tmp_path, engine_factory, fake_watcher_factory, watchers
    ):
        state = make_state("applied", {"web": "abc123"})

        with pytest.raises(ConfigurationError, match="Could not find container on-device for service: api"):
            build_sessions(
                composition,
                build_tasks,
                state,
                str(tmp_path),
                diff_engine_factory=engine_factory,
                watcher_factory=fake_watcher_factory,
            )

        assert watchers == {}

    def test_image_only_services_need_no_container(self, tmp_path, engine_factory, fake_watcher_factory):
        composition = Composition.from_dict({"services": {"redis": {"image": "redis"}}})

        sessions = build_sessions(
            composition,
            [BuildTask(service_name="redis")],
            make_state("applied"),
            str(tmp_path),
            diff_engine_factory=engine_factory,
            watcher_factory=fake_watcher_factory,
        )

        assert sessions == {}

    def test_diff_engine_init_error_skips_only_that_service(
        self, composition, build_tasks, settled_state, tmp_path, fake_watcher_factory, log, sink
    ):
        def factory(dockerfile, context, container_id):
            if context.endswith("api"):
                raise DiffEngineInitError("Unparseable dockerfile")
            return FakeDiffEngine()

        sessions = build_sessions(
            composition,
            build_tasks,
            settled_state,
            str(tmp_path),
            diff_engine_factory=factory,
            watcher_factory=fake_watcher_factory,
            log=log,
        )

        assert sorted(sessions) == ["web"]
        errors = sink.messages("error")
        assert len(errors) == 1
        assert "api" in errors[0]

    def test_unexpected_diff_engine_error_is_wrapped(
        self, composition, build_tasks, settled_state, tmp_path, fake_watcher_factory, log, sink
    ):
        def factory(dockerfile, context, container_id):
            raise SyntaxError("bad instruction")

        sessions = build_sessions(
            composition,
            build_tasks,
            settled_state,
            str(tmp_path),
            diff_engine_factory=factory,
            watcher_factory=fake_watcher_factory,
            log=log,
        )

        assert sessions == {}
        assert all("SyntaxError" in m for m in sink.messages("error"))


class TestPlanSessions:
    """Tests for plan_sessions()."""

    def test_context_is_joined_and_normalized(self, build_tasks, settled_state, tmp_path):
        composition = Composition.from_dict(
            {"services": {"web": {"build": {"context": "./services/../web/"}}}}
        )

        plans = plan_sessions(composition, build_tasks[:1], settled_state, str(tmp_path))

        assert len(plans) == 1
        assert plans[0].context == str(tmp_path / "web")
