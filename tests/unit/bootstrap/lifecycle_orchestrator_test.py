"""Unit tests for the test-mode and full-start sequences."""
import logging
import threading
from typing import List
from unittest.mock import Mock, patch

import pytest
from flask import Flask

from loom.application import Application
from loom.decorator.inject_decorator import inject
from loom.db.database import Database
from loom.error.application_error import IllegalValueError, NotFoundError, ReadinessTimeoutError
from loom.web.resource import Resource
from loom.web.routes import Routes


@pytest.fixture
def calls() -> List[str]:
    return []


@pytest.fixture
def populated_app(app: Application, calls: List[str]) -> Application:
    """Application with one module, one resource and one route definition."""

    class Users:
        def __init__(self):
            calls.append("module")

        def names(self):
            return ["ada", "linus"]

    @inject("users")
    class UsersResource(Resource):
        def __init__(self, users):
            calls.append("resource")
            self.users = users

        def get_all(self, request):
            return self.users.names()

    class StatusRoutes(Routes):
        def __init__(self):
            calls.append("route")

        def mount(self, app: Flask) -> None:
            app.add_url_rule("/status", "status", lambda: "ok")

    app.module("users", Users)
    app.resource(UsersResource, "/users")
    app.routes(StatusRoutes)
    return app


class TestTestMode:
    """Test cases for Application.test."""

    def test_instantiates_modules_only(self, populated_app: Application, calls: List[str]) -> None:
        # When
        modules = populated_app.test()

        # Then
        assert calls == ["module"]
        assert [module.names() for module in modules] == [["ada", "linus"]]

    def test_flushes_key_value_store_and_forces_rollback(
        self, populated_app: Application, kvstore_mock: Mock
    ) -> None:
        # When
        populated_app.test()

        # Then
        kvstore_mock.flushdb.assert_called_once_with()
        assert populated_app.db.always_rollback is True

    def test_emits_start_then_post_init(self, populated_app: Application) -> None:
        # Given
        events = []
        populated_app.on("start", lambda: events.append("start"))
        populated_app.on("post init", lambda: events.append("post init"))
        populated_app.on("listening", lambda flask_app: events.append("listening"))

        # When
        populated_app.test()

        # Then
        assert events == ["start", "post init"]

    def test_applies_log_level_parameter_on_start(self, app: Application) -> None:
        # Given
        app.set("log level", "ERROR")

        # When
        app.test()

        # Then
        assert app.log.get_level() == logging.ERROR


class TestFullStart:
    """Test cases for Application.start."""

    def test_builds_modules_then_resources_then_routes_and_serves(
        self, populated_app: Application, calls: List[str]
    ) -> None:
        # Given
        with patch.object(populated_app, "_serve") as serve:

            # When
            flask_app = populated_app.start()

        # Then
        assert calls == ["module", "resource", "route"]
        serve.assert_called_once_with(flask_app)

        client = flask_app.test_client()
        assert client.get("/users").get_json() == ["ada", "linus"]
        assert client.get("/status").data == b"ok"
        assert client.get("/health/live").status_code == 200

    def test_resource_shares_module_singleton(self, populated_app: Application) -> None:
        # Given
        with patch.object(populated_app, "_serve"):

            # When
            populated_app.start()

        # Then
        assert populated_app.resolver.resolved_modules() == ["users"]

    def test_emits_listening_with_web_app(self, populated_app: Application) -> None:
        # Given
        listening = []
        populated_app.on("listening", listening.append)

        # When
        with patch.object(populated_app, "_serve"):
            flask_app = populated_app.start()

        # Then
        assert listening == [flask_app]

    def test_does_not_flush_key_value_store(self, populated_app: Application, kvstore_mock: Mock) -> None:
        # When
        with patch.object(populated_app, "_serve"):
            populated_app.start()

        # Then
        kvstore_mock.flushdb.assert_not_called()
        assert populated_app.db.always_rollback is False


class TestSequenceGuards:
    """Test cases for running sequences more than once and failure handling."""

    def test_start_after_test_raises(self, populated_app: Application) -> None:
        # Given
        populated_app.test()

        # When / Then
        with pytest.raises(IllegalValueError, match="already ran"):
            populated_app.start()

    def test_test_twice_raises(self, populated_app: Application) -> None:
        # Given
        populated_app.test()

        # When / Then
        with pytest.raises(IllegalValueError):
            populated_app.test()

    def test_registration_after_start_raises(self, populated_app: Application) -> None:
        # Given
        populated_app.test()

        # When / Then
        with pytest.raises(IllegalValueError):
            populated_app.module("late", lambda: None)

    def test_failure_aborts_without_serving(self, app: Application, calls: List[str]) -> None:
        """Test that a failing module emits error and traffic is never accepted."""
        # Given
        errors = []
        app.on("error", errors.append)

        def broken():
            raise RuntimeError("cannot connect")

        class StatusRoutes(Routes):
            def __init__(self):
                calls.append("route")

            def mount(self, app: Flask) -> None:
                pass

        app.module("broken", broken)
        app.routes(StatusRoutes)

        # When
        with patch.object(app, "_serve") as serve:
            with pytest.raises(RuntimeError, match="cannot connect"):
                app.start()

        # Then
        serve.assert_not_called()
        assert calls == []
        assert len(errors) == 1
        assert isinstance(errors[0], RuntimeError)

    def test_missing_required_parameter_fails_before_start_event(
        self, populated_app: Application, calls: List[str]
    ) -> None:
        # Given
        started = []
        populated_app.on("start", lambda: started.append(True))
        populated_app.register_parameter("api token", required=True)

        # When / Then
        with pytest.raises(NotFoundError, match="api token"):
            populated_app.test()
        assert started == []
        assert calls == []

    def test_missing_required_parameter_fails_full_start(self, populated_app: Application) -> None:
        # Given
        populated_app.register_parameter("api token", required=True)

        # When
        with patch.object(populated_app, "_serve") as serve:
            with pytest.raises(NotFoundError, match="api token"):
                populated_app.start()

        # Then
        serve.assert_not_called()

    def test_readiness_timeout_aborts_full_start(self, app: Application) -> None:
        """Test that a module that never becomes ready stops the sequence before serving."""
        # Given
        release = threading.Event()

        class Stuck:
            def startup(self):
                release.wait(5)

        app.module("stuck", Stuck)
        app.resolver.readiness.timeout_seconds = 0.1

        # When
        try:
            with patch.object(app, "_serve") as serve:
                with pytest.raises(ReadinessTimeoutError, match="stuck"):
                    app.start()
        finally:
            release.set()

        # Then
        serve.assert_not_called()

    def test_readiness_timeout_aborts_test_mode(self, app: Application) -> None:
        # Given
        release = threading.Event()
        post_init = []
        app.on("post init", lambda: post_init.append(True))

        class Stuck:
            def startup(self):
                release.wait(5)

        app.module("stuck", Stuck)
        app.resolver.readiness.timeout_seconds = 0.1

        # When / Then
        try:
            with pytest.raises(ReadinessTimeoutError):
                app.test()
        finally:
            release.set()
        assert post_init == []

    def test_abort_closes_data_access(self, app: Application, database: Database) -> None:
        # Given
        def broken():
            raise RuntimeError("cannot connect")

        app.module("broken", broken)

        # When
        with patch.object(database, "close") as close:
            with pytest.raises(RuntimeError):
                app.test()

        # Then
        close.assert_called_once_with()

    def test_failing_error_listener_keeps_original_error(self, app: Application) -> None:
        # Given
        def broken():
            raise RuntimeError("cannot connect")

        def failing_listener(error):
            raise ValueError("listener bug")

        app.module("broken", broken)
        app.on("error", failing_listener)

        # When / Then
        with pytest.raises(RuntimeError, match="cannot connect"):
            app.test()


class TestResourceMounting:
    """Test cases for where resources end up during full start."""

    def test_explicit_base_path_wins_over_attribute(self, app: Application) -> None:
        # Given
        class Users(Resource):
            base_path = "/users"

            def get_all(self, request):
                return ["ada"]

        app.resource(Users, "/v2/users")

        # When
        with patch.object(app, "_serve"):
            client = app.start().test_client()

        # Then
        assert client.get("/v2/users").status_code == 200
        assert client.get("/users").status_code == 404

    def test_same_class_mounted_under_two_paths(self, app: Application) -> None:
        # Given
        class Users(Resource):
            base_path = "/users"

            def get_all(self, request):
                return ["ada"]

        app.resource(Users, "/a")
        app.resource(Users, "/b")

        # When
        with patch.object(app, "_serve"):
            client = app.start().test_client()

        # Then
        assert client.get("/a").get_json() == ["ada"]
        assert client.get("/b").get_json() == ["ada"]
