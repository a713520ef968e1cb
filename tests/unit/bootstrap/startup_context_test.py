import json
import logging

import pytest

from loom.bootstrap.startup_context import StartupContext


class TestStartupContext:

    def test_summary_records_phases_in_order(self) -> None:
        # Given
        ctx = StartupContext("todo", "start")

        # When
        with ctx.phase("modules"):
            pass
        with ctx.phase("routes"):
            pass
        ctx.attribute("modules", 3)

        # Then
        summary = ctx.summary_dict()
        assert summary["status"] == "OK"
        assert summary["sequence"] == "start"
        assert [phase["name"] for phase in summary["phases"]] == ["modules", "routes"]
        assert summary["attributes"] == {"modules": 3}

    def test_failed_phase_is_recorded_and_reraised(self) -> None:
        # Given
        ctx = StartupContext("todo", "test")

        # When
        with pytest.raises(ValueError):
            with ctx.phase("data_access"):
                raise ValueError("bad dsn")

        # Then
        assert ctx.failed
        summary = ctx.summary_dict()
        assert summary["status"] == "FAILED"
        assert summary["phases"][0]["name"] == "data_access"
        assert summary["phases"][0]["error"] == "ValueError"

    def test_emit_summary_logs_json(self, caplog: pytest.LogCaptureFixture) -> None:
        # Given
        ctx = StartupContext("todo", "start")
        log = logging.getLogger("startup-context-test")

        # When
        with caplog.at_level(logging.INFO, logger="startup-context-test"):
            ctx.emit_summary(log)

        # Then
        record = caplog.records[-1]
        payload = json.loads(record.getMessage().split("STARTUP SUMMARY ", 1)[1])
        assert payload["app"] == "todo"
