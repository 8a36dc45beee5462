"""Tests for structured logging setup and publish log events"""

import json
import logging

import pytest
import structlog
from structlog.testing import capture_logs

from contract_graph.application.coordinator import PublicationCoordinator
from contract_graph.common.observability import bind_context, get_logger, setup_logging
from contract_graph.infrastructure.graph_store import GraphStore


@pytest.fixture
def reset_structlog():
    yield
    structlog.reset_defaults()


class TestLoggingSetup:
    """setup_logging renderers"""

    def test_json_renderer(self, reset_structlog, caplog):
        setup_logging(level="DEBUG", format="json")
        caplog.set_level(logging.INFO, logger="contract_graph.test_json")

        get_logger("contract_graph.test_json").info("publish_accepted", epoch=7)

        payload = json.loads(caplog.records[-1].getMessage())
        assert payload["message"] == "publish_accepted"
        assert payload["level"] == "info"
        assert payload["logger"] == "contract_graph.test_json"
        assert payload["epoch"] == 7
        assert "timestamp" in payload

    def test_bound_context_is_merged(self, reset_structlog, caplog):
        setup_logging(level="INFO", format="json", include_timestamp=False)
        caplog.set_level(logging.INFO, logger="contract_graph.test_ctx")

        with bind_context(contract_id="CTOKEN"):
            get_logger("contract_graph.test_ctx").info("inside")
        get_logger("contract_graph.test_ctx").info("outside")

        inside, outside = (json.loads(r.getMessage()) for r in caplog.records[-2:])
        assert inside["contract_id"] == "CTOKEN"
        assert "contract_id" not in outside
        assert "timestamp" not in inside


class TestPublishEvents:
    """Coordinator log events"""

    def test_accepted_and_rejected(self, make_interface):
        coordinator = PublicationCoordinator(GraphStore())

        with capture_logs() as logs:
            coordinator.publish("A", "1", make_interface("A"))
            coordinator.publish("A", "1", make_interface("A"))

        events = [(entry["event"], entry["log_level"]) for entry in logs if entry["event"].startswith("publish_")]
        assert events == [("publish_accepted", "info"), ("publish_rejected", "warning")]

        rejected = next(entry for entry in logs if entry["event"] == "publish_rejected")
        assert rejected["error_code"] == "err_graph_duplicate_version"
        assert rejected["epoch"] == 1
