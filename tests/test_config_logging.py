"""Tests for config and logging."""

import io
import json
import logging
import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from listing_desk.config import (
    CreditPolicy,
    DeskConfig,
    KafkaConfig,
    NotificationConfig,
    PostgresConfig,
)
from listing_desk.exceptions import ConfigurationError
from listing_desk.logging import ActionFormatter, JsonFormatter, QUIET_LOGGERS, setup_logging


class TestPostgresConfig:
    def test_connection_string(self) -> None:
        config = PostgresConfig(host="db", port=6543, user="u", password="p", database="listings")

        assert config.connection_string == "postgresql://u:p@db:6543/listings"
        assert config.properties_table == "properties"
        assert config.profiles_table == "profiles"


class TestKafkaConfig:
    def test_to_dict(self) -> None:
        config = KafkaConfig(bootstrap_servers="kafka:9092", acks="1")

        assert config.to_dict() == {
            "bootstrap.servers": "kafka:9092",
            "acks": "1",
            "linger.ms": 5,
            "retries": 3,
        }


class TestDeskConfig:
    """Tests for DeskConfig."""

    def test_defaults(self) -> None:
        config = DeskConfig()

        assert config.notifications == NotificationConfig(duration_seconds=5.0)
        assert config.credits == CreditPolicy(create_deducts_credit=True, compensate_partial=True)
        assert config.event_sink == "console"
        assert config.output.events_dir == Path("output")

    def test_from_env_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            config = DeskConfig.from_env()

        assert config.postgres.host == "localhost"
        assert config.kafka.topic_prefix == "listing-desk"
        assert config.log_level == "INFO"

    def test_from_env_custom(self) -> None:
        env = {
            "POSTGRES_HOST": "db.internal",
            "POSTGRES_PORT": "6543",
            "KAFKA_BOOTSTRAP_SERVERS": "kafka:29092",
            "NOTIFICATION_SECONDS": "2.5",
            "EVENT_SINK": "JSON",
            "CREATE_DEDUCTS_CREDIT": "false",
            "COMPENSATE_PARTIAL": "False",
            "OUTPUT_DIR": "/tmp/events",
            "LOG_LEVEL": "DEBUG",
            "LOG_FORMAT": "json",
        }
        with patch.dict(os.environ, env, clear=True):
            config = DeskConfig.from_env()

        assert config.postgres.host == "db.internal"
        assert config.postgres.port == 6543
        assert config.kafka.bootstrap_servers == "kafka:29092"
        assert config.notifications.duration_seconds == 2.5
        assert config.event_sink == "json"
        assert config.credits.create_deducts_credit is False
        assert config.credits.compensate_partial is False
        assert config.output.events_dir == Path("/tmp/events")
        assert config.log_format == "json"

    @pytest.mark.parametrize("env", [
        {"NOTIFICATION_SECONDS": "soon"},
        {"NOTIFICATION_SECONDS": "-1"},
        {"EVENT_SINK": "webhook"},
    ])
    def test_from_env_invalid(self, env: dict) -> None:
        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(ConfigurationError):
                DeskConfig.from_env()



def make_record(message: str = "feature succeeded", exc_info=None, **context) -> logging.LogRecord:
    record = logging.LogRecord("listing_desk.actions", logging.INFO, "x.py", 1, message, None, exc_info)
    for key, value in context.items():
        setattr(record, key, value)
    return record


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_levels(self) -> None:
        setup_logging(level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("listing_desk").level == logging.DEBUG

        setup_logging(level="INVALID")
        assert logging.getLogger().level == logging.INFO

    def test_replaces_handlers(self) -> None:
        root = logging.getLogger()
        root.addHandler(logging.StreamHandler())
        root.addHandler(logging.StreamHandler())

        setup_logging(format_type="json")

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_quiets_libraries(self) -> None:
        setup_logging(level="DEBUG")

        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_writes_action_context_to_stream(self) -> None:
        stream = io.StringIO()
        setup_logging(format_type="json", stream=stream)

        logging.getLogger("listing_desk.actions").info(
            "delete succeeded", extra={"action": "delete", "targets": ["prop-002"]}
        )

        data = json.loads(stream.getvalue().strip())
        assert data["action"] == "delete"
        assert data["targets"] == ["prop-002"]


class TestJsonFormatter:
    def test_lifts_action_context(self) -> None:
        record = make_record(action="feature", targets=["prop-001"], error_kind=None)

        data = json.loads(JsonFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["logger"] == "listing_desk.actions"
        assert data["message"] == "feature succeeded"
        assert data["action"] == "feature"
        assert data["targets"] == ["prop-001"]
        assert "error_kind" not in data

    def test_ignores_unrelated_attributes(self) -> None:
        data = json.loads(JsonFormatter().format(make_record(request_id="r-1")))

        assert "request_id" not in data

    def test_format_with_exception(self) -> None:
        try:
            raise ValueError("bad")
        except ValueError:
            record = make_record("oops", exc_info=sys.exc_info())

        data = json.loads(JsonFormatter().format(record))

        assert "ValueError: bad" in data["exception"]


class TestActionFormatter:
    def test_appends_context(self) -> None:
        line = ActionFormatter().format(make_record(action="feature", targets=["prop-001", "prop-003"]))

        assert line.endswith("| listing_desk.actions | feature succeeded [action=feature targets=prop-001,prop-003]")

    def test_plain_message_without_context(self) -> None:
        line = ActionFormatter().format(make_record("started"))

        assert line.endswith("| INFO     | listing_desk.actions | started")
