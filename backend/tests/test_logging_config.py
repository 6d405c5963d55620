"""
test_logging_config.py — Structured logging, runtime configuration and bootstrap.
"""

import json
import logging
import sys

import pytest

from foamboss.config import AppConfig, load_app_config
from foamboss.services.logging_config import JSONFormatter, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


def _record(**extra):
    record = logging.LogRecord(
        name="foamboss-estimator", level=logging.INFO, pathname=__file__, lineno=10,
        msg="estimate saved %s", args=("ok",), exc_info=None, func="save",
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    def test_core_fields(self):
        payload = json.loads(JSONFormatter().format(_record()))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "foamboss-estimator"
        assert payload["message"] == "estimate saved ok"
        assert "timestamp" in payload

    def test_context_fields_copied(self):
        payload = json.loads(JSONFormatter().format(
            _record(estimate_id="e-1", business_id="biz-1", duration_ms=1.5, unrelated="x")
        ))
        assert payload["estimate_id"] == "e-1"
        assert payload["business_id"] == "biz-1"
        assert payload["duration_ms"] == 1.5
        assert "unrelated" not in payload

    def test_custom_context_fields(self):
        formatter = JSONFormatter(context_fields=("crew_id",))
        payload = json.loads(formatter.format(_record(crew_id="c-7", estimate_id="e-1")))
        assert payload["crew_id"] == "c-7"
        assert "estimate_id" not in payload

    def test_non_json_extra_is_stringified(self):
        from datetime import date
        payload = json.loads(JSONFormatter().format(_record(business_id=date(2024, 5, 1))))
        assert payload["business_id"] == "2024-05-01"

    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()
        payload = json.loads(JSONFormatter().format(record))
        assert "boom" in payload["exception"]


class TestSetupLogging:

    def test_json_handler(self, restore_root_logger):
        setup_logging(level="debug", json_output=True)
        assert restore_root_logger.level == logging.DEBUG
        assert isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    def test_context_fields_forwarded(self, restore_root_logger):
        setup_logging(json_output=True, context_fields=("crew_id",))
        assert restore_root_logger.handlers[0].formatter.context_fields == ("crew_id",)

    def test_text_handler(self, restore_root_logger):
        setup_logging(level="WARNING", json_output=False)
        assert not isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)


class TestAppConfig:

    def test_defaults(self, monkeypatch):
        for var in ("DATABASE_URL", "LOG_LEVEL", "LOG_FORMAT"):
            monkeypatch.delenv(var, raising=False)
        config = load_app_config()
        assert config.database_url == "sqlite:///foamboss.db"
        assert config.log_level == "INFO"
        assert config.json_logs is True

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://foam:pw@db/foamboss")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("LOG_FORMAT", "text")
        config = load_app_config()
        assert config.database_url == "postgresql://foam:pw@db/foamboss"
        assert config.log_level == "DEBUG"
        assert config.json_logs is False


class TestBootstrap:

    def test_bootstrap_creates_schema(self, tmp_path, restore_root_logger):
        from sqlalchemy import inspect

        from foamboss.main import bootstrap

        session_factory = bootstrap(AppConfig(database_url=f"sqlite:///{tmp_path / 'foam.db'}", json_logs=False))
        engine = session_factory.kw["bind"]
        try:
            assert {"estimates", "business_settings", "materials"} <= set(inspect(engine).get_table_names())
        finally:
            engine.dispose()

    def test_postgres_scheme_normalised(self):
        from foamboss.db import normalise_database_url
        assert normalise_database_url("postgres://u:p@h/db") == "postgresql://u:p@h/db"
        assert normalise_database_url("sqlite:///x.db") == "sqlite:///x.db"
