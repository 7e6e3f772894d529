# src/logenrich/tests/test_logging/test_builder_setup.py
import io
import logging
from types import SimpleNamespace

import pytest

from logenrich.config.settings import Settings
from logenrich.core.logging.builder import (
    build_formatter,
    install_pipeline,
    make_dict_config,
    setup_logging,
)
from logenrich.core.logging.filters import EnrichmentFilter
from logenrich.core.logging.formatters import EnrichedJsonFormatter, EnrichedLineFormatter


def dummy_settings(**overrides):
    # Minimal Settings-like object
    values = dict(
        ENV="testing",
        SERVICE_NAME="svc",
        LOG_LEVEL="INFO",
        LOG_FORMAT="text",
        LOG_ENRICHMENT_ENABLED=True,
        GIANT_LOGS_THRESHOLD=10_000,
        LOG_BACKTRACE_DEPTH=0,
        LOG_INCLUDE_STACKTRACES=False,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture()
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


def _enriched_handler(stream):
    handler = logging.StreamHandler(stream)
    log = logging.getLogger("test.builder.pipeline")
    log.handlers = [handler]
    log.propagate = False
    log.setLevel(logging.INFO)
    return log, handler


def test_make_dict_config_contains_console_and_formatters():
    cfg = make_dict_config(dummy_settings())
    assert cfg["version"] == 1
    assert set(cfg["handlers"]) == {"console"}
    assert cfg["handlers"]["console"]["formatter"] == "standard"
    assert cfg["formatters"]["json"]["()"] is EnrichedJsonFormatter
    assert cfg["formatters"]["json"]["service"] == "svc"
    assert cfg["loggers"][""]["level"] == "INFO"


def test_make_dict_config_json_console():
    cfg = make_dict_config(dummy_settings(LOG_FORMAT="json", LOG_LEVEL="WARNING"))
    assert cfg["handlers"]["console"]["formatter"] == "json"
    assert cfg["handlers"]["console"]["level"] == "WARNING"


def test_production_adds_error_console():
    cfg = make_dict_config(dummy_settings(ENV="production"))
    assert cfg["handlers"]["error_console"]["level"] == "ERROR"
    assert cfg["handlers"]["error_console"]["formatter"] == "json"
    assert cfg["loggers"][""]["handlers"] == ["console", "error_console"]


def test_build_formatter_follows_settings():
    line = build_formatter(dummy_settings(LOG_BACKTRACE_DEPTH=8, LOG_INCLUDE_STACKTRACES=True))
    assert type(line) is EnrichedLineFormatter
    assert line.config.backtrace_depth == 8
    assert line.config.include_stacktraces is True

    custom = build_formatter(dummy_settings(), fmt="%(message)s")
    assert custom.format(logging.makeLogRecord({"msg": "plain"})) == "plain"

    structured = build_formatter(dummy_settings(LOG_FORMAT="json"))
    assert isinstance(structured, EnrichedJsonFormatter)
    assert structured.env == "testing"
    assert structured.service == "svc"


def test_install_pipeline_is_idempotent():
    log, handler = _enriched_handler(io.StringIO())
    settings = dummy_settings()

    assert install_pipeline(log, settings) == 1
    first_formatter = handler.formatter
    assert install_pipeline(log, settings) == 1

    assert sum(isinstance(f, EnrichmentFilter) for f in handler.filters) == 1
    assert handler.formatter is not first_formatter


def test_install_pipeline_keeps_json_handlers_structured():
    log, text_handler = _enriched_handler(io.StringIO())
    error_handler = logging.StreamHandler(io.StringIO())
    error_handler.setFormatter(EnrichedJsonFormatter(env="production"))
    log.addHandler(error_handler)

    install_pipeline(log, dummy_settings(ENV="production", LOG_FORMAT="text"))

    assert type(text_handler.formatter) is EnrichedLineFormatter
    assert isinstance(error_handler.formatter, EnrichedJsonFormatter)


def test_setup_logging_production_error_console_stays_json(restore_root_logger):
    setup_logging(dummy_settings(ENV="production", LOG_FORMAT="text"))
    formatters = {type(handler.formatter) for handler in restore_root_logger.handlers}
    assert formatters == {EnrichedLineFormatter, EnrichedJsonFormatter}


def test_install_pipeline_gives_each_handler_its_own_formatter():
    log, first = _enriched_handler(io.StringIO())
    second = logging.StreamHandler(io.StringIO())
    log.addHandler(second)

    assert install_pipeline(log, dummy_settings()) == 2
    assert first.formatter is not second.formatter


def test_installed_pipeline_enriches_output(request_context):
    stream = io.StringIO()
    log, _ = _enriched_handler(stream)
    install_pipeline(log, dummy_settings(GIANT_LOGS_THRESHOLD=0), fmt="%(message)s%(context_text)s")

    request_context(trace_id="abc", scope={"type": "http", "client": ("10.0.0.9", 1234)})
    log.info("paid %s", "order", extra={"context": {"order_id": 7}})

    assert stream.getvalue() == (
        "paid order (trace_id=abc client_ip=10.0.0.9 giant_log_detected=true) order_id=7\n"
    )


def test_console_logs_are_flagged(request_context):
    stream = io.StringIO()
    log, _ = _enriched_handler(stream)
    install_pipeline(log, dummy_settings(), fmt="%(message)s")

    request_context(trace_id="job-1")
    log.info("nightly run")

    assert stream.getvalue() == "nightly run (trace_id=job-1 is_console=true)\n"


def test_setup_logging_without_enrichment(restore_root_logger):
    setup_logging(dummy_settings(LOG_ENRICHMENT_ENABLED=False))
    assert restore_root_logger.handlers
    for handler in restore_root_logger.handlers:
        assert not any(isinstance(f, EnrichmentFilter) for f in handler.filters)
        assert not isinstance(handler.formatter, EnrichedLineFormatter)


def test_setup_logging_installs_pipeline(restore_root_logger):
    setup_logging(dummy_settings(LOG_FORMAT="json"))
    assert restore_root_logger.handlers
    for handler in restore_root_logger.handlers:
        assert any(isinstance(f, EnrichmentFilter) for f in handler.filters)
        assert isinstance(handler.formatter, EnrichedJsonFormatter)


def test_settings_normalize_and_validate(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FORMAT", "JSON")
    monkeypatch.setenv("GIANT_LOGS_THRESHOLD", "2048")
    settings = Settings(_env_file=None)
    assert settings.LOG_LEVEL == "DEBUG"
    assert settings.LOG_FORMAT == "json"
    assert settings.GIANT_LOGS_THRESHOLD == 2048
    assert settings.LOG_ENRICHMENT_ENABLED is False

    monkeypatch.setenv("GIANT_LOGS_THRESHOLD", "-1")
    with pytest.raises(ValueError):
        Settings(_env_file=None)
