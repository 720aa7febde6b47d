import logging

import orjson

from farmbot_bounce.logging import JsonFormatter, configure_logging, redact_token


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="farmbot-bounce",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Move Z Axis %s",
        args=("up",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_renders_message_and_extra():
    line = JsonFormatter().format(_record(direction="up"))
    payload = orjson.loads(line)

    assert payload["level"] == "INFO"
    assert payload["logger"] == "farmbot-bounce"
    assert payload["message"] == "Move Z Axis up"
    assert payload["direction"] == "up"
    assert "timestamp" in payload


def test_json_formatter_reprs_unserialisable_extra():
    payload = orjson.loads(JsonFormatter().format(_record(error=ValueError("boom"))))
    assert payload["error"] == "ValueError('boom')"


def test_configure_logging_installs_json_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        logger = configure_logging("debug")
        assert logger.name == "farmbot-bounce"
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_redact_token_keeps_prefix():
    assert redact_token("eyJhbGciOiJSUzI1NiJ9.payload.sig") == "eyJhbGci..."
    assert redact_token("T123") == "***"
