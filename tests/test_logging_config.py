import json
import logging

from vitrine.logging_config import JSONFormatter, bind_logger, get_logger, redact_context


class TestJSONFormatter:
    def _record(self, context=None):
        record = logging.LogRecord("vitrine.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        if context is not None:
            record.context = context
        return record

    def test_formats_json(self):
        data = json.loads(JSONFormatter().format(self._record()))
        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert "context" not in data

    def test_tokens_are_redacted(self):
        data = json.loads(JSONFormatter().format(self._record({"instance_id": "loja-1", "token": "secret"})))
        assert data["context"] == {"instance_id": "loja-1", "token": "***"}


def test_redact_keeps_empty_secret():
    assert redact_context({"token": ""}) == {"token": ""}


def test_logger_namespace():
    assert get_logger("chat").name == "vitrine.chat"


def test_bound_context_merges(caplog):
    log = bind_logger("forwarder", instance_id="loja-1")
    with caplog.at_level(logging.INFO, logger="vitrine.forwarder"):
        log.info("sent", context={"status": 200})
    assert caplog.records[-1].context == {"instance_id": "loja-1", "status": 200}
