"""
Unit tests for the JSON log formatter.
"""
import json
import logging
import sys

from armory.core.logging import JSONFormatter


def make_record(message="Webhook processed", exc_info=None, **extra):
    record = logging.LogRecord("armory.test", logging.INFO, __file__, 1, message, None, exc_info)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        entry = json.loads(JSONFormatter("The Virtual Armory").format(make_record()))

        assert entry["message"] == "Webhook processed"
        assert entry["level"] == "INFO"
        assert entry["logger"] == "armory.test"
        assert entry["service"] == "The Virtual Armory"
        assert "data" not in entry

    def test_structured_data(self):
        record = make_record(extra_data={"user_id": 7, "tier": "monthly"})

        entry = json.loads(JSONFormatter().format(record))

        assert entry["data"] == {"user_id": 7, "tier": "monthly"}
        assert "service" not in entry

    def test_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record("Unhandled error", exc_info=sys.exc_info())

        entry = json.loads(JSONFormatter().format(record))

        assert "ValueError: boom" in entry["exception"]
