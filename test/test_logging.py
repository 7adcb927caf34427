"""Tests for structured logging."""

import json
import logging

from talent_engine.shared.logging import (
    StructuredFormatter,
    correlation_id_var,
    get_logger,
    tenant_context,
    tenant_id_var,
)


def make_record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord("talent_engine.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    def test_emits_json_with_extra_fields(self) -> None:
        output = json.loads(StructuredFormatter().format(make_record(tenant_id="tenant-a")))

        assert output["message"] == "hello world"
        assert output["level"] == "INFO"
        assert output["logger"] == "talent_engine.test"
        assert output["tenant_id"] == "tenant-a"
        assert "correlation_id" not in output

    def test_includes_correlation_id(self) -> None:
        token = correlation_id_var.set("req-123")
        try:
            output = json.loads(StructuredFormatter().format(make_record()))
        finally:
            correlation_id_var.reset(token)

        assert output["correlation_id"] == "req-123"

    def test_clashing_extra_key_is_prefixed(self) -> None:
        output = json.loads(StructuredFormatter().format(make_record(level="custom")))

        assert output["level"] == "INFO"
        assert output["extra_level"] == "custom"

    def test_tenant_context_tags_records(self) -> None:
        with tenant_context("tenant-b"):
            output = json.loads(StructuredFormatter().format(make_record()))

        assert output["tenant_id"] == "tenant-b"
        assert tenant_id_var.get() is None

    def test_explicit_tenant_extra_overrides_context(self) -> None:
        with tenant_context("tenant-b"):
            output = json.loads(StructuredFormatter().format(make_record(tenant_id="tenant-a")))

        assert output["tenant_id"] == "tenant-a"
        assert "extra_tenant_id" not in output


class TestGetLogger:
    def test_attaches_single_handler(self) -> None:
        first = get_logger("talent_engine.test.handlers")
        second = get_logger("talent_engine.test.handlers")

        assert first is second
        assert len(second.handlers) == 1
        assert isinstance(second.handlers[0].formatter, StructuredFormatter)
