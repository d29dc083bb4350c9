"""Tests for the structured logger"""

import logging

import pytest

from powerkit.core import InvalidLoggerSamplingRateError
from powerkit.logger import Logger


class TestLogRecords:
    """Test record format"""

    def test_info_emits_one_json_line(self, stream, records):
        """Test a log call produces one JSON object with the standard keys"""
        logger = Logger(service="payment", stream=stream)

        logger.info("Collecting payment")

        lines = records()
        assert len(lines) == 1
        record = lines[0]
        assert record["level"] == "INFO"
        assert record["message"] == "Collecting payment"
        assert record["service"] == "payment"
        assert record["sampling_rate"] == 0
        assert record["location"].startswith("test_info_emits_one_json_line:")
        assert "timestamp" in record

    def test_printf_style_arguments(self, stream, records):
        """Test message arguments are interpolated"""
        logger = Logger(service="payment", stream=stream)

        logger.info("Charged %s for %d items", "alice", 3)

        assert records()[0]["message"] == "Charged alice for 3 items"

    def test_dict_message_is_nested(self, stream, records):
        """Test dict messages are embedded as JSON rather than a string"""
        logger = Logger(service="payment", stream=stream)

        logger.info({"operation": "charge", "amount": 10})

        assert records()[0]["message"] == {"operation": "charge", "amount": 10}

    def test_non_serializable_values_use_str(self, stream, records):
        """Test values json cannot encode are rendered with str()"""
        logger = Logger(service="payment", stream=stream)

        class Charge:
            def __str__(self):
                return "Charge(42)"

        logger.info("charged", charge=Charge())

        assert records()[0]["charge"] == "Charge(42)"

    def test_none_values_are_dropped(self, stream, records):
        """Test keys with None values are omitted"""
        logger = Logger(service="payment", stream=stream)

        logger.info("hello", order_id=None)

        assert "order_id" not in records()[0]

    def test_exception_fields(self, stream, records):
        """Test exception() attaches the traceback and exception name"""
        logger = Logger(service="payment", stream=stream)

        try:
            raise ValueError("card declined")
        except ValueError:
            logger.exception("Payment failed")

        record = records()[0]
        assert record["level"] == "ERROR"
        assert record["exception_name"] == "ValueError"
        assert "card declined" in record["exception"]

    def test_level_filtering(self, stream, records):
        """Test records below the configured level are not emitted"""
        logger = Logger(service="payment", level="WARNING", stream=stream)

        logger.info("hidden")
        logger.warning("shown")

        lines = records()
        assert [line["message"] for line in lines] == ["shown"]

        logger.set_level("DEBUG")
        logger.debug("now shown")
        assert records()[-1]["message"] == "now shown"

    def test_json_indent(self, stream):
        """Test records can be pretty printed"""
        logger = Logger(service="payment", stream=stream, json_indent=4)

        logger.info("hello")

        assert '\n    "level": "INFO"' in stream.getvalue()


class TestContextScopes:
    """Test persistent, ephemeral and ad-hoc keys"""

    def test_persistent_keys_on_every_record(self, stream, records):
        """Test persistent keys are merged with per-call fields"""
        logger = Logger(service="payment", stream=stream)
        logger.append_persistent_keys(tenant="acme")

        logger.info("first", order_id="o-1")
        logger.info("second")

        first, second = records()
        assert first["tenant"] == "acme"
        assert first["order_id"] == "o-1"
        assert second["tenant"] == "acme"
        assert "order_id" not in second

    def test_later_scope_wins(self, stream, records):
        """Test ad-hoc fields override ephemeral, which override persistent"""
        logger = Logger(service="payment", stream=stream)
        logger.append_persistent_keys(stage="persistent")
        logger.append_keys(stage="ephemeral")

        logger.info("one")
        logger.info("two", extra={"stage": "extra"})
        logger.info("three", extra={"stage": "extra"}, stage="kwarg")

        assert [line["stage"] for line in records()] == ["ephemeral", "extra", "kwarg"]

    def test_remove_keys(self, stream, records):
        """Test removed keys disappear from both scopes"""
        logger = Logger(service="payment", stream=stream)
        logger.append_persistent_keys(tenant="acme")
        logger.append_keys(order_id="o-1")

        logger.remove_keys(["tenant", "order_id"])
        logger.info("hello")

        record = records()[0]
        assert "tenant" not in record
        assert "order_id" not in record
        assert logger.get_current_keys() == {}

    def test_fresh_logger_has_no_persistent_keys(self, stream, records):
        """Test persistent keys do not outlive their Logger"""
        logger = Logger(service="payment", stream=stream)
        logger.append_persistent_keys(tenant="acme")

        restarted = Logger(service="payment", stream=stream)
        restarted.info("hello")

        assert restarted.get_persistent_log_attributes() == {}
        assert "tenant" not in records()[0]

    def test_ephemeral_keys_cleared_between_invocations(self, stream, records, lambda_context):
        """Test ephemeral keys never leak into the next invocation"""
        logger = Logger(service="payment", stream=stream)
        logger.append_persistent_keys(tenant="acme")

        @logger.inject_lambda_context
        def handler(event, context):
            if event.get("order_id"):
                logger.append_keys(order_id=event["order_id"])
            logger.info("processing")

        handler({"order_id": "o-1"}, lambda_context)
        handler({}, lambda_context)

        first, second = records()
        assert first["order_id"] == "o-1"
        assert "order_id" not in second
        assert first["tenant"] == second["tenant"] == "acme"


class TestInjectLambdaContext:
    """Test handler decoration"""

    def test_context_fields(self, stream, records, lambda_context):
        """Test runtime context fields are added to records"""
        logger = Logger(service="payment", stream=stream)

        @logger.inject_lambda_context
        def handler(event, context):
            logger.info("processing")
            return "ok"

        assert handler({}, lambda_context) == "ok"

        record = records()[0]
        assert record["function_name"] == "test-function"
        assert record["function_memory_size"] == 128
        assert record["function_arn"] == lambda_context.invoked_function_arn
        assert record["function_request_id"] == lambda_context.aws_request_id
        assert record["cold_start"] is True

    def test_cold_start_only_first_invocation(self, stream, records, lambda_context):
        """Test cold_start is true once, then false"""
        logger = Logger(service="payment", stream=stream)

        @logger.inject_lambda_context
        def handler(event, context):
            logger.info("processing")

        for _ in range(3):
            handler({}, lambda_context)

        assert [line["cold_start"] for line in records()] == [True, False, False]

    def test_trace_id_from_environment(self, stream, records, lambda_context, monkeypatch):
        """Test the root trace id is added as xray_trace_id"""
        monkeypatch.setenv("_X_AMZN_TRACE_ID", "Root=1-5759e988-bd862e3fe1be46a994272793;Parent=53995c3f42cd8ad8;Sampled=1")
        logger = Logger(service="payment", stream=stream)

        @logger.inject_lambda_context
        def handler(event, context):
            logger.info("processing")

        handler({}, lambda_context)

        record = records()[0]
        assert record["xray_trace_id"] == "1-5759e988-bd862e3fe1be46a994272793"
        assert list(record)[-1] == "xray_trace_id"

    def test_log_event(self, stream, records, lambda_context):
        """Test the incoming event is logged when requested"""
        logger = Logger(service="payment", stream=stream)

        @logger.inject_lambda_context(log_event=True)
        def handler(event, context):
            return None

        handler({"order_id": "o-1"}, lambda_context)

        assert records()[0]["message"] == {"order_id": "o-1"}

    def test_log_event_location_is_handler(self, stream, records, lambda_context):
        """Test the event record points at the decorated handler"""
        logger = Logger(service="payment", stream=stream)

        def process_order(event, context):
            return None

        handler = logger.inject_lambda_context(log_event=True)(process_order)
        handler({"order_id": "o-1"}, lambda_context)

        assert records()[0]["location"] == f"process_order:{process_order.__code__.co_firstlineno}"

    def test_log_event_from_environment(self, stream, records, lambda_context, monkeypatch):
        """Test POWERTOOLS_LOGGER_LOG_EVENT enables event logging"""
        monkeypatch.setenv("POWERTOOLS_LOGGER_LOG_EVENT", "true")
        logger = Logger(service="payment", stream=stream)

        @logger.inject_lambda_context
        def handler(event, context):
            return None

        handler({"order_id": "o-1"}, lambda_context)

        assert records()[0]["message"] == {"order_id": "o-1"}

    def test_handler_errors_propagate(self, stream, lambda_context):
        """Test errors raised by the handler are not swallowed"""
        logger = Logger(service="payment", stream=stream)

        @logger.inject_lambda_context
        def handler(event, context):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            handler({}, lambda_context)

    @pytest.mark.asyncio
    async def test_async_handler(self, stream, records, lambda_context):
        """Test async handlers are decorated as well"""
        logger = Logger(service="payment", stream=stream)

        @logger.inject_lambda_context
        async def handler(event, context):
            logger.info("processing")
            return "done"

        assert await handler({}, lambda_context) == "done"
        assert records()[0]["function_name"] == "test-function"


class TestConfiguration:
    """Test configuration and sampling"""

    def test_environment_configuration(self, stream, records, monkeypatch):
        """Test service and level come from the environment"""
        monkeypatch.setenv("POWERTOOLS_SERVICE_NAME", "booking")
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        logger = Logger(stream=stream)

        logger.warning("hidden")
        logger.error("shown")

        lines = records()
        assert len(lines) == 1
        assert lines[0]["service"] == "booking"
        assert logger.level == logging.ERROR

    def test_explicit_arguments_win(self, stream, monkeypatch):
        """Test constructor arguments override the environment"""
        monkeypatch.setenv("POWERTOOLS_SERVICE_NAME", "booking")
        logger = Logger(service="payment", level="DEBUG", stream=stream)

        assert logger.service == "payment"
        assert logger.level == logging.DEBUG

    @pytest.mark.parametrize("rate", [-0.1, 1.5, "abc"])
    def test_invalid_sampling_rate(self, rate):
        """Test sampling rates outside [0, 1] are rejected"""
        with pytest.raises(InvalidLoggerSamplingRateError):
            Logger(service="payment", sample_rate=rate)

    def test_full_sampling_enables_debug(self, stream, records):
        """Test a sampling rate of 1 always lowers the level to DEBUG"""
        logger = Logger(service="payment", level="INFO", sample_rate=1, stream=stream)

        logger.debug("sampled")

        assert records()[0]["sampling_rate"] == 1

    def test_set_service(self, stream, records):
        """Test the service name can be changed after construction"""
        logger = Logger(service="payment", stream=stream)

        logger.set_service("ledger")
        logger.info("hello")

        assert records()[0]["service"] == "ledger"

    def test_create_child(self, stream, records):
        """Test children share configuration and copy persistent keys"""
        parent = Logger(service="payment", stream=stream)
        parent.append_persistent_keys(tenant="acme")

        child = parent.create_child()
        child.append_persistent_keys(component="ledger")
        child.info("from child")
        parent.info("from parent")

        from_child, from_parent = records()
        assert child.child is True
        assert from_child["service"] == "payment"
        assert from_child["tenant"] == "acme"
        assert from_child["component"] == "ledger"
        assert "component" not in from_parent
