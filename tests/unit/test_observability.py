"""Unit tests for observability module."""

import logging
import sys

from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
import orjson
from prometheus_client import REGISTRY
import pytest

from levels_search.errors import StoreIOError
from levels_search.observability import (
    JsonFormatter,
    configure_logging,
    create_span,
    get_metrics,
    get_metrics_content_type,
    get_trace_context,
    log_context,
    set_trace_context,
    trace_context,
    track_operation,
    tracing as tracing_module,
)
from levels_search.search.index import create_index


pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def reset_trace_context():
    token = trace_context.set(None)
    yield
    trace_context.reset(token)


@pytest.fixture
def span_exporter(monkeypatch):
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setitem(tracing_module._tracer_holder, "tracer", provider.get_tracer("tests"))
    return exporter


def make_record(msg="test message", **extra):
    record = logging.LogRecord(
        name="levels_search.search.index",
        level=logging.INFO,
        pathname="index.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def sample(name, labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestJsonFormatter:
    """Tests for structured JSON logging."""

    def test_format_includes_trace_context(self):
        set_trace_context("a" * 32, "b" * 16, namespace="levels")

        data = orjson.loads(JsonFormatter().format(make_record()))

        assert data["message"] == "test message"
        assert data["level"] == "INFO"
        assert data["trace_id"] == "a" * 32
        assert data["span_id"] == "b" * 16
        assert data["namespace"] == "levels"
        assert data["component"] == "index"

    def test_generates_trace_context_when_missing(self):
        data = orjson.loads(JsonFormatter().format(make_record()))

        assert len(data["trace_id"]) == 32
        assert data["trace_id"] == get_trace_context()["trace_id"]

    def test_extra_fields_are_serialized(self):
        data = orjson.loads(JsonFormatter().format(make_record(doc_id=7, key=b"\x01\xff", codes={"TB", "FRT"})))

        assert data["doc_id"] == 7
        assert data["key"] == "01ff"
        assert data["codes"] == ["FRT", "TB"]

    def test_secret_fields_are_redacted(self):
        data = orjson.loads(JsonFormatter().format(make_record(password="hunter2")))

        assert data["password"] == "[REDACTED]"

    def test_long_messages_are_truncated(self):
        data = orjson.loads(JsonFormatter().format(make_record("x" * 5000)))

        assert len(data["message"]) == JsonFormatter.MAX_MESSAGE_LEN + 3

    def test_exception_is_included(self):
        try:
            raise StoreIOError("boom")
        except StoreIOError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = orjson.loads(JsonFormatter().format(record))

        assert "StoreIOError: boom" in data["exception"]


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)
        logging.getLogger("levels_search.storage").setLevel(logging.NOTSET)

    def test_json_handler(self):
        configure_logging("debug", json_output=True)

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_plain_handler_and_overrides(self):
        configure_logging("warning", json_output=False, logger_levels={"levels_search.storage": "error"})

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert not isinstance(root.handlers[0].formatter, JsonFormatter)
        assert logging.getLogger("levels_search.storage").level == logging.ERROR

    def test_unknown_level_falls_back_to_info(self):
        configure_logging("chatty")

        assert logging.getLogger().level == logging.INFO


class TestMetrics:
    def test_track_operation_counts_success(self):
        before = sample("levels_operations_total", {"operation": "probe", "status": "ok"})

        with track_operation("probe"):
            pass

        assert sample("levels_operations_total", {"operation": "probe", "status": "ok"}) == before + 1

    def test_track_operation_counts_errors(self):
        before = sample("levels_operations_total", {"operation": "probe", "status": "error"})

        with pytest.raises(RuntimeError), track_operation("probe"):
            raise RuntimeError("fail")

        assert sample("levels_operations_total", {"operation": "probe", "status": "error"}) == before + 1

    @pytest.mark.asyncio
    async def test_query_observes_code_count(self, memory_store):
        search = create_index(memory_store, "levels")
        before = sample("levels_query_codes_count", {})

        await search.query("loki jane").execute()

        assert sample("levels_query_codes_count", {}) == before + 1

    def test_exposition(self):
        assert b"levels_operations_total" in get_metrics()
        assert get_metrics_content_type().startswith("text/plain")


class TestTracing:
    def test_create_span_sets_attributes(self, span_exporter):
        with create_span("levels.test", attributes={"levels.doc_id": 3}):
            pass

        (span,) = span_exporter.get_finished_spans()
        assert span.name == "levels.test"
        assert span.attributes["levels.doc_id"] == 3

    def test_create_span_updates_log_context(self, span_exporter):
        with create_span("levels.test") as span:
            expected = format(span.get_span_context().span_id, "016x")
            assert get_trace_context()["span_id"] == expected

    def test_create_span_records_errors(self, span_exporter):
        with pytest.raises(StoreIOError), create_span("levels.test"):
            raise StoreIOError("disk gone")

        (span,) = span_exporter.get_finished_spans()
        assert span.status.status_code == StatusCode.ERROR
        assert span.events[0].name == "exception"

    @pytest.mark.asyncio
    async def test_index_and_query_emit_spans(self, span_exporter, memory_store):
        search = create_index(memory_store, "levels")

        await search.index("Loki is a ferret", 2)
        await search.query("ferret").execute()
        await search.remove(2)

        names = [span.name for span in span_exporter.get_finished_spans()]
        assert names == ["levels.index", "levels.query", "levels.remove"]


class _JsonCapture(logging.Handler):
    """Formats records at emit time, while the caller's context is still bound."""

    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.setFormatter(JsonFormatter())
        self.entries: list[dict] = []

    def emit(self, record):
        self.entries.append(orjson.loads(self.format(record)))


class TestNamespaceInLogs:
    @pytest.fixture
    def captured(self):
        handler = _JsonCapture()
        index_logger = logging.getLogger("levels_search.search.index")
        previous = index_logger.level
        index_logger.addHandler(handler)
        index_logger.setLevel(logging.DEBUG)
        yield handler.entries
        index_logger.removeHandler(handler)
        index_logger.setLevel(previous)

    @pytest.mark.asyncio
    async def test_operations_log_their_namespace(self, captured, memory_store):
        search = create_index(memory_store, "pets")

        await search.index("Loki is a ferret", 2)
        await search.query("ferret").execute()
        await search.remove(2)

        messages = [entry["message"] for entry in captured]
        assert messages[0].startswith("Indexed document 2")
        assert messages[1].startswith("Query 'ferret'")
        assert messages[2].startswith("Removed document 2")
        assert {entry["namespace"] for entry in captured} == {"pets"}

    @pytest.mark.asyncio
    async def test_namespace_is_unbound_after_the_operation(self, captured, memory_store):
        await create_index(memory_store, "pets").index("ferret", 1)

        assert "namespace" not in get_trace_context()

    def test_log_context_restores_previous_fields(self):
        set_trace_context("c" * 32, "d" * 16)

        with log_context(namespace="pets") as ctx:
            assert ctx["namespace"] == "pets"
            assert ctx["trace_id"] == "c" * 32

        assert get_trace_context() == {"trace_id": "c" * 32, "span_id": "d" * 16}
