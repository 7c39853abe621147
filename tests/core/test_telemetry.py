"""Tests for OpenTelemetry setup helpers."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from thindata.core import telemetry
from thindata.core.config import Settings


def test_configure_disabled_returns_false():
    with patch.object(telemetry.trace, "set_tracer_provider") as set_provider:
        assert not telemetry.configure_opentelemetry(Settings(OTEL_ENABLED=False))
    set_provider.assert_not_called()


def test_configure_enabled_installs_provider():
    settings = Settings(
        OTEL_ENABLED=True, OTEL_EXPORTER_OTLP_ENDPOINT="http://collector:4317"
    )
    with (
        patch.object(telemetry, "OTLPSpanExporter") as exporter,
        patch.object(telemetry, "set_global_textmap"),
        patch.object(telemetry.trace, "set_tracer_provider") as set_provider,
    ):
        assert telemetry.configure_opentelemetry(settings)

    exporter.assert_called_once_with(endpoint="http://collector:4317", headers=None)
    set_provider.assert_called_once()


def test_configure_failure_is_not_fatal():
    with patch.object(telemetry, "set_global_textmap", side_effect=RuntimeError("boom")):
        assert not telemetry.configure_opentelemetry(Settings(OTEL_ENABLED=True))


def test_instrumentation_skipped_when_disabled():
    app = MagicMock()
    with patch.object(telemetry.FastAPIInstrumentor, "instrument_app") as instrument:
        telemetry.instrument_fastapi(app, enabled=False)
    instrument.assert_not_called()


def test_load_span_records_source_attributes():
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))

    with patch.object(telemetry, "get_tracer", return_value=provider.get_tracer("test")):
        with telemetry.load_span("news", "loading") as span:
            telemetry.set_load_outcome(span, "normal")

    [finished] = exporter.get_finished_spans()
    assert finished.name == telemetry.LOAD_SPAN_NAME
    assert finished.attributes == {
        telemetry.SOURCE_ATTRIBUTE: "news",
        telemetry.STATUS_ATTRIBUTE: "loading",
        telemetry.OUTCOME_ATTRIBUTE: "normal",
    }
