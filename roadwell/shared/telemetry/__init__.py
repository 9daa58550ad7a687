"""Shared telemetry: logging setup, OpenTelemetry config, and tracing helpers."""

from roadwell.shared.telemetry.logging import setup_logging
from roadwell.shared.telemetry.telemetry import TelemetryConfig
from roadwell.shared.telemetry.tracing import add_span_attributes, traced

__all__ = [
    "setup_logging",
    "TelemetryConfig",
    "traced",
    "add_span_attributes",
]
