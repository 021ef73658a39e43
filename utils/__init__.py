"""Utilities package."""

from utils.telemetry import ConsoleTelemetry, TelemetryHistory, format_snapshot

__all__ = ["ConsoleTelemetry", "TelemetryHistory", "format_snapshot"]
