"""Telemetry module for logging, metrics, and reporting."""

from triscan.telemetry.logger import AsyncLogger, setup_logging
from triscan.telemetry.metrics import MetricsCollector
from triscan.telemetry.reporter import CLIReporter, PipelineState


__all__ = [
    "AsyncLogger",
    "CLIReporter",
    "MetricsCollector",
    "PipelineState",
    "setup_logging",
]
