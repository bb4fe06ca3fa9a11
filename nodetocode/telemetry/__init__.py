"""Telemetry and observability helpers.

This package tracks estimated translation costs and emits severity-filtered logs.
"""

from .cost_tracker import CostTracker
from .logger import Logger, LogSeverity, NullLogger, PipelineLogger

__all__ = ["CostTracker", "Logger", "LogSeverity", "NullLogger", "PipelineLogger"]
