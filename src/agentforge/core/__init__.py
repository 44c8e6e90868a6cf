"""
Core runtime services: cancellation, run tracking, recovery and telemetry.
"""

from .broadcast import (
    AGENT_RUN_UPDATE,
    BroadcastSink,
    CallbackBroadcastSink,
    InMemoryBroadcastSink,
    NullBroadcastSink,
)
from .cancellation import CancellationToken
from .config import ExecutorConfig
from .recovery import cancel_all_stale_running_runs, cancel_stale_running_runs
from .telemetry import (
    InMemoryTelemetrySink,
    NullTelemetrySink,
    OpenTelemetrySink,
    TelemetrySink,
    TelemetrySpan,
)
from .tracker import RunTracker

__all__ = [
    "AGENT_RUN_UPDATE",
    "BroadcastSink",
    "CallbackBroadcastSink",
    "InMemoryBroadcastSink",
    "NullBroadcastSink",
    "CancellationToken",
    "ExecutorConfig",
    "RunTracker",
    "cancel_stale_running_runs",
    "cancel_all_stale_running_runs",
    "TelemetrySink",
    "TelemetrySpan",
    "NullTelemetrySink",
    "InMemoryTelemetrySink",
    "OpenTelemetrySink",
]
