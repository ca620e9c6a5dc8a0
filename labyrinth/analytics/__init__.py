"""Read-only statistics over stored loss logs."""

from labyrinth.analytics.correlation import Correlation, scan_correlations
from labyrinth.analytics.patterns import process_failure_patterns
from labyrinth.analytics.scans import (
    AnalyticsReport,
    EscapeRate,
    build_report,
    escape_rate,
    nemesis_topics,
    thread_reuse,
)

__all__ = [
    "AnalyticsReport",
    "Correlation",
    "EscapeRate",
    "build_report",
    "escape_rate",
    "nemesis_topics",
    "process_failure_patterns",
    "scan_correlations",
    "thread_reuse",
]
