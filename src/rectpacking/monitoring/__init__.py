"""Monitoring module for rectpacking.

Provides metrics tracking and export for packing experiments.
"""

from .metrics import (
    ExperimentMetrics,
    RunMetrics,
    export_to_csv,
    export_to_json,
    print_summary,
)

__all__ = [
    "ExperimentMetrics",
    "RunMetrics",
    "export_to_csv",
    "export_to_json",
    "print_summary",
]
