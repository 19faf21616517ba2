"""Metrics tracking and export for rectangle packing experiments.

Provides dataclasses for tracking experiment metrics and utilities for
exporting results to JSON and CSV formats.
"""

from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import numpy as np


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


RUN_FIELDS = [
    "instance", "ordering", "repetition", "heuristic", "strategy",
    "num_items", "num_bins", "lower_bound", "avg_occupancy",
    "touching_perimeter", "runtime_seconds", "feasible",
]


@dataclass
class RunMetrics:
    """Metrics for a single packing run.

    Attributes:
        instance: Instance name.
        ordering: Item ordering used.
        repetition: Repetition index for random orderings.
        heuristic: Placement heuristic.
        strategy: Bin selection strategy (best_fit or first_fit).
        num_items: Number of items packed.
        num_bins: Number of bins in the solution.
        lower_bound: Area lower bound on the number of bins.
        avg_occupancy: Mean bin occupancy (0-1).
        touching_perimeter: Mean touching-perimeter ratio over bins (0-1).
        runtime_seconds: Wall-clock packing time.
        feasible: Whether the solution passed validation.
    """

    instance: str
    ordering: str
    repetition: int
    heuristic: str
    strategy: str
    num_items: int
    num_bins: int
    lower_bound: int
    avg_occupancy: float
    touching_perimeter: float
    runtime_seconds: float
    feasible: bool = True

    @property
    def gap(self) -> int:
        """Bins used above the lower bound."""
        return self.num_bins - self.lower_bound

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary.

        Example:
            >>> rm = RunMetrics("c01_0", "random", 0, "best_area_fit", "best_fit",
            ...                 20, 7, 6, 0.71, 0.55, 0.01)
            >>> rm.to_dict()["num_bins"]
            7
        """
        return asdict(self)


@dataclass
class ExperimentMetrics:
    """Aggregate metrics for an entire experiment.

    Attributes:
        experiment_id: Unique identifier for the experiment.
        total_runs: Number of packing runs recorded.
        total_bins: Bins used over all runs.
        avg_bins: Mean bins per run.
        avg_gap: Mean bins above the lower bound.
        avg_occupancy: Mean of the per-run average occupancy.
        avg_bins_by_heuristic: Mean bins per run for each heuristic.
        runtime_seconds: Total runtime in seconds.
        infeasible_count: Number of runs that failed validation.
        started_at: Experiment start timestamp.
        completed_at: Experiment completion timestamp (None if running).
        runs: List of per-run metrics.
    """

    experiment_id: str
    total_runs: int = 0
    total_bins: int = 0
    avg_bins: float = 0.0
    avg_gap: float = 0.0
    avg_occupancy: float = 0.0
    avg_bins_by_heuristic: dict[str, float] = field(default_factory=dict)
    runtime_seconds: float = 0.0
    infeasible_count: int = 0
    started_at: datetime = field(default_factory=_utcnow)
    completed_at: datetime | None = None
    runs: list[RunMetrics] = field(default_factory=list)

    def add_run(self, run: RunMetrics) -> None:
        """Add a run's metrics to the experiment.

        Example:
            >>> em = ExperimentMetrics("exp_001")
            >>> em.add_run(RunMetrics("c01_0", "random", 0, "best_area_fit",
            ...                       "best_fit", 20, 7, 6, 0.71, 0.55, 0.01))
            >>> em.total_bins
            7
        """
        self.runs.append(run)
        self.total_runs += 1
        self.total_bins += run.num_bins
        if not run.feasible:
            self.infeasible_count += 1
        self._recalculate_stats()

    def mark_complete(self) -> None:
        """Mark experiment as complete and calculate final runtime."""
        self.completed_at = _utcnow()
        self.runtime_seconds = (self.completed_at - self.started_at).total_seconds()

    def _recalculate_stats(self) -> None:
        """Recalculate aggregate statistics from run metrics."""
        if not self.runs:
            return

        bins = np.array([r.num_bins for r in self.runs], dtype=float)
        gaps = np.array([r.gap for r in self.runs], dtype=float)
        occupancy = np.array([r.avg_occupancy for r in self.runs], dtype=float)
        self.avg_bins = float(bins.mean())
        self.avg_gap = float(gaps.mean())
        self.avg_occupancy = float(occupancy.mean())

        heuristics = sorted({r.heuristic for r in self.runs})
        self.avg_bins_by_heuristic = {
            h: float(np.mean([r.num_bins for r in self.runs if r.heuristic == h]))
            for h in heuristics
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with ISO timestamps."""
        d = asdict(self)
        d["started_at"] = self.started_at.isoformat()
        d["completed_at"] = self.completed_at.isoformat() if self.completed_at else None
        d["runs"] = [r.to_dict() for r in self.runs]
        return d

    def to_summary_dict(self) -> dict[str, Any]:
        """Convert to summary dictionary without per-run details."""
        d = self.to_dict()
        del d["runs"]
        return d


def export_to_json(metrics: ExperimentMetrics, output_path: Path | str, include_runs: bool = True) -> None:
    """Export experiment metrics to JSON file.

    Args:
        metrics: ExperimentMetrics instance to export.
        output_path: Path to output JSON file.
        include_runs: If True, include per-run metrics. If False, summary only.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = metrics.to_dict() if include_runs else metrics.to_summary_dict()

    with output_path.open("w") as f:
        json.dump(data, f, indent=2)


def export_to_csv(metrics: ExperimentMetrics, output_path: Path | str) -> None:
    """Export per-run metrics to CSV file (header only when there are no runs)."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with output_path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=RUN_FIELDS)
        writer.writeheader()
        for run in metrics.runs:
            writer.writerow(run.to_dict())


def print_summary(metrics: ExperimentMetrics) -> str:
    """Generate human-readable summary of experiment metrics.

    Returns:
        Formatted multi-line summary string.

    Example:
        >>> em = ExperimentMetrics("exp_001")
        >>> "Experiment: exp_001" in print_summary(em)
        True
    """
    lines = [
        "=" * 60,
        f"Experiment: {metrics.experiment_id}",
        "=" * 60,
        f"Runs: {metrics.total_runs}",
        f"Total Bins: {metrics.total_bins}",
        f"Average Bins per Run: {metrics.avg_bins:.2f}",
        f"Average Gap to Lower Bound: {metrics.avg_gap:.2f}",
        f"Average Occupancy: {metrics.avg_occupancy:.1%}",
        "",
        "Average Bins by Heuristic:",
    ]
    for heuristic, avg in metrics.avg_bins_by_heuristic.items():
        lines.append(f"  {heuristic:<28} {avg:.2f}")
    lines += [
        "",
        f"Runtime: {metrics.runtime_seconds:.2f} seconds",
        f"Infeasible Runs: {metrics.infeasible_count}",
        "",
        f"Started:   {metrics.started_at.isoformat()}",
        f"Completed: {metrics.completed_at.isoformat() if metrics.completed_at else 'In Progress'}",
        "=" * 60,
    ]
    return "\n".join(lines)
