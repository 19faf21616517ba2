"""Main experiment runner for rectangle packing."""

from __future__ import annotations

import argparse
import logging
import random
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from rectpacking.algorithms.solution import Solution
from rectpacking.core.errors import PackingError
from rectpacking.core.models import PackingHeuristic, Rect
from rectpacking.monitoring.metrics import (
    ExperimentMetrics,
    RunMetrics,
    export_to_csv,
    export_to_json,
    print_summary,
)
from rectpacking.runner.config import RunConfig, load_config, save_config
from rectpacking.runner.dataset import (
    Instance,
    generate_instance,
    get_ordering_strategy,
    load_instances,
)

logger = logging.getLogger(__name__)


class ExperimentRunner:
    """
    Experiment orchestrator for rectangle packing.

    Packs every selected instance under every combination of ordering,
    repetition, heuristic and bin selection strategy, checks each solution
    for feasibility and collects metrics.
    """

    def __init__(self, config: RunConfig):
        self.config = config
        self.results_dir = Path(config.results_dir)

    def load_instances(self) -> list[Instance]:
        """Instances selected by the config (file or random)."""
        cfg = self.config
        if not cfg.instance_path:
            return [generate_instance(cfg.generate_count, cfg.bin_width, cfg.bin_height, seed=cfg.seed)]

        instances = load_instances(cfg.instance_path)
        if cfg.instance_ids is None:
            return instances
        for index in cfg.instance_ids:
            if not 0 <= index < len(instances):
                raise ValueError(
                    f"Instance id {index} out of range: {cfg.instance_path} has {len(instances)}"
                )
        return [instances[i] for i in cfg.instance_ids]

    def run_experiment(self, instances: Optional[list[Instance]] = None) -> ExperimentMetrics:
        """
        Run the full experiment.

        Args:
            instances: Instances to pack.  Defaults to ``load_instances()``.

        Returns:
            ExperimentMetrics with one RunMetrics per packing run.

        Raises:
            InfeasibleInstanceError: An item is larger than the bin.
            InvariantViolationError: A produced solution is invalid.
        """
        cfg = self.config
        if instances is None:
            instances = self.load_instances()

        experiment_id = f"exp_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"
        metrics = ExperimentMetrics(experiment_id=experiment_id)
        logger.info(
            "Starting %s: %d instances, heuristics=%s, strategies=%s",
            experiment_id, len(instances),
            [h.value for h in cfg.heuristics], cfg.strategies,
        )

        for instance in instances:
            for ordering in cfg.orderings:
                order_fn = get_ordering_strategy(ordering)
                for repetition in range(cfg.repetitions):
                    rng = random.Random(cfg.seed + repetition)
                    items = order_fn(instance.items, rng)
                    for heuristic in cfg.heuristics:
                        for strategy in cfg.strategies:
                            run = self._pack(instance, items, ordering, repetition, heuristic, strategy)
                            metrics.add_run(run)
            logger.info("Finished %s (%d items)", instance.name, instance.size())

        metrics.mark_complete()
        self._save_results(metrics)
        return metrics

    def _pack(
        self,
        instance: Instance,
        items: list[Rect],
        ordering: str,
        repetition: int,
        heuristic: PackingHeuristic,
        strategy: str,
    ) -> RunMetrics:
        """Pack one ordered item list and validate the solution."""
        solution = Solution(instance.bin_width, instance.bin_height, bin_type=self.config.bin_type)

        start = time.perf_counter()
        if strategy == "first_fit":
            solution.pack_first(items, heuristic, self.config.allow_rotation)
        else:
            solution.pack(items, heuristic, self.config.allow_rotation)
        elapsed = time.perf_counter() - start

        solution.validate()

        bins = solution.bins
        touching = sum(b.touching_perimeter_ratio for b in bins) / len(bins)
        return RunMetrics(
            instance=instance.name,
            ordering=ordering,
            repetition=repetition,
            heuristic=heuristic.value,
            strategy=strategy,
            num_items=len(items),
            num_bins=solution.number_of_bins(),
            lower_bound=solution.lower_bound(items),
            avg_occupancy=solution.average_occupancy,
            touching_perimeter=touching,
            runtime_seconds=elapsed,
            feasible=True,
        )

    def _save_results(self, metrics: ExperimentMetrics) -> None:
        """Save metrics to JSON and CSV, plus the config that produced them."""
        self.results_dir.mkdir(parents=True, exist_ok=True)
        base = self.results_dir / metrics.experiment_id

        export_to_json(metrics, base.with_suffix(".json"))
        export_to_csv(metrics, base.parent / f"{metrics.experiment_id}_runs.csv")
        save_config(self.config, base.parent / f"{metrics.experiment_id}_config.yaml")
        logger.info("Saved results to %s", self.results_dir)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run rectangle packing experiments")
    parser.add_argument("--config", type=str, default=None, help="YAML run configuration")
    parser.add_argument("--instances", type=str, default=None,
                        help="Instance file (.2bp class file or .json dataset)")
    parser.add_argument("--instance-id", type=int, action="append", dest="instance_ids",
                        help="Instance index inside the file (repeatable, default: all)")
    parser.add_argument("--heuristic", action="append", dest="heuristics",
                        help="Placement heuristic (repeatable, default: all)")
    parser.add_argument("--strategy", action="append", dest="strategies",
                        choices=["best_fit", "first_fit"],
                        help="Bin selection strategy (repeatable, default: both)")
    parser.add_argument("--ordering", action="append", dest="orderings",
                        help="Item ordering (repeatable, default: random)")
    parser.add_argument("--repetitions", type=int, default=None,
                        help="Repetitions per ordering (default: 1)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (default: 12345)")
    parser.add_argument("--rotate", action="store_true", default=None,
                        help="Allow 90 degree rotation of items")
    parser.add_argument("--results-dir", type=str, default=None,
                        help="Directory to save results (default: results)")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def config_from_args(args: argparse.Namespace) -> RunConfig:
    """Load the YAML config (if any) and apply command-line overrides."""
    config = load_config(args.config) if args.config else RunConfig()
    overrides = {
        "instance_path": args.instances,
        "instance_ids": args.instance_ids,
        "heuristics": args.heuristics,
        "strategies": args.strategies,
        "orderings": args.orderings,
        "repetitions": args.repetitions,
        "seed": args.seed,
        "allow_rotation": args.rotate,
        "results_dir": args.results_dir,
        "verbose": args.verbose or None,
    }
    data = config.to_dict()
    data.update({k: v for k, v in overrides.items() if v is not None})
    return RunConfig.from_dict(data)


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for ``rectpack-run``."""
    args = build_parser().parse_args(argv)
    config = config_from_args(args)

    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    runner = ExperimentRunner(config)
    try:
        metrics = runner.run_experiment()
    except PackingError as e:
        logger.error("Experiment failed: %s", e)
        return 1

    print(print_summary(metrics))
    print(f"Results saved to {runner.results_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
