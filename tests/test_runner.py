"""
Tests for run configuration, the experiment runner, the CLI and metrics.

Run with:
    python -m pytest tests/test_runner.py -v
"""

import csv
import json
from pathlib import Path

import pytest
import yaml

from rectpacking.core.models import PackingHeuristic
from rectpacking.monitoring.metrics import (
    RUN_FIELDS,
    ExperimentMetrics,
    RunMetrics,
    export_to_csv,
    export_to_json,
    print_summary,
)
from rectpacking.runner.config import RunConfig, load_config, save_config
from rectpacking.runner.experiment import ExperimentRunner, build_parser, config_from_args, main

CLASS_FILE = """\
1 PROBLEM CLASS
3 N. OF ITEMS
1 1 RELATIVE AND ABSOLUTE N. OF INSTANCE
10 10 HBIN,WBIN
6 6
8 8
2 8

1 PROBLEM CLASS
2 N. OF ITEMS
2 2 RELATIVE AND ABSOLUTE N. OF INSTANCE
10 10 HBIN,WBIN
5 5
5 5
"""


@pytest.fixture
def class_file(tmp_path):
    path = tmp_path / "Class_02.2bp"
    path.write_text(CLASS_FILE)
    return path


def _run(**overrides):
    defaults = dict(instance="i", ordering="given", repetition=0, heuristic="best_area_fit",
                    strategy="best_fit", num_items=3, num_bins=3, lower_bound=2,
                    avg_occupancy=0.5, touching_perimeter=0.4, runtime_seconds=0.01)
    defaults.update(overrides)
    return RunMetrics(**defaults)


# ---------------------------------------------------------------------------
# 1. RunConfig
# ---------------------------------------------------------------------------

class TestRunConfig:
    def test_defaults(self):
        cfg = RunConfig()
        assert cfg.heuristics == list(PackingHeuristic)
        assert cfg.strategies == ["best_fit", "first_fit"]
        assert cfg.orderings == ["random"]
        assert cfg.allow_rotation is False
        assert cfg.bin_type == "max_space"

    def test_heuristic_names_parsed(self):
        cfg = RunConfig(heuristics=["BestAreaFit", "touching_perimeter"])
        assert cfg.heuristics == [
            PackingHeuristic.BEST_AREA_FIT,
            PackingHeuristic.TOUCHING_PERIMETER,
        ]

    def test_single_heuristic_string(self):
        assert RunConfig(heuristics="TOP_RIGHT_CORNER_DISTANCE").heuristics == [
            PackingHeuristic.TOP_RIGHT_CORNER_DISTANCE
        ]

    @pytest.mark.parametrize("field, value", [
        ("strategies", ["worst_fit"]),
        ("orderings", ["height_sorted"]),
        ("heuristics", ["skyline"]),
        ("repetitions", 0),
        ("bin_width", 0),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValueError):
            RunConfig(**{field: value})

    def test_to_dict_is_plain(self):
        d = RunConfig(heuristics=["best_area_fit"]).to_dict()
        assert d["heuristics"] == ["best_area_fit"]
        assert RunConfig.from_dict(d) == RunConfig(heuristics=["best_area_fit"])


class TestConfigFiles:
    def test_save_then_load(self, tmp_path):
        cfg = RunConfig(seed=7, orderings=["given", "area_sorted"], allow_rotation=True)
        path = tmp_path / "cfg" / "run.yaml"
        save_config(cfg, path)
        assert load_config(path) == cfg

    def test_partial_file_uses_defaults(self, tmp_path):
        path = tmp_path / "run.yaml"
        path.write_text(yaml.dump({"repetitions": 4, "heuristics": ["TouchingPerimeter"]}))
        cfg = load_config(path)
        assert cfg.repetitions == 4
        assert cfg.heuristics == [PackingHeuristic.TOUCHING_PERIMETER]
        assert cfg.seed == 12345

    def test_shipped_example(self):
        cfg = load_config(Path(__file__).parents[1] / "configs" / "default.yaml")
        assert cfg.repetitions == 3
        assert cfg.orderings == ["random", "area_sorted"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        with pytest.raises(ValueError, match="Empty or invalid"):
            load_config(path)

    def test_invalid_field(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("strategies: [worst_fit]\n")
        with pytest.raises(ValueError, match="Invalid configuration"):
            load_config(path)


# ---------------------------------------------------------------------------
# 2. ExperimentRunner
# ---------------------------------------------------------------------------

class TestExperimentRunner:
    def test_generated_instance(self, tmp_path):
        cfg = RunConfig(bin_width=20, bin_height=20, generate_count=15, results_dir=str(tmp_path))
        metrics = ExperimentRunner(cfg).run_experiment()

        # 1 instance x 1 ordering x 1 repetition x 3 heuristics x 2 strategies
        assert metrics.total_runs == 6
        assert metrics.infeasible_count == 0
        assert metrics.completed_at is not None
        for run in metrics.runs:
            assert run.num_items == 15
            assert run.feasible
            if run.strategy == "best_fit":
                assert run.gap >= 0

        base = tmp_path / metrics.experiment_id
        assert (tmp_path / f"{metrics.experiment_id}.json").exists()
        assert (tmp_path / f"{metrics.experiment_id}_config.yaml").exists()
        with open(f"{base}_runs.csv", newline="") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 6

    def test_class_file_with_instance_ids(self, tmp_path, class_file):
        cfg = RunConfig(
            instance_path=str(class_file),
            instance_ids=[1],
            heuristics=["best_area_fit"],
            strategies=["first_fit"],
            orderings=["given"],
            results_dir=str(tmp_path / "out"),
        )
        metrics = ExperimentRunner(cfg).run_experiment()
        assert [r.instance for r in metrics.runs] == ["Class_02_1"]
        assert metrics.runs[0].num_bins == 1

    def test_known_bin_counts(self, tmp_path, class_file):
        cfg = RunConfig(
            instance_path=str(class_file),
            instance_ids=[0],
            heuristics=["best_area_fit"],
            orderings=["given"],
            results_dir=str(tmp_path),
        )
        metrics = ExperimentRunner(cfg).run_experiment()
        by_strategy = {r.strategy: r for r in metrics.runs}
        assert by_strategy["best_fit"].num_bins == 2
        assert by_strategy["first_fit"].num_bins == 2
        assert by_strategy["best_fit"].lower_bound == 2

    def test_repetitions_and_orderings(self, tmp_path, class_file):
        cfg = RunConfig(
            instance_path=str(class_file),
            heuristics=["touching_perimeter"],
            strategies=["best_fit"],
            orderings=["random", "area_sorted"],
            repetitions=2,
            results_dir=str(tmp_path),
        )
        metrics = ExperimentRunner(cfg).run_experiment()
        # 2 instances x 2 orderings x 2 repetitions
        assert metrics.total_runs == 8
        assert set(metrics.avg_bins_by_heuristic) == {"touching_perimeter"}

    def test_instance_id_out_of_range(self, tmp_path, class_file):
        cfg = RunConfig(instance_path=str(class_file), instance_ids=[5],
                        results_dir=str(tmp_path))
        with pytest.raises(ValueError, match="out of range"):
            ExperimentRunner(cfg).load_instances()


# ---------------------------------------------------------------------------
# 3. Command line
# ---------------------------------------------------------------------------

class TestCli:
    def test_overrides_yaml(self, tmp_path):
        path = tmp_path / "run.yaml"
        save_config(RunConfig(seed=1, repetitions=3), path)
        args = build_parser().parse_args(
            ["--config", str(path), "--seed", "99", "--heuristic", "BestAreaFit", "--rotate"]
        )
        cfg = config_from_args(args)
        assert cfg.seed == 99
        assert cfg.repetitions == 3
        assert cfg.heuristics == [PackingHeuristic.BEST_AREA_FIT]
        assert cfg.allow_rotation is True

    def test_main_success(self, tmp_path, class_file, capsys):
        code = main([
            "--instances", str(class_file),
            "--strategy", "first_fit",
            "--ordering", "given",
            "--results-dir", str(tmp_path / "results"),
        ])
        assert code == 0
        assert "Experiment: exp_" in capsys.readouterr().out
        assert list((tmp_path / "results").glob("*_runs.csv"))

    def test_main_oversized_item(self, tmp_path):
        path = tmp_path / "big.2bp"
        path.write_text("1 PROBLEM CLASS\n1 N. OF ITEMS\n1 1\n10 10\n11 1\n")
        code = main(["--instances", str(path), "--results-dir", str(tmp_path / "results")])
        assert code == 1


# ---------------------------------------------------------------------------
# 4. Metrics
# ---------------------------------------------------------------------------

class TestMetrics:
    def test_add_run_updates_stats(self):
        em = ExperimentMetrics("exp_test")
        em.add_run(_run(num_bins=3, lower_bound=2))
        em.add_run(_run(num_bins=5, lower_bound=2, heuristic="touching_perimeter"))
        em.add_run(_run(num_bins=4, lower_bound=4, feasible=False))
        assert em.total_runs == 3
        assert em.total_bins == 12
        assert em.avg_bins == pytest.approx(4.0)
        assert em.avg_gap == pytest.approx(4 / 3)
        assert em.infeasible_count == 1
        assert em.avg_bins_by_heuristic == {"best_area_fit": 3.5, "touching_perimeter": 5.0}

    def test_csv_header_without_runs(self, tmp_path):
        path = tmp_path / "runs.csv"
        export_to_csv(ExperimentMetrics("exp_empty"), path)
        assert path.read_text().strip() == ",".join(RUN_FIELDS)

    def test_json_summary_only(self, tmp_path):
        em = ExperimentMetrics("exp_json")
        em.add_run(_run())
        em.mark_complete()
        path = tmp_path / "summary.json"
        export_to_json(em, path, include_runs=False)
        data = json.loads(path.read_text())
        assert "runs" not in data
        assert data["total_runs"] == 1
        assert data["completed_at"] is not None

    def test_summary_text(self):
        em = ExperimentMetrics("exp_text")
        em.add_run(_run())
        text = print_summary(em)
        assert "Runs: 1" in text
        assert "best_area_fit" in text
        assert "In Progress" in text
