"""
Tests for `python -m simple_nn`.
"""
import pytest

from simple_nn.__main__ import build_parser, config_from_args, main

FAST = ["--num-samples", "200", "--num-epochs", "2", "--nonlinear-epochs", "2", "--batch-size", "20",
        "--input-scale", "1", "--learning-rate", "0.05", "--no-plot"]


def test_parser_defaults():
    config = config_from_args(build_parser().parse_args([]))
    assert config.batch_size == 100
    assert config.optimizer == "descent"


@pytest.mark.parametrize("experiment", ["linear", "noisy", "nonlinear"])
def test_runs_experiment(capsys, experiment):
    assert main(["--experiment", experiment] + FAST) == 0
    out = capsys.readouterr().out
    assert "===After training===" in out
    assert "test loss" in out
    assert ("||W - M||" in out) == (experiment != "nonlinear")


def test_manual(capsys):
    assert main(["--experiment", "manual", "--no-plot"]) == 0
    assert "learned W" in capsys.readouterr().out


def test_invalid_config_exits():
    with pytest.raises(SystemExit) as excinfo:
        main(["--f-train", "0.9", "--f-dev", "0.2", "--no-plot"])
    assert excinfo.value.code == 2
