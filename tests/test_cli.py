"""CLI tests for the vldp commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from vldp import cli


@pytest.fixture
def small_config(tmp_path):
    path = tmp_path / "vldp.yaml"
    path.write_text(
        "input_bytes: 1\n"
        "time_bytes: 2\n"
        "gamma_bytes: 1\n"
        "k: 4\n"
        "merkle_depth: 2\n",
        encoding="utf-8",
    )
    return str(path)


def test_help() -> None:
    runner = CliRunner()
    result = runner.invoke(cli.main, ["--help"])
    assert result.exit_code == 0
    assert "demo" in result.output


def test_gamma_encoding() -> None:
    runner = CliRunner()
    result = runner.invoke(cli.main, ["gamma", "0.25", "--gamma-bytes", "1"])
    assert result.exit_code == 0
    assert "gamma_as_int:    63" in result.output
    assert "gamma_as_bytes:  3f" in result.output


def test_gamma_rejects_out_of_range() -> None:
    runner = CliRunner()
    result = runner.invoke(cli.main, ["gamma", "1.5"])
    assert result.exit_code != 0


def test_calibrate(small_config) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli.main,
        [
            "calibrate",
            "--config",
            small_config,
            "--true-value",
            "128",
            "--samples",
            "2000",
            "--seed",
            "3",
        ],
    )
    assert result.exit_code == 0
    assert "total variation" in result.output


def test_calibrate_requires_true_value(small_config) -> None:
    runner = CliRunner()
    result = runner.invoke(cli.main, ["calibrate", "--config", small_config])
    assert result.exit_code != 0


def test_calibrate_rejects_out_of_domain_value(small_config) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli.main, ["calibrate", "--config", small_config, "--true-value", "256"]
    )
    assert result.exit_code != 0


def test_invalid_config(tmp_path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("k: 4\nunknown_key: 1\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(
        cli.main, ["calibrate", "--config", str(path), "--true-value", "1"]
    )
    assert result.exit_code != 0


@pytest.mark.parametrize("variant", ["shuffle", "expand"])
def test_demo(small_config, variant) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli.main,
        [
            "demo",
            "--variant",
            variant,
            "--rounds",
            "3",
            "--true-value",
            "200",
            "--config",
            small_config,
        ],
    )
    assert result.exit_code == 0, result.output
    assert "All reports verified" in result.output
    assert result.output.count("round ") == 3
