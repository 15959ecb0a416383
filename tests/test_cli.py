"""
test_cli.py - Tests for the Typer Command Line Interface
"""

import json

import pytest
import numpy as np
from typer.testing import CliRunner

from quant_lab import __version__, save_assets
from quant_lab.cli import app


runner = CliRunner()


@pytest.fixture
def assets_file(tmp_path, three_assets):
    path = tmp_path / "assets.json"
    save_assets(three_assets, path)
    return path


@pytest.fixture
def returns_file(tmp_path, asset_returns, market_returns):
    path = tmp_path / "returns.csv"
    data = np.column_stack([asset_returns, market_returns])
    np.savetxt(path, data, delimiter=",", header="asset,market", comments="")
    return path


class TestCommands:
    """Tests for each CLI command."""

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_option(self):
        result = runner.invoke(app, [
            "option", "--spot", "100", "--strike", "100", "--expiry", "1",
            "--rate", "0.05", "--vol", "0.2",
        ])
        assert result.exit_code == 0
        assert "10.4506" in result.stdout
        assert "5.5735" in result.stdout

    def test_option_invalid(self):
        result = runner.invoke(app, [
            "option", "--spot", "100", "--strike", "100", "--expiry", "1",
            "--rate", "0.05", "--vol", "0",
        ])
        assert result.exit_code == 1
        assert "Error" in result.stdout

    def test_bond(self):
        result = runner.invoke(app, ["bond", "--coupon", "0.05", "--years", "10", "--ytm", "0.05"])
        assert result.exit_code == 0
        assert "1,000.0000" in result.stdout

    def test_simulate(self, tmp_path, assets_file):
        output = tmp_path / "sim.json"
        result = runner.invoke(app, [
            "simulate", str(assets_file), "-n", "200", "--seed", "1",
            "--no-paths", "--output", str(output),
        ])
        assert result.exit_code == 0
        assert "VaR" in result.stdout

        data = json.loads(output.read_text())
        assert len(data["final_values"]) == 200

    def test_simulate_missing_file(self, tmp_path):
        result = runner.invoke(app, ["simulate", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
        assert "Error" in result.stdout

    def test_frontier(self, tmp_path, assets_file):
        output = tmp_path / "frontier.json"
        result = runner.invoke(app, [
            "frontier", str(assets_file), "--max-weight", "0.6", "--output", str(output),
        ])
        assert result.exit_code == 0
        assert "Maximum Sharpe" in result.stdout

        data = json.loads(output.read_text())
        assert data["method"] == "heuristic"
        assert len(data["points"]) > 0

    def test_risk(self, returns_file):
        result = runner.invoke(app, ["risk", str(returns_file), "--risk-free", "0.0001"])
        assert result.exit_code == 0
        assert "Beta" in result.stdout
        assert "Tracking Error" in result.stdout

    def test_risk_wrong_columns(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("a,b,c\n0.1,0.2,0.3\n0.2,0.1,0.0\n")
        result = runner.invoke(app, ["risk", str(path)])
        assert result.exit_code == 1

    def test_log_level_option(self):
        result = runner.invoke(app, ["--log-level", "DEBUG", "version"])
        assert result.exit_code == 0
