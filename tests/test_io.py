"""
test_io.py - Tests for JSON Loading and Saving
"""

import json

import pytest
import numpy as np

from quant_lab import (
    InvalidInputError,
    SimulationConfig,
    black_scholes,
    load_assets,
    load_correlation,
    run_monte_carlo,
    save_assets,
    save_result,
)
from quant_lab.io import asset_from_dict, to_dict


class TestAssets:
    """Tests for asset files."""

    def test_save_and_load(self, tmp_path, three_assets):
        path = tmp_path / "assets.json"
        save_assets(three_assets, path)
        assert load_assets(path) == three_assets

    def test_camel_case_keys(self):
        asset = asset_from_dict({
            "symbol": "VTI", "weight": 1.0, "expectedReturn": 0.07,
            "volatility": 0.16, "price": 220.0, "sector": "ignored",
        })
        assert asset.expected_return == 0.07

    def test_missing_field(self):
        with pytest.raises(InvalidInputError):
            asset_from_dict({"symbol": "X", "weight": 1.0})

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "assets.json"
        path.write_text(json.dumps({"symbol": "X"}))
        with pytest.raises(InvalidInputError):
            load_assets(path)

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "assets.json"
        path.write_text("[{")
        with pytest.raises(InvalidInputError, match="Malformed"):
            load_assets(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_assets(tmp_path / "nope.json")


class TestCorrelation:
    """Tests for correlation files."""

    def test_load(self, tmp_path, three_asset_correlation):
        path = tmp_path / "rho.json"
        path.write_text(json.dumps(three_asset_correlation.tolist()))
        np.testing.assert_array_equal(load_correlation(path), three_asset_correlation)

    def test_not_square(self, tmp_path):
        path = tmp_path / "rho.json"
        path.write_text(json.dumps([[1.0, 0.2, 0.1], [0.2, 1.0, 0.3]]))
        with pytest.raises(InvalidInputError, match="square"):
            load_correlation(path)

    def test_ragged(self, tmp_path):
        path = tmp_path / "rho.json"
        path.write_text(json.dumps([[1.0, 0.2], [0.2]]))
        with pytest.raises(InvalidInputError):
            load_correlation(path)


class TestResults:
    """Tests for result serialization."""

    def test_to_dict_converts_arrays(self):
        data = to_dict({"a": np.arange(3), "b": np.float64(1.5), "c": (1, 2)})
        assert data == {"a": [0, 1, 2], "b": 1.5, "c": [1, 2]}

    def test_save_option_quote(self, tmp_path):
        path = tmp_path / "quote.json"
        save_result(black_scholes(100, 100, 1.0, 0.05, 0.2), path)

        data = json.loads(path.read_text())
        assert data["call_price"] == pytest.approx(10.4506, abs=1e-4)
        assert set(data["greeks"]) == {"delta", "gamma", "theta", "vega", "rho"}
        assert data["implied_volatility"] is None

    def test_save_simulation(self, tmp_path, three_assets):
        config = SimulationConfig(simulations=20, time_horizon=0.1, initial_value=100.0)
        result = run_monte_carlo(three_assets, config, seed=1, keep_paths=False)
        path = tmp_path / "sim.json"
        save_result(result, path)

        data = json.loads(path.read_text())
        assert len(data["final_values"]) == 20
        assert data["paths"] is None
        assert data["config"]["simulations"] == 20
        assert "50" in data["percentiles"]
