"""
io.py - JSON Serialization of Engine Inputs and Results

The engine consumes and produces plain data. This module moves that data
to and from JSON files:
- Assets: a JSON list of objects (snake_case or camelCase keys)
- Correlation matrices: a JSON list of lists
- Results: any quant_lab result dataclass, with numpy arrays as lists

Example Usage:
-------------
    >>> from quant_lab.io import load_assets, save_result
    >>>
    >>> assets = load_assets("portfolio.json")
    >>> result = run_monte_carlo(assets, config, seed=1)
    >>> save_result(result, "simulation.json")
"""

from __future__ import annotations

import dataclasses
import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

import numpy as np

from .errors import InvalidInputError
from .types import Asset

PathLike = Union[str, Path]

# camelCase keys accepted on input, mapped to Asset field names
_ASSET_ALIASES = {
    "expectedReturn": "expected_return",
}


def to_dict(obj: Any) -> Any:
    """
    Convert a result object into JSON-compatible plain data.

    Dataclasses become dicts, numpy arrays and tuples become lists, numpy
    scalars become Python numbers and enums become their values.
    """
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_dict(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {str(k): to_dict(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_dict(v) for v in obj]
    return obj


def asset_from_dict(data: Dict[str, Any]) -> Asset:
    """Build an Asset from a dict, accepting camelCase aliases."""
    if not isinstance(data, dict):
        raise InvalidInputError(f"Asset entry must be an object, got {type(data).__name__}")

    fields = {f.name for f in dataclasses.fields(Asset)}
    kwargs = {}
    for key, value in data.items():
        name = _ASSET_ALIASES.get(key, key)
        if name in fields:
            kwargs[name] = value

    try:
        return Asset(**kwargs)
    except TypeError as e:
        raise InvalidInputError(f"Invalid asset entry {data}: {e}") from e


def _read_json(path: PathLike) -> Any:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    try:
        with open(path, "r") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"Malformed JSON in {path}: {e}") from e


def load_assets(path: PathLike) -> List[Asset]:
    """
    Load a list of assets from a JSON file.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    InvalidInputError
        If the content is not a list of valid asset objects.
    """
    data = _read_json(path)
    if not isinstance(data, list):
        raise InvalidInputError("Asset file must contain a JSON list")
    return [asset_from_dict(entry) for entry in data]


def save_assets(assets: Sequence[Asset], path: PathLike) -> None:
    """Write assets as a JSON list of objects."""
    with open(Path(path), "w") as f:
        json.dump([to_dict(a) for a in assets], f, indent=2)


def load_correlation(path: PathLike) -> np.ndarray:
    """Load a square correlation matrix stored as a JSON list of lists."""
    data = _read_json(path)
    try:
        matrix = np.array(data, dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Correlation matrix in {path} is not numeric: {e}") from e
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise InvalidInputError(f"Correlation matrix must be square, got shape {matrix.shape}")
    return matrix


def save_result(result: Any, path: PathLike) -> None:
    """
    Save any quant_lab result object as JSON.

    Examples
    --------
    >>> save_result(black_scholes(100, 100, 1, 0.05, 0.2), "quote.json")
    """
    with open(Path(path), "w") as f:
        json.dump(to_dict(result), f, indent=2)
