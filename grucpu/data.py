"""Reading comma-separated numeric data and generating initial weights."""

from __future__ import annotations

import os
import re
from collections.abc import Iterable

import numpy as np

_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _parse_token(token: str) -> list[float]:
    values: list[float] = []
    pos = 0
    while True:
        match = _NUMBER.match(token, pos)
        if not match:
            return values
        values.append(float(match.group()))
        pos = match.end()
        if token.startswith(",", pos):
            pos += 1


def parse_rows(lines: Iterable[str]) -> list[list[float]]:
    """Parse whitespace-separated tokens, each a comma-separated row.

    Reading a row stops at the first field that is not a number.
    """
    return [_parse_token(token) for line in lines for token in line.split()]


def load_matrix(path: str | os.PathLike[str]) -> np.ndarray:
    """Load a CSV file into a 2-D float32 array sized by its first row."""
    with open(path, encoding="utf-8") as handle:
        rows = parse_rows(handle)
    if not rows:
        raise ValueError(f"{os.fspath(path)!r} holds no rows")
    width = len(rows[0])
    for index, row in enumerate(rows):
        if len(row) < width:
            raise ValueError(
                f"row {index} of {os.fspath(path)!r} has {len(row)} values, expected {width}"
            )
    return np.array([row[:width] for row in rows], dtype=np.float32).reshape(len(rows), width)


def load_labels(path: str | os.PathLike[str]) -> np.ndarray:
    """Load every number of a CSV file into a flat float32 array."""
    with open(path, encoding="utf-8") as handle:
        values = [value for row in parse_rows(handle) for value in row]
    return np.array(values, dtype=np.float32)


def random_weights(shape, rng: np.random.Generator | None = None) -> np.ndarray:
    """Return float32 weights drawn uniformly from [-0.001, 0.001]."""
    generator = rng if rng is not None else np.random.default_rng()
    return (generator.uniform(-1.0, 1.0, size=shape) / 1000).astype(np.float32)