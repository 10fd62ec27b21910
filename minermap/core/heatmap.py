"""Linear-falloff heatmap kernels."""

from __future__ import annotations

import math
from typing import Iterable

Splat = tuple[float, float, float, float]


def accumulate(rows: int, cols: int, splats: Iterable[Splat]) -> list[list[float]]:
    """Sum ``value * (1 - d / radius)`` around each (row, col, value, radius)."""
    field = [[0.0] * cols for _ in range(rows)]
    for center_row, center_col, value, radius in splats:
        if radius <= 0:
            continue
        top = max(0, math.ceil(center_row - radius))
        bottom = min(rows - 1, math.floor(center_row + radius))
        left = max(0, math.ceil(center_col - radius))
        right = min(cols - 1, math.floor(center_col + radius))
        for row in range(top, bottom + 1):
            for col in range(left, right + 1):
                distance = math.hypot(row - center_row, col - center_col)
                if distance < radius:
                    field[row][col] += value * (1 - distance / radius)
    return field


def normalize(field: list[list[float]]) -> list[list[int]]:
    """Scale to 0-100 by the observed maximum and round."""
    peak = max((value for row in field for value in row), default=0.0)
    if peak <= 0:
        return [[0] * len(row) for row in field]
    return [[round(value / peak * 100) for value in row] for row in field]


def build_heatmap(rows: int, cols: int, splats: Iterable[Splat]) -> list[list[int]]:
    return normalize(accumulate(rows, cols, splats))
