"""Tunable thresholds for analysis."""

from __future__ import annotations

from dataclasses import dataclass

from minermap.core.document import TILE_WORLD_SIZE


@dataclass(frozen=True)
class AnalysisConfig:
    tile_size: float = TILE_WORLD_SIZE
    min_map_size: int = 3
    large_map_limit: int = 200
    resource_limit: int = 30
    resource_radius: float = 3.0
    difficulty_radius: float = 2.0
    accessibility_radius: float = 1.0
    isolated_radius: float = 3.0


DEFAULT_CONFIG = AnalysisConfig()
