"""Public maze package interface."""

from .config import ConfigError, RegionConfig, WorldConfig
from .connectivity import RegionValidator
from .directions import DIRECTIONS, EAST, NORTH, SOUTH, WEST
from .exits import Exit, extract_exits
from .generator import RegionGenerator
from .grid import CellBox, Probe, RegionGrid
from .lights import LightNetwork, LightZone
from .pipeline import GenerationError, build_region
from .region import RegionNode
from .rng import RandomStream
from .world import UnknownRegionError, WorldGraph  # noqa: F401

__all__ = [
    "ConfigError",
    "RegionConfig",
    "WorldConfig",
    "RegionValidator",
    "DIRECTIONS",
    "NORTH",
    "EAST",
    "SOUTH",
    "WEST",
    "Exit",
    "extract_exits",
    "RegionGenerator",
    "CellBox",
    "Probe",
    "RegionGrid",
    "LightNetwork",
    "LightZone",
    "GenerationError",
    "build_region",
    "RegionNode",
    "RandomStream",
    "UnknownRegionError",
    "WorldGraph",
]
