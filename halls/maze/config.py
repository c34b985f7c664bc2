from __future__ import annotations
from dataclasses import dataclass, field, fields, asdict
from typing import Any, Mapping, Optional


class ConfigError(ValueError):
    """Raised when generation parameters are inconsistent."""


@dataclass
class RegionConfig:
    side_length: float = 100.0
    min_cell_size: float = 0.8
    max_cell_size: float = 5.0
    num_rectangles: int = 30
    thick_rectangle_probability: float = 0.1
    thick_rectangle_max_cells: int = 4
    min_traversable_fraction: float = 0.1
    max_validation_tries_before_forcing: int = 20
    max_generation_attempts: int = 500
    home_clearing_half_width: float = 10.0

    def validate(self) -> 'RegionConfig':
        S = self.side_length
        if S <= 0:
            raise ConfigError("side_length must be positive")
        if self.min_cell_size <= 0:
            raise ConfigError("min_cell_size must be positive")
        if self.max_cell_size < self.min_cell_size:
            raise ConfigError("max_cell_size must be >= min_cell_size")
        if self.max_cell_size >= S:
            raise ConfigError("max_cell_size must be smaller than side_length")
        if self.num_rectangles < 1:
            raise ConfigError("num_rectangles must be >= 1")
        if not 0.0 <= self.thick_rectangle_probability <= 1.0:
            raise ConfigError("thick_rectangle_probability must be within [0, 1]")
        if self.thick_rectangle_max_cells < 2:
            raise ConfigError("thick_rectangle_max_cells must be >= 2")
        if not 0.0 <= self.min_traversable_fraction <= 1.0:
            raise ConfigError("min_traversable_fraction must be within [0, 1]")
        if self.max_validation_tries_before_forcing < 0:
            raise ConfigError("max_validation_tries_before_forcing must be >= 0")
        if self.max_generation_attempts < 1:
            raise ConfigError("max_generation_attempts must be >= 1")
        if not 0 < self.home_clearing_half_width < S / 2:
            raise ConfigError("home_clearing_half_width must be within (0, side_length/2)")
        return self


@dataclass
class WorldConfig:
    region: RegionConfig = field(default_factory=RegionConfig)
    max_total_regions: int = 5
    max_lit_up_distance: int = 3
    light_spacing: float = 5.0
    seeds_per_direction: int = 20
    seed: Optional[int] = None

    def validate(self) -> 'WorldConfig':
        self.region.validate()
        if self.max_total_regions < 3:
            raise ConfigError("max_total_regions must be >= 3")
        if self.max_lit_up_distance < 1:
            raise ConfigError("max_lit_up_distance must be >= 1")
        if self.light_spacing <= 0:
            raise ConfigError("light_spacing must be positive")
        if self.seeds_per_direction < 1:
            raise ConfigError("seeds_per_direction must be >= 1")
        return self

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any], prefix: str = 'HALLS_') -> 'WorldConfig':
        """Build a config from ``HALLS_*`` keys (Flask config or ``os.environ``).

        Keys are the upper-cased field names, e.g. ``HALLS_SIDE_LENGTH`` or
        ``HALLS_MAX_TOTAL_REGIONS``. Missing keys keep their defaults.
        """
        region_kwargs = {}
        for f in fields(RegionConfig):
            key = prefix + f.name.upper()
            if key in mapping and mapping[key] not in (None, ''):
                region_kwargs[f.name] = _coerce(f.name, mapping[key], getattr(RegionConfig, f.name))
        world_kwargs = {}
        for f in fields(cls):
            if f.name == 'region':
                continue
            key = prefix + f.name.upper()
            if key in mapping and mapping[key] not in (None, ''):
                default = None if f.name == 'seed' else getattr(cls, f.name)
                world_kwargs[f.name] = _coerce(f.name, mapping[key], default)
        return cls(region=RegionConfig(**region_kwargs), **world_kwargs).validate()

    def to_dict(self) -> dict:
        return asdict(self)


def _coerce(name: str, raw: Any, default: Any) -> Any:
    try:
        if isinstance(default, bool):
            return str(raw).lower() not in {'0', 'false', 'no', 'off', ''}
        if isinstance(default, int) or default is None:
            return int(raw)
        if isinstance(default, float):
            return float(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid value for {name}: {raw!r}") from e
    return raw


__all__ = ['RegionConfig', 'WorldConfig', 'ConfigError']
