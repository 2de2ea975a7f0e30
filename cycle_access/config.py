"""
Configuration for network construction and accessibility queries.

Usage::

    from cycle_access import NetworkConfig

    config = NetworkConfig(tolerance=0.5, snap_mode="edge")
    config = NetworkConfig.from_yaml("configs/amsterdam.yaml")
"""

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEGENERATE_POLICIES = ("keep", "drop")
SNAP_MODES = ("edge", "node")


@dataclass
class NetworkConfig:
    """Settings shared by the builder, cleaner and accessibility engine."""

    # Coordinates closer than this (CRS units, metres) are the same node
    tolerance: float = 1e-6

    # Speed model (km/h)
    default_speed: float = 20.0
    max_speed: float = 30.0
    min_speed: float = 5.0
    downhill_factor: float = 0.8
    uphill_factor: float = 1.4

    # Streets are bidirectional for cycling unless this is set
    respect_oneway: bool = False

    # What to do with closed loops whose endpoints resolve to one node
    degenerate_policy: str = "keep"

    # Subdivision repeats until stable; this caps the number of passes
    max_clean_passes: int = 10

    # Snapping of origins/destinations
    snap_mode: str = "edge"
    max_snap_distance: float = 500.0

    # Routing
    max_workers: Optional[int] = None
    show_progress: bool = False

    def __post_init__(self):
        if not self.tolerance > 0:
            raise ConfigurationError(f"tolerance must be positive, got {self.tolerance}")
        if not 0 < self.min_speed <= self.default_speed <= self.max_speed:
            raise ConfigurationError(
                "speeds must satisfy 0 < min_speed <= default_speed <= max_speed, got "
                f"{self.min_speed}/{self.default_speed}/{self.max_speed}"
            )
        if self.downhill_factor < 0 or self.uphill_factor < 0:
            raise ConfigurationError("gradient factors must be non-negative")
        if self.degenerate_policy not in DEGENERATE_POLICIES:
            raise ConfigurationError(
                f"degenerate_policy must be one of {DEGENERATE_POLICIES}, "
                f"got '{self.degenerate_policy}'"
            )
        if self.snap_mode not in SNAP_MODES:
            raise ConfigurationError(
                f"snap_mode must be one of {SNAP_MODES}, got '{self.snap_mode}'"
            )
        if self.max_clean_passes < 1:
            raise ConfigurationError("max_clean_passes must be at least 1")
        if not self.max_snap_distance > 0:
            raise ConfigurationError("max_snap_distance must be positive")
        if self.max_workers is not None and self.max_workers < 1:
            raise ConfigurationError("max_workers must be None or >= 1")

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "NetworkConfig":
        """Build a config from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ConfigurationError(f"Unknown config keys: {sorted(unknown)}")
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "NetworkConfig":
        """Load a config from a YAML file.

        The file may hold the settings at top level or under a ``network`` key.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, 'r') as f:
            raw = yaml.safe_load(f) or {}

        if not isinstance(raw, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        if 'network' in raw and isinstance(raw['network'], dict):
            raw = raw['network']

        logger.info(f"Loaded network config from {path}")
        return cls.from_dict(raw)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_yaml(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            yaml.dump({'network': self.to_dict()}, f, default_flow_style=False, indent=2)
        return path
