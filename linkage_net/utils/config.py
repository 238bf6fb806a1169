"""
Configuration management utilities for Linkage-Net.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

import yaml

T = TypeVar("T", bound="Config")


@dataclass
class Config:
    """
    Base configuration class with save/load functionality.

    Supports JSON and YAML formats.
    """

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    def save(self, path: Union[str, Path]) -> None:
        """
        Save configuration to file.

        Supports .json and .yaml/.yml extensions.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = self.to_dict()

        if path.suffix == ".json":
            with open(path, "w") as f:
                json.dump(data, f, indent=2, default=str)
        elif path.suffix in [".yaml", ".yml"]:
            with open(path, "w") as f:
                yaml.safe_dump(data, f, default_flow_style=False)
        else:
            raise ValueError(f"Unsupported file format: {path.suffix}")

    @classmethod
    def load(cls: Type[T], path: Union[str, Path]) -> T:
        """
        Load configuration from file.

        Supports .json and .yaml/.yml extensions.
        """
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        if path.suffix == ".json":
            with open(path) as f:
                data = json.load(f)
        elif path.suffix in [".yaml", ".yml"]:
            with open(path) as f:
                data = yaml.safe_load(f)
        else:
            raise ValueError(f"Unsupported file format: {path.suffix}")

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls: Type[T], data: Dict[str, Any]) -> T:
        """Create configuration from dictionary."""
        # Filter to only valid fields
        valid_fields = {f.name for f in fields(cls)}
        filtered_data = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered_data)

    def update(self, **kwargs) -> "Config":
        """Create a new config with updated values."""
        data = self.to_dict()
        data.update(kwargs)
        return self.__class__.from_dict(data)


@dataclass
class ToleranceConfig(Config):
    """Numeric tolerances shared by all analyzers."""

    # Pivot threshold for rank and null space
    rank_tolerance: float = 1e-10
    # Absolute edge-length drift accepted by folds
    length_tolerance: float = 0.01
    # Pivot threshold for Cayley-Menger determinants
    determinant_pivot_tolerance: float = 1e-12
    # Area / volume below which points are degenerate
    volume_tolerance: float = 1e-8
    # Sphere gap below which two spheres count as tangent
    tangency_tolerance: float = 0.01
    # Minimum magnitude of a flex direction
    direction_tolerance: float = 1e-3


@dataclass
class SearchConfig(Config):
    """Limits for the exponential combinatorial searches."""

    exhaustive_clique_limit: int = 10
    laman_subgraph_limit: int = 8
    circuit_max_subset: int = 6
    # Global cap on enumerated subset sizes (None = no cap)
    max_subset_size: Optional[int] = None

    def subset_cap(self, limit: int) -> int:
        """Apply ``max_subset_size`` to a per-search limit."""
        if self.max_subset_size is None:
            return limit
        return min(limit, self.max_subset_size)


@dataclass
class FoldingConfig(Config):
    """Configuration for fold candidate generation."""

    hinge_angles_deg: List[float] = field(
        default_factory=lambda: [30.0, 45.0, 60.0, 90.0, 120.0, 180.0]
    )
    try_negative_angles: bool = True
    rotate_both_cliques: bool = True
    propagate_bridges: bool = True
    max_fold_steps: int = 32


@dataclass
class ProjectionConfig(Config):
    """Configuration for the iterative constraint projector."""

    iterations: int = 10
    tolerance: float = 0.001
    relaxation_factor: float = 0.5
    nudge_iterations: int = 20
    nudge_tolerance: float = 1e-4


@dataclass
class EngineConfig(Config):
    """Complete engine configuration."""

    tolerances: ToleranceConfig = field(default_factory=ToleranceConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    folding: FoldingConfig = field(default_factory=FoldingConfig)
    projection: ProjectionConfig = field(default_factory=ProjectionConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Create from nested dictionary."""
        return cls(
            tolerances=ToleranceConfig.from_dict(data.get("tolerances") or {}),
            search=SearchConfig.from_dict(data.get("search") or {}),
            folding=FoldingConfig.from_dict(data.get("folding") or {}),
            projection=ProjectionConfig.from_dict(data.get("projection") or {}),
        )


def get_default_config() -> EngineConfig:
    """Get default engine configuration."""
    return EngineConfig()


def load_config(path: Union[str, Path]) -> EngineConfig:
    """Load engine configuration from a JSON or YAML file."""
    return EngineConfig.load(path)


def save_config(config: EngineConfig, path: Union[str, Path]) -> None:
    config.save(path)
