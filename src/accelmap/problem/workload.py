"""
Workload Configuration

Per-workload properties consumed by the compute level during evaluation.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from .datatypes import DataType


@dataclass
class WorkloadConfig:
    """
    Workload-level properties of a tensor computation.

    Attributes:
        name: Descriptive name (usually the layer name)
        densities: Fraction of non-zero values per datatype (1.0 = dense)
    """
    name: str = "workload"
    densities: Dict[DataType, float] = field(
        default_factory=lambda: {dt: 1.0 for dt in DataType}
    )

    def __post_init__(self):
        for dt, density in self.densities.items():
            if not 0.0 <= density <= 1.0:
                raise ValueError(f"Density for {dt.name} must be 0.0-1.0, got {density}")

    def density(self, dt: DataType) -> float:
        return self.densities.get(dt, 1.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'densities': {dt.name.lower(): d for dt, d in self.densities.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WorkloadConfig':
        densities = {dt: 1.0 for dt in DataType}
        for key, value in data.get('densities', {}).items():
            densities[DataType[key.upper()]] = float(value)
        return cls(name=data.get('name', 'workload'), densities=densities)
