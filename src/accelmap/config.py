"""
Configuration

Dataclass configurations for the search engine and mapper, and YAML
loaders for architecture / search / mapper config files.

Architecture YAML layout (optionally nested under "architecture:"):

    arithmetic:
      name: MAC
      instances: 256
      meshX: 16
      energy-per-op: 0.56
    storage:              # innermost first
      - name: RegFile
        instances: 256
        meshX: 16
        size: 64
        sharing: partitioned
      - name: GlobalBuffer
        size: 65536
"""

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .model.errors import TopologySpecError
from .model.topology import Topology, TopologySpecs

logger = logging.getLogger(__name__)

SEARCH_ALGORITHMS = ("linear-pruned",)
COST_METRICS = ("energy", "delay", "edp")


@dataclass
class SearchConfig:
    """Configuration for a search engine instance."""

    algorithm: str = "linear-pruned"

    # Diagnostic trace: best cost per index factorization
    dump_costs: bool = False
    dump_costs_path: str = "/tmp/accelmap-if-cost.txt"

    def __post_init__(self):
        if self.algorithm not in SEARCH_ALGORITHMS:
            raise ValueError(
                f"Unknown search algorithm '{self.algorithm}', expected one of {SEARCH_ALGORITHMS}"
            )

    def cost_file_path(self, search_id: int) -> Path:
        """Trace path for one search instance ('{id}' is substituted)."""
        return Path(self.dump_costs_path.replace("{id}", str(search_id)))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SearchConfig':
        data = {k.replace('-', '_'): v for k, v in data.items()}
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class MapperConfig:
    """Configuration for the sequential mapper driver."""

    metric: str = "energy"
    max_evaluations: Optional[int] = None
    search: SearchConfig = field(default_factory=SearchConfig)

    def __post_init__(self):
        if self.metric not in COST_METRICS:
            raise ValueError(f"Unknown metric '{self.metric}', expected one of {COST_METRICS}")
        if self.max_evaluations is not None and self.max_evaluations < 1:
            raise ValueError(f"max_evaluations must be >= 1, got {self.max_evaluations}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'metric': self.metric,
            'max_evaluations': self.max_evaluations,
            'search': self.search.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MapperConfig':
        data = {k.replace('-', '_'): v for k, v in data.items()}
        if 'search' in data:
            data['search'] = SearchConfig.from_dict(data['search'] or {})
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


def _load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    with open(path) as f:
        data = yaml.safe_load(f)
    return data or {}


def load_architecture(path: Union[str, Path]) -> TopologySpecs:
    """Load, parse and validate an architecture YAML file."""
    data = _load_yaml(path)
    data = data.get('architecture', data)
    for section in ('arithmetic', 'storage'):
        if section not in data:
            raise TopologySpecError(f"{path}: missing '{section}' section")
    logger.debug("Loaded architecture from %s", path)
    return Topology.parse_specs(data['storage'], data['arithmetic'])


def load_search_config(path: Union[str, Path]) -> SearchConfig:
    data = _load_yaml(path)
    return SearchConfig.from_dict(data.get('search', data))


def load_mapper_config(path: Union[str, Path]) -> MapperConfig:
    data = _load_yaml(path)
    return MapperConfig.from_dict(data.get('mapper', data))
