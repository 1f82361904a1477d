"""
Hardware Level Interface

A level is one stage of the hardware hierarchy: either the compute stage
(arithmetic units) or a storage stage (buffer). The topology holds an
ordered collection of levels and only talks to them through this
interface.

Key concepts:
- LevelSpecs: Structural description of a level, parsed from configuration
- Level: Evaluated level exposing energy, area, cycles and fanout queries
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from .errors import TopologySpecError


class LevelSpecs(ABC):
    """Base for level specifications."""

    name: str
    level_index: int

    @property
    @abstractmethod
    def level_type(self) -> str:
        """Kind tag used by Topology.spec() to build the concrete level."""
        pass


class Level(ABC):
    """
    Capability interface of a single hardware level.

    Metrics are zero until the level has been evaluated.
    """

    def __init__(self):
        self.is_evaluated = False

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def energy(self) -> float:
        """Total energy (pJ)."""
        pass

    @abstractmethod
    def area(self) -> float:
        """Total area over all instances (um^2)."""
        pass

    @abstractmethod
    def area_per_instance(self) -> float:
        pass

    @abstractmethod
    def cycles(self) -> int:
        pass

    @abstractmethod
    def max_fanout(self) -> int:
        pass

    def distributed_multicast_supported(self) -> bool:
        return False

    def reset(self):
        """Discard the results of any previous evaluation."""
        self.is_evaluated = False

    @abstractmethod
    def report_lines(self) -> List[str]:
        """Human-readable description, one string per line."""
        pass

    def __str__(self) -> str:
        return "\n".join(self.report_lines())


# =============================================================================
# Config helpers shared by the level parsers
# =============================================================================

def config_value(config: Dict[str, Any], key: str, default: Any = None) -> Any:
    """Look up a key accepting both 'word-bits' and 'word_bits' spellings."""
    for candidate in (key, key.replace('-', '_'), key.replace('_', '-')):
        if candidate in config:
            return config[candidate]
    return default


_TRUE_STRINGS = ("true", "yes", "on", "1")
_FALSE_STRINGS = ("false", "no", "off", "0")


def config_flag(config: Dict[str, Any], key: str, default: bool) -> bool:
    """Boolean option; quoted YAML strings like "false" are parsed, not truth-tested."""
    value = config_value(config, key, default)
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise TopologySpecError(
        f"{key}: expected a boolean, got {value!r}",
        attribute=key, actual=value,
    )


def infer_mesh(
    name: str,
    instances: int,
    mesh_x: Optional[int],
    mesh_y: Optional[int],
) -> Tuple[int, int]:
    """
    Fill in unspecified mesh dimensions of a level.

    Neither given: (instances, 1). One given: the other is derived from
    instances. Both given: their product must equal instances.
    """
    if mesh_x is None and mesh_y is None:
        return instances, 1
    if mesh_x is not None and mesh_y is None:
        if instances % mesh_x != 0:
            raise TopologySpecError(
                f"{name}: instances ({instances}) not divisible by meshX ({mesh_x})",
                attribute="meshX", expected=instances, actual=mesh_x,
            )
        return mesh_x, instances // mesh_x
    if mesh_x is None:
        if instances % mesh_y != 0:
            raise TopologySpecError(
                f"{name}: instances ({instances}) not divisible by meshY ({mesh_y})",
                attribute="meshY", expected=instances, actual=mesh_y,
            )
        return instances // mesh_y, mesh_y
    if mesh_x * mesh_y != instances:
        raise TopologySpecError(
            f"{name}: meshX * meshY ({mesh_x} * {mesh_y}) != instances ({instances})",
            attribute="mesh", expected=instances, actual=mesh_x * mesh_y,
        )
    return mesh_x, mesh_y
