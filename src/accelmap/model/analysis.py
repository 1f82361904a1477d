"""
Nest Analysis Interface

The topology consumes working-set information computed from a mapping's
loop nest. Computing that information is the analysis collaborator's job;
this module defines what the topology asks for.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List

from ..problem.datatypes import DataType
from .tiling import CompoundTileNest


@dataclass
class BodyInfo:
    """
    Innermost loop-body statistics.

    Attributes:
        accesses: Temporal compute iterations per arithmetic instance
        utilized_instances: Arithmetic instances active in parallel
    """
    accesses: int = 0
    utilized_instances: int = 1


class NestAnalysis(ABC):
    """What the topology needs from a loop-nest analysis."""

    @abstractmethod
    def get_working_set_sizes_ltw(self) -> List[Dict[DataType, int]]:
        """Coarse working-set sizes per storage level (innermost first)."""
        pass

    @abstractmethod
    def get_working_sets(self) -> CompoundTileNest:
        """Full working-set tile hierarchy, per datatype."""
        pass

    @abstractmethod
    def get_body_info(self) -> BodyInfo:
        pass


@dataclass
class StaticNestAnalysis(NestAnalysis):
    """Analysis result holding precomputed values."""
    working_sets: CompoundTileNest
    body_info: BodyInfo = field(default_factory=BodyInfo)

    def get_working_set_sizes_ltw(self) -> List[Dict[DataType, int]]:
        num_levels = min(len(tiles) for tiles in self.working_sets.values())
        return [
            {dt: self.working_sets[dt][level].size for dt in DataType}
            for level in range(num_levels)
        ]

    def get_working_sets(self) -> CompoundTileNest:
        return self.working_sets

    def get_body_info(self) -> BodyInfo:
        return self.body_info
