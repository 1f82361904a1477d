"""
Hardware Topology Cost Model

Turns a structural description of a compute + storage hierarchy and a
mapping into energy, area and cycle estimates.
"""

from .errors import TopologySpecError, TopologyStateError
from .level import Level, LevelSpecs
from .arithmetic import ArithmeticSpecs, ArithmeticUnits
from .buffer import BufferLevel, BufferSpecs, BufferStats, DataTypeSharing
from .tiling import TileInfo, collapse_tiles, transpose_tiles, transpose_masks
from .analysis import BodyInfo, NestAnalysis, StaticNestAnalysis
from .mapping import Mapping, keep_all
from .topology import Topology, TopologySpecs

__all__ = [
    'TopologySpecError',
    'TopologyStateError',
    'Level',
    'LevelSpecs',
    'ArithmeticSpecs',
    'ArithmeticUnits',
    'BufferLevel',
    'BufferSpecs',
    'BufferStats',
    'DataTypeSharing',
    'TileInfo',
    'collapse_tiles',
    'transpose_tiles',
    'transpose_masks',
    'BodyInfo',
    'NestAnalysis',
    'StaticNestAnalysis',
    'Mapping',
    'keep_all',
    'Topology',
    'TopologySpecs',
]
