"""
Mapping

A decoded mapping: the concrete loop nest plus the datatype-bypass
decisions. Decoding a mapping identifier into a Mapping is done by the
caller; the topology only reads the bypass nest.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..problem.datatypes import DataType


# Per datatype, one keep flag per storage level (innermost first).
# False means the datatype bypasses that level.
BypassNest = Dict[DataType, List[bool]]


def keep_all(num_storage_levels: int) -> BypassNest:
    """Bypass nest that keeps every datatype at every level."""
    return {dt: [True] * num_storage_levels for dt in DataType}


@dataclass
class Mapping:
    """
    Concrete mapping of a workload onto a topology.

    Attributes:
        mapping_id: Identifier the mapping was decoded from (opaque here)
        datatype_bypass_nest: Keep flags per datatype per storage level
        loop_nest: Tiling/permutation/spatial structure (opaque here)
    """
    datatype_bypass_nest: BypassNest
    mapping_id: Any = None
    loop_nest: Optional[Any] = None

    def keeps(self, dt: DataType, storage_level: int) -> bool:
        return self.datatype_bypass_nest[dt][storage_level]
