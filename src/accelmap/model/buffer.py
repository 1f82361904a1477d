"""
Buffer Level

A storage level of the topology: an array of identical buffer instances
holding working-set tiles for one or more datatypes.

Sharing modes:
- SHARED: one physical buffer holds all datatypes. Structural attributes
  are tracked once, in the SHARED_SLOT of each per-datatype array.
- PARTITIONED: each datatype has its own partition. Attributes are tracked
  per datatype; partitions are structurally identical.

Energy model:
    access energy  = (reads + fills) x access_energy
    network energy = transfers x word_bits x wire_energy x hop_distance
    hop_distance   = 0.5 x sqrt(inner_tile_area x fanout)   (um -> mm)

The hop distance grows with the area this level reaches into, which the
topology accumulates level by level.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from math import ceil, sqrt
from typing import Any, Dict, List, Optional

from ..problem.datatypes import DataType, NUM_DATA_TYPES, SHARED_SLOT, PerDataSpace
from .level import Level, LevelSpecs, config_flag, config_value, infer_mesh
from .tiling import CompoundMask, CompoundTile

logger = logging.getLogger(__name__)


class DataTypeSharing(Enum):
    """How a buffer divides its capacity among datatypes."""
    SHARED = "shared"
    PARTITIONED = "partitioned"


@dataclass
class BufferSpecs(LevelSpecs):
    """
    Structural description of one storage level.

    Per-datatype attributes (instances, mesh, fanout) are PerDataSpace
    arrays; only the slots selected by the sharing mode are used. A value
    of None means "unspecified" and may be inferred by Topology.validate().
    """
    name: str = "Buffer"
    sharing_type: DataTypeSharing = DataTypeSharing.SHARED
    size: Optional[int] = None            # Words (per partition if partitioned)
    word_bits: int = 16
    instances: PerDataSpace = field(default_factory=PerDataSpace)
    mesh_x: PerDataSpace = field(default_factory=PerDataSpace)
    mesh_y: PerDataSpace = field(default_factory=PerDataSpace)
    fanout: PerDataSpace = field(default_factory=PerDataSpace)
    fanout_x: PerDataSpace = field(default_factory=PerDataSpace)
    fanout_y: PerDataSpace = field(default_factory=PerDataSpace)
    read_bandwidth: Optional[float] = None    # Words/cycle per instance
    write_bandwidth: Optional[float] = None
    access_energy: float = 1.0                # pJ per word access
    area_per_instance: float = 0.0            # um^2
    multicast: bool = True
    distributed_multicast: bool = False
    wire_energy: float = 0.1                  # pJ per bit per mm
    level_index: int = 0

    @property
    def level_type(self) -> str:
        return "BufferLevel"

    def slots(self) -> range:
        """Per-datatype slots touched under this level's sharing mode."""
        if self.sharing_type == DataTypeSharing.SHARED:
            return range(SHARED_SLOT, SHARED_SLOT + 1)
        return range(0, NUM_DATA_TYPES)

    @property
    def first_slot(self) -> int:
        return self.slots()[0]

    def set_all(self, attribute: str, value: Optional[int]):
        """Set an attribute in every slot of the sharing mode."""
        array = getattr(self, attribute)
        for slot in self.slots():
            array[slot] = value

    def get(self, attribute: str) -> Optional[int]:
        """Attribute value of the first slot (all slots agree)."""
        return getattr(self, attribute)[self.first_slot]

    @classmethod
    def create(
        cls,
        name: str,
        instances: int = 1,
        mesh_x: Optional[int] = None,
        mesh_y: Optional[int] = None,
        fanout: Optional[int] = None,
        fanout_x: Optional[int] = None,
        fanout_y: Optional[int] = None,
        sharing_type: DataTypeSharing = DataTypeSharing.SHARED,
        **kwargs,
    ) -> 'BufferSpecs':
        """Build specs with scalar structural attributes spread over the slots."""
        specs = cls(name=name, sharing_type=sharing_type, **kwargs)
        mesh_x, mesh_y = infer_mesh(name, instances, mesh_x, mesh_y)
        specs.set_all('instances', instances)
        specs.set_all('mesh_x', mesh_x)
        specs.set_all('mesh_y', mesh_y)
        specs.set_all('fanout', fanout)
        specs.set_all('fanout_x', fanout_x)
        specs.set_all('fanout_y', fanout_y)
        return specs

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'BufferSpecs':
        """Parse one entry of the storage list of an architecture config."""

        def optional_int(key: str) -> Optional[int]:
            value = config_value(config, key)
            return int(value) if value is not None else None

        def optional_float(key: str) -> Optional[float]:
            value = config_value(config, key)
            return float(value) if value is not None else None

        sharing = DataTypeSharing(str(config_value(config, 'sharing', 'shared')).lower())
        return cls.create(
            name=config_value(config, 'name', 'Buffer'),
            instances=int(config_value(config, 'instances', 1)),
            mesh_x=optional_int('meshX'),
            mesh_y=optional_int('meshY'),
            fanout=optional_int('fanout'),
            fanout_x=optional_int('fanoutX'),
            fanout_y=optional_int('fanoutY'),
            sharing_type=sharing,
            size=optional_int('size'),
            word_bits=int(config_value(config, 'word-bits', 16)),
            read_bandwidth=optional_float('read-bandwidth'),
            write_bandwidth=optional_float('write-bandwidth'),
            access_energy=float(config_value(config, 'access-energy', 1.0)),
            area_per_instance=float(config_value(config, 'area', 0.0)),
            multicast=config_flag(config, 'multicast', True),
            distributed_multicast=config_flag(config, 'distributed-multicast', False),
            wire_energy=float(config_value(config, 'wire-energy', 0.1)),
        )


@dataclass
class BufferStats:
    """Per-datatype access statistics of an evaluated buffer."""
    utilized_capacity: int = 0
    reads: int = 0
    fills: int = 0
    network_transfers: int = 0
    access_energy: float = 0.0
    network_energy: float = 0.0

    @property
    def energy(self) -> float:
        return self.access_energy + self.network_energy


class BufferLevel(Level):
    """Evaluated storage level."""

    def __init__(self, specs: BufferSpecs):
        super().__init__()
        self.specs = specs
        self.stats: Dict[DataType, BufferStats] = {}
        self._cycles = 0

    def reset(self):
        super().reset()
        self.stats = {}
        self._cycles = 0

    @property
    def name(self) -> str:
        return self.specs.name

    @property
    def instances(self) -> int:
        return self.specs.get('instances') or 1

    def _fits(self, sizes: Dict[DataType, int], keep: CompoundMask) -> bool:
        capacity = self.specs.size
        if capacity is None:
            return True
        kept = [sizes[dt] for dt in DataType if keep[dt]]
        if self.specs.sharing_type == DataTypeSharing.SHARED:
            return sum(kept) <= capacity
        return all(size <= capacity for size in kept)

    def pre_evaluation_check(self, working_set_sizes: Dict[DataType, int],
                             keep: CompoundMask) -> bool:
        """Fast capacity check on coarse working-set sizes."""
        success = self._fits(working_set_sizes, keep)
        if not success:
            logger.debug("%s: working set %s exceeds capacity %s",
                         self.name, working_set_sizes, self.specs.size)
        return success

    def evaluate(
        self,
        tile: CompoundTile,
        keep: CompoundMask,
        inner_tile_area: float,
        compute_cycles: int,
    ) -> bool:
        """
        Compute access counts, energy and cycles for this level's tiles.

        Args:
            tile: Collapsed working-set tile per datatype
            keep: Per-datatype keep flag at this level
            inner_tile_area: Area (um^2) this level reaches into
            compute_cycles: Temporal compute iterations of the nest
        """
        self.reset()
        sizes = {dt: tile[dt].size for dt in DataType}
        if not self._fits(sizes, keep):
            logger.debug("%s: tiles %s exceed capacity %s", self.name, sizes, self.specs.size)
            return False

        specs = self.specs
        port_cycles: Dict[DataType, float] = {}
        for dt in DataType:
            t = tile[dt]
            stats = BufferStats()
            if keep[dt]:
                if specs.multicast:
                    multicast_factor = t.fanout
                else:
                    multicast_factor = t.distributed_fanout
                multicast_factor = max(1, multicast_factor)

                stats.utilized_capacity = t.size
                stats.reads = ceil(t.content_accesses / multicast_factor)
                stats.fills = t.fills
                stats.network_transfers = stats.reads
                stats.access_energy = (stats.reads + stats.fills) * specs.access_energy

                hop_mm = 0.5 * sqrt(inner_tile_area * max(1, t.fanout)) / 1000.0
                stats.network_energy = (stats.network_transfers * specs.word_bits *
                                        specs.wire_energy * hop_mm)

                instances_used = max(1, t.instances_used)
                read_cycles = _bandwidth_cycles(stats.reads / instances_used,
                                                specs.read_bandwidth)
                write_cycles = _bandwidth_cycles(stats.fills / instances_used,
                                                 specs.write_bandwidth)
                port_cycles[dt] = max(read_cycles, write_cycles)
            self.stats[dt] = stats

        if specs.sharing_type == DataTypeSharing.SHARED:
            bandwidth_cycles = sum(port_cycles.values())
        else:
            bandwidth_cycles = max(port_cycles.values(), default=0.0)
        self._cycles = max(compute_cycles, ceil(bandwidth_cycles))

        self.is_evaluated = True
        return True

    def energy(self) -> float:
        return sum(s.energy for s in self.stats.values())

    def area(self) -> float:
        return self.specs.area_per_instance * self.instances

    def area_per_instance(self) -> float:
        return self.specs.area_per_instance

    def cycles(self) -> int:
        return self._cycles

    def max_fanout(self) -> int:
        values = [self.specs.fanout[slot] for slot in self.specs.slots()]
        return max((v for v in values if v is not None), default=1)

    def distributed_multicast_supported(self) -> bool:
        return self.specs.distributed_multicast

    def report_lines(self) -> List[str]:
        s = self.specs
        lines = [
            f"=== {s.name} ===",
            "",
            "    SPECS",
            "    -----",
            f"    Sharing         : {s.sharing_type.value}",
            f"    Size            : {s.size if s.size is not None else 'unbounded'}",
            f"    Word bits       : {s.word_bits}",
            f"    Instances       : {self.instances} ({s.get('mesh_x')}*{s.get('mesh_y')})",
            f"    Fanout          : {s.get('fanout')} ({s.get('fanout_x')}*{s.get('fanout_y')})",
            f"    Access energy   : {s.access_energy:.3f} pJ",
            f"    Area            : {s.area_per_instance:.2f} um^2",
        ]
        if self.is_evaluated:
            lines += ["", "    STATS", "    -----", f"    Cycles : {self._cycles}"]
            for dt, stats in self.stats.items():
                lines += [
                    f"    {dt.name}:",
                    f"        Utilized capacity : {stats.utilized_capacity}",
                    f"        Reads             : {stats.reads}",
                    f"        Fills             : {stats.fills}",
                    f"        Energy            : {stats.energy:.2f} pJ",
                ]
        return lines


def _bandwidth_cycles(accesses: float, bandwidth: Optional[float]) -> float:
    if bandwidth is None or bandwidth <= 0:
        return 0.0
    return accesses / bandwidth
