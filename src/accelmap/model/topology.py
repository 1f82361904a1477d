"""
Hardware Topology

A topology is the classic hierarchical accelerator organization: one
arithmetic level at index 0 and N storage levels at indices 1..N, ordered
innermost to outermost. Each storage level connects to the level below it
through a 1:1 or fanout network.

Lifecycle:
    specs = Topology.parse_specs(storage_config, arithmetic_config)
    topology = Topology()
    topology.spec(specs)                      # build levels
    if topology.pre_evaluation_check(mapping, analysis):
        if topology.evaluate(mapping, analysis, workload):
            print(topology.energy(), topology.cycles())

Evaluation walks the storage levels innermost to outermost, threading the
"inner tile area" (the area a level reaches into when it distributes data)
from one level to the next, since wire energy grows with that reach.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..problem.datatypes import DataType
from ..problem.workload import WorkloadConfig
from .analysis import NestAnalysis
from .arithmetic import ArithmeticSpecs, ArithmeticUnits
from .buffer import BufferLevel, BufferSpecs
from .errors import TopologySpecError, TopologyStateError
from .level import Level, LevelSpecs
from .mapping import Mapping
from . import tiling

logger = logging.getLogger(__name__)


# =============================================================================
# Specification
# =============================================================================

@dataclass
class TopologySpecs:
    """
    Ordered level specifications plus the index maps into them.

    levels[0] is the arithmetic level; storage_map[i] is the generic level
    index of storage level i (innermost first).
    """
    levels: List[LevelSpecs] = field(default_factory=list)
    storage_map: List[int] = field(default_factory=list)
    arithmetic_map: Optional[int] = None

    def add_arithmetic_level(self, specs: ArithmeticSpecs):
        if self.levels:
            raise TopologySpecError(
                f"arithmetic level '{specs.name}' must be the first and only compute level"
            )
        specs.level_index = 0
        self.levels.append(specs)
        self.arithmetic_map = 0

    def add_storage_level(self, specs: BufferSpecs):
        if self.arithmetic_map is None:
            raise TopologySpecError(
                f"storage level '{specs.name}' added before the arithmetic level"
            )
        specs.level_index = len(self.levels)
        self.storage_map.append(specs.level_index)
        self.levels.append(specs)

    @property
    def num_levels(self) -> int:
        return len(self.levels)

    @property
    def num_storage_levels(self) -> int:
        return len(self.storage_map)

    def get_level(self, level_id: int) -> LevelSpecs:
        return self.levels[level_id]

    def get_storage_level(self, storage_level_id: int) -> BufferSpecs:
        return self.levels[self.storage_map[storage_level_id]]

    def get_arithmetic_level(self) -> ArithmeticSpecs:
        if self.arithmetic_map is None:
            raise TopologySpecError("topology has no arithmetic level")
        return self.levels[self.arithmetic_map]


# =============================================================================
# Validation helpers
# =============================================================================

def _divide(inner_value: Optional[int], outer_value: Optional[int], attribute: str,
            inner_name: str, outer_name: str) -> int:
    if inner_value is None or outer_value is None:
        raise TopologySpecError(
            f"{attribute} unspecified",
            inner=inner_name, outer=outer_name, attribute=attribute,
            expected=inner_value, actual=outer_value,
        )
    if outer_value <= 0 or inner_value % outer_value != 0:
        raise TopologySpecError(
            f"{attribute} of inner level ({inner_value}) is not a multiple of "
            f"{attribute} of outer level ({outer_value})",
            inner=inner_name, outer=outer_name, attribute=attribute,
            expected=inner_value, actual=outer_value,
        )
    return inner_value // outer_value


def _set_or_check(level: BufferSpecs, attribute: str, value: int,
                  inner_name: str, outer_name: str):
    """Fill an unspecified fanout attribute, or check an explicit one."""
    current = level.get(attribute)
    if current is None:
        logger.debug("%s: inferred %s = %d", level.name, attribute, value)
        level.set_all(attribute, value)
    elif current != value:
        raise TopologySpecError(
            f"specified {attribute} ({current}) does not match derived value ({value})",
            inner=inner_name, outer=outer_name, attribute=attribute,
            expected=value, actual=current,
        )


def _check_fanout_product(level: BufferSpecs, inner_name: str):
    fanout, fanout_x, fanout_y = (level.get('fanout'), level.get('fanout_x'),
                                  level.get('fanout_y'))
    if fanout != fanout_x * fanout_y:
        raise TopologySpecError(
            f"fanout ({fanout}) != fanoutX * fanoutY ({fanout_x} * {fanout_y})",
            inner=inner_name, outer=level.name, attribute="fanout",
            expected=fanout_x * fanout_y, actual=fanout,
        )


# =============================================================================
# Topology
# =============================================================================

class Topology:
    """Concrete level hierarchy and its evaluation state."""

    def __init__(self):
        self.levels: List[Level] = []
        self.specs: Optional[TopologySpecs] = None
        self.is_specced = False
        self.is_evaluated = False

    # -------------------------------------------------------------------------
    # Specification
    # -------------------------------------------------------------------------

    @staticmethod
    def parse_specs(storage: List[Dict[str, Any]], arithmetic: Dict[str, Any]) -> TopologySpecs:
        """
        Build and validate specs from config sections.

        Args:
            storage: Storage level configs, innermost first
            arithmetic: Arithmetic level config
        """
        if not isinstance(storage, list):
            raise TopologySpecError("storage configuration must be a list of levels")

        specs = TopologySpecs()
        specs.add_arithmetic_level(ArithmeticSpecs.from_config(arithmetic))
        for level_config in storage:
            specs.add_storage_level(BufferSpecs.from_config(level_config))

        Topology.validate(specs)
        return specs

    @staticmethod
    def validate(specs: TopologySpecs):
        """
        Check inter-level consistency and infer unspecified fanouts.

        Each storage level's fanout is the number of instances of the level
        below it that one of its instances feeds. Explicit values are never
        overwritten; a mismatch raises TopologySpecError. Validating an
        already-validated specs object changes nothing.
        """
        if specs.num_storage_levels == 0:
            raise TopologySpecError("topology has no storage levels")

        arithmetic = specs.get_arithmetic_level()
        inner = specs.get_storage_level(0)

        if inner.get('instances') == arithmetic.instances:
            for attribute in ('fanout', 'fanout_x', 'fanout_y'):
                _set_or_check(inner, attribute, 1, arithmetic.name, inner.name)
        else:
            fanout = _divide(arithmetic.instances, inner.get('instances'), "instances",
                             arithmetic.name, inner.name)
            if arithmetic.mesh_x is None:
                raise TopologySpecError(
                    "meshX of the arithmetic level must be specified",
                    inner=arithmetic.name, outer=inner.name, attribute="meshX",
                )
            if arithmetic.mesh_y is None:
                raise TopologySpecError(
                    "meshY of the arithmetic level must be specified",
                    inner=arithmetic.name, outer=inner.name, attribute="meshY",
                )
            fanout_x = _divide(arithmetic.mesh_x, inner.get('mesh_x'), "meshX",
                               arithmetic.name, inner.name)
            fanout_y = _divide(arithmetic.mesh_y, inner.get('mesh_y'), "meshY",
                               arithmetic.name, inner.name)
            _set_or_check(inner, 'fanout', fanout, arithmetic.name, inner.name)
            _set_or_check(inner, 'fanout_x', fanout_x, arithmetic.name, inner.name)
            _set_or_check(inner, 'fanout_y', fanout_y, arithmetic.name, inner.name)
        _check_fanout_product(inner, arithmetic.name)

        for i in range(specs.num_storage_levels - 1):
            inner = specs.get_storage_level(i)
            outer = specs.get_storage_level(i + 1)

            fanout = _divide(inner.get('instances'), outer.get('instances'), "instances",
                             inner.name, outer.name)
            _set_or_check(outer, 'fanout', fanout, inner.name, outer.name)

            fanout_x = _divide(inner.get('mesh_x'), outer.get('mesh_x'), "meshX",
                               inner.name, outer.name)
            _set_or_check(outer, 'fanout_x', fanout_x, inner.name, outer.name)

            fanout_y = _divide(inner.get('mesh_y'), outer.get('mesh_y'), "meshY",
                               inner.name, outer.name)
            _set_or_check(outer, 'fanout_y', fanout_y, inner.name, outer.name)

            _check_fanout_product(outer, inner.name)

    def spec(self, specs: TopologySpecs):
        """Discard any existing levels and build one level per spec entry."""
        self.specs = copy.deepcopy(specs)
        self.levels = []
        self.is_specced = False
        self.is_evaluated = False

        for level_specs in self.specs.levels:
            if level_specs.level_type == "BufferLevel":
                self.levels.append(BufferLevel(level_specs))
            elif level_specs.level_type == "ArithmeticUnits":
                self.levels.append(ArithmeticUnits(level_specs))
            else:
                raise TopologySpecError(
                    f"illegal level specs type: {level_specs.level_type}",
                    attribute="type", actual=level_specs.level_type,
                )

        self.is_specced = True

    # -------------------------------------------------------------------------
    # Level accessors
    # -------------------------------------------------------------------------

    def _require_specced(self):
        if not self.is_specced:
            raise TopologyStateError("topology has not been specced")

    def _require_evaluated(self):
        if not self.is_evaluated:
            raise TopologyStateError("topology has not been evaluated")

    @property
    def num_levels(self) -> int:
        self._require_specced()
        return len(self.levels)

    @property
    def num_storage_levels(self) -> int:
        self._require_specced()
        return self.specs.num_storage_levels

    def get_level(self, level_id: int) -> Level:
        return self.levels[level_id]

    def get_storage_level(self, storage_level_id: int) -> BufferLevel:
        return self.levels[self.specs.storage_map[storage_level_id]]

    def get_arithmetic_level(self) -> ArithmeticUnits:
        return self.levels[self.specs.arithmetic_map]

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    def pre_evaluation_check(self, mapping: Mapping, analysis: NestAnalysis) -> bool:
        """
        Fast capacity check on coarse working-set sizes.

        Lets large searches reject a mapping before the full evaluation,
        which needs the complete tile hierarchy.
        """
        self._require_specced()
        masks = tiling.transpose_masks(mapping.datatype_bypass_nest)
        working_set_sizes = analysis.get_working_set_sizes_ltw()

        for storage_level_id in range(self.num_storage_levels):
            level = self.get_storage_level(storage_level_id)
            if not level.pre_evaluation_check(working_set_sizes[storage_level_id],
                                              masks[storage_level_id]):
                return False
        return True

    def _reset_levels(self):
        # A failed evaluation leaves no partial per-level results behind.
        self.is_evaluated = False
        for level in self.levels:
            level.reset()

    def evaluate(self, mapping: Mapping, analysis: NestAnalysis,
                 workload: WorkloadConfig) -> bool:
        """Evaluate a mapping on every level. True on full success."""
        self._require_specced()
        self._reset_levels()
        num_storage_levels = self.num_storage_levels

        ws_tiles = analysis.get_working_sets()
        compute_cycles = analysis.get_body_info().accesses

        # Which levels support distributed multicast, per datatype.
        distribution_supported = {
            dt: [self.get_storage_level(i).distributed_multicast_supported()
                 for i in range(num_storage_levels)]
            for dt in DataType
        }

        collapsed_tiles = tiling.collapse_tiles(ws_tiles, num_storage_levels,
                                                mapping.datatype_bypass_nest,
                                                distribution_supported)

        tiles = tiling.transpose_tiles(collapsed_tiles)
        assert len(tiles) == num_storage_levels

        keep_masks = tiling.transpose_masks(mapping.datatype_bypass_nest)
        assert len(keep_masks) >= num_storage_levels

        # Area of the compute + buffer elements a level distributes into.
        inner_tile_area = self.get_arithmetic_level().area_per_instance()

        for storage_level_id in range(num_storage_levels):
            level = self.get_storage_level(storage_level_id)
            if not level.evaluate(tiles[storage_level_id], keep_masks[storage_level_id],
                                  inner_tile_area, compute_cycles):
                logger.debug("evaluation failed at storage level %d (%s)",
                             storage_level_id, level.name)
                self._reset_levels()
                return False

            # A level only reaches into the part of the inner level covered
            # by its own fanout.
            inner_tile_area = level.area_per_instance() + inner_tile_area * level.max_fanout()

        if not self.get_arithmetic_level().evaluate(analysis, workload):
            logger.debug("evaluation failed at arithmetic level")
            self._reset_levels()
            return False

        self.is_evaluated = True
        return True

    # -------------------------------------------------------------------------
    # Aggregate metrics
    # -------------------------------------------------------------------------

    def energy(self) -> float:
        """Total energy over all levels (pJ)."""
        self._require_evaluated()
        total = 0.0
        for level in self.levels:
            assert level.energy() >= 0, f"{level.name}: negative energy"
            total += level.energy()
        return total

    def area(self) -> float:
        """Total area over all levels (um^2)."""
        self._require_evaluated()
        total = 0.0
        for level in self.levels:
            assert level.area() >= 0, f"{level.name}: negative area"
            total += level.area()
        return total

    def cycles(self) -> int:
        """Cycles of the slowest level."""
        self._require_evaluated()
        return max((level.cycles() for level in self.levels), default=0)

    def utilization(self) -> float:
        self._require_evaluated()
        cycles = self.cycles()
        if cycles == 0:
            return 0.0
        return self.get_arithmetic_level().ideal_cycles() / cycles

    def maccs(self) -> int:
        self._require_evaluated()
        return self.get_arithmetic_level().maccs()

    def summary(self) -> Dict[str, Any]:
        """Aggregate metrics as a dictionary."""
        return {
            'energy_pj': self.energy(),
            'area_um2': self.area(),
            'cycles': self.cycles(),
            'utilization': self.utilization(),
            'maccs': self.maccs(),
        }

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    def report(self) -> str:
        lines = []
        for level_id, level in enumerate(self.levels):
            lines.append(f"Level {level_id}")
            lines.append("-------")
            lines.extend(level.report_lines())
            lines.append("")

        if self.is_evaluated:
            lines.append(f"Total topology energy: {self.energy():.2f} pJ")
            lines.append(f"Total topology area: {self.area():.2f} um^2")
            lines.append(f"Max topology cycles: {self.cycles()}")

        return "\n".join(lines)

    def __str__(self) -> str:
        return self.report()
