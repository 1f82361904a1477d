"""
Arithmetic Units

The compute level of a topology: an array of identical multiply-accumulate
units arranged as a meshX x meshY grid.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..problem.datatypes import DataType
from ..problem.workload import WorkloadConfig
from .analysis import NestAnalysis
from .level import Level, LevelSpecs, config_value, infer_mesh

logger = logging.getLogger(__name__)


@dataclass
class ArithmeticSpecs(LevelSpecs):
    """
    Structural description of the arithmetic level.

    mesh_x / mesh_y stay None until specified; Topology.validate() needs
    both when the innermost buffer has fewer instances than the array.
    """
    name: str = "MAC"
    instances: int = 1
    mesh_x: Optional[int] = None
    mesh_y: Optional[int] = None
    word_bits: int = 16
    energy_per_op: float = 1.0       # pJ per MACC
    area_per_instance: float = 0.0   # um^2
    level_index: int = 0

    @property
    def level_type(self) -> str:
        return "ArithmeticUnits"

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'ArithmeticSpecs':
        """Parse the arithmetic section of an architecture config."""
        name = config_value(config, 'name', 'MAC')
        instances = int(config_value(config, 'instances', 1))
        mesh_x = config_value(config, 'meshX')
        mesh_y = config_value(config, 'meshY')
        # An unspecified mesh is left for validate() to reject where needed
        if mesh_x is not None or mesh_y is not None:
            mesh_x, mesh_y = infer_mesh(
                name, instances,
                int(mesh_x) if mesh_x is not None else None,
                int(mesh_y) if mesh_y is not None else None,
            )
        return cls(
            name=name,
            instances=instances,
            mesh_x=mesh_x,
            mesh_y=mesh_y,
            word_bits=int(config_value(config, 'word-bits', 16)),
            energy_per_op=float(config_value(config, 'energy-per-op', 1.0)),
            area_per_instance=float(config_value(config, 'area', 0.0)),
        )


class ArithmeticUnits(Level):
    """Evaluated arithmetic level."""

    def __init__(self, specs: ArithmeticSpecs):
        super().__init__()
        self.specs = specs
        self.reset()

    @property
    def name(self) -> str:
        return self.specs.name

    def reset(self):
        super().reset()
        self._maccs = 0
        self._cycles = 0
        self._energy = 0.0
        self._utilized_instances = 0

    def evaluate(self, analysis: NestAnalysis, workload: WorkloadConfig) -> bool:
        """
        Compute MACC count, cycles and energy for the analysed nest.

        Fails if the mapping uses more arithmetic instances than exist.
        """
        self.reset()
        body = analysis.get_body_info()
        if body.utilized_instances > self.specs.instances:
            logger.debug(
                "%s: mapping uses %d instances, only %d available",
                self.name, body.utilized_instances, self.specs.instances,
            )
            return False

        self._utilized_instances = body.utilized_instances
        self._maccs = body.accesses * body.utilized_instances
        self._cycles = body.accesses

        # Zero operands gate the multiplier
        effective = (workload.density(DataType.WEIGHTS) *
                     workload.density(DataType.INPUTS))
        self._energy = self._maccs * self.specs.energy_per_op * effective

        self.is_evaluated = True
        return True

    def energy(self) -> float:
        return self._energy

    def area(self) -> float:
        return self.specs.area_per_instance * self.specs.instances

    def area_per_instance(self) -> float:
        return self.specs.area_per_instance

    def cycles(self) -> int:
        return self._cycles

    def max_fanout(self) -> int:
        return 1

    def maccs(self) -> int:
        return self._maccs

    def ideal_cycles(self) -> float:
        """Cycles if every instance were busy every cycle."""
        return self._maccs / self.specs.instances

    def report_lines(self) -> List[str]:
        s = self.specs
        lines = [
            f"=== {s.name} ===",
            "",
            "    SPECS",
            "    -----",
            f"    Word bits       : {s.word_bits}",
            f"    Instances       : {s.instances} ({s.mesh_x}*{s.mesh_y})",
            f"    Energy per op   : {s.energy_per_op:.3f} pJ",
            f"    Area            : {s.area_per_instance:.2f} um^2",
        ]
        if self.is_evaluated:
            lines += [
                "",
                "    STATS",
                "    -----",
                f"    Utilized instances : {self._utilized_instances}",
                f"    Cycles             : {self._cycles}",
                f"    MACCs              : {self._maccs}",
                f"    Energy (total)     : {self._energy:.2f} pJ",
            ]
        return lines
