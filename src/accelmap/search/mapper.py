"""
Mapper

Sequential driver connecting a search algorithm to the topology cost
model:

    search.next() -> construct mapping -> pre-evaluation check
                  -> full evaluation -> search.report(status, cost)

Decoding an identifier into a Mapping and analysing its loop nest are
supplied by the caller as callables.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from ..config import MapperConfig
from ..mapspace import MappingID, MapSpace
from ..model.analysis import NestAnalysis
from ..model.mapping import Mapping
from ..model.topology import Topology, TopologySpecs
from ..problem.workload import WorkloadConfig
from .factory import create_search
from .search import SearchAlgorithm, Status

logger = logging.getLogger(__name__)

ConstructMapping = Callable[[MappingID], Optional[Mapping]]
AnalyzeMapping = Callable[[Mapping], NestAnalysis]


@dataclass
class MapperResult:
    """Outcome of a mapper run."""
    best_mapping_id: Optional[MappingID] = None
    best_cost: Optional[float] = None
    best_stats: Dict[str, Any] = field(default_factory=dict)
    best_report: str = ""

    candidates: int = 0
    valid_mappings: int = 0
    construction_failures: int = 0
    eval_failures: int = 0

    @property
    def found(self) -> bool:
        return self.best_mapping_id is not None


def mapping_cost(topology: Topology, metric: str) -> float:
    """Cost of an evaluated topology under the given metric."""
    if metric == "energy":
        return topology.energy()
    if metric == "delay":
        return float(topology.cycles())
    if metric == "edp":
        return topology.energy() * topology.cycles()
    raise ValueError(f"Unknown metric: {metric}")


class Mapper:
    """Runs one search to exhaustion (or the evaluation cap)."""

    def __init__(
        self,
        specs: TopologySpecs,
        search: SearchAlgorithm,
        construct_mapping: ConstructMapping,
        analyze: AnalyzeMapping,
        workload: Optional[WorkloadConfig] = None,
        config: Optional[MapperConfig] = None,
    ):
        self.specs = specs
        self.search = search
        self.construct_mapping = construct_mapping
        self.analyze = analyze
        self.workload = workload or WorkloadConfig()
        self.config = config or MapperConfig()

        # Specced once; evaluate() clears per-level results on every call
        self.topology = Topology()
        self.topology.spec(specs)

    @classmethod
    def from_config(
        cls,
        specs: TopologySpecs,
        mapspace: MapSpace,
        construct_mapping: ConstructMapping,
        analyze: AnalyzeMapping,
        workload: Optional[WorkloadConfig] = None,
        config: Optional[MapperConfig] = None,
        search_id: int = 0,
    ) -> 'Mapper':
        """Build the search over mapspace from config.search."""
        config = config or MapperConfig()
        search = create_search(mapspace, search_id, config.search)
        return cls(specs, search, construct_mapping, analyze, workload, config)

    def close(self):
        self.search.close()

    def evaluate(self, mapping_id: MappingID):
        """
        Evaluate one identifier.

        Returns (status, cost, topology); topology is None unless the
        evaluation succeeded. The topology is shared across calls and is
        overwritten by the next evaluation.
        """
        mapping = self.construct_mapping(mapping_id)
        if mapping is None:
            return Status.MAPPING_CONSTRUCTION_FAILURE, 0.0, None

        topology = self.topology
        analysis = self.analyze(mapping)
        if not topology.pre_evaluation_check(mapping, analysis):
            return Status.EVAL_FAILURE, 0.0, None
        if not topology.evaluate(mapping, analysis, self.workload):
            return Status.EVAL_FAILURE, 0.0, None

        return Status.SUCCESS, mapping_cost(topology, self.config.metric), topology

    def run(self) -> MapperResult:
        result = MapperResult()
        max_evaluations = self.config.max_evaluations

        while max_evaluations is None or result.candidates < max_evaluations:
            mapping_id = self.search.next()
            if mapping_id is None:
                break
            result.candidates += 1

            status, cost, topology = self.evaluate(mapping_id)
            if status == Status.SUCCESS:
                result.valid_mappings += 1
                if result.best_cost is None or cost < result.best_cost:
                    result.best_cost = cost
                    result.best_mapping_id = mapping_id
                    result.best_stats = topology.summary()
                    result.best_report = topology.report()
                    logger.info("New best %s: %.4g at %s", self.config.metric, cost, mapping_id)
            elif status == Status.MAPPING_CONSTRUCTION_FAILURE:
                result.construction_failures += 1
            else:
                result.eval_failures += 1

            self.search.report(status, cost)

        logger.info(
            "Mapper done: %d candidates, %d valid, %d construction failures, %d eval failures",
            result.candidates, result.valid_mappings,
            result.construction_failures, result.eval_failures,
        )
        return result
