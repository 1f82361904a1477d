"""
Linear Pruned Search

Walks the mapping space as a mixed-radix counter (odometer) and prunes
sub-spaces using evaluation feedback.

Dimension order, fastest to slowest:
    DatatypeBypass <- Spatial <- LoopPermutation <- IndexFactorization

State machine:
    READY --next()--> WAITING_FOR_STATUS --report()--> READY
                                                   \--> TERMINATED (space exhausted)

Pruning:
    A capacity (evaluation) failure means the combination of index
    factorization and datatype bypass is bad. If every datatype bypass
    choice fails for one (IF, LP, S) combination, the factorization itself
    is bad, so the Spatial and LoopPermutation cursors are fast-forwarded
    to their last values and the next increment carries into the next
    factorization.

    The check happens when the DatatypeBypass cursor sits at its last
    value, comparing the failure count against the DatatypeBypass size.
    This relies on DatatypeBypass being the fastest dimension.
"""

import logging
from enum import Enum
from typing import IO, List, Optional

from ..config import SearchConfig
from ..mapspace import Dimension, MappingID, MapSpace, NUM_DIMENSIONS
from .search import SearchAlgorithm, SearchProtocolError, Status

logger = logging.getLogger(__name__)


class SearchState(Enum):
    READY = "ready"
    WAITING_FOR_STATUS = "waiting_for_status"
    TERMINATED = "terminated"


DIMENSION_ORDER = (
    Dimension.DATATYPE_BYPASS,
    Dimension.SPATIAL,
    Dimension.LOOP_PERMUTATION,
    Dimension.INDEX_FACTORIZATION,
)


class LinearPrunedSearch(SearchAlgorithm):
    """
    Exhaustive odometer search with index-factorization pruning.

    Independent instances (distinguished by search_id) may run over
    disjoint partitions of the index factorizations, e.g. the mapspaces
    returned by TabulatedMapSpace.split(); they share no mutable state.
    """

    def __init__(self, mapspace: MapSpace, search_id: int = 0,
                 config: Optional[SearchConfig] = None):
        self.mapspace = mapspace
        self.search_id = search_id
        self.config = config or SearchConfig()

        self.state = SearchState.READY
        self.iterator: List[int] = [0] * NUM_DIMENSIONS
        self.valid_mappings = 0
        self.eval_fail_count = 0

        # None until a mapping succeeds in the current factorization
        self.best_cost: Optional[float] = None

        # Best cost per finished factorization (0.0 = nothing succeeded)
        self.branch_best_costs: List[float] = []
        self._cost_file: Optional[IO[str]] = None

        self.mapspace.init_pruned(0)

        if self.config.dump_costs:
            path = self.config.cost_file_path(search_id)
            path.parent.mkdir(parents=True, exist_ok=True)
            self._cost_file = open(path, 'w')

    def close(self):
        """Close the diagnostic trace, if open."""
        if self._cost_file is not None:
            self._cost_file.close()
            self._cost_file = None

    def __enter__(self) -> 'LinearPrunedSearch':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # -------------------------------------------------------------------------
    # Cursor
    # -------------------------------------------------------------------------

    @property
    def global_index_factorization(self) -> int:
        """Current factorization index in the unpartitioned mapspace."""
        return (self.mapspace.index_factorization_offset +
                self.iterator[Dimension.INDEX_FACTORIZATION])

    def _enter_index_factorization(self, index_factorization: int):
        # Inner dimension sizes depend on the factorization.
        self.mapspace.init_pruned(index_factorization)
        logger.debug("search %d: index factorization %d", self.search_id,
                     self.global_index_factorization)

        if self.config.dump_costs:
            best = self.best_cost if self.best_cost is not None else 0.0
            self.branch_best_costs.append(best)
            if self._cost_file is not None:
                self._cost_file.write(f"{best}\n")
                self._cost_file.flush()

        self.best_cost = None

    def _increment(self) -> bool:
        """Advance the odometer. False on overflow past the slowest dimension."""
        for position, dim in enumerate(DIMENSION_ORDER):
            if self.iterator[dim] < self.mapspace.size(dim) - 1:
                self.iterator[dim] += 1
                if dim == Dimension.INDEX_FACTORIZATION:
                    self._enter_index_factorization(self.iterator[dim])
                return True
            if position == len(DIMENSION_ORDER) - 1:
                return False
            # Carry into the next slower dimension.
            self.iterator[dim] = 0
        return False

    # -------------------------------------------------------------------------
    # Protocol
    # -------------------------------------------------------------------------

    def next(self) -> Optional[MappingID]:
        if self.state == SearchState.TERMINATED:
            return None
        if self.state != SearchState.READY:
            raise SearchProtocolError(
                f"next() called in state {self.state.value}; report() the previous mapping first"
            )

        mapping_id = MappingID(values=tuple(self.iterator), bases=self.mapspace.all_sizes())
        self.state = SearchState.WAITING_FOR_STATUS
        return mapping_id

    def report(self, status: Status, cost: float = 0.0):
        if self.state != SearchState.WAITING_FOR_STATUS:
            raise SearchProtocolError(
                f"report() called in state {self.state.value}; no mapping is awaiting status"
            )

        if status == Status.SUCCESS:
            self.valid_mappings += 1
            if self.best_cost is None:
                self.best_cost = cost
            else:
                self.best_cost = min(self.best_cost, cost)
        elif status == Status.MAPPING_CONSTRUCTION_FAILURE:
            # (IF, LP, S) is bad but says nothing about the bypass choice.
            pass
        elif status == Status.EVAL_FAILURE:
            self.eval_fail_count += 1

        bypass_size = self.mapspace.size(Dimension.DATATYPE_BYPASS)
        if self.iterator[Dimension.DATATYPE_BYPASS] == bypass_size - 1:
            if self.eval_fail_count == bypass_size:
                # Every bypass choice failed: skip the rest of this factorization.
                self.iterator[Dimension.SPATIAL] = self.mapspace.size(Dimension.SPATIAL) - 1
                self.iterator[Dimension.LOOP_PERMUTATION] = (
                    self.mapspace.size(Dimension.LOOP_PERMUTATION) - 1
                )
                logger.debug("search %d: pruning remainder of index factorization %d",
                             self.search_id, self.global_index_factorization)
            self.eval_fail_count = 0

        if self._increment():
            self.state = SearchState.READY
        else:
            self.state = SearchState.TERMINATED
            logger.info("search %d: mapspace exhausted, %d valid mappings",
                        self.search_id, self.valid_mappings)
