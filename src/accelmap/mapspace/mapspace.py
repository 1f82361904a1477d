"""
Mapping Space

The discrete set of legal mapping identifiers, organized into four ordinal
dimensions. Sizes of the inner dimensions may depend on the chosen index
factorization, so the mapspace is re-pruned for each factorization before
those sizes are queried.

Key concepts:
- Dimension: The four search dimensions
- MappingID: One value per dimension, with the dimension sizes as radices
- MapSpace: Size queries and per-factorization pruning
- TabulatedMapSpace: MapSpace backed by an explicit per-factorization table
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Tuple


class Dimension(IntEnum):
    """Mapping space dimensions."""
    INDEX_FACTORIZATION = 0
    LOOP_PERMUTATION = 1
    SPATIAL = 2
    DATATYPE_BYPASS = 3


NUM_DIMENSIONS = len(Dimension)


@dataclass(frozen=True)
class MappingID:
    """
    Point in the mapping space.

    values[d] is the coordinate along Dimension d; bases[d] is the size of
    that dimension when the identifier was made.
    """
    values: Tuple[int, ...]
    bases: Tuple[int, ...]

    def __post_init__(self):
        if len(self.values) != NUM_DIMENSIONS or len(self.bases) != NUM_DIMENSIONS:
            raise ValueError(f"MappingID needs {NUM_DIMENSIONS} values and bases")
        for dim in Dimension:
            if not 0 <= self.values[dim] < self.bases[dim]:
                raise ValueError(
                    f"{dim.name}: value {self.values[dim]} outside [0, {self.bases[dim]})"
                )

    def __getitem__(self, dim: Dimension) -> int:
        return self.values[dim]

    @property
    def integer(self) -> int:
        """Mixed-radix integer, IndexFactorization most significant."""
        result = 0
        for dim in Dimension:
            result = result * self.bases[dim] + self.values[dim]
        return result

    def __str__(self) -> str:
        return "(" + ", ".join(f"{dim.name}={self.values[dim]}" for dim in Dimension) + ")"


class MapSpace(ABC):
    """Size queries and pruning over the four mapping dimensions."""

    # Global index of the first factorization, for partitioned mapspaces
    index_factorization_offset = 0

    @abstractmethod
    def size(self, dim: Dimension) -> int:
        pass

    def all_sizes(self) -> Tuple[int, ...]:
        return tuple(self.size(dim) for dim in Dimension)

    @abstractmethod
    def init_pruned(self, index_factorization_id: int):
        """Prune the sub-mapspace for one index factorization."""
        pass


@dataclass
class TabulatedMapSpace(MapSpace):
    """
    MapSpace whose inner dimension sizes are listed per factorization.

    Attributes:
        branch_sizes: For each index factorization, the sizes of
            LOOP_PERMUTATION, SPATIAL and DATATYPE_BYPASS
        index_factorization_offset: Global index of this mapspace's first
            factorization (non-zero for partitions made by split())
    """
    branch_sizes: List[Dict[Dimension, int]]
    index_factorization_offset: int = 0
    _current: int = field(default=0, init=False, repr=False)

    def __post_init__(self):
        if not self.branch_sizes:
            raise ValueError("mapspace has no index factorizations")
        inner = (Dimension.LOOP_PERMUTATION, Dimension.SPATIAL, Dimension.DATATYPE_BYPASS)
        for i, sizes in enumerate(self.branch_sizes):
            for dim in inner:
                if sizes.get(dim, 0) < 1:
                    raise ValueError(f"factorization {i}: {dim.name} size must be >= 1")

    @classmethod
    def uniform(cls, index_factorizations: int, loop_permutations: int,
                spatial: int, datatype_bypass: int) -> 'TabulatedMapSpace':
        """Mapspace with the same inner sizes for every factorization."""
        return cls([
            {
                Dimension.LOOP_PERMUTATION: loop_permutations,
                Dimension.SPATIAL: spatial,
                Dimension.DATATYPE_BYPASS: datatype_bypass,
            }
            for _ in range(index_factorizations)
        ])

    def size(self, dim: Dimension) -> int:
        if dim == Dimension.INDEX_FACTORIZATION:
            return len(self.branch_sizes)
        return self.branch_sizes[self._current][dim]

    def init_pruned(self, index_factorization_id: int):
        if not 0 <= index_factorization_id < len(self.branch_sizes):
            raise IndexError(f"index factorization {index_factorization_id} out of range")
        self._current = index_factorization_id

    @property
    def current_index_factorization(self) -> int:
        return self._current

    def total_size(self) -> int:
        """Number of mapping identifiers over all factorizations."""
        total = 0
        for sizes in self.branch_sizes:
            total += (sizes[Dimension.LOOP_PERMUTATION] * sizes[Dimension.SPATIAL] *
                      sizes[Dimension.DATATYPE_BYPASS])
        return total

    def split(self, num_partitions: int) -> List['TabulatedMapSpace']:
        """
        Partition the factorizations into contiguous, disjoint ranges.

        Each partition can be searched by an independent search instance.
        Fewer partitions are returned if there are fewer factorizations.
        """
        if num_partitions < 1:
            raise ValueError("num_partitions must be >= 1")
        count = len(self.branch_sizes)
        num_partitions = min(num_partitions, count)
        base, extra = divmod(count, num_partitions)

        partitions = []
        start = 0
        for p in range(num_partitions):
            end = start + base + (1 if p < extra else 0)
            partitions.append(TabulatedMapSpace(
                branch_sizes=[dict(s) for s in self.branch_sizes[start:end]],
                index_factorization_offset=self.index_factorization_offset + start,
            ))
            start = end
        return partitions
