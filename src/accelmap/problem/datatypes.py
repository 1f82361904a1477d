"""
Problem Datatypes

Enumerates the data tensors of a tensor computation and provides a small
fixed-size container keyed by datatype.

Key concepts:
- DataType: Weights, Inputs, Outputs
- SHARED_SLOT: Extra slot used when a storage level shares one set of
  attributes across all datatypes (sharing mode "shared")
- PerDataSpace: Per-datatype array with the extra shared slot
"""

from enum import IntEnum
from typing import Generic, Iterator, List, Optional, TypeVar, Union


class DataType(IntEnum):
    """Data tensors of the computation."""
    WEIGHTS = 0
    INPUTS = 1
    OUTPUTS = 2


NUM_DATA_TYPES = len(DataType)

# Index one past the last datatype. Attributes of shared storage levels
# live here instead of in the per-datatype slots.
SHARED_SLOT = NUM_DATA_TYPES


T = TypeVar('T')


class PerDataSpace(Generic[T]):
    """
    Fixed-size array indexed by DataType plus the shared slot.

    Slots 0..NUM_DATA_TYPES-1 hold per-datatype values, slot SHARED_SLOT
    holds the single value used by shared levels.
    """

    def __init__(self, value: Optional[T] = None):
        self._values: List[Optional[T]] = [value] * (NUM_DATA_TYPES + 1)

    def __getitem__(self, slot: Union[int, DataType]) -> Optional[T]:
        return self._values[int(slot)]

    def __setitem__(self, slot: Union[int, DataType], value: Optional[T]):
        self._values[int(slot)] = value

    def __iter__(self) -> Iterator[Optional[T]]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other) -> bool:
        if not isinstance(other, PerDataSpace):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"PerDataSpace({self._values})"

    def copy(self) -> 'PerDataSpace[T]':
        duplicate = PerDataSpace()
        duplicate._values = list(self._values)
        return duplicate

    def is_specified(self, slot: Union[int, DataType]) -> bool:
        return self._values[int(slot)] is not None
