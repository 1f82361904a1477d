"""
Mapping Space

Mapping identifiers and the four-dimensional space they live in.
"""

from .mapspace import (
    Dimension,
    NUM_DIMENSIONS,
    MappingID,
    MapSpace,
    TabulatedMapSpace,
)

__all__ = [
    'Dimension',
    'NUM_DIMENSIONS',
    'MappingID',
    'MapSpace',
    'TabulatedMapSpace',
]
