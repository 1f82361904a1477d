"""
Problem Description

Datatypes, per-datatype containers, workload configuration, and
problem-space loading.
"""

from .datatypes import (
    DataType,
    NUM_DATA_TYPES,
    SHARED_SLOT,
    PerDataSpace,
)
from .workload import WorkloadConfig
from .problem_space import ProblemSpace, ProblemSpaceNode

__all__ = [
    'DataType',
    'NUM_DATA_TYPES',
    'SHARED_SLOT',
    'PerDataSpace',
    'WorkloadConfig',
    'ProblemSpace',
    'ProblemSpaceNode',
]
