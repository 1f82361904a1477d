"""
Shared fixtures for the accelmap test suite.

Provides a small two-storage-level architecture and a matching nest
analysis whose costs are easy to compute by hand:

    MAC         4 instances (2x2), 1.0 pJ/op, 100 um^2
    RegFile     4 instances (2x2), partitioned, 16 words, 0.5 pJ/access, 50 um^2
    GlobalBuf   1 instance, shared, 1024 words, 2.0 pJ/access, 1000 um^2
"""

import pytest

from accelmap.model import (
    BodyInfo,
    Mapping,
    StaticNestAnalysis,
    TileInfo,
    Topology,
    keep_all,
)
from accelmap.problem import DataType


ARITHMETIC_CONFIG = {
    'name': 'MAC',
    'instances': 4,
    'meshX': 2,
    'energy-per-op': 1.0,
    'area': 100.0,
}

STORAGE_CONFIG = [
    {
        'name': 'RegFile',
        'instances': 4,
        'meshX': 2,
        'sharing': 'partitioned',
        'size': 16,
        'access-energy': 0.5,
        'area': 50.0,
        'wire-energy': 0.0,
    },
    {
        'name': 'GlobalBuf',
        'instances': 1,
        'sharing': 'shared',
        'size': 1024,
        'access-energy': 2.0,
        'area': 1000.0,
        'wire-energy': 0.0,
    },
]


def make_analysis(body_accesses: int = 10, rf_size: int = 4, gb_size: int = 16,
                  utilized_instances: int = 4) -> StaticNestAnalysis:
    """Same tiles for every datatype."""
    working_sets = {
        dt: [
            TileInfo(size=rf_size, content_accesses=4 * body_accesses, fills=8,
                     fanout=1, instances_used=4),
            TileInfo(size=gb_size, content_accesses=8, fills=16,
                     fanout=4, instances_used=1),
        ]
        for dt in DataType
    }
    return StaticNestAnalysis(
        working_sets=working_sets,
        body_info=BodyInfo(accesses=body_accesses, utilized_instances=utilized_instances),
    )


@pytest.fixture
def storage_config():
    return [dict(level) for level in STORAGE_CONFIG]


@pytest.fixture
def arithmetic_config():
    return dict(ARITHMETIC_CONFIG)


@pytest.fixture
def specs(storage_config, arithmetic_config):
    return Topology.parse_specs(storage_config, arithmetic_config)


@pytest.fixture
def topology(specs):
    topo = Topology()
    topo.spec(specs)
    return topo


@pytest.fixture
def mapping():
    return Mapping(datatype_bypass_nest=keep_all(2))


@pytest.fixture
def analysis():
    return make_analysis()


@pytest.fixture
def analysis_factory():
    return make_analysis
