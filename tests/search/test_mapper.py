"""
Tests for the mapper driver.

The mapspace has two index factorizations with two bypass choices each:

    IF0/DB0  construction failure
    IF0/DB1  valid, 10 body accesses
    IF1/DB0  RegFile overflow (evaluation failure)
    IF1/DB1  valid, 5 body accesses (cheapest)
"""

import pytest

from accelmap.config import MapperConfig
from accelmap.mapspace import Dimension, MappingID, TabulatedMapSpace
from accelmap.model import Mapping, keep_all
from accelmap.search import LinearPrunedSearch, Mapper, Status, mapping_cost

IF = Dimension.INDEX_FACTORIZATION
DB = Dimension.DATATYPE_BYPASS


@pytest.fixture
def construct():
    def construct_mapping(mapping_id):
        if mapping_id[IF] == 0 and mapping_id[DB] == 0:
            return None
        return Mapping(datatype_bypass_nest=keep_all(2), mapping_id=mapping_id)
    return construct_mapping


@pytest.fixture
def analyze(analysis_factory):
    def analyze_mapping(mapping):
        mapping_id = mapping.mapping_id
        if mapping_id[IF] == 1 and mapping_id[DB] == 0:
            return analysis_factory(rf_size=100)
        if mapping_id[IF] == 1:
            return analysis_factory(body_accesses=5)
        return analysis_factory()
    return analyze_mapping


def make_mapper(specs, construct, analyze, config=None):
    search = LinearPrunedSearch(TabulatedMapSpace.uniform(2, 1, 1, 2))
    return Mapper(specs, search, construct, analyze, config=config)


class TestMapperRun:
    def test_counts(self, specs, construct, analyze):
        result = make_mapper(specs, construct, analyze).run()
        assert result.candidates == 4
        assert result.valid_mappings == 2
        assert result.construction_failures == 1
        assert result.eval_failures == 1

    def test_best_mapping(self, specs, construct, analyze):
        result = make_mapper(specs, construct, analyze).run()
        assert result.found
        assert result.best_mapping_id[IF] == 1
        assert result.best_mapping_id[DB] == 1
        assert result.best_cost < 220.0
        assert result.best_cost == pytest.approx(result.best_stats['energy_pj'])
        assert "Total topology energy" in result.best_report

    def test_delay_metric(self, specs, construct, analyze):
        config = MapperConfig(metric="delay")
        result = make_mapper(specs, construct, analyze, config).run()
        assert result.best_cost == float(result.best_stats['cycles'])

    def test_evaluation_cap(self, specs, construct, analyze):
        config = MapperConfig(max_evaluations=2)
        mapper = make_mapper(specs, construct, analyze, config)
        result = mapper.run()
        assert result.candidates == 2
        assert result.best_mapping_id[IF] == 0
        assert result.best_cost == pytest.approx(220.0)

    def test_nothing_valid(self, specs, analyze):
        mapper = make_mapper(specs, lambda mapping_id: None, analyze)
        result = mapper.run()
        assert not result.found
        assert result.best_cost is None
        assert result.construction_failures == 4


class TestMapperFromConfig:
    def test_search_built_from_config(self, specs, construct, analyze, tmp_path):
        config = MapperConfig.from_dict({
            'search': {'dump-costs': True,
                       'dump-costs-path': str(tmp_path / "trace-{id}.txt")},
        })
        mapper = Mapper.from_config(specs, TabulatedMapSpace.uniform(2, 1, 1, 2),
                                    construct, analyze, config=config, search_id=3)
        assert isinstance(mapper.search, LinearPrunedSearch)
        assert mapper.search.config is config.search

        result = mapper.run()
        mapper.close()
        assert result.valid_mappings == 2

        # One transition, IF0 -> IF1, whose best was the 10-access mapping
        trace = (tmp_path / "trace-3.txt").read_text().split()
        assert len(trace) == 1
        assert float(trace[0]) == pytest.approx(220.0)


class TestMapperEvaluate:
    def test_success_returns_evaluated_topology(self, specs, construct, analyze):
        mapper = make_mapper(specs, construct, analyze)
        mapping_id = mapper.search.next()
        mapper.search.report(Status.MAPPING_CONSTRUCTION_FAILURE)
        mapping_id = mapper.search.next()

        status, cost, topology = mapper.evaluate(mapping_id)
        assert status == Status.SUCCESS
        assert topology.is_evaluated
        assert cost == pytest.approx(mapping_cost(topology, "energy"))

    def test_topology_is_reused(self, specs, construct, analyze):
        mapper = make_mapper(specs, construct, analyze)
        valid = MappingID(values=(0, 0, 0, 1), bases=(2, 1, 1, 2))

        _, _, first = mapper.evaluate(valid)
        _, _, second = mapper.evaluate(valid)
        assert first is second is mapper.topology

    def test_failure_after_success_leaves_no_results(self, specs, construct, analyze):
        mapper = make_mapper(specs, construct, analyze)
        valid = MappingID(values=(0, 0, 0, 1), bases=(2, 1, 1, 2))
        overflow = MappingID(values=(1, 0, 0, 0), bases=(2, 1, 1, 2))

        status, _, topology = mapper.evaluate(valid)
        assert status == Status.SUCCESS
        assert topology.is_evaluated

        status, _, topology = mapper.evaluate(overflow)
        assert status == Status.EVAL_FAILURE
        assert topology is None

        status, cost, topology = mapper.evaluate(valid)
        assert status == Status.SUCCESS
        assert cost == pytest.approx(220.0)

    def test_unknown_metric(self, topology):
        with pytest.raises(ValueError):
            mapping_cost(topology, "power")
