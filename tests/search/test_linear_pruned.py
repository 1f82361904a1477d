"""
Tests for the linear pruned search engine.

Tests cover:
- Exhaustive odometer enumeration order and coverage
- Pruning of index factorizations whose bypass choices all fail
- Failure-counter reset at the bypass boundary
- State machine discipline (strict next/report alternation, absorbing end)
- Best-cost tracking and the diagnostic cost trace
"""

import logging

import pytest

from accelmap.config import SearchConfig
from accelmap.mapspace import Dimension, TabulatedMapSpace
from accelmap.search import (
    LinearPrunedSearch,
    SearchProtocolError,
    SearchState,
    Status,
    create_search,
)

IF = Dimension.INDEX_FACTORIZATION
LP = Dimension.LOOP_PERMUTATION
S = Dimension.SPATIAL
DB = Dimension.DATATYPE_BYPASS


class RecordingMapSpace(TabulatedMapSpace):
    """Remembers every factorization it was pruned for."""

    def __post_init__(self):
        super().__post_init__()
        self.pruned = []

    def init_pruned(self, index_factorization_id):
        self.pruned.append(index_factorization_id)
        super().init_pruned(index_factorization_id)


def uniform(index_factorizations, loop_permutations, spatial, datatype_bypass):
    return RecordingMapSpace([
        {LP: loop_permutations, S: spatial, DB: datatype_bypass}
        for _ in range(index_factorizations)
    ])


def drain(search, status_for=lambda mapping_id: Status.SUCCESS):
    """Run a search to exhaustion, returning every emitted identifier."""
    emitted = []
    while True:
        mapping_id = search.next()
        if mapping_id is None:
            return emitted
        emitted.append(mapping_id)
        search.report(status_for(mapping_id), 1.0)


def coords(mapping_id):
    return (mapping_id[IF], mapping_id[LP], mapping_id[S], mapping_id[DB])


class TestEnumeration:
    def test_starts_at_origin_and_prunes_first_factorization(self):
        mapspace = uniform(2, 2, 2, 2)
        search = LinearPrunedSearch(mapspace)
        assert mapspace.pruned == [0]
        assert coords(search.next()) == (0, 0, 0, 0)

    def test_bypass_is_fastest_dimension(self):
        search = LinearPrunedSearch(uniform(2, 2, 3, 2))
        order = [coords(m) for m in drain(search)[:5]]
        assert order == [
            (0, 0, 0, 0),
            (0, 0, 0, 1),
            (0, 0, 1, 0),
            (0, 0, 1, 1),
            (0, 0, 2, 0),
        ]

    def test_visits_every_identifier_once_without_pruning(self):
        search = LinearPrunedSearch(uniform(2, 2, 3, 2))
        emitted = drain(search)
        assert len(emitted) == 2 * 2 * 3 * 2
        assert len({coords(m) for m in emitted}) == len(emitted)
        assert search.valid_mappings == len(emitted)

    def test_partial_failures_do_not_prune(self):
        search = LinearPrunedSearch(uniform(2, 2, 3, 2))
        statuses = {}

        def status_for(mapping_id):
            status = Status.EVAL_FAILURE if mapping_id[DB] == 0 else Status.SUCCESS
            statuses[coords(mapping_id)] = status
            return status

        emitted = drain(search, status_for)
        successes = sum(1 for s in statuses.values() if s == Status.SUCCESS)
        failures = sum(1 for s in statuses.values() if s == Status.EVAL_FAILURE)
        assert len(emitted) == 24
        assert search.valid_mappings == successes
        assert successes + failures == 24

    def test_factorization_dependent_sizes(self):
        mapspace = RecordingMapSpace([
            {LP: 1, S: 1, DB: 2},
            {LP: 2, S: 1, DB: 1},
        ])
        emitted = drain(LinearPrunedSearch(mapspace))
        assert [coords(m) for m in emitted] == [
            (0, 0, 0, 0),
            (0, 0, 0, 1),
            (1, 0, 0, 0),
            (1, 1, 0, 0),
        ]
        assert emitted[2].bases == (2, 2, 1, 1)
        assert mapspace.pruned == [0, 1]


class TestPruning:
    def test_all_bypass_failures_skip_to_next_factorization(self):
        """Two bypass choices, one spatial and permutation choice, two factorizations."""
        mapspace = uniform(2, 1, 1, 2)
        search = LinearPrunedSearch(mapspace)

        assert coords(search.next()) == (0, 0, 0, 0)
        search.report(Status.EVAL_FAILURE)
        assert coords(search.next()) == (0, 0, 0, 1)
        search.report(Status.EVAL_FAILURE)

        assert coords(search.next()) == (1, 0, 0, 0)
        assert mapspace.pruned == [0, 1]

    def test_skips_remaining_spatial_and_permutations(self):
        search = LinearPrunedSearch(uniform(2, 3, 3, 2))
        search.next()
        search.report(Status.EVAL_FAILURE)
        search.next()
        search.report(Status.EVAL_FAILURE)

        mapping_id = search.next()
        assert coords(mapping_id) == (1, 0, 0, 0)

    def test_pruning_mid_factorization(self):
        search = LinearPrunedSearch(uniform(2, 2, 2, 2))
        # (IF0, LP0, S0) succeeds
        for _ in range(2):
            search.next()
            search.report(Status.SUCCESS, 1.0)
        # (IF0, LP0, S1) fails on every bypass choice
        assert coords(search.next()) == (0, 0, 1, 0)
        search.report(Status.EVAL_FAILURE)
        search.next()
        search.report(Status.EVAL_FAILURE)
        # (IF0, LP1, *) never visited
        assert coords(search.next()) == (1, 0, 0, 0)

    def test_construction_failures_do_not_prune(self):
        search = LinearPrunedSearch(uniform(2, 2, 2, 2))
        search.next()
        search.report(Status.MAPPING_CONSTRUCTION_FAILURE)
        search.next()
        search.report(Status.MAPPING_CONSTRUCTION_FAILURE)
        assert coords(search.next()) == (0, 0, 1, 0)

    def test_failure_count_resets_at_boundary(self):
        search = LinearPrunedSearch(uniform(2, 2, 2, 2))
        for status in (Status.EVAL_FAILURE, Status.SUCCESS,
                       Status.SUCCESS, Status.EVAL_FAILURE):
            search.next()
            search.report(status, 1.0)
        assert search.eval_fail_count == 0
        # Two failures in total but never both for one combination
        assert coords(search.next()) == (0, 1, 0, 0)

    def test_pruning_last_factorization_terminates(self):
        search = LinearPrunedSearch(uniform(1, 4, 4, 2))
        search.next()
        search.report(Status.EVAL_FAILURE)
        search.next()
        search.report(Status.EVAL_FAILURE)
        assert search.state == SearchState.TERMINATED
        assert search.next() is None


class TestStateMachine:
    def test_transitions(self):
        search = LinearPrunedSearch(uniform(1, 1, 1, 2))
        assert search.state == SearchState.READY
        search.next()
        assert search.state == SearchState.WAITING_FOR_STATUS
        search.report(Status.SUCCESS, 1.0)
        assert search.state == SearchState.READY

    def test_terminated_is_absorbing(self):
        search = LinearPrunedSearch(uniform(1, 1, 1, 1))
        assert search.next() is not None
        search.report(Status.SUCCESS, 1.0)
        assert search.state == SearchState.TERMINATED
        for _ in range(3):
            assert search.next() is None
        assert search.state == SearchState.TERMINATED

    def test_next_twice_is_protocol_error(self):
        search = LinearPrunedSearch(uniform(1, 1, 1, 2))
        search.next()
        with pytest.raises(SearchProtocolError):
            search.next()

    def test_report_without_next_is_protocol_error(self):
        search = LinearPrunedSearch(uniform(1, 1, 1, 2))
        with pytest.raises(SearchProtocolError):
            search.report(Status.SUCCESS)

    def test_report_after_termination_is_protocol_error(self):
        search = LinearPrunedSearch(uniform(1, 1, 1, 1))
        search.next()
        search.report(Status.SUCCESS)
        with pytest.raises(SearchProtocolError):
            search.report(Status.SUCCESS)


class TestBestCost:
    def test_minimum_within_factorization(self):
        search = LinearPrunedSearch(uniform(1, 1, 1, 3))
        for cost in (5.0, 3.0, 4.0):
            search.next()
            search.report(Status.SUCCESS, cost)
        assert search.best_cost == 3.0

    def test_zero_cost_success_is_tracked(self):
        search = LinearPrunedSearch(uniform(1, 1, 1, 2))
        search.next()
        search.report(Status.SUCCESS, 0.0)
        assert search.best_cost == 0.0

    def test_reset_on_factorization_change(self):
        search = LinearPrunedSearch(uniform(2, 1, 1, 1))
        search.next()
        search.report(Status.SUCCESS, 5.0)
        assert search.best_cost is None

    def test_trace_disabled_by_default(self):
        search = LinearPrunedSearch(uniform(3, 1, 1, 1))
        drain(search)
        assert search.branch_best_costs == []


class TestCostTrace:
    def test_one_value_per_factorization_transition(self, tmp_path):
        config = SearchConfig(dump_costs=True,
                              dump_costs_path=str(tmp_path / "if-cost-{id}.txt"))
        outcomes = {0: (Status.SUCCESS, 5.0), 1: (Status.EVAL_FAILURE, 0.0),
                    2: (Status.SUCCESS, 3.0)}

        with LinearPrunedSearch(uniform(3, 1, 1, 1), search_id=7, config=config) as search:
            while True:
                mapping_id = search.next()
                if mapping_id is None:
                    break
                search.report(*outcomes[mapping_id[IF]])

        assert search.branch_best_costs == [5.0, 0.0]
        trace = (tmp_path / "if-cost-7.txt").read_text().split()
        assert [float(v) for v in trace] == [5.0, 0.0]


class TestPartitionedSearch:
    def test_instances_cover_disjoint_partitions(self):
        mapspace = TabulatedMapSpace.uniform(5, 2, 1, 2)
        seen = set()
        total = 0
        for search_id, part in enumerate(mapspace.split(3)):
            search = create_search(part, search_id)
            for mapping_id in drain(search):
                total += 1
                global_if = mapping_id[IF] + part.index_factorization_offset
                seen.add((global_if,) + coords(mapping_id)[1:])
        assert total == mapspace.total_size()
        assert len(seen) == total

    def test_reports_global_factorization_index(self, caplog):
        caplog.set_level(logging.DEBUG, logger="accelmap.search.linear_pruned")
        partition = TabulatedMapSpace.uniform(4, 1, 1, 1).split(2)[1]
        search = LinearPrunedSearch(partition, search_id=1)
        assert search.global_index_factorization == 2

        search.next()
        search.report(Status.SUCCESS, 1.0)
        assert search.global_index_factorization == 3
        assert "search 1: index factorization 3" in caplog.text

    def test_factory_rejects_unknown_algorithm(self):
        config = SearchConfig()
        config.algorithm = "random"
        with pytest.raises(ValueError):
            create_search(TabulatedMapSpace.uniform(1, 1, 1, 1), 0, config)
