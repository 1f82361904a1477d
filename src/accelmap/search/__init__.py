"""
Mapping Space Search

Search algorithms over the mapping space and the mapper driver that feeds
them with evaluation results.
"""

from .search import SearchAlgorithm, SearchProtocolError, Status
from .linear_pruned import DIMENSION_ORDER, LinearPrunedSearch, SearchState
from .factory import create_search
from .mapper import Mapper, MapperResult, mapping_cost

__all__ = [
    'SearchAlgorithm',
    'SearchProtocolError',
    'Status',
    'DIMENSION_ORDER',
    'LinearPrunedSearch',
    'SearchState',
    'create_search',
    'Mapper',
    'MapperResult',
    'mapping_cost',
]
