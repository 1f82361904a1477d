"""Search algorithm construction from configuration."""

from typing import Optional

from ..config import SearchConfig
from ..mapspace import MapSpace
from .linear_pruned import LinearPrunedSearch
from .search import SearchAlgorithm


def create_search(mapspace: MapSpace, search_id: int = 0,
                  config: Optional[SearchConfig] = None) -> SearchAlgorithm:
    config = config or SearchConfig()
    if config.algorithm == "linear-pruned":
        return LinearPrunedSearch(mapspace, search_id, config)
    raise ValueError(f"Unknown search algorithm: {config.algorithm}")
