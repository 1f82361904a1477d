"""
Search Algorithm Interface

A search algorithm emits mapping identifiers one at a time and receives
the outcome of evaluating each before emitting the next.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from ..mapspace import MappingID


class Status(Enum):
    """Outcome of evaluating one mapping identifier."""
    SUCCESS = "success"
    MAPPING_CONSTRUCTION_FAILURE = "mapping_construction_failure"
    EVAL_FAILURE = "eval_failure"


class SearchProtocolError(AssertionError):
    """next() and report() called out of turn."""


class SearchAlgorithm(ABC):
    """next() and report() must strictly alternate."""

    @abstractmethod
    def next(self) -> Optional[MappingID]:
        """Next mapping identifier, or None once the space is exhausted."""
        pass

    @abstractmethod
    def report(self, status: Status, cost: float = 0.0):
        """Feedback for the identifier returned by the last next() call."""
        pass

    def close(self):
        """Release any diagnostic outputs."""
        pass
