"""
Topology Errors

Structural specification errors and topology state errors.
"""

from typing import Any, Optional


class TopologySpecError(ValueError):
    """
    Structural inconsistency in a topology specification.

    Raised at parse/validate/spec time for unsatisfiable divisibility
    constraints between adjacent levels, missing mesh dimensions, fanout
    mismatches, and unrecognized level kinds.

    Attributes:
        inner: Name of the inner level of the offending pair (if any)
        outer: Name of the outer level of the offending pair (if any)
        attribute: Attribute that failed (e.g. "fanout", "meshX")
        expected: Value derived from the rest of the hierarchy
        actual: Value found in the specification
    """

    def __init__(
        self,
        message: str,
        inner: Optional[str] = None,
        outer: Optional[str] = None,
        attribute: Optional[str] = None,
        expected: Any = None,
        actual: Any = None,
    ):
        self.inner = inner
        self.outer = outer
        self.attribute = attribute
        self.expected = expected
        self.actual = actual
        if inner is not None or outer is not None:
            message = f"[{inner} -> {outer}] {message}"
        super().__init__(message)


class TopologyStateError(RuntimeError):
    """Topology operation called in the wrong lifecycle state."""
