"""
accelmap: Accelerator Mapping Exploration

Estimates energy, area and cycle cost of mapping a tensor computation onto
a hierarchical accelerator, and enumerates the mapping space with a
feedback-pruned linear search.

Subpackages:
    problem:  Datatypes, workload configuration, problem-space loading
    model:    Hardware topology cost model (levels, specs, evaluation)
    mapspace: Mapping identifiers and the 4-dimensional mapping space
    search:   Pruned search engine and the sequential mapper driver
"""

__version__ = "0.1.0"
