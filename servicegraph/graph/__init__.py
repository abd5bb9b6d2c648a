"""Graph module for service dependency ordering.

This module provides the dependency graph built from service installers, the
topological sorter that orders them, and the diagnostics produced when
services depend on each other circularly.
"""

from servicegraph.graph.dependency_graph import DependencyGraph, Node
from servicegraph.graph.report import CycleBreakdown, CycleReporter, find_reachable
from servicegraph.graph.sorter import CircularDependencyError, DependencySorter, SortResults

__all__ = [
    "CircularDependencyError",
    "CycleBreakdown",
    "CycleReporter",
    "DependencyGraph",
    "DependencySorter",
    "Node",
    "SortResults",
    "find_reachable",
]
