"""Installation ordering for services with declared dependencies.

Example:
    >>> from servicegraph import DependencySorter
    >>> results = DependencySorter().sort(installers)
    >>> results.raise_for_cycles()
"""

from servicegraph.config import ReportConfig, ResolverConfig
from servicegraph.graph import (
    CircularDependencyError,
    DependencyGraph,
    DependencySorter,
    Node,
    SortResults,
)
from servicegraph.services import (
    CallbackInstaller,
    Service,
    ServiceDescriptor,
    ServiceInstaller,
    ServiceRegistry,
    depends_on,
)

__all__ = [
    "CallbackInstaller",
    "CircularDependencyError",
    "DependencyGraph",
    "DependencySorter",
    "Node",
    "ReportConfig",
    "ResolverConfig",
    "Service",
    "ServiceDescriptor",
    "ServiceInstaller",
    "ServiceRegistry",
    "SortResults",
    "depends_on",
]
