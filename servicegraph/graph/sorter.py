"""Topological ordering of service installers.

This module provides the DependencySorter class, which orders installers so
that every service is installed after the services it depends on. Circular
dependencies do not abort the sort; they are reported in the results so the
caller can decide how to handle them.
"""

import uuid
from collections import deque
from collections.abc import Iterable, Sequence
from typing import Any

import structlog

from servicegraph.config import ReportConfig
from servicegraph.graph.dependency_graph import DependencyGraph, Node
from servicegraph.graph.report import CycleReporter
from servicegraph.log_config import bound_context

logger = structlog.get_logger(__name__)


class CircularDependencyError(Exception):
    """Exception raised when a caller refuses to proceed past circular dependencies.

    Attributes:
        message: Diagnostic text listing the services involved
        circular_nodes: Nodes that could not be ordered
    """

    def __init__(self, message: str, circular_nodes: Iterable[Node] = ()):
        """Initialize the exception with a descriptive message.

        Args:
            message: Description of the circular dependencies
            circular_nodes: Nodes participating in the circular dependencies
        """
        super().__init__(message)
        self.message = message
        self.circular_nodes = tuple(circular_nodes)


class SortResults:
    """Results produced by DependencySorter.sort.

    Check ``has_circular_dependency`` to find out whether the sort succeeded.

    Attributes:
        sorted_installers: Installers ordered so that dependencies come first
        circular_dependency_nodes: Nodes that could not be ordered because of
            circular dependencies
        blocked_installers: Installers left out of both groups because they
            depend, directly or not, on a circular dependency
    """

    def __init__(
        self,
        sorted_installers: Iterable[Any],
        circular_dependency_nodes: Iterable[Node],
        blocked_installers: Iterable[Any] = (),
        report_config: ReportConfig | None = None,
    ):
        self.sorted_installers = tuple(sorted_installers)
        self.circular_dependency_nodes = tuple(circular_dependency_nodes)
        self.blocked_installers = tuple(blocked_installers)
        self._reporter = CycleReporter(report_config)

    @property
    def has_circular_dependency(self) -> bool:
        """True when one or more circular dependencies were encountered."""
        return bool(self.circular_dependency_nodes)

    @property
    def circular_installers(self) -> tuple[Any, ...]:
        """Installers of the nodes with circular dependencies."""
        return tuple(node.installer for node in self.circular_dependency_nodes)

    def describe_cycle(self, installer: Any) -> str | None:
        """Generate an error message for the circular dependencies of one installer.

        Args:
            installer: Installer to explain

        Returns:
            Diagnostic text when the installer is part of a circular
            dependency, otherwise None

        Raises:
            ValueError: If ``installer`` is None
        """
        if installer is None:
            msg = "installer must not be None"
            raise ValueError(msg)

        node = next(
            (n for n in self.circular_dependency_nodes if n.installer is installer),
            None,
        )
        if node is None:
            return None
        return self._reporter.describe(node, self.circular_dependency_nodes)

    def describe_all_cycles(self) -> str:
        """Generate an error message covering every circular dependency.

        Returns:
            Diagnostic text, or an empty string when there are no circular dependencies
        """
        return self._reporter.describe_all(self.circular_dependency_nodes)

    def raise_for_cycles(self) -> "SortResults":
        """Raise CircularDependencyError if any circular dependency was found.

        Returns:
            These results, when there is no circular dependency
        """
        if self.has_circular_dependency:
            raise CircularDependencyError(
                self.describe_all_cycles(),
                self.circular_dependency_nodes,
            )
        return self

    def __repr__(self) -> str:
        return (
            f"SortResults(sorted={len(self.sorted_installers)}, "
            f"circular={len(self.circular_dependency_nodes)}, "
            f"blocked={len(self.blocked_installers)})"
        )


class DependencySorter:
    """Sorts service installers so that root-most services come first.

    Every call to :meth:`sort` builds its own graph, so a sorter can be reused
    and shared between callers. Log events of one call carry the same
    ``sort_id``.

    Example:
        >>> results = DependencySorter().sort(installers)
        >>> if results.has_circular_dependency:
        ...     print(results.describe_all_cycles())
        ... else:
        ...     for installer in results.sorted_installers:
        ...         installer.install_bindings()
    """

    def __init__(self, report_config: ReportConfig | None = None):
        """Initialize the sorter.

        Args:
            report_config: Settings for circular dependency diagnostics
        """
        self.report_config = report_config

    def sort(self, installers: Iterable[Any]) -> SortResults:
        """Sort installers by their dependencies.

        Args:
            installers: Installers exposing ``target_service`` and ``get_dependencies()``

        Returns:
            SortResults; check ``has_circular_dependency`` to find out whether
            every installer could be ordered

        Raises:
            ValueError: If ``installers`` is None
        """
        if installers is None:
            msg = "installers must not be None"
            raise ValueError(msg)

        installers = list(installers)
        with bound_context(sort_id=uuid.uuid4().hex[:8], installer_count=len(installers)):
            graph = DependencyGraph.create(installers)
            return self._sort_nodes(graph.nodes)

    def _sort_nodes(self, nodes: Sequence[Node]) -> SortResults:
        # Kahn's algorithm over a working set that owns the nodes' edges.
        position = {node: index for index, node in enumerate(nodes)}
        working = dict.fromkeys(nodes)
        ready = deque(node for node in nodes if not node.depends_on)
        emitted: list[Node] = []

        while ready:
            node = ready.popleft()
            emitted.append(node)

            for dependent in sorted(node.depended_on_by, key=position.__getitem__):
                dependent.remove_dependency(node)
                if not dependent.depends_on:
                    ready.append(dependent)

            if not node.depended_on_by:
                del working[node]

        blocked = self._remove_blocked_dependents(working)
        circular = list(working)

        results = SortResults(
            sorted_installers=[node.installer for node in emitted],
            circular_dependency_nodes=circular,
            blocked_installers=[node.installer for node in blocked],
            report_config=self.report_config,
        )

        if results.has_circular_dependency:
            logger.warning(
                "circular_dependencies_detected",
                circular_count=len(circular),
                blocked_count=len(blocked),
                services=[node.name for node in circular],
            )

        logger.info(
            "sort_complete",
            node_count=len(nodes),
            sorted_count=len(emitted),
            circular_count=len(circular),
            blocked_count=len(blocked),
        )

        return results

    def _remove_blocked_dependents(self, working: dict[Node, None]) -> list[Node]:
        """Remove nodes that wait on a cycle without being part of one.

        Nodes without remaining dependents are peeled off repeatedly until
        only nodes with circular dependencies remain.

        Returns:
            The removed nodes, in removal order
        """
        blocked: list[Node] = []

        while True:
            leaves = [node for node in working if not node.depended_on_by]
            if not leaves:
                break

            for leaf in leaves:
                for dependency in list(leaf.depends_on):
                    leaf.remove_dependency(dependency)
                del working[leaf]
                blocked.append(leaf)

        if blocked:
            logger.debug(
                "blocked_dependents_removed",
                count=len(blocked),
                services=[node.name for node in blocked],
            )

        return blocked
