"""Dependency graph construction for service installers.

This module provides the DependencyGraph class, which turns an unordered
collection of installers into nodes connected by dependency edges. Edges are
stored on both ends: ``node.depends_on`` holds the nodes that must be installed
before ``node`` and ``node.depended_on_by`` holds the nodes waiting on it.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


@dataclass(eq=False)
class Node:
    """Node representing one installer in a DependencyGraph.

    Nodes hash by identity. The two edge sets are kept as exact inverses:
    ``b in a.depends_on`` if and only if ``a in b.depended_on_by``.

    Attributes:
        installer: The installer this node stands for (not owned by the graph)
        depends_on: Nodes that must precede this node
        depended_on_by: Nodes that this node must precede
    """

    installer: Any
    depends_on: set["Node"] = field(default_factory=set)
    depended_on_by: set["Node"] = field(default_factory=set)

    def __post_init__(self) -> None:
        if self.installer is None:
            msg = "installer must not be None"
            raise ValueError(msg)

    @property
    def service(self) -> Any:
        """Identity of the service installed by this node's installer."""
        return self.installer.target_service

    @property
    def name(self) -> str:
        """Display name of the service, qualified with its namespace when known."""
        return display_name(self, qualified=True)

    def add_dependency(self, dependency: "Node") -> None:
        """Add an edge making ``dependency`` precede this node."""
        self.depends_on.add(dependency)
        dependency.depended_on_by.add(self)

    def remove_dependency(self, dependency: "Node") -> None:
        """Remove the edge between ``dependency`` and this node, if present."""
        self.depends_on.discard(dependency)
        dependency.depended_on_by.discard(self)

    def __repr__(self) -> str:
        return f"Node({self.name!r})"


def display_name(node: Node, qualified: bool = True) -> str:
    """Get a display name for the service behind a node.

    Falls back to ``str()`` of the service identity when it has no titles.
    """
    service = node.service
    attr = "title_with_namespace" if qualified else "title"
    name = getattr(service, attr, None)
    return name if isinstance(name, str) else str(service)


class DependencyGraph:
    """Graph of service dependency nodes.

    Graphs are built with :meth:`create` and are meant to be consumed once:
    sorting removes edges in place.

    Example:
        >>> graph = DependencyGraph.create(installers)
        >>> [node.name for node in graph.nodes if not node.depends_on]
        ['Audio (game.services)']
    """

    def __init__(self, nodes: Iterable[Node] = ()):
        """Initialize a graph from existing nodes (empty by default)."""
        self.nodes: list[Node] = list(nodes)

    @classmethod
    def create(cls, installers: Iterable[Any]) -> "DependencyGraph":
        """Create a dependency graph from installers.

        One node is created per installer, keyed by its target service. An
        edge is created for each declared dependency that maps to another
        installer in the same input; dependencies on services outside the
        input are treated as already satisfied and ignored. When two
        installers target the same service the later one wins.

        Args:
            installers: Installers exposing ``target_service`` and ``get_dependencies()``

        Returns:
            A new DependencyGraph

        Raises:
            ValueError: If ``installers`` is None
        """
        if installers is None:
            msg = "installers must not be None"
            raise ValueError(msg)

        nodes_by_service: dict[Any, Node] = {}
        for installer in installers:
            node = Node(installer)
            nodes_by_service[node.service] = node

        ignored_count = 0
        for node in nodes_by_service.values():
            for dependency in node.installer.get_dependencies():
                dependency_node = nodes_by_service.get(dependency)
                if dependency_node is None:
                    ignored_count += 1
                    continue
                node.add_dependency(dependency_node)

        graph = cls(nodes_by_service.values())

        logger.debug(
            "dependency_graph_built",
            node_count=len(graph.nodes),
            edge_count=graph.edge_count(),
            external_dependency_count=ignored_count,
        )

        return graph

    def node_for(self, installer: Any) -> Node | None:
        """Find the node wrapping the given installer, or None."""
        return next((node for node in self.nodes if node.installer is installer), None)

    def edge_count(self) -> int:
        """Count the dependency edges currently in the graph."""
        return sum(len(node.depends_on) for node in self.nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)
