"""Human readable diagnostics for circular service dependencies.

The reporter explains, for nodes left over after sorting, which other
services they are circularly entangled with. Entries are split into
immediate dependencies (direct edges) and transitive ones (reachable through
other nodes of the cyclic remainder).
"""

from collections.abc import Sequence
from dataclasses import dataclass

from servicegraph.config import ReportConfig
from servicegraph.graph.dependency_graph import Node, display_name


@dataclass(frozen=True)
class CycleBreakdown:
    """Services a cyclic node is entangled with.

    Attributes:
        node: The node being explained
        immediate: Direct dependencies of the node inside the cyclic remainder
        transitive: Remaining reachable nodes, excluding the node itself
    """

    node: Node
    immediate: tuple[Node, ...]
    transitive: tuple[Node, ...]

    @property
    def entangled(self) -> tuple[Node, ...]:
        """Every other node reachable from this one, immediate entries first."""
        return tuple(n for n in (*self.immediate, *self.transitive) if n is not self.node)


def find_reachable(node: Node, cyclic_nodes: Sequence[Node]) -> set[Node]:
    """Find nodes reachable from ``node`` by following dependency edges.

    Traversal is depth first and restricted to ``cyclic_nodes``. The result
    includes ``node`` itself.
    """
    allowed = set(cyclic_nodes)
    reachable = {node}
    stack = [node]

    while stack:
        current = stack.pop()
        for dependency in current.depends_on:
            if dependency in allowed and dependency not in reachable:
                reachable.add(dependency)
                stack.append(dependency)

    return reachable


def break_down(node: Node, cyclic_nodes: Sequence[Node]) -> CycleBreakdown:
    """Split the nodes entangled with ``node`` into immediate and transitive ones.

    Both groups follow the order of ``cyclic_nodes``. A node that depends on
    itself lists itself as an immediate dependency.
    """
    reachable = find_reachable(node, cyclic_nodes)
    immediate = tuple(n for n in cyclic_nodes if n in node.depends_on)
    transitive = tuple(
        n for n in cyclic_nodes if n in reachable and n is not node and n not in node.depends_on
    )
    return CycleBreakdown(node=node, immediate=immediate, transitive=transitive)


class CycleReporter:
    """Formats circular dependency diagnostics.

    Example output for a single installer::

        Has Circular Dependencies:

          ➜ Input (game.services)
          → Audio (game.services)
    """

    def __init__(self, config: ReportConfig | None = None):
        self.config = config or ReportConfig()

    def name(self, node: Node) -> str:
        return display_name(node, qualified=self.config.qualified_names)

    def _entry(self, marker: str, node: Node) -> str:
        return f"  {marker} {self.name(node)}"

    def _note(self, node: Node) -> str:
        # Only reached when every entangled node was listed under an earlier
        # cluster, so a node without a self loop is not on a cycle itself.
        if node in node.depends_on:
            return "  (depends on itself)"
        return "  (blocked by the circular dependencies listed above)"

    def describe(self, node: Node, cyclic_nodes: Sequence[Node]) -> str | None:
        """Describe the circular dependencies of one node.

        Returns:
            Diagnostic text, or None when ``node`` is not in ``cyclic_nodes``
        """
        if node not in cyclic_nodes:
            return None

        breakdown = break_down(node, cyclic_nodes)
        heading = (
            "Has Circular Dependencies:" if len(breakdown.entangled) > 1
            else "Has Circular Dependency:"
        )

        lines = [heading, ""]
        lines.extend(self._entry(self.config.immediate_marker, n) for n in breakdown.immediate)
        lines.extend(self._entry(self.config.transitive_marker, n) for n in breakdown.transitive)
        return "\n".join(lines)

    def describe_all(self, cyclic_nodes: Sequence[Node]) -> str:
        """Describe every cyclic node, grouped into one block per cluster.

        Each cluster is headed by its first unreported node and lists the
        entangled nodes that have not been mentioned yet, so every node
        appears exactly once across the report. A cluster whose entangled
        nodes were all listed earlier gets a note instead of entries.

        Returns:
            Diagnostic text, or an empty string when there are no cyclic nodes
        """
        remaining = dict.fromkeys(cyclic_nodes)
        blocks: list[list[str]] = []

        while remaining:
            node = next(iter(remaining))
            del remaining[node]

            breakdown = break_down(node, cyclic_nodes)
            block = [self.name(node)]
            for marker, group in (
                (self.config.immediate_marker, breakdown.immediate),
                (self.config.transitive_marker, breakdown.transitive),
            ):
                for other in group:
                    if other in remaining:
                        block.append(self._entry(marker, other))
                        del remaining[other]
            if len(block) == 1:
                block.append(self._note(node))
            blocks.append(block)

        if not blocks:
            return ""

        heading = "Has circular dependencies" if len(blocks) > 1 else "Has circular dependency"
        lines = [heading]
        for block in blocks:
            lines.append("")
            lines.extend(block)
        return "\n".join(lines)
