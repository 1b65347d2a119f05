"""Read-only queries over a package graph: closures, links and cycles."""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from typing import TYPE_CHECKING

import networkx as nx

from .errors import UnknownPackageError
from .filters import follow_all
from .models import DependencyKind, PackageId

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from .filters import EdgePredicate
    from .graph import PackageGraph
    from .models import DependencyEdge

logger = logging.getLogger(__name__)


class Direction(str, Enum):
    """Which way a traversal follows dependency edges."""

    forward = "forward"
    """From a package to its dependencies."""
    reverse = "reverse"
    """From a package to its dependents."""


def _checked_ids(graph: PackageGraph, package_ids: Iterable[PackageId | str]) -> list[PackageId]:
    """Deduplicate ``package_ids`` preserving order, rejecting ids not in ``graph``."""
    checked: dict[PackageId, None] = {}
    for package_id in package_ids:
        package_id = PackageId.of(package_id)  # noqa: PLW2901
        if package_id not in graph:
            raise UnknownPackageError(package_id)
        checked[package_id] = None
    return list(checked)


def _reach(
    graph: PackageGraph,
    starts: Iterable[PackageId],
    direction: Direction,
    predicate: EdgePredicate,
) -> dict[PackageId, None]:
    """Breadth-first reachability; returns the visited ids in discovery order."""
    visited: dict[PackageId, None] = dict.fromkeys(starts)
    queue = deque(visited)
    forward = direction == Direction.forward
    while queue:
        package_id = queue.popleft()
        links = graph.dep_links(package_id) if forward else graph.reverse_dep_links(package_id)
        for link in links:
            if not predicate(link):
                continue
            neighbor = link.target if forward else link.source
            if neighbor not in visited:
                visited[neighbor] = None
                queue.append(neighbor)
    return visited


class QueryResult:
    """The set of packages reached by a :func:`query`.

    Iteration yields package ids in discovery order (roots first, then
    breadth-first). The induced subgraph is computed on first access.
    """

    def __init__(
        self,
        graph: PackageGraph,
        package_ids: Iterable[PackageId],
        roots: Iterable[PackageId],
        direction: Direction,
        edge_filter: EdgePredicate,
    ) -> None:
        """Initialize a query result; use :func:`query` to obtain one."""
        self.graph: PackageGraph = graph
        self._ordered: tuple[PackageId, ...] = tuple(package_ids)
        self.package_ids: frozenset[PackageId] = frozenset(self._ordered)
        self.roots: tuple[PackageId, ...] = tuple(roots)
        self.direction: Direction = direction
        self.edge_filter: EdgePredicate = edge_filter
        self._subgraph: PackageGraph | None = None

    def __contains__(self, package_id: object) -> bool:
        """Check whether a package was reached."""
        if isinstance(package_id, str):
            package_id = PackageId(package_id)
        return package_id in self.package_ids

    def __iter__(self) -> Iterator[PackageId]:
        """Iterate over reached ids in discovery order."""
        return iter(self._ordered)

    def __len__(self) -> int:
        """Return the number of reached packages."""
        return len(self._ordered)

    @property
    def subgraph(self) -> PackageGraph:
        """The reached packages and the filtered edges among them, as a re-queryable graph."""
        if self._subgraph is None:
            self._subgraph = self.graph.induced_subgraph(self._ordered, self.edge_filter)
        return self._subgraph

    def links(self) -> Iterator[DependencyEdge]:
        """Iterate over the edges of the induced subgraph, in input order."""
        return iter(self.subgraph.edges)

    def root_ids(self, direction: Direction = Direction.forward) -> list[PackageId]:
        """Get reached packages that nothing else in the result points at, in ``direction``.

        In the forward direction these are the top-level dependents; in the
        reverse direction they are the packages with no dependencies inside
        the result.
        """
        subgraph = self.subgraph
        if Direction(direction) == Direction.forward:
            return [pid for pid in self._ordered if not subgraph.reverse_dep_links(pid)]
        return [pid for pid in self._ordered if not subgraph.dep_links(pid)]

    def ordered_ids(self, direction: Direction = Direction.forward) -> list[PackageId]:
        """Get reached ids in dependency order.

        In the forward direction every package comes before its dependencies;
        members of a cycle are kept together in input order.
        """
        subgraph = self.subgraph
        position = {pid: i for i, pid in enumerate(subgraph)}
        condensed = nx.condensation(subgraph.nx_graph)
        ordered = [
            pid
            for component in nx.topological_sort(condensed)
            for pid in sorted(condensed.nodes[component]["members"], key=position.__getitem__)
        ]
        if Direction(direction) == Direction.reverse:
            ordered.reverse()
        return ordered

    def _combine(self, other: QueryResult, package_ids: Iterable[PackageId]) -> QueryResult:
        if other.graph is not self.graph:
            msg = "query results must come from the same graph"
            raise ValueError(msg)
        roots = dict.fromkeys((*self.roots, *other.roots))
        return QueryResult(self.graph, package_ids, roots, self.direction, self.edge_filter)

    def union(self, other: QueryResult) -> QueryResult:
        """Combine two results over the same graph; the induced subgraph uses this result's filter."""
        ordered = dict.fromkeys((*self._ordered, *other._ordered))
        return self._combine(other, ordered)

    def intersection(self, other: QueryResult) -> QueryResult:
        """Packages reached by both results, in this result's discovery order."""
        return self._combine(other, (pid for pid in self._ordered if pid in other.package_ids))

    def __repr__(self) -> str:
        """Return the representation of the result."""
        return f"<{self.__class__.__name__} {self.direction.value} roots={len(self.roots)} packages={len(self)}>"


def query(
    graph: PackageGraph,
    roots: Iterable[PackageId | str],
    direction: Direction | str = Direction.forward,
    edge_filter: EdgePredicate | None = None,
) -> QueryResult:
    """Compute the transitive closure of ``roots``.

    Forward queries follow edges from packages to their dependencies, reverse
    queries from packages to their dependents. Only edges accepted by
    ``edge_filter`` are followed (all edges if it is ``None``). Every root is
    part of the result, and cycles are traversed safely.

    Raises:
        UnknownPackageError: If a root is not in the graph

    """
    predicate = follow_all if edge_filter is None else edge_filter
    direction = Direction(direction)
    root_ids = _checked_ids(graph, roots)
    reached = _reach(graph, root_ids, direction, predicate)
    logger.debug("%s query from %d roots reached %d packages", direction.value, len(root_ids), len(reached))
    return QueryResult(graph, reached, root_ids, direction, predicate)


def depends_on(
    graph: PackageGraph,
    source: PackageId | str,
    target: PackageId | str,
    edge_filter: EdgePredicate | None = None,
) -> bool:
    """Check whether ``source`` transitively depends on ``target`` through at least one edge."""
    predicate = follow_all if edge_filter is None else edge_filter
    source_id = graph.metadata(source).id
    target_id = graph.metadata(target).id
    starts = [link.target for link in graph.dep_links(source_id) if predicate(link)]
    return target_id in _reach(graph, starts, Direction.forward, predicate)


def links_between(graph: PackageGraph, source: PackageId | str, target: PackageId | str) -> list[DependencyEdge]:
    """Get every edge from ``source`` to ``target`` in builder input order.

    Returns an empty list when the packages are not directly linked.

    Raises:
        UnknownPackageError: If either package is not in the graph

    """
    return graph.links(source, target)


class Cycle:
    """A strongly connected set of packages under some edge filter.

    ``package_ids`` is a closed walk: it starts at the smallest id in the
    component, every id has a filtered edge to the next one, and the last id
    has a filtered edge back to the first. The walk visits every member; in
    a component that is not a simple cycle some ids appear more than once.
    ``members`` holds the distinct ids and ``links`` every filtered edge
    inside the component, in input order.
    """

    def __init__(self, package_ids: Iterable[PackageId], links: Iterable[DependencyEdge]) -> None:
        """Initialize a cycle from a closed walk and the edges among its members."""
        self.package_ids: tuple[PackageId, ...] = tuple(package_ids)
        self.members: frozenset[PackageId] = frozenset(self.package_ids)
        self.links: tuple[DependencyEdge, ...] = tuple(links)
        self.kinds: frozenset[DependencyKind] = frozenset(link.kind for link in self.links)

    @classmethod
    def from_component(cls, graph: PackageGraph, component: Iterable[PackageId], predicate: EdgePredicate) -> Cycle:
        """Walk a strongly connected component and collect its edges.

        Members are visited in depth-first preorder from the smallest id,
        joining consecutive members with shortest paths inside the component
        and closing the walk with a shortest path back to the start.
        """
        members = frozenset(component)
        nx_graph = graph.nx_graph
        view = nx.subgraph_view(
            nx_graph,
            filter_node=members.__contains__,
            filter_edge=lambda u, v, k: predicate(nx_graph[u][v][k]["link"]),
        )
        start = min(members)
        walk = [start]
        covered = {start}
        for package_id in nx.dfs_preorder_nodes(view, start):
            if package_id in covered:
                continue
            path = nx.shortest_path(view, walk[-1], package_id)
            walk.extend(path[1:])
            covered.update(path)
        # the closing edge from the last id back to the start is implicit
        walk.extend(nx.shortest_path(view, walk[-1], start)[1:-1])
        internal = [
            link
            for package_id in members
            for link in graph.dep_links(package_id)
            if link.target in members and predicate(link)
        ]
        internal.sort(key=lambda link: link.index)
        return cls(walk, internal)

    def steps(self) -> Iterator[tuple[PackageId, PackageId]]:
        """Yield the consecutive ``(source, target)`` pairs of the closed walk, ending back at the start."""
        ids = self.package_ids
        for i, package_id in enumerate(ids):
            yield package_id, ids[(i + 1) % len(ids)]

    @property
    def is_development_only(self) -> bool:
        """Whether every edge in the cycle is a development dependency."""
        return self.kinds == {DependencyKind.development}

    def __contains__(self, package_id: object) -> bool:
        """Check whether a package participates in the cycle."""
        if isinstance(package_id, str):
            package_id = PackageId(package_id)
        return package_id in self.members

    def __iter__(self) -> Iterator[PackageId]:
        """Iterate over the ids of the closed walk."""
        return iter(self.package_ids)

    def __len__(self) -> int:
        """Return the length of the closed walk; equal to the number of members for a simple cycle."""
        return len(self.package_ids)

    def __repr__(self) -> str:
        """Return the representation of the cycle."""
        kinds = ",".join(sorted(kind.value for kind in self.kinds))
        return f"<{self.__class__.__name__} [{' -> '.join(map(str, self.package_ids))}] kinds={kinds}>"


def find_cycles(graph: PackageGraph, edge_filter: EdgePredicate | None = None) -> list[Cycle]:
    """Find dependency cycles among the edges accepted by ``edge_filter``.

    Every strongly connected component with more than one package, or a
    single package with a self-loop, is reported. Cycles are ordered by their
    smallest package id. With development edges filtered out, any cycle is
    an anomaly; with them included, development-only cycles are expected and
    can be told apart through :attr:`Cycle.kinds`.
    """
    predicate = follow_all if edge_filter is None else edge_filter
    nx_graph = graph.nx_graph
    view = nx.subgraph_view(nx_graph, filter_edge=lambda u, v, k: predicate(nx_graph[u][v][k]["link"]))
    cycles: list[Cycle] = []
    for component in nx.strongly_connected_components(view):
        if len(component) == 1:
            package_id = next(iter(component))
            if not any(predicate(link) for link in graph.links(package_id, package_id)):
                continue
        cycles.append(Cycle.from_component(graph, component, predicate))
    # sort is stable, so ties keep discovery order
    cycles.sort(key=lambda cycle: min(cycle.package_ids))
    logger.debug("Found %d cycles in %r", len(cycles), graph)
    return cycles


def is_cyclic(
    graph: PackageGraph,
    first: PackageId | str,
    second: PackageId | str,
    edge_filter: EdgePredicate | None = None,
) -> bool:
    """Check whether two packages take part in the same cycle."""
    predicate = follow_all if edge_filter is None else edge_filter
    return depends_on(graph, first, second, predicate) and depends_on(graph, second, first, predicate)
