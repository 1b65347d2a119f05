"""The immutable package dependency graph."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import networkx as nx

from .errors import UnknownPackageError
from .features import FeatureGraph
from .lazy import LazyCell
from .models import PackageId

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence

    from .models import DependencyEdge, PackageMetadata

logger = logging.getLogger(__name__)


class Workspace:
    """The workspace members of a package graph."""

    def __init__(self, root: str | None, member_ids: Iterable[PackageId], names: Mapping[PackageId, str]) -> None:
        """Initialize a workspace.

        Args:
            root: Path to the workspace root, if known
            member_ids: Ids of the workspace members, in input order
            names: Package name for every member id

        """
        self.root: str | None = root
        self.member_ids: tuple[PackageId, ...] = tuple(member_ids)
        self._by_name: dict[str, PackageId] = {names[pid]: pid for pid in self.member_ids}
        self._members: frozenset[PackageId] = frozenset(self.member_ids)

    def member_by_name(self, name: str) -> PackageId | None:
        """Get the id of the workspace member called ``name``."""
        return self._by_name.get(name)

    def __contains__(self, package_id: object) -> bool:
        """Check whether a package is a workspace member."""
        return package_id in self._members

    def __iter__(self) -> Iterator[PackageId]:
        """Iterate over member ids in input order."""
        return iter(self.member_ids)

    def __len__(self) -> int:
        """Return the number of workspace members."""
        return len(self.member_ids)


class PackageGraph:
    """A directed multigraph of packages and their typed dependency edges.

    Instances are immutable once constructed and can be shared between
    threads. Use :func:`crate_graph.builder.build` to create one from input
    records; the constructor trusts that its arguments are already validated.
    """

    def __init__(
        self,
        packages: Mapping[PackageId, PackageMetadata],
        edges: Sequence[DependencyEdge],
        workspace: Workspace,
    ) -> None:
        """Initialize the graph from validated packages and edges."""
        self._packages: dict[PackageId, PackageMetadata] = dict(packages)
        self._edges: tuple[DependencyEdge, ...] = tuple(edges)
        self.workspace: Workspace = workspace

        outgoing: dict[PackageId, list[DependencyEdge]] = {pid: [] for pid in self._packages}
        incoming: dict[PackageId, list[DependencyEdge]] = {pid: [] for pid in self._packages}
        graph = nx.MultiDiGraph()
        graph.add_nodes_from(self._packages)
        for edge in self._edges:
            outgoing[edge.source].append(edge)
            incoming[edge.target].append(edge)
            graph.add_edge(edge.source, edge.target, key=edge.index, link=edge)
        self._outgoing: dict[PackageId, tuple[DependencyEdge, ...]] = {k: tuple(v) for k, v in outgoing.items()}
        self._incoming: dict[PackageId, tuple[DependencyEdge, ...]] = {k: tuple(v) for k, v in incoming.items()}
        self._graph: nx.MultiDiGraph = nx.freeze(graph)
        self._feature_graph: LazyCell[FeatureGraph] = LazyCell(lambda: FeatureGraph.from_package_graph(self))

    def _check(self, package_id: PackageId | str) -> PackageId:
        package_id = PackageId.of(package_id)
        if package_id not in self._packages:
            raise UnknownPackageError(package_id)
        return package_id

    def __contains__(self, package_id: object) -> bool:
        """Check whether the graph holds a package id."""
        if isinstance(package_id, str):
            package_id = PackageId(package_id)
        return package_id in self._packages

    def __iter__(self) -> Iterator[PackageId]:
        """Iterate over package ids in input order."""
        return iter(self._packages)

    def __len__(self) -> int:
        """Return the number of packages."""
        return len(self._packages)

    @property
    def package_count(self) -> int:
        """Number of packages in the graph."""
        return len(self._packages)

    @property
    def link_count(self) -> int:
        """Number of dependency edges in the graph."""
        return len(self._edges)

    @property
    def edges(self) -> tuple[DependencyEdge, ...]:
        """All dependency edges, in input order."""
        return self._edges

    def package_ids(self) -> Iterator[PackageId]:
        """Iterate over package ids in input order."""
        return iter(self._packages)

    def packages(self) -> Iterator[PackageMetadata]:
        """Iterate over package metadata in input order."""
        return iter(self._packages.values())

    def metadata(self, package_id: PackageId | str) -> PackageMetadata:
        """Look up a package's metadata.

        Raises:
            UnknownPackageError: If the id is not in the graph

        """
        return self._packages[self._check(package_id)]

    def package_ids_by_name(self, name: str) -> list[PackageId]:
        """Get all ids of packages called ``name``, one per resolved version or source."""
        return [pid for pid, metadata in self._packages.items() if metadata.name == name]

    def dep_links(self, package_id: PackageId | str) -> tuple[DependencyEdge, ...]:
        """Get the edges from a package to its direct dependencies, in input order."""
        return self._outgoing[self._check(package_id)]

    def reverse_dep_links(self, package_id: PackageId | str) -> tuple[DependencyEdge, ...]:
        """Get the edges from a package's direct dependents to it, in input order."""
        return self._incoming[self._check(package_id)]

    def links(self, source: PackageId | str, target: PackageId | str) -> list[DependencyEdge]:
        """Get every edge from ``source`` to ``target``, in input order."""
        data = self._graph.get_edge_data(self._check(source), self._check(target))
        if data is None:
            return []
        # keys are edge indices, inserted in ascending order
        return [attributes["link"] for attributes in data.values()]

    def directly_depends_on(self, source: PackageId | str, target: PackageId | str) -> bool:
        """Check if there is at least one edge from ``source`` to ``target``."""
        return self._graph.has_edge(self._check(source), self._check(target))

    def feature_graph(self) -> FeatureGraph:
        """Get the feature graph, deriving it on first use."""
        return self._feature_graph.get()

    def induced_subgraph(
        self,
        package_ids: Iterable[PackageId],
        edge_filter: Callable[[DependencyEdge], bool] | None = None,
    ) -> PackageGraph:
        """Build a graph of ``package_ids`` and the edges among them that pass ``edge_filter``.

        Packages keep their relative input order and edges keep their identity.
        """
        selected = set(package_ids)
        packages = {pid: metadata for pid, metadata in self._packages.items() if pid in selected}
        edges = [
            edge
            for edge in self._edges
            if edge.source in selected and edge.target in selected and (edge_filter is None or edge_filter(edge))
        ]
        members = [pid for pid in self.workspace if pid in selected]
        workspace = Workspace(self.workspace.root, members, {pid: packages[pid].name for pid in members})
        logger.debug(
            "Induced subgraph with %d of %d packages and %d of %d links",
            len(packages),
            len(self),
            len(edges),
            self.link_count,
        )
        return PackageGraph(packages, edges, workspace)

    def to_networkx(self) -> nx.MultiDiGraph:
        """Return a mutable ``networkx`` copy; edges are keyed by index and carry a ``link`` attribute."""
        return nx.MultiDiGraph(self._graph)

    @property
    def nx_graph(self) -> nx.MultiDiGraph:
        """The frozen ``networkx`` graph backing this package graph."""
        return self._graph

    def __repr__(self) -> str:
        """Return the representation of the graph."""
        return f"<{self.__class__.__name__} packages={self.package_count} links={self.link_count}>"
