"""The feature graph: which features and optional dependencies a feature selection activates."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import networkx as nx

from .errors import FeatureCycleError, UnknownFeatureError
from .filters import EdgeFilter

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from .filters import EdgePredicate
    from .graph import PackageGraph
    from .models import DependencyEdge, PackageId, PackageMetadata

logger = logging.getLogger(__name__)

DEPENDENCY_PREFIX = "dep:"


@dataclass(frozen=True)
class FeatureId:
    """A node of the feature graph: a package together with one of its features.

    ``feature`` is ``None`` for the package's base node, i.e. the package with
    no extra features enabled. Optional dependencies are represented by the
    feature ``dep:<name>``.
    """

    package_id: PackageId
    feature: str | None = None

    @property
    def is_base(self) -> bool:
        """Whether this is the base node of its package."""
        return self.feature is None

    @property
    def is_dependency(self) -> bool:
        """Whether this node stands for enabling an optional dependency."""
        return self.feature is not None and self.feature.startswith(DEPENDENCY_PREFIX)

    def __lt__(self, other: object) -> bool:
        """Compare feature ids for sorting; base nodes sort first within a package."""
        if not isinstance(other, FeatureId):
            msg = "Need a FeatureId"
            raise TypeError(msg)
        return (self.package_id, self.feature is not None, self.feature or "") < (
            other.package_id,
            other.feature is not None,
            other.feature or "",
        )

    def __str__(self) -> str:
        """Return string representation of the feature id."""
        return f"{self.package_id}/{self.feature if self.feature is not None else 'base'}"


def _optional_dependency_names(graph: PackageGraph, package_id: PackageId) -> set[str]:
    return {link.name for link in graph.dep_links(package_id) if link.optional}


class FeatureGraph(nx.MultiDiGraph):
    """Directed graph over :class:`FeatureId` nodes.

    An edge means "activating the source requires activating the target".
    Edges that cross into another package carry the :class:`DependencyEdge`
    that induced them in their ``link`` attribute, so closures can apply the
    same edge filters as package queries; edges within a package have a
    ``link`` of ``None``.
    """

    @classmethod
    def from_package_graph(cls, graph: PackageGraph) -> FeatureGraph:
        """Derive the feature graph of a package graph.

        The result is frozen. Feature table entries that name neither a
        feature nor a dependency are logged and skipped.
        """
        feature_graph = cls()
        optional = {pid: _optional_dependency_names(graph, pid) for pid in graph}
        for metadata in graph.packages():
            feature_graph._add_package_nodes(metadata, optional[metadata.id])
        for metadata in graph.packages():
            feature_graph._add_feature_definitions(graph, metadata, optional[metadata.id])
        for link in graph.edges:
            feature_graph._add_dependency(graph, link, optional[link.target])
        logger.debug(
            "Derived feature graph with %d features and %d edges from %r",
            feature_graph.number_of_nodes(),
            feature_graph.number_of_edges(),
            graph,
        )
        return nx.freeze(feature_graph)  # type: ignore[no-any-return]

    def _add_package_nodes(self, metadata: PackageMetadata, optional: set[str]) -> None:
        base = FeatureId(metadata.id)
        self.add_node(base)
        for feature in metadata.features:
            self.add_edge(FeatureId(metadata.id, feature), base, link=None)
        for name in sorted(optional):
            dependency = FeatureId(metadata.id, DEPENDENCY_PREFIX + name)
            self.add_edge(dependency, base, link=None)
            if name not in metadata.features:
                # every optional dependency is also an implicit feature of the same name
                self.add_edge(FeatureId(metadata.id, name), dependency, link=None)

    def _add_feature_definitions(self, graph: PackageGraph, metadata: PackageMetadata, optional: set[str]) -> None:
        package_id = metadata.id
        for feature, targets in metadata.features.items():
            source = FeatureId(package_id, feature)
            for target in targets:
                if target.startswith(DEPENDENCY_PREFIX):
                    name = target[len(DEPENDENCY_PREFIX) :]
                    if name in optional:
                        self.add_edge(source, FeatureId(package_id, target), link=None)
                    else:
                        logger.warning("%s: %r does not name an optional dependency; skipping", source, target)
                elif "/" in target:
                    self._add_dependency_feature(graph, source, target, optional)
                elif target in metadata.features or target in optional:
                    self.add_edge(source, FeatureId(package_id, target), link=None)
                else:
                    logger.warning("%s: %r is neither a feature nor an optional dependency; skipping", source, target)

    def _add_dependency_feature(self, graph: PackageGraph, source: FeatureId, target: str, optional: set[str]) -> None:
        """Add edges for a ``dependency/feature`` entry in a feature table."""
        name, feature = target.split("/", 1)
        if name.endswith("?"):
            # weak features only apply when the dependency is enabled some other way
            logger.debug("%s: weak dependency feature %r is not modelled; skipping", source, target)
            return
        links = [link for link in graph.dep_links(source.package_id) if link.name == name]
        if not links:
            logger.warning("%s: %r does not name a dependency; skipping", source, target)
            return
        if name in optional:
            self.add_edge(source, FeatureId(source.package_id, DEPENDENCY_PREFIX + name), link=None)
        for link in links:
            dependency = graph.metadata(link.target)
            if feature in dependency.features or feature in _optional_dependency_names(graph, dependency.id):
                self.add_edge(source, FeatureId(dependency.id, feature), link=link)
            else:
                logger.warning("%s: %s does not define feature %r; skipping", source, dependency.id, feature)

    def _add_dependency(self, graph: PackageGraph, link: DependencyEdge, target_optional: set[str]) -> None:
        """Add edges for a package dependency and the features it requests."""
        if link.optional:
            origin = FeatureId(link.source, DEPENDENCY_PREFIX + link.name)
        else:
            origin = FeatureId(link.source)
        self.add_edge(origin, FeatureId(link.target), link=link)
        target = graph.metadata(link.target)
        if link.default_features and "default" in target.features:
            self.add_edge(origin, FeatureId(link.target, "default"), link=link)
        for feature in link.features:
            if feature in target.features or feature in target_optional:
                self.add_edge(origin, FeatureId(link.target, feature), link=link)
            else:
                logger.warning("%s requests undefined feature %r of %s; skipping", link.source, feature, link.target)

    def features_of(self, package_id: PackageId) -> list[FeatureId]:
        """Get the feature ids of a package, base first."""
        return sorted(node for node in self.nodes if node.package_id == package_id)

    def successors_passing(self, feature_id: FeatureId, predicate: EdgePredicate) -> Iterator[FeatureId]:
        """Yield the direct requirements of ``feature_id`` whose edges pass ``predicate``."""
        for _, target, link in self.out_edges(feature_id, data="link"):
            if link is None or predicate(link):
                yield target

    def closure(self, starts: Iterable[FeatureId], predicate: EdgePredicate) -> dict[FeatureId, None]:
        """Get every feature id reachable from ``starts``, in post-order.

        The walk is an iterative depth-first search that tracks its current
        path.

        Raises:
            FeatureCycleError: If the walk reaches a node already on its path

        """
        done: dict[FeatureId, None] = {}
        for start in starts:
            if start in done:
                continue
            path = [start]
            on_path = {start: 0}
            pending = [self.successors_passing(start, predicate)]
            while pending:
                successor = next(pending[-1], None)
                if successor is None:
                    node = path.pop()
                    del on_path[node]
                    done[node] = None
                    pending.pop()
                elif successor in on_path:
                    raise FeatureCycleError(path[on_path[successor] :])
                elif successor not in done:
                    on_path[successor] = len(path)
                    path.append(successor)
                    pending.append(self.successors_passing(successor, predicate))
        return done

    def find_cycles(self) -> list[list[FeatureId]]:
        """Get every cycle of the feature graph as a sorted list of its feature ids."""
        cycles = [
            sorted(component)
            for component in nx.strongly_connected_components(self)
            if len(component) > 1 or self.has_edge(next(iter(component)), next(iter(component)))
        ]
        return sorted(cycles)


def feature_graph(graph: PackageGraph) -> FeatureGraph:
    """Get the feature graph of ``graph``; it is derived once and cached on the graph."""
    return graph.feature_graph()


def activated_features(
    graph: PackageGraph,
    package: PackageId | str,
    enabled_features: Iterable[str] = (),
    edge_filter: EdgePredicate | None = None,
) -> set[FeatureId]:
    """Get every feature activated by enabling ``enabled_features`` on ``package``.

    The walk starts at the package's base node and the requested features.
    By default development dependencies are not followed.

    Raises:
        UnknownPackageError: If the package is not in the graph
        UnknownFeatureError: If a requested feature is not defined by the package
        FeatureCycleError: If the activation closure is cyclic

    """
    package_id = graph.metadata(package).id
    features = graph.feature_graph()
    starts = [FeatureId(package_id)]
    for feature in enabled_features:
        feature_id = FeatureId(package_id, feature)
        if feature_id.is_dependency or feature_id not in features:
            raise UnknownFeatureError(package_id, feature)
        starts.append(feature_id)
    predicate = EdgeFilter.no_dev() if edge_filter is None else edge_filter
    return set(features.closure(starts, predicate))


def activated_dependencies(
    graph: PackageGraph,
    package: PackageId | str,
    enabled_features: Iterable[str] = (),
    edge_filter: EdgePredicate | None = None,
) -> set[PackageId]:
    """Get the packages that materialize when ``enabled_features`` are enabled on ``package``.

    This is :func:`activated_features` projected onto package ids, and it
    includes ``package`` itself.
    """
    return {feature_id.package_id for feature_id in activated_features(graph, package, enabled_features, edge_filter)}
