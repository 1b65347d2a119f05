from itertools import product
from unittest import TestCase

import pytest

from crate_graph import (
    DependencyKind,
    Direction,
    EdgeFilter,
    PackageGraph,
    PackageId,
    PackageRecord,
    RawEdge,
    UnknownPackageError,
    build,
    depends_on,
    links_between,
    query,
)

LINUX = "x86_64-unknown-linux-gnu"


def _id(name: str) -> PackageId:
    return PackageId(f"{name} 1.0.0")


def _graph(names: str, edges: list[RawEdge]) -> PackageGraph:
    records = [PackageRecord(id=f"{name} 1.0.0", name=name, version="1.0.0") for name in names]
    return build(records, edges)


def _edge(source: str, target: str, **kwargs: object) -> RawEdge:
    return RawEdge(f"{source} 1.0.0", f"{target} 1.0.0", **kwargs)  # type: ignore[arg-type]


class TestQuery(TestCase):
    def setUp(self) -> None:
        self.graph = _graph(
            "abcdef",
            [
                _edge("a", "b"),
                _edge("a", "c", kind="dev"),
                _edge("b", "d", kind="build"),
                _edge("c", "d"),
                _edge("a", "b", kind="dev"),
                _edge("d", "e", platform="cfg(windows)"),
            ],
        )

    def test_forward(self) -> None:
        result = query(self.graph, [_id("a")])
        assert list(result) == [_id("a"), _id("b"), _id("c"), _id("d"), _id("e")]
        assert _id("f") not in result
        assert "e 1.0.0" in result
        assert len(result) == 5

    def test_filters(self) -> None:
        no_dev = query(self.graph, [_id("a")], edge_filter=EdgeFilter.no_dev())
        assert list(no_dev) == [_id("a"), _id("b"), _id("d"), _id("e")]
        linux = query(self.graph, [_id("a")], edge_filter=EdgeFilter.no_dev(LINUX))
        assert list(linux) == [_id("a"), _id("b"), _id("d")]
        normal = query(self.graph, [_id("a")], edge_filter=EdgeFilter.normal_only())
        assert list(normal) == [_id("a"), _id("b")]

    def test_custom_predicate(self) -> None:
        result = query(self.graph, [_id("a")], edge_filter=lambda link: link.kind != DependencyKind.build)
        assert result.package_ids == {_id("a"), _id("b"), _id("c"), _id("d"), _id("e")}
        result = query(self.graph, [_id("a")], edge_filter=lambda link: link.target != _id("c"))
        assert result.package_ids == {_id("a"), _id("b"), _id("d"), _id("e")}

    def test_reverse(self) -> None:
        result = query(self.graph, [_id("d")], Direction.reverse)
        assert list(result) == [_id("d"), _id("b"), _id("c"), _id("a")]
        assert list(query(self.graph, ["d 1.0.0"], "reverse", EdgeFilter.no_dev())) == [
            _id("d"),
            _id("b"),
            _id("c"),
            _id("a"),
        ]

    def test_roots_are_included(self) -> None:
        result = query(self.graph, [_id("f"), _id("e")])
        assert result.package_ids == {_id("f"), _id("e")}
        assert result.roots == (_id("f"), _id("e"))

    def test_empty_roots(self) -> None:
        result = query(self.graph, [])
        assert len(result) == 0
        assert result.subgraph.package_count == 0
        assert list(result.links()) == []

    def test_unknown_root(self) -> None:
        with pytest.raises(UnknownPackageError) as ctx:
            query(self.graph, [_id("a"), _id("z")])
        assert ctx.value.package_id == _id("z")

    def test_duality(self) -> None:
        for edge_filter in (None, EdgeFilter.no_dev(), EdgeFilter.no_dev(LINUX)):
            for n, m in product(self.graph, repeat=2):
                forward = m in query(self.graph, [n], Direction.forward, edge_filter)
                reverse = n in query(self.graph, [m], Direction.reverse, edge_filter)
                assert forward == reverse, f"{n} -> {m} with {edge_filter!r}"

    def test_subgraph(self) -> None:
        result = query(self.graph, [_id("a")], edge_filter=EdgeFilter.no_dev())
        subgraph = result.subgraph
        assert subgraph is result.subgraph
        assert list(subgraph) == [_id("a"), _id("b"), _id("d"), _id("e")]
        assert [link.index for link in result.links()] == [0, 2, 5]
        # the subgraph can be queried again without the filter
        assert list(query(subgraph, [_id("b")])) == [_id("b"), _id("d"), _id("e")]

    def test_root_ids(self) -> None:
        result = query(self.graph, [_id("a")], edge_filter=EdgeFilter.no_dev())
        assert result.root_ids() == [_id("a")]
        assert result.root_ids(Direction.reverse) == [_id("e")]

    def test_ordered_ids(self) -> None:
        result = query(self.graph, [_id("a")])
        ordered = result.ordered_ids()
        for link in result.links():
            assert ordered.index(link.source) < ordered.index(link.target)
        assert result.ordered_ids(Direction.reverse) == list(reversed(ordered))

    def test_ordered_ids_with_cycle(self) -> None:
        graph = _graph("xyz", [_edge("x", "y"), _edge("y", "z"), _edge("z", "y", kind="dev")])
        assert query(graph, [_id("x")]).ordered_ids() == [_id("x"), _id("y"), _id("z")]

    def test_union_and_intersection(self) -> None:
        first = query(self.graph, [_id("b")])
        second = query(self.graph, [_id("c")])
        union = first.union(second)
        assert union.package_ids == {_id("b"), _id("c"), _id("d"), _id("e")}
        assert union.roots == (_id("b"), _id("c"))
        assert first.intersection(second).package_ids == {_id("d"), _id("e")}

    def test_combine_different_graphs(self) -> None:
        other = _graph("ab", [])
        with pytest.raises(ValueError, match="same graph"):
            query(self.graph, [_id("a")]).union(query(other, [_id("a")]))

    def test_traverses_cycles(self) -> None:
        graph = _graph("abc", [_edge("a", "b"), _edge("b", "c"), _edge("c", "a", kind="dev"), _edge("c", "c")])
        assert list(query(graph, [_id("b")])) == [_id("b"), _id("c"), _id("a")]
        assert list(query(graph, [_id("b")], Direction.reverse)) == [_id("b"), _id("a"), _id("c")]


class TestLinks(TestCase):
    def test_round_trip(self) -> None:
        edges = [
            _edge("a", "b"),
            _edge("a", "c"),
            _edge("a", "b", kind="build"),
            _edge("b", "a", kind="dev"),
            _edge("a", "b", kind="dev", optional=True),
        ]
        graph = _graph("abc", edges)
        for source, target in product("abc", repeat=2):
            expected = [
                (i, edge.kind)
                for i, edge in enumerate(edges)
                if (edge.source, edge.target) == (f"{source} 1.0.0", f"{target} 1.0.0")
            ]
            links = links_between(graph, _id(source), _id(target))
            assert [(link.index, link.kind) for link in links] == [(i, DependencyKind.parse(k)) for i, k in expected]

    def test_no_links(self) -> None:
        graph = _graph("ab", [_edge("a", "b")])
        assert links_between(graph, _id("b"), _id("a")) == []
        assert not graph.directly_depends_on("b 1.0.0", "a 1.0.0")
        assert graph.directly_depends_on("a 1.0.0", "b 1.0.0")

    def test_unknown_package(self) -> None:
        graph = _graph("ab", [_edge("a", "b")])
        with pytest.raises(UnknownPackageError):
            links_between(graph, _id("a"), _id("z"))


class TestDependsOn(TestCase):
    def test_depends_on(self) -> None:
        graph = _graph("abcd", [_edge("a", "b"), _edge("b", "c", kind="dev")])
        assert depends_on(graph, _id("a"), _id("c"))
        assert not depends_on(graph, _id("a"), _id("c"), EdgeFilter.no_dev())
        assert not depends_on(graph, _id("c"), _id("a"))
        assert not depends_on(graph, _id("a"), _id("a"))
        assert not depends_on(graph, _id("a"), _id("d"))

    def test_self_dependency_through_cycle(self) -> None:
        graph = _graph("ab", [_edge("a", "b"), _edge("b", "a", kind="dev")])
        assert depends_on(graph, _id("a"), _id("a"))
        assert not depends_on(graph, _id("a"), _id("a"), EdgeFilter.no_dev())
