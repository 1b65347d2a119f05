from unittest import TestCase

from crate_graph import DependencyKind, EdgeFilter, PackageGraph, PackageId, PackageRecord, RawEdge, build
from crate_graph.query import find_cycles, is_cyclic, links_between


def _id(name: str) -> PackageId:
    return PackageId(f"{name} 1.0.0")


def _graph(names: str, edges: list[tuple[str, str, str]]) -> PackageGraph:
    records = [PackageRecord(id=f"{name} 1.0.0", name=name, version="1.0.0") for name in names]
    return build(records, [RawEdge(f"{s} 1.0.0", f"{t} 1.0.0", kind=kind) for s, t, kind in edges])


class TestFindCycles(TestCase):
    def test_acyclic(self) -> None:
        graph = _graph(
            "abcde",
            [("a", "b", "normal"), ("a", "c", "build"), ("b", "d", "dev"), ("c", "d", "normal"), ("d", "e", "normal")],
        )
        assert find_cycles(graph) == []
        assert find_cycles(graph, EdgeFilter.no_dev()) == []

    def test_development_two_cycle(self) -> None:
        graph = _graph("abc", [("a", "b", "normal"), ("b", "a", "dev"), ("b", "c", "normal")])
        (cycle,) = find_cycles(graph)
        assert set(cycle) == {_id("a"), _id("b")}
        assert cycle.package_ids == (_id("a"), _id("b"))
        assert cycle.kinds == {DependencyKind.normal, DependencyKind.development}
        assert not cycle.is_development_only
        assert [link.index for link in cycle.links] == [0, 1]
        # without development edges the graph is acyclic
        assert find_cycles(graph, EdgeFilter.no_dev()) == []

    def test_development_only_cycle(self) -> None:
        graph = _graph("ab", [("a", "b", "dev"), ("b", "a", "dev")])
        (cycle,) = find_cycles(graph)
        assert cycle.is_development_only

    def test_anomalous_cycle(self) -> None:
        graph = _graph("abc", [("a", "b", "normal"), ("b", "c", "build"), ("c", "a", "normal")])
        (cycle,) = find_cycles(graph, EdgeFilter.no_dev())
        assert cycle.package_ids == (_id("a"), _id("b"), _id("c"))
        assert cycle.kinds == {DependencyKind.normal, DependencyKind.build}

    def test_walk_order_starts_at_smallest(self) -> None:
        graph = _graph("abc", [("c", "a", "normal"), ("b", "c", "normal"), ("a", "b", "normal")])
        (cycle,) = find_cycles(graph)
        assert cycle.package_ids == (_id("a"), _id("b"), _id("c"))
        assert [link.index for link in cycle.links] == [0, 1, 2]

    def test_non_simple_component_is_a_closed_walk(self) -> None:
        graph = _graph("abc", [("a", "b", "normal"), ("a", "c", "normal"), ("b", "a", "dev"), ("c", "a", "dev")])
        (cycle,) = find_cycles(graph)
        assert cycle.package_ids == (_id("a"), _id("b"), _id("a"), _id("c"))
        assert cycle.members == {_id("a"), _id("b"), _id("c")}
        for source, target in cycle.steps():
            assert links_between(graph, source, target), (source, target)
        assert list(cycle.steps())[-1] == (_id("c"), _id("a"))

    def test_walk_follows_filtered_edges_only(self) -> None:
        # b -> c exists but only as a development edge
        graph = _graph(
            "abc",
            [("a", "b", "normal"), ("b", "c", "dev"), ("b", "a", "normal"), ("a", "c", "build"), ("c", "a", "normal")],
        )
        (cycle,) = find_cycles(graph, EdgeFilter.no_dev())
        assert cycle.members == {_id("a"), _id("b"), _id("c")}
        for source, target in cycle.steps():
            assert any(link.kind != DependencyKind.development for link in links_between(graph, source, target))
        assert all(not link.is_development for link in cycle.links)

    def test_self_loop(self) -> None:
        graph = _graph("ab", [("a", "a", "dev"), ("a", "b", "normal")])
        (cycle,) = find_cycles(graph)
        assert cycle.package_ids == (_id("a"),)
        assert len(cycle) == 1
        assert find_cycles(graph, EdgeFilter.no_dev()) == []

    def test_ordering(self) -> None:
        graph = _graph(
            "xyzbc",
            [("x", "y", "normal"), ("y", "x", "normal"), ("c", "b", "normal"), ("b", "c", "dev"), ("z", "z", "build")],
        )
        cycles = find_cycles(graph)
        assert [cycle.package_ids[0] for cycle in cycles] == [_id("b"), _id("x"), _id("z")]
        assert [cycle.package_ids[0] for cycle in find_cycles(graph, EdgeFilter.no_dev())] == [_id("x"), _id("z")]

    def test_parallel_edges_in_cycle(self) -> None:
        graph = _graph("ab", [("a", "b", "normal"), ("a", "b", "dev"), ("b", "a", "dev")])
        (cycle,) = find_cycles(graph)
        assert len(cycle.links) == 3
        (cycle,) = find_cycles(graph, lambda link: link.kind == DependencyKind.development)
        assert cycle.is_development_only
        assert len(cycle.links) == 2

    def test_is_cyclic(self) -> None:
        graph = _graph("abcd", [("a", "b", "normal"), ("b", "c", "normal"), ("c", "a", "dev"), ("c", "d", "normal")])
        assert is_cyclic(graph, _id("a"), _id("c"))
        assert is_cyclic(graph, _id("c"), _id("b"))
        assert not is_cyclic(graph, _id("a"), _id("c"), EdgeFilter.no_dev())
        assert not is_cyclic(graph, _id("a"), _id("d"))
