"""Exceptions raised while building and querying package graphs."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .features import FeatureId
    from .models import PackageId


class CrateGraphError(Exception):
    """Base class for all errors raised by crate-graph."""


class BuildError(CrateGraphError):
    """A package graph could not be constructed from its input records."""


class DuplicatePackageError(BuildError):
    """Two input records share a package id."""

    def __init__(self, package_id: PackageId) -> None:
        """Initialize the error.

        Args:
            package_id: The id that appeared more than once

        """
        self.package_id = package_id
        msg = f"duplicate package id: {package_id}"
        super().__init__(msg)


class UnknownDependencyError(BuildError):
    """An edge references a package id that is not in the record set."""

    def __init__(self, source: PackageId, missing: PackageId, edge_index: int) -> None:
        """Initialize the error.

        Args:
            source: The package the edge originates from
            missing: The id that could not be found
            edge_index: Position of the offending edge in the builder input

        """
        self.source = source
        self.missing = missing
        self.edge_index = edge_index
        msg = f"edge #{edge_index} from {source} references unknown package {missing}"
        super().__init__(msg)


class InvalidPlatformExpressionError(BuildError):
    """A platform condition string on an edge failed to parse."""

    def __init__(self, expression: str, package_id: PackageId, dependency_name: str) -> None:
        """Initialize the error.

        Args:
            expression: The platform condition as written in the input
            package_id: The package declaring the dependency
            dependency_name: The name the dependency is known by in that package

        """
        self.expression = expression
        self.package_id = package_id
        self.dependency_name = dependency_name
        msg = f"invalid platform expression {expression!r} for dependency {dependency_name!r} of {package_id}"
        super().__init__(msg)


class InvalidRecordError(BuildError):
    """A package record or raw edge carries a field value that cannot be interpreted."""

    def __init__(self, field: str, value: object, position: int) -> None:
        """Initialize the error.

        Args:
            field: The name of the offending field
            value: The value as given in the input
            position: Index of the record or edge in the builder input

        """
        self.field = field
        self.value = value
        self.position = position
        msg = f"invalid {field} {value!r} in input #{position}"
        super().__init__(msg)


class InvalidVersionError(BuildError):
    """A package version or a dependency version requirement failed to parse."""

    def __init__(self, value: str, package_id: PackageId) -> None:
        """Initialize the error."""
        self.value = value
        self.package_id = package_id
        msg = f"invalid version or version requirement {value!r} in {package_id}"
        super().__init__(msg)


class QueryError(CrateGraphError):
    """A query against a built graph failed. The graph remains usable."""


class UnknownPackageError(QueryError, KeyError):
    """A query referenced a package id that is not in the graph."""

    def __init__(self, package_id: PackageId) -> None:
        """Initialize the error."""
        self.package_id = package_id
        super().__init__(f"unknown package id: {package_id}")

    def __str__(self) -> str:
        """Return the message without KeyError's quoting."""
        return str(self.args[0])


class UnknownFeatureError(QueryError):
    """A requested feature is not defined by its package."""

    def __init__(self, package_id: PackageId, feature: str) -> None:
        """Initialize the error.

        Args:
            package_id: The package the feature was requested on
            feature: The undefined feature name

        """
        self.package_id = package_id
        self.feature = feature
        msg = f"package {package_id} does not define feature {feature!r}"
        super().__init__(msg)


class FeatureCycleError(QueryError):
    """A feature activation closure re-entered a feature on its own path."""

    def __init__(self, cycle: Iterable[FeatureId]) -> None:
        """Initialize the error.

        Args:
            cycle: The participating feature ids, in path order

        """
        self.cycle: tuple[FeatureId, ...] = tuple(cycle)
        msg = "feature cycle detected: " + " -> ".join(map(str, (*self.cycle, self.cycle[0])))
        super().__init__(msg)
