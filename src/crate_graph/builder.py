"""Construct validated package graphs from metadata records."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .errors import (
    DuplicatePackageError,
    InvalidPlatformExpressionError,
    InvalidRecordError,
    InvalidVersionError,
    UnknownDependencyError,
)
from .graph import PackageGraph, Workspace
from .models import CargoSpec, DependencyEdge, DependencyKind, PackageId, PackageMetadata
from .target_spec import PlatformSpecError, TargetSpec

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .models import PackageRecord, RawEdge

logger = logging.getLogger(__name__)


def _checked_id(value: PackageId | str, field: str, position: int) -> PackageId:
    try:
        return PackageId.of(value)
    except TypeError as e:
        raise InvalidRecordError(field, value, position) from e


def _package_metadata(records: Iterable[PackageRecord]) -> dict[PackageId, PackageMetadata]:
    packages: dict[PackageId, PackageMetadata] = {}
    for position, record in enumerate(records):
        package_id = _checked_id(record.id, "package id", position)
        if package_id in packages:
            raise DuplicatePackageError(package_id)
        try:
            packages[package_id] = PackageMetadata.from_record(record)
        except ValueError as e:
            raise InvalidVersionError(str(record.version), package_id) from e
    return packages


def _dependency_edge(index: int, raw: RawEdge, packages: dict[PackageId, PackageMetadata]) -> DependencyEdge:
    source = _checked_id(raw.source, "edge source", index)
    target = _checked_id(raw.target, "edge target", index)
    for package_id in (source, target):
        if package_id not in packages:
            raise UnknownDependencyError(source, package_id, index)
    name = raw.rename or packages[target].name

    try:
        kind = DependencyKind.parse(raw.kind)
    except ValueError as e:
        raise InvalidRecordError("dependency kind", raw.kind, index) from e

    platform = None
    if raw.platform is not None:
        try:
            platform = TargetSpec.parse(raw.platform)
        except PlatformSpecError as e:
            raise InvalidPlatformExpressionError(raw.platform, source, name) from e

    try:
        version_req = CargoSpec(raw.version_req)
    except ValueError as e:
        raise InvalidVersionError(raw.version_req, source) from e

    return DependencyEdge(
        index=index,
        source=source,
        target=target,
        kind=kind,
        name=name,
        optional=raw.optional,
        rename=raw.rename,
        platform=platform,
        version_req=version_req,
        features=tuple(raw.features),
        default_features=raw.default_features,
    )


def build(
    records: Iterable[PackageRecord],
    edges: Iterable[RawEdge],
    workspace_root: str | None = None,
) -> PackageGraph:
    """Build an immutable package graph.

    Adjacency iteration order in the resulting graph follows the order of
    ``edges``. Either the whole graph is built or an error is raised; no
    partially-built graph is ever returned.

    Args:
        records: One record per resolved package
        edges: The dependency edges between those packages
        workspace_root: Path of the workspace root, if known

    Returns:
        The validated graph

    Raises:
        DuplicatePackageError: Two records share an id
        UnknownDependencyError: An edge references an id with no record
        InvalidPlatformExpressionError: An edge's platform condition does not parse
        InvalidVersionError: A version or version requirement does not parse
        InvalidRecordError: A package id, edge endpoint or dependency kind is malformed

    """
    packages = _package_metadata(records)
    links = [_dependency_edge(index, raw, packages) for index, raw in enumerate(edges)]
    members = [pid for pid, metadata in packages.items() if metadata.workspace_member]
    workspace = Workspace(workspace_root, members, {pid: packages[pid].name for pid in members})
    graph = PackageGraph(packages, links, workspace)
    logger.debug(
        "Built package graph with %d packages, %d links and %d workspace members",
        graph.package_count,
        graph.link_count,
        len(workspace),
    )
    return graph
