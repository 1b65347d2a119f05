"""The `crate-graph` APIs.

Build an immutable graph from resolved package metadata with :func:`build`,
then query it with :func:`query`, :func:`links_between`, :func:`find_cycles`
and :func:`activated_dependencies`.
"""

__version__ = "0.1.0"

from .builder import build
from .config import Settings
from .errors import (
    BuildError,
    CrateGraphError,
    DuplicatePackageError,
    FeatureCycleError,
    InvalidPlatformExpressionError,
    InvalidRecordError,
    InvalidVersionError,
    QueryError,
    UnknownDependencyError,
    UnknownFeatureError,
    UnknownPackageError,
)
from .features import FeatureGraph, FeatureId, activated_dependencies, activated_features, feature_graph
from .filters import EdgeFilter
from .graph import PackageGraph, Workspace
from .logger import setup_logger
from .models import (
    CargoSpec,
    DependencyEdge,
    DependencyKind,
    PackageId,
    PackageMetadata,
    PackageRecord,
    PackageSource,
    RawEdge,
    SourceKind,
)
from .query import Cycle, Direction, QueryResult, depends_on, find_cycles, is_cyclic, links_between, query
from .target_spec import Platform, PlatformSpecError, TargetSpec

__all__ = [
    "BuildError",
    "CargoSpec",
    "CrateGraphError",
    "Cycle",
    "DependencyEdge",
    "DependencyKind",
    "Direction",
    "DuplicatePackageError",
    "EdgeFilter",
    "FeatureCycleError",
    "FeatureGraph",
    "FeatureId",
    "InvalidPlatformExpressionError",
    "InvalidRecordError",
    "InvalidVersionError",
    "PackageGraph",
    "PackageId",
    "PackageMetadata",
    "PackageRecord",
    "PackageSource",
    "Platform",
    "PlatformSpecError",
    "QueryError",
    "QueryResult",
    "RawEdge",
    "Settings",
    "SourceKind",
    "TargetSpec",
    "UnknownDependencyError",
    "UnknownFeatureError",
    "UnknownPackageError",
    "Workspace",
    "activated_dependencies",
    "activated_features",
    "build",
    "depends_on",
    "feature_graph",
    "find_cycles",
    "is_cyclic",
    "links_between",
    "query",
    "setup_logger",
]
