"""Core data models for package graphs: identities, package records and dependency edges."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING

from semantic_version import SimpleSpec, Version
from semantic_version.base import Always, BaseSpec

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from .target_spec import TargetSpec


@BaseSpec.register_syntax
class CargoSpec(SimpleSpec):
    """Cargo-specific version requirement, e.g. ``^1.2, <1.5``."""

    SYNTAX = "cargo"

    class Parser(SimpleSpec.Parser):
        """Parser for Cargo version requirements."""

        @classmethod
        def parse(cls, expression: str) -> CargoSpec:
            """Parse a Cargo version requirement."""
            # The only difference here is that cargo clauses can have whitespace, so we need to strip each block:
            blocks = [b.strip() for b in expression.split(",")]
            clause = Always()
            for block in blocks:
                # a bare version is a caret requirement in cargo
                if block[:1].isdigit():
                    block = f"^{block}"  # noqa: PLW2901
                if not cls.NAIVE_SPEC.match(block):
                    msg = f"Invalid simple block {block!r}"
                    raise ValueError(msg)
                clause &= cls.parse_block(block)

            return clause  # type: ignore[no-any-return]

    def __str__(self) -> str:
        """Return string representation of the spec."""
        # remove the whitespace to canonicalize the spec
        return ",".join(b.strip() for b in self.expression.split(","))


class PackageId:
    """Opaque, globally unique identifier of one resolved package.

    Equality, hashing and ordering are by the identifier string.
    """

    __slots__ = ("_repr",)

    def __init__(self, repr_: str) -> None:
        """Initialize a package id from its string representation."""
        if not isinstance(repr_, str) or not repr_:
            msg = "a package id must be a non-empty string"
            raise TypeError(msg)
        self._repr: str = repr_

    @classmethod
    def of(cls, value: PackageId | str) -> PackageId:
        """Return ``value`` as a :class:`PackageId`."""
        if isinstance(value, PackageId):
            return value
        return cls(value)

    @property
    def repr(self) -> str:
        """The identifier string."""
        return self._repr

    def __eq__(self, other: object) -> bool:
        """Check equality with another package id."""
        if isinstance(other, PackageId):
            return self._repr == other._repr
        return False

    def __hash__(self) -> int:
        """Compute hash for package id."""
        return hash(self._repr)

    def __lt__(self, other: object) -> bool:
        """Compare package ids for sorting."""
        if not isinstance(other, PackageId):
            msg = "Need a PackageId"
            raise TypeError(msg)
        return self._repr < other._repr

    def __repr__(self) -> str:
        """Return the representation of the package id."""
        return f"{self.__class__.__name__}({self._repr!r})"

    def __str__(self) -> str:
        """Return the identifier string."""
        return self._repr


class SourceKind(str, Enum):
    """Where a package was obtained from."""

    registry = "registry"
    path = "path"
    git = "git"


class PackageSource:
    """The source of a package: a registry, a local path, or a git repository."""

    def __init__(self, kind: SourceKind, location: str = "") -> None:
        """Initialize a package source.

        Args:
            kind: The source kind
            location: Registry URL, repository URL (with an optional ``#revision``), or filesystem path

        """
        self.kind: SourceKind = SourceKind(kind)
        self.location: str = location

    @classmethod
    def parse(cls, source: str | None) -> PackageSource:
        """Parse a source string as emitted by ``cargo metadata``.

        A missing source means a local path package. ``registry+URL`` and
        ``sparse+URL`` are registries, ``git+URL`` is a git repository.
        """
        if source is None:
            return cls(SourceKind.path)
        if source.startswith("git+"):
            return cls(SourceKind.git, source[len("git+") :])
        if source.startswith("path+"):
            return cls(SourceKind.path, source[len("path+") :])
        for prefix in ("registry+", "sparse+"):
            if source.startswith(prefix):
                return cls(SourceKind.registry, source[len(prefix) :])
        return cls(SourceKind.registry, source)

    @property
    def is_registry(self) -> bool:
        """Whether the package came from a registry."""
        return self.kind == SourceKind.registry

    @property
    def is_path(self) -> bool:
        """Whether the package is a local path package."""
        return self.kind == SourceKind.path

    @property
    def is_git(self) -> bool:
        """Whether the package came from a git repository."""
        return self.kind == SourceKind.git

    @property
    def revision(self) -> str | None:
        """The git revision pinned in the source, if any."""
        if not self.is_git or "#" not in self.location:
            return None
        return self.location.rsplit("#", 1)[1]

    def __eq__(self, other: object) -> bool:
        """Check equality with another source."""
        return isinstance(other, PackageSource) and (self.kind, self.location) == (other.kind, other.location)

    def __hash__(self) -> int:
        """Compute hash for source."""
        return hash((self.kind, self.location))

    def __repr__(self) -> str:
        """Return the representation of the source."""
        return f"{self.__class__.__name__}({self.kind.value!r}, {self.location!r})"

    def __str__(self) -> str:
        """Return the source in cargo's notation."""
        if self.is_path:
            return self.location
        return f"{self.kind.value}+{self.location}"


@dataclass(frozen=True)
class PackageRecord:
    """One package as supplied by the metadata collaborator."""

    id: PackageId | str
    name: str
    version: str | Version
    source: str | PackageSource | None = None
    workspace_member: bool = False
    features: Mapping[str, Sequence[str]] = field(default_factory=dict)
    description: str | None = None
    license: str | None = None
    authors: Sequence[str] = ()
    repository: str | None = None
    manifest_path: str | None = None


class PackageMetadata:
    """Normalized attributes of one package, owned by a :class:`~crate_graph.graph.PackageGraph`."""

    def __init__(  # noqa: PLR0913
        self,
        package_id: PackageId,
        name: str,
        version: Version,
        source: PackageSource,
        features: Mapping[str, Iterable[str]] | None = None,
        *,
        workspace_member: bool = False,
        description: str | None = None,
        license: str | None = None,  # noqa: A002
        authors: Iterable[str] = (),
        repository: str | None = None,
        manifest_path: str | None = None,
    ) -> None:
        """Initialize package metadata.

        Args:
            package_id: The package's unique id
            name: Package name
            version: Package version
            source: Where the package came from
            features: Feature definition table, mapping a feature name to the targets it activates
            workspace_member: Whether the package is a member of the workspace
            description: Package description
            license: License expression
            authors: Package authors
            repository: Repository URL
            manifest_path: Path to the package's manifest

        """
        self.id: PackageId = package_id
        self.name: str = name
        self.version: Version = version
        self.source: PackageSource = source
        self.features: Mapping[str, tuple[str, ...]] = MappingProxyType(
            {name: tuple(targets) for name, targets in (features or {}).items()}
        )
        self.workspace_member: bool = workspace_member
        self.description: str | None = description
        self.license: str | None = license
        self.authors: tuple[str, ...] = tuple(authors)
        self.repository: str | None = repository
        self.manifest_path: str | None = manifest_path

    @classmethod
    def from_record(cls, record: PackageRecord) -> PackageMetadata:
        """Normalize an input record.

        Raises:
            ValueError: If the record's version cannot be parsed

        """
        version = record.version
        if not isinstance(version, Version):
            version = Version.coerce(version)
        source = record.source
        if not isinstance(source, PackageSource):
            source = PackageSource.parse(source)
        return cls(
            package_id=PackageId.of(record.id),
            name=record.name,
            version=version,
            source=source,
            features=record.features,
            workspace_member=record.workspace_member,
            description=record.description,
            license=record.license,
            authors=record.authors,
            repository=record.repository,
            manifest_path=record.manifest_path,
        )

    @property
    def full_name(self) -> str:
        """Get the package name and version."""
        return f"{self.name}@{self.version}"

    def has_feature(self, feature: str) -> bool:
        """Check whether the feature table defines ``feature``."""
        return feature in self.features

    def to_obj(self) -> dict[str, object]:
        """Convert metadata to dictionary representation."""
        return {
            "id": str(self.id),
            "name": self.name,
            "version": str(self.version),
            "source": str(self.source),
            "workspace_member": self.workspace_member,
            "features": {name: list(targets) for name, targets in self.features.items()},
        }

    def __repr__(self) -> str:
        """Return the representation of the metadata."""
        return f"{self.__class__.__name__}({str(self.id)!r})"


class DependencyKind(str, Enum):
    """The section of the manifest a dependency was declared in."""

    normal = "normal"
    build = "build"
    development = "dev"

    @classmethod
    def parse(cls, value: DependencyKind | str | None) -> DependencyKind:
        """Parse cargo's spelling of a dependency kind; ``None`` means a normal dependency."""
        if isinstance(value, DependencyKind):
            return value
        if value is None or value == "normal":
            return cls.normal
        if value == "build":
            return cls.build
        if value in ("dev", "development"):
            return cls.development
        msg = f"unknown dependency kind {value!r}"
        raise ValueError(msg)


@dataclass(frozen=True)
class RawEdge:
    """One dependency as supplied by the metadata collaborator: ``source`` depends on ``target``."""

    source: PackageId | str
    target: PackageId | str
    kind: DependencyKind | str | None = DependencyKind.normal
    optional: bool = False
    rename: str | None = None
    platform: str | None = None
    version_req: str = "*"
    features: Sequence[str] = ()
    default_features: bool = True


@dataclass(frozen=True, eq=False)
class DependencyEdge:
    """A typed dependency edge between two packages.

    Each edge is an entity with its own identity; several edges may connect
    the same ordered pair of packages (for instance a normal and a
    development dependency) and they are never merged.
    """

    index: int
    source: PackageId
    target: PackageId
    kind: DependencyKind
    name: str
    optional: bool = False
    rename: str | None = None
    platform: TargetSpec | None = None
    version_req: CargoSpec = field(default_factory=lambda: CargoSpec("*"))
    features: tuple[str, ...] = ()
    default_features: bool = True

    @property
    def is_development(self) -> bool:
        """Whether this is a development-only dependency."""
        return self.kind == DependencyKind.development

    def is_satisfied_by(self, metadata: PackageMetadata) -> bool:
        """Check if the target's version matches this edge's version requirement."""
        return bool(self.version_req.match(metadata.version))

    def __str__(self) -> str:
        """Return string representation of the edge."""
        return f"{self.source} -> {self.target} ({self.kind.value}{', optional' if self.optional else ''})"
