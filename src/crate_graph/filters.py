"""Edge filters: predicates deciding which dependency edges a traversal follows."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from .models import DependencyEdge, DependencyKind
from .target_spec import Platform

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .config import Settings

EdgePredicate = Callable[[DependencyEdge], bool]

ALL_KINDS = frozenset(DependencyKind)


class EdgeFilter:
    """Select edges by dependency kind, optionality and platform.

    An edge passes when its kind is one of ``kinds``, it is not optional or
    ``include_optional`` is set, and its platform condition holds on
    ``platform``. Edges without a platform condition apply everywhere. When
    the condition cannot be decided (unknown target features), the edge
    passes iff ``include_unknown`` is set.
    """

    def __init__(
        self,
        kinds: Iterable[DependencyKind | str] = ALL_KINDS,
        *,
        include_optional: bool = True,
        platform: Platform | str | None = None,
        include_unknown: bool = True,
    ) -> None:
        """Initialize an edge filter.

        Args:
            kinds: Dependency kinds to follow
            include_optional: Whether to follow optional dependencies
            platform: Platform (or target triple) to evaluate conditions against; ``None`` accepts every condition
            include_unknown: Whether to follow edges whose condition evaluates to unknown

        """
        self.kinds: frozenset[DependencyKind] = frozenset(DependencyKind.parse(kind) for kind in kinds)
        self.include_optional: bool = include_optional
        if isinstance(platform, str):
            platform = Platform(platform)
        self.platform: Platform | None = platform
        self.include_unknown: bool = include_unknown

    @classmethod
    def all(cls) -> EdgeFilter:
        """Follow every edge."""
        return cls()

    @classmethod
    def no_dev(cls, platform: Platform | str | None = None) -> EdgeFilter:
        """Follow normal and build edges, optionally only those active on ``platform``."""
        return cls((DependencyKind.normal, DependencyKind.build), platform=platform)

    @classmethod
    def normal_only(cls, platform: Platform | str | None = None) -> EdgeFilter:
        """Follow normal edges only."""
        return cls((DependencyKind.normal,), platform=platform)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> EdgeFilter:
        """Build a filter from :class:`~crate_graph.config.Settings` (the environment by default)."""
        if settings is None:
            from .config import Settings  # noqa: PLC0415

            settings = Settings()
        kinds = [DependencyKind.normal]
        if settings.include_build_dependencies:
            kinds.append(DependencyKind.build)
        if settings.include_dev_dependencies:
            kinds.append(DependencyKind.development)
        platform = None
        if settings.target_platform:
            platform = Platform(settings.target_platform, settings.target_features)
        return cls(
            kinds,
            include_optional=settings.include_optional_dependencies,
            platform=platform,
            include_unknown=settings.include_unknown_platform,
        )

    def evaluate_platform(self, edge: DependencyEdge) -> bool | None:
        """Evaluate an edge's platform condition for this filter's platform."""
        if edge.platform is None or self.platform is None:
            return True
        return edge.platform.eval(self.platform)

    def __call__(self, edge: DependencyEdge) -> bool:
        """Check whether ``edge`` passes the filter."""
        if edge.kind not in self.kinds:
            return False
        if edge.optional and not self.include_optional:
            return False
        active = self.evaluate_platform(edge)
        if active is None:
            return self.include_unknown
        return active

    def __repr__(self) -> str:
        """Return the representation of the filter."""
        kinds = ",".join(sorted(kind.value for kind in self.kinds))
        return (
            f"{self.__class__.__name__}(kinds={kinds}, include_optional={self.include_optional}, "
            f"platform={self.platform}, include_unknown={self.include_unknown})"
        )


def follow_all(_edge: DependencyEdge) -> bool:
    """Edge predicate accepting every edge."""
    return True
