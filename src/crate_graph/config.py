"""Configuration settings for crate-graph."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Default query settings, read from ``CRATE_GRAPH_*`` environment variables."""

    log_level: str = Field(default="info", description="Log level")
    target_platform: str | None = Field(
        default=None,
        description="""Target triple that platform-conditional dependencies are
        evaluated against, e.g. `x86_64-unknown-linux-gnu`. If not provided,
        dependencies apply on every platform.""",
    )
    target_features: list[str] | None = Field(
        default=None,
        description="""Target features enabled on `target_platform`. If not
        provided, target features are unknown and `cfg(target_feature = ...)`
        conditions are decided by `include_unknown_platform`.""",
    )
    include_unknown_platform: bool = Field(
        default=True,
        description="""Follow dependencies whose platform condition cannot be
        decided for `target_platform`.""",
    )
    include_dev_dependencies: bool = Field(
        default=False,
        description="""Follow development-only dependencies.""",
    )
    include_build_dependencies: bool = Field(
        default=True,
        description="""Follow build-time dependencies.""",
    )
    include_optional_dependencies: bool = Field(
        default=True,
        description="""Follow optional dependencies regardless of which features
        enable them.""",
    )

    model_config = SettingsConfigDict(env_prefix="CRATE_GRAPH_")
