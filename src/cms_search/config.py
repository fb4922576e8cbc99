"""Centralized configuration for cms-search using Pydantic Settings."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ObservabilityConfig(BaseModel):
    """Telemetry knobs shared by logging, metrics and tracing."""

    model_config = {"extra": "forbid"}

    service_name: Annotated[
        str,
        Field(description="Service name reported in OpenTelemetry resources"),
    ] = "cms-search"

    resource_attributes: Annotated[
        dict[str, str],
        Field(description="Additional OpenTelemetry resource attributes"),
    ] = Field(default_factory=dict)


class Settings(BaseSettings):
    """Strictly typed configuration loaded from environment variables.

    Every variable is read with the ``CMS_SEARCH_`` prefix, e.g.
    ``CMS_SEARCH_QUERY_CACHE_TTL_SECONDS=120``.
    """

    model_config = SettingsConfigDict(
        env_prefix="CMS_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Cache bridge
    snapshot_ttl_seconds: int = Field(default=3600, ge=1, description="TTL of the index snapshot in the cache")
    query_cache_ttl_seconds: int = Field(default=300, ge=1, description="TTL of cached search results")
    suggestion_cache_ttl_seconds: int = Field(default=1800, ge=1, description="TTL of cached suggestion lists")
    cache_timeout_seconds: float = Field(
        default=2.0, gt=0, description="Upper bound for a single cache call before it is treated as failed"
    )
    snapshot_on_write: bool = Field(
        default=True, description="Refresh the cache snapshot after every index mutation"
    )
    snapshot_key: str = Field(default="search:index", min_length=1, description="Cache key of the index snapshot")

    # Query engine
    fuzzy_max_distance: int = Field(default=2, ge=0, le=4, description="Maximum edit distance for fuzzy matches")
    highlight_window: int = Field(default=5, ge=0, description="Words of context on each side of a highlight")
    max_highlights_per_field: int = Field(default=3, ge=1, description="Highlight snippets kept per field")
    highlight_pre_tag: str = Field(default="<mark>", description="Marker inserted before a matched word")
    highlight_post_tag: str = Field(default="</mark>", description="Marker inserted after a matched word")
    title_match_multiplier: float = Field(default=2.0, ge=1.0, description="Score multiplier for title matches")
    tag_match_multiplier: float = Field(default=1.5, ge=1.0, description="Score multiplier for tag matches")

    # Suggestions
    default_suggestion_limit: int = Field(default=5, ge=1, le=50, description="Default suggestion count")

    # Analytics
    analytics_top_n: int = Field(default=10, ge=1, description="Entries kept in top-N analytics lists")
    trend_days: int = Field(default=7, ge=1, le=90, description="Days covered by the search trend series")
    max_tracked_queries: int = Field(
        default=10_000, ge=10, description="Distinct queries tracked before the least frequent are evicted"
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error", "critical"] = Field(
        default="info", description="Root logging level"
    )
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    @field_validator("log_level", mode="before")
    @classmethod
    def _lowercase_level(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _check_ttls(self) -> "Settings":
        # Query results must not outlive the snapshot they were computed from
        if self.query_cache_ttl_seconds > self.snapshot_ttl_seconds:
            raise ValueError(
                "CMS_SEARCH_QUERY_CACHE_TTL_SECONDS must not exceed CMS_SEARCH_SNAPSHOT_TTL_SECONDS "
                f"({self.query_cache_ttl_seconds} > {self.snapshot_ttl_seconds})"
            )
        return self

    def highlight_tags(self) -> tuple[str, str]:
        """Return the (pre, post) markers used for highlighting."""
        return self.highlight_pre_tag, self.highlight_post_tag
