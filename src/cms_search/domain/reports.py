"""Read-only report models: analytics, index statistics and health."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class QueryCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    query: str
    count: int


class TrendPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str = Field(description="ISO calendar date (UTC)")
    searches: int


class PopularContent(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    search_count: int = Field(description="Times the document was returned in a results page")


class SearchAnalytics(BaseModel):
    """Usage snapshot for one tenant, or for all tenants when unscoped."""

    model_config = ConfigDict(frozen=True)

    total_searches: int = 0
    top_queries: list[QueryCount] = Field(default_factory=list)
    no_results_queries: list[QueryCount] = Field(default_factory=list)
    average_results_per_query: float = 0.0
    search_trends: list[TrendPoint] = Field(default_factory=list)
    popular_content: list[PopularContent] = Field(default_factory=list)


class TokenFrequency(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    frequency: int = Field(description="Number of documents containing the token")


class IndexStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_items: int = 0
    content_items: int = 0
    media_items: int = 0
    index_size: int = 0
    inverted_index_size: int = 0
    average_document_size: int = 0
    top_tokens: list[TokenFrequency] = Field(default_factory=list)
    memory_usage: str = "0.00MB"


class HealthReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["healthy", "degraded", "unhealthy"]
    index_size: int = 0
    cache_connected: bool = False
    last_optimization: datetime | None = None
