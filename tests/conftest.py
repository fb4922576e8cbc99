"""Shared test fixtures and configuration."""

from datetime import datetime, timedelta, timezone

import pytest

from cms_search.adapters.cache import InMemoryCache
from cms_search.config import Settings
from cms_search.domain.model import ContentRecord, MediaRecord
from cms_search.engine import SearchEngine


# Fixed "now" so recency boosts and analytics dates are deterministic
FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

# Old enough that no recency boost applies
OLD_TIMESTAMP = FIXED_NOW - timedelta(days=120)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def clock():
    """Clock returning FIXED_NOW, compatible with every ``clock=`` parameter."""
    return lambda: FIXED_NOW


@pytest.fixture
def settings():
    """Settings built from defaults only, ignoring any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def make_content():
    """Factory for ContentRecord instances with sensible defaults."""

    def _make(content_id="c1", **overrides):
        fields = {
            "id": content_id,
            "tenant_id": "tenant-a",
            "title": None,
            "body": None,
            "status": "draft",
            "created_at": OLD_TIMESTAMP,
        }
        fields.update(overrides)
        return ContentRecord(**fields)

    return _make


@pytest.fixture
def make_media():
    """Factory for MediaRecord instances with sensible defaults."""

    def _make(media_id="m1", **overrides):
        fields = {
            "id": media_id,
            "tenant_id": "tenant-a",
            "filename": f"{media_id}.png",
            "media_type": "image",
            "created_at": OLD_TIMESTAMP,
        }
        fields.update(overrides)
        return MediaRecord(**fields)

    return _make


@pytest.fixture
def cache_backend():
    return InMemoryCache()


@pytest.fixture
def engine(settings, cache_backend, clock):
    """SearchEngine wired to an in-process cache and a frozen clock."""
    return SearchEngine(settings, cache_backend, clock=clock)
