"""
Shared fixtures for content mapper tests.
"""

import pytest

from content_mapper import MappingRegistry, Resolver, get_default_strategies

from tests.models import LazyPublishedItemMap, PublishedItemMap


@pytest.fixture
def registry():
    """Empty mapping registry"""
    return MappingRegistry()


@pytest.fixture
def content_store():
    """Content records keyed by id, as a CMS cache would hold them"""
    return {
        1051: {"id": 1051, "name": "Home"},
        1052: {"id": 1052, "name": "About"},
        1060: {
            "id": 1060,
            "name": "Child Page",
            "createDate": "2024-02-01T08:30:00",
        },
    }


@pytest.fixture
def resolver(content_store):
    """Resolver with built-in strategies and a content lookup"""
    return Resolver(
        strategies=get_default_strategies(),
        context={"content_lookup": content_store.get},
    )


@pytest.fixture
def item_registry(registry):
    """Registry with the published item mappings"""
    registry.add(PublishedItemMap())
    registry.add(LazyPublishedItemMap())
    return registry
