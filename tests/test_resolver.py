"""
Tests for materializing target objects.
"""

import copy
import pickle
from datetime import datetime

import pytest

from content_mapper import (
    MappingConfig,
    MappingException,
    MaterializationException,
    MissingStrategyError,
    Resolver,
    SourceKind,
    StrategyRegistry,
    UnresolvableAliasError,
    pending_properties,
)

from tests.models import LazyPublishedItem, PlaceOrder, PublishedItem


class CountingRecord(dict):
    """Content record counting field reads"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.reads = {}

    def get(self, key, default=None):
        self.reads[key] = self.reads.get(key, 0) + 1
        return super().get(key, default)


def test_direct_rule_copies_field(registry):
    registry.add_rule(PublishedItem, "name", SourceKind.DIRECT)

    item = Resolver().materialize(registry, {"name": "Home"}, PublishedItem)

    assert item.name == "Home"
    assert isinstance(item, PublishedItem)


def test_transform_reads_eager_property(registry):
    config = MappingConfig(LazyPublishedItem)
    config.add_map("name")
    config.add_map("slug").map_from_instance(lambda instance, content: instance.name.lower())
    registry.add(config)

    item = Resolver().materialize(registry, {"name": "Example"}, LazyPublishedItem)

    assert item.name == "Example"
    assert item.slug == "example"


def test_transform_reads_deferred_property(registry):
    config = MappingConfig(LazyPublishedItem)
    config.add_map("slug").map_from_instance(lambda instance, content: instance.name.lower())
    config.add_map("name").as_lazy()
    registry.add(config)

    item = Resolver().materialize(registry, {"name": "About Us"}, LazyPublishedItem)

    assert item.slug == "about us"


def test_transform_reads_later_eager_property(registry):
    config = MappingConfig(LazyPublishedItem)
    config.add_map("slug").map_from_instance(lambda instance, content: instance.name.lower())
    config.add_map("name")
    registry.add(config)

    item = Resolver().materialize(registry, {"name": "About Us"}, LazyPublishedItem)

    assert item.slug == "about us"
    assert type(item) is LazyPublishedItem
    assert item == LazyPublishedItem(name="About Us", slug="about us")


def test_transforms_reading_each_other_raise(registry):
    config = MappingConfig(LazyPublishedItem)
    config.add_map("slug").map_from_instance(lambda instance, content: instance.name.lower())
    config.add_map("name").map_from_instance(lambda instance, content: instance.slug.title())
    registry.add(config)

    with pytest.raises(MappingException, match="Circular dependency"):
        Resolver().materialize(registry, {}, LazyPublishedItem)


def test_deferred_rule_evaluates_once(registry):
    calls = []

    def compute(instance, content):
        calls.append(1)
        return content["name"].upper()

    config = MappingConfig(LazyPublishedItem)
    config.add_map("name").map_from_instance(compute).as_lazy()
    registry.add(config)

    item = Resolver().materialize(registry, {"name": "home"}, LazyPublishedItem)

    assert calls == []
    assert pending_properties(item) == ("name",)
    assert item.name == "HOME"
    assert item.name == "HOME"
    assert len(calls) == 1
    assert pending_properties(item) == ()


def test_deferred_values_are_per_instance(registry):
    calls = []

    def compute(instance, content):
        calls.append(content["name"])
        return content["name"]

    config = MappingConfig(LazyPublishedItem)
    config.add_map("name").map_from_instance(compute).as_lazy()
    registry.add(config)
    resolver = Resolver()

    first = resolver.materialize(registry, {"name": "one"}, LazyPublishedItem)
    second = resolver.materialize(registry, {"name": "two"}, LazyPublishedItem)

    assert second.name == "two"
    assert first.name == "one"
    assert calls == ["two", "one"]
    assert type(first) is type(second)


def test_deferred_alias_reads_aliased_field_once(registry):
    created = datetime(2024, 1, 15, 9, 0)
    config = MappingConfig(LazyPublishedItem)
    config.add_map("create_date").as_lazy()
    config.add_map("update_date").set_alias("update_date", "create_date").as_lazy()
    registry.add(config)
    record = CountingRecord({"create_date": created})

    item = Resolver().materialize(registry, record, LazyPublishedItem)

    assert record.reads == {}
    assert item.update_date == created
    assert record.reads["create_date"] == 1
    assert item.update_date == created
    assert record.reads["create_date"] == 1
    assert item.create_date == created


def test_alias_matches_aliased_property(registry):
    config = MappingConfig(LazyPublishedItem)
    config.add_map("name")
    config.add_map("slug").set_alias("slug", "name")
    registry.add(config)

    item = Resolver().materialize(registry, {"name": "Contact"}, LazyPublishedItem)

    assert item.slug == item.name == "Contact"


def test_alias_falls_back_in_order(registry):
    config = MappingConfig(LazyPublishedItem)
    config.add_map("name")
    config.add_map("image")
    config.add_map("slug").set_alias("slug", "image", "name")
    registry.add(config)

    item = Resolver().materialize(registry, {"name": "Contact"}, LazyPublishedItem)

    assert item.slug == "Contact"


def test_alias_chain_resolves(registry):
    config = MappingConfig(LazyPublishedItem)
    config.add_map("name")
    config.add_map("image").set_alias("image", "name")
    config.add_map("slug").set_alias("slug", "image")
    registry.add(config)

    item = Resolver().materialize(registry, {"name": "Blog"}, LazyPublishedItem)

    assert item.slug == "Blog"


def test_alias_to_unmapped_property_raises(registry):
    config = MappingConfig(LazyPublishedItem)
    config.add_map("update_date").set_alias("update_date", "create_date").as_lazy()
    registry.add(config)

    with pytest.raises(UnresolvableAliasError) as exc_info:
        Resolver().materialize(registry, {"create_date": "x"}, LazyPublishedItem)

    assert exc_info.value.aliased_property == "create_date"


def test_alias_cycle_raises(registry):
    config = MappingConfig(LazyPublishedItem)
    config.add_map("name").set_alias("name", "slug")
    config.add_map("slug").set_alias("slug", "name")
    registry.add(config)

    with pytest.raises(UnresolvableAliasError):
        Resolver().materialize(registry, {"name": "Loop"}, LazyPublishedItem)


def test_deferred_missing_strategy_raises_on_read(registry):
    config = MappingConfig(LazyPublishedItem)
    config.add_map("place_order").set_mapper("EnumPropertyMapper").as_lazy()
    registry.add(config)

    item = Resolver(strategies=StrategyRegistry()).materialize(
        registry, {"place_order": "First"}, LazyPublishedItem
    )

    with pytest.raises(MissingStrategyError):
        item.place_order


def test_eager_missing_strategy_aborts_materialize(registry):
    config = MappingConfig(LazyPublishedItem)
    config.add_map("place_order").set_mapper("EnumPropertyMapper")
    registry.add(config)

    with pytest.raises(MissingStrategyError):
        Resolver(strategies=StrategyRegistry()).materialize(
            registry, {"place_order": "First"}, LazyPublishedItem
        )


def test_strategy_rule_uses_registered_strategy(registry):
    config = MappingConfig(LazyPublishedItem)
    config.add_map("place_order").set_mapper("EnumPropertyMapper").as_lazy()
    registry.add(config)

    item = Resolver().materialize(registry, {"place_order": "second"}, LazyPublishedItem)

    assert item.place_order is PlaceOrder.SECOND


def test_failed_deferred_evaluation_is_not_cached(registry):
    attempts = []

    def flaky(instance, content):
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("source unavailable")
        return "ok"

    config = MappingConfig(LazyPublishedItem)
    config.add_map("name").map_from_instance(flaky).as_lazy()
    registry.add(config)
    item = Resolver().materialize(registry, {}, LazyPublishedItem)

    with pytest.raises(MappingException):
        item.name

    assert item.name == "ok"
    assert len(attempts) == 2


def test_transform_errors_are_wrapped(registry):
    config = MappingConfig(LazyPublishedItem)
    config.add_map("slug").map_from_instance(lambda instance, content: content["missing"])
    registry.add(config)

    with pytest.raises(MappingException) as exc_info:
        Resolver().materialize(registry, {}, LazyPublishedItem)

    assert isinstance(exc_info.value.__cause__, KeyError)


def test_default_value_used_when_field_missing(registry):
    config = MappingConfig(LazyPublishedItem)
    config.add_map("name").set_default_value("Untitled")
    config.add_map("image").set_default_value("/media/placeholder.png").as_lazy()
    registry.add(config)

    item = Resolver().materialize(registry, {"name": ""}, LazyPublishedItem)

    assert item.name == "Untitled"
    assert item.image == "/media/placeholder.png"


def test_unmapped_fields_get_dataclass_defaults(registry):
    config = MappingConfig(LazyPublishedItem)
    config.add_map("name")
    registry.add(config)

    item = Resolver().materialize(registry, {"name": "Home", "id": 99}, LazyPublishedItem)

    assert item.id == 0
    assert item.related == []
    assert item.child is None


def test_eager_only_mapping_returns_plain_instance(registry):
    config = MappingConfig(PublishedItem)
    config.add_mappings("id", "name")
    registry.add(config)

    item = Resolver().materialize(registry, {"id": 1, "name": "Home"}, PublishedItem)

    assert type(item) is PublishedItem
    assert item == PublishedItem(id=1, name="Home")


def test_lazy_instance_is_target_type(item_registry, resolver):
    item = resolver.materialize(item_registry, {"id": 5, "name": "News"}, LazyPublishedItem)

    assert isinstance(item, LazyPublishedItem)
    assert type(item).__name__ == "LazyPublishedItem"


def test_assignment_replaces_deferred_value(registry):
    calls = []
    config = MappingConfig(LazyPublishedItem)
    config.add_map("name").map_from_instance(lambda i, c: calls.append(1) or "computed").as_lazy()
    registry.add(config)

    item = Resolver().materialize(registry, {}, LazyPublishedItem)
    item.name = "assigned"

    assert item.name == "assigned"
    assert calls == []


def test_none_record_returns_none(item_registry):
    assert Resolver().materialize(item_registry, None, PublishedItem) is None


def test_unregistered_type_raises(registry):
    with pytest.raises(MaterializationException):
        Resolver().materialize(registry, {"name": "Home"}, PublishedItem)


def test_camel_case_source_fields(registry):
    config = MappingConfig(LazyPublishedItem)
    config.add_map("create_date")
    registry.add(config)
    created = datetime(2023, 5, 4)

    item = Resolver().materialize(registry, {"createDate": created}, LazyPublishedItem)

    assert item.create_date == created


def test_copy_has_its_own_deferred_values(item_registry, resolver):
    item = resolver.materialize(item_registry, {"id": 1051, "name": "Home"}, LazyPublishedItem)

    clone = copy.copy(item)

    assert clone.id == 1051
    assert "id" not in pending_properties(clone)
    assert "id" in pending_properties(item)
    assert item.id == 1051
    assert clone.name == item.name == "Home"


def test_copy_transform_reads_the_copy(registry):
    config = MappingConfig(LazyPublishedItem)
    config.add_map("name")
    config.add_map("slug").map_from_instance(lambda instance, content: instance.name.lower()).as_lazy()
    registry.add(config)
    item = Resolver().materialize(registry, {"name": "Home"}, LazyPublishedItem)

    clone = copy.copy(item)
    clone.name = "Renamed"

    assert clone.slug == "renamed"
    assert item.slug == "home"


def test_pickle_and_deepcopy_compute_pending_values(item_registry, resolver):
    item = resolver.materialize(item_registry, {"id": 1051, "name": "Home"}, LazyPublishedItem)
    expected = LazyPublishedItem(id=1051, name="Home", slug="home")

    restored = pickle.loads(pickle.dumps(item))
    duplicate = copy.deepcopy(item)

    assert type(restored) is LazyPublishedItem
    assert restored == expected
    assert duplicate == expected
    assert pending_properties(item) == ()
