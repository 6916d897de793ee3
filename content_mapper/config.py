"""
Fluent mapping configuration.

A MappingConfig declares, for one target type, which properties are
populated from a content record and how:

    class ArticleMap(MappingConfig):
        def __init__(self):
            super().__init__(Article)
            self.add_map("id").as_lazy()
            self.add_map("name").as_lazy()
            self.add_map("slug").map_from_instance(lambda instance, content: instance.name.lower())
            self.add_map("update_date").set_alias("update_date", "create_date").as_lazy()
            self.add_map("place_order").set_mapper("EnumPropertyMapper").as_lazy()
"""

from dataclasses import fields, is_dataclass, replace
from collections import abc
from typing import Any, Callable, Dict, Optional, Set, Tuple
import types
import typing

from content_mapper.core.interfaces import MappingRule, SourceKind, strategy_identifier
from content_mapper.core.exceptions import ConfigurationException, DuplicateRuleError
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


def declared_properties(target_type: type) -> Set[str]:
    """
    Get the property names a target type declares.

    Dataclass fields win; otherwise annotations across the MRO are used.
    An empty set means the type declares nothing and any name is accepted.
    """
    if is_dataclass(target_type):
        return {f.name for f in fields(target_type)}

    names: Set[str] = set()
    for klass in reversed(target_type.__mro__):
        names.update(getattr(klass, "__annotations__", {}).keys())
    return {n for n in names if not n.startswith("_")}


def property_types(target_type: type) -> Dict[str, Any]:
    """Resolve property type hints, falling back to raw annotations."""
    try:
        return typing.get_type_hints(target_type)
    except (NameError, TypeError):
        # Unresolvable forward references
        hints: Dict[str, Any] = {}
        for klass in reversed(target_type.__mro__):
            hints.update(getattr(klass, "__annotations__", {}))
        return hints


def unwrap_type(property_type: Any) -> Tuple[Any, bool]:
    """
    Strip Optional/List wrappers from a type hint.

    Returns:
        (inner type, whether the hint is a list/sequence)

    Example:
        unwrap_type(Optional[List[Color]])  # Returns (Color, True)
    """
    is_list = False
    current = property_type

    while True:
        origin = typing.get_origin(current)
        args = [a for a in typing.get_args(current) if a is not type(None)]

        if origin in (list, tuple, set, frozenset, abc.Sequence, abc.Iterable):
            is_list = True
            current = args[0] if args else Any
            continue

        if origin in (typing.Union, types.UnionType):
            if len(args) == 1:
                current = args[0]
                continue
            return current, is_list

        return current, is_list


class PropertyMap:
    """
    Builder for the rule of one property.

    Every call swaps the config's immutable rule for an updated copy,
    so chains like ``add_map("x").set_mapper(...).as_lazy()`` compose.
    """

    def __init__(self, config: "MappingConfig", target_property: str):
        self._config = config
        self.target_property = target_property

    @property
    def rule(self) -> MappingRule:
        return self._config.get_rule(self.target_property)

    def _update(self, **changes) -> "PropertyMap":
        self._config._replace_rule(replace(self.rule, **changes))
        return self

    def _set_kind(self, kind: SourceKind, source_ref: Any) -> "PropertyMap":
        current = self.rule.source_kind
        if current not in (SourceKind.DIRECT, kind):
            raise ConfigurationException(
                f"Property '{self.target_property}' is already mapped as {current.value}, "
                f"cannot also map it as {kind.value}"
            )
        source_ref = self._config._normalize_source(self.target_property, kind, source_ref)
        return self._update(source_kind=kind, source_ref=source_ref)

    def as_lazy(self) -> "PropertyMap":
        """Defer evaluation until the property is first read."""
        return self._update(deferred=True)

    def map_from_instance(self, func: Callable[[Any, Any], Any]) -> "PropertyMap":
        """
        Compute the value from the target instance and the source record.

        Args:
            func: Called as ``func(instance, source_record)``
        """
        return self._set_kind(SourceKind.TRANSFORM, func)

    def set_alias(self, target_property: str, *aliased_properties: str) -> "PropertyMap":
        """
        Reuse the rule of another property.

        Several aliased properties may be given; they are tried in order and
        the first one yielding a value wins.

        Args:
            target_property: Must name the property being mapped
            *aliased_properties: Properties whose rules are reused
        """
        if target_property != self.target_property:
            raise ConfigurationException(
                f"set_alias called with '{target_property}' on map of '{self.target_property}'"
            )
        return self._set_kind(SourceKind.ALIAS, aliased_properties)

    def set_mapper(self, strategy: Any) -> "PropertyMap":
        """
        Delegate to a named strategy.

        Args:
            strategy: Strategy identifier or IPropertyMapper class
        """
        return self._set_kind(SourceKind.STRATEGY, strategy)

    def set_default_value(self, value: Any) -> "PropertyMap":
        """Value used when the computation yields nothing."""
        return self._update(default_value=value)

    def set_source(self, field_name: str) -> "PropertyMap":
        """Read a differently named source field (Direct and Strategy rules)."""
        if not field_name:
            raise ConfigurationException(f"Empty source field for '{self.target_property}'")
        return self._update(source_field=field_name)


class MappingConfig:
    """
    Mapping configuration for one target type.

    Holds an ordered set of rules, at most one per property. Frozen once
    added to a MappingRegistry.
    """

    def __init__(self, target_type: type):
        if not isinstance(target_type, type):
            raise ConfigurationException(f"Target type must be a class, got {target_type!r}")

        self.target_type = target_type
        self._rules: Dict[str, MappingRule] = {}
        self._frozen = False
        self._properties = declared_properties(target_type)

    # ------------------------------------------------------------------
    # Declaration
    # ------------------------------------------------------------------

    def add_rule(
        self,
        target_property: str,
        source_kind: SourceKind = SourceKind.DIRECT,
        source_ref: Any = None,
        deferred: bool = False,
        default_value: Any = None,
        source_field: Optional[str] = None,
    ) -> MappingRule:
        """
        Add a rule for a property.

        Raises:
            DuplicateRuleError: If the property already has a rule
            ConfigurationException: If the property is unknown or the config is frozen
        """
        if target_property in self._rules:
            raise DuplicateRuleError(self.target_type.__name__, target_property)
        self._check_mutable()
        self._check_property(target_property)

        try:
            source_kind = SourceKind(source_kind)
        except ValueError as e:
            raise ConfigurationException(str(e)) from e
        source_ref = self._normalize_source(target_property, source_kind, source_ref)

        rule = MappingRule(
            target_property=target_property,
            source_kind=source_kind,
            source_ref=source_ref,
            deferred=deferred,
            default_value=default_value,
            source_field=source_field,
        )
        self._rules[target_property] = rule
        logger.debug(f"{self.target_type.__name__}.{target_property}: {source_kind.value} rule added")
        return rule

    def add_map(self, target_property: str) -> PropertyMap:
        """
        Declare a property, mapped directly from the same-named field.

        Returns:
            PropertyMap builder to refine the rule
        """
        self.add_rule(target_property)
        return PropertyMap(self, target_property)

    def add_mappings(self, *target_properties: str) -> "MappingConfig":
        """Declare several directly mapped properties."""
        for target_property in target_properties:
            self.add_map(target_property)
        return self

    def map_all(self) -> "MappingConfig":
        """Declare a direct rule for every declared property not yet mapped."""
        if not self._properties:
            raise ConfigurationException(
                f"{self.target_type.__name__} declares no properties to map"
            )
        for name in sorted(self._properties):
            if name not in self._rules:
                self.add_rule(name)
        return self

    def map(self, target_property: str) -> PropertyMap:
        """Get the builder of an already declared property."""
        if target_property not in self._rules:
            raise ConfigurationException(
                f"Property '{target_property}' of {self.target_type.__name__} is not mapped"
            )
        return PropertyMap(self, target_property)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @property
    def rules(self) -> Tuple[MappingRule, ...]:
        """Rules in declaration order"""
        return tuple(self._rules.values())

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get_rule(self, target_property: str) -> Optional[MappingRule]:
        return self._rules.get(target_property)

    def freeze(self) -> None:
        """Disallow further changes."""
        self._frozen = True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _normalize_source(self, target_property: str, source_kind: SourceKind, source_ref: Any) -> Any:
        """
        Validate a rule's source reference and bring it to its stored form.

        Raises:
            ConfigurationException: If the reference does not fit the source kind
        """
        if source_kind == SourceKind.DIRECT:
            if source_ref is not None:
                raise ConfigurationException(
                    f"Direct rule for '{target_property}' takes no source reference, got {source_ref!r}"
                )
            return None

        if source_kind == SourceKind.ALIAS:
            aliases = (source_ref,) if isinstance(source_ref, str) else tuple(source_ref or ())
            if not aliases:
                raise ConfigurationException(
                    f"Alias for '{target_property}' needs at least one aliased property"
                )
            for aliased in aliases:
                if aliased == target_property:
                    raise ConfigurationException(f"Property '{aliased}' cannot alias itself")
                self._check_property(aliased)
            return aliases

        if source_kind == SourceKind.TRANSFORM:
            if not callable(source_ref):
                raise ConfigurationException(
                    f"Transform for '{target_property}' must be callable"
                )
            return source_ref

        try:
            return strategy_identifier(source_ref)
        except TypeError as e:
            raise ConfigurationException(str(e)) from e

    def _replace_rule(self, rule: MappingRule) -> None:
        self._check_mutable()
        self._rules[rule.target_property] = rule

    def _check_mutable(self) -> None:
        if self._frozen:
            raise ConfigurationException(
                f"Mapping for {self.target_type.__name__} is registered and can no longer change"
            )

    def _check_property(self, target_property: str) -> None:
        if not target_property or not isinstance(target_property, str):
            raise ConfigurationException(f"Invalid property name: {target_property!r}")
        if self._properties and target_property not in self._properties:
            raise ConfigurationException(
                f"{self.target_type.__name__} has no property '{target_property}'. "
                f"Available: {sorted(self._properties)}"
            )

    def __repr__(self) -> str:
        return f"MappingConfig({self.target_type.__name__}, rules={list(self._rules)})"
