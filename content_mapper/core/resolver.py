"""
Resolver - materializes target objects from content records.

Eager rules are computed while the instance is built. Deferred rules are
installed as placeholders that compute on first read and cache the value
on the instance, so each deferred computation runs at most once per instance.
"""

from dataclasses import MISSING as DATACLASS_MISSING, fields, is_dataclass
from typing import Any, Callable, Dict, FrozenSet, Optional, Tuple

from content_mapper.config import property_types
from content_mapper.core.interfaces import MappingRule, SourceKind
from content_mapper.core.exceptions import (
    MappingException,
    MaterializationException,
    UnresolvableAliasError,
)
from content_mapper.core.records import has_value, read_field
from content_mapper.core.registry import MappingRegistry, StrategyRegistry, get_default_strategies
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

_DEFERRED_ATTR = "_deferred_values"


# ==============================================================================
# DEFERRED VALUES
# ==============================================================================

class DeferredValue:
    """
    Initialize-once cell.

    The computation receives the instance being read. A computation that
    raises is not cached; the next read tries again. Reading the cell while
    its own computation runs raises MappingException.
    """

    __slots__ = ("name", "_compute", "_evaluated", "_value", "_running")

    def __init__(self, compute: Optional[Callable[[Any], Any]], name: str = ""):
        self.name = name
        self._compute = compute
        self._evaluated = False
        self._value = None
        self._running = False

    @property
    def evaluated(self) -> bool:
        return self._evaluated

    def get(self, instance: Any = None) -> Any:
        if not self._evaluated:
            if self._running:
                raise MappingException(f"Circular dependency while evaluating '{self.name}'")
            self._running = True
            try:
                self._value = self._compute(instance)
            finally:
                self._running = False
            self._evaluated = True
            self._compute = None
        return self._value

    def clone(self) -> "DeferredValue":
        """Independent cell with the same computation, or the same value once evaluated"""
        cell = DeferredValue(self._compute, self.name)
        if self._evaluated:
            cell._value = self._value
            cell._evaluated = True
        return cell


class LazyProperty:
    """
    Non-data descriptor reading a property through its DeferredValue.

    The computed value is written to the instance ``__dict__``, which then
    shadows the descriptor for every later read.
    """

    def __init__(self, name: str):
        self.name = name

    def __get__(self, instance, owner=None):
        if instance is None:
            return self

        cells: Dict[str, DeferredValue] = instance.__dict__.get(_DEFERRED_ATTR, {})
        cell = cells.get(self.name)
        if cell is None:
            raise AttributeError(
                f"'{type(instance).__name__}' object has no attribute '{self.name}'"
            )

        value = cell.get(instance)
        instance.__dict__[self.name] = value
        cells.pop(self.name, None)
        return value


def _rebuild(target_type: type, state: Dict[str, Any]) -> Any:
    """Recreate a plain target instance from its attribute values."""
    instance = object.__new__(target_type)
    for name, value in state.items():
        object.__setattr__(instance, name, value)
    return instance


def _lazy_methods(target_type: type) -> Dict[str, Any]:
    """Copy and pickle support for lazy instances"""

    def __copy__(self):
        clone = object.__new__(type(self))
        clone.__dict__.update(self.__dict__)
        cells = self.__dict__.get(_DEFERRED_ATTR)
        if cells is not None:
            clone.__dict__[_DEFERRED_ATTR] = {name: cell.clone() for name, cell in cells.items()}
        return clone

    def __reduce__(self):
        # Pending values are computed so the copy no longer needs the record
        for name in pending_properties(self):
            getattr(self, name)
        state = {k: v for k, v in self.__dict__.items() if k != _DEFERRED_ATTR}
        return _rebuild, (target_type, state)

    return {"__copy__": __copy__, "__reduce__": __reduce__}


_LAZY_TYPES: Dict[Tuple[type, FrozenSet[str]], type] = {}


def lazy_type_for(target_type: type, deferred: FrozenSet[str]) -> type:
    """
    Get the subclass of target_type that carries lazy descriptors.

    Subclasses are cached per target type and set of deferred properties.
    Copies of their instances get their own placeholders; pickling computes
    pending properties and yields a plain target_type instance.
    """
    if not deferred:
        return target_type

    key = (target_type, deferred)
    lazy_type = _LAZY_TYPES.get(key)
    if lazy_type is None:
        namespace: Dict[str, Any] = {name: LazyProperty(name) for name in deferred}
        namespace.update(_lazy_methods(target_type))
        namespace["__module__"] = target_type.__module__
        namespace["__qualname__"] = target_type.__qualname__
        lazy_type = type(target_type.__name__, (target_type,), namespace)
        _LAZY_TYPES[key] = lazy_type
        logger.debug(f"Created lazy type for {target_type.__name__}: {sorted(deferred)}")
    return lazy_type


def pending_properties(instance: Any) -> Tuple[str, ...]:
    """Names of deferred properties not read yet."""
    cells = getattr(instance, "__dict__", {}).get(_DEFERRED_ATTR, {})
    return tuple(name for name, cell in cells.items() if not cell.evaluated)


# ==============================================================================
# RESOLVER
# ==============================================================================

class _Materialization:
    """State of one materialize call"""

    def __init__(self, registry, target_type, rules, source_record, hints):
        self.registry = registry
        self.target_type = target_type
        self.rules: Dict[str, MappingRule] = {r.target_property: r for r in rules}
        self.source_record = source_record
        self.hints: Dict[str, Any] = hints


class Resolver:
    """
    Builds target instances from a MappingRegistry and a source record.

    Example:
        resolver = Resolver(context={"content_lookup": store.get})
        article = resolver.materialize(registry, record, Article)
    """

    def __init__(
        self,
        strategies: Optional[StrategyRegistry] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize resolver.

        Args:
            strategies: Strategy registry (defaults to the built-in registry)
            context: Values handed to every strategy (e.g. content_lookup)
        """
        self.strategies = strategies if strategies is not None else get_default_strategies()
        self.context = dict(context or {})
        self._hints: Dict[type, Dict[str, Any]] = {}

    def materialize(self, registry: MappingRegistry, source_record: Any, target_type: type) -> Any:
        """
        Materialize a target instance from a source record.

        Args:
            registry: Registry holding the target type's rules
            source_record: Content record to read from
            target_type: Class to build

        Returns:
            Instance of target_type, or None when source_record is None

        Raises:
            MaterializationException: If target_type has no mapping
            UnresolvableAliasError: If an alias cannot be resolved
            MissingStrategyError: If an eager strategy rule names an unknown strategy
            MappingException: If eager transforms depend on each other in a cycle
        """
        if source_record is None:
            return None

        if not registry.is_registered(target_type):
            raise MaterializationException(f"No mapping registered for {target_type.__name__}")

        rules = registry.rules_for(target_type)
        state = _Materialization(registry, target_type, rules, source_record, self._type_hints(target_type))
        self._check_aliases(state)

        deferred = frozenset(r.target_property for r in rules if r.deferred)
        eager = [r for r in rules if not r.deferred]

        # An eager transform may read an eager property declared after it,
        # so eager rules also get placeholders and are forced in order
        ordered = any(r.source_kind == SourceKind.TRANSFORM for r in eager)
        placeholders = (deferred | {r.target_property for r in eager}) if ordered else deferred

        instance = object.__new__(lazy_type_for(target_type, placeholders))
        self._apply_unmapped_defaults(instance, target_type, state.rules)

        # Placeholders first so eager transforms can read deferred properties
        if placeholders:
            instance.__dict__[_DEFERRED_ATTR] = {
                r.target_property: DeferredValue(self._bind(state, r), r.target_property)
                for r in rules if r.target_property in placeholders
            }

        for rule in eager:
            if ordered:
                getattr(instance, rule.target_property)
            else:
                object.__setattr__(instance, rule.target_property, self._evaluate(state, rule, instance))

        if ordered and not deferred:
            del instance.__dict__[_DEFERRED_ATTR]
            object.__setattr__(instance, "__class__", target_type)

        logger.debug(
            f"Materialized {target_type.__name__} "
            f"({len(eager)} eager, {len(deferred)} deferred)"
        )
        return instance

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _bind(self, state: _Materialization, rule: MappingRule):
        def compute(instance):
            logger.debug(f"Evaluating {state.target_type.__name__}.{rule.target_property}")
            return self._evaluate(state, rule, instance)
        return compute

    def _evaluate(self, state: _Materialization, rule: MappingRule, instance: Any) -> Any:
        try:
            return self._compute(state, rule, instance)
        except MappingException:
            raise
        except Exception as e:
            raise MappingException(
                f"Mapping {state.target_type.__name__}.{rule.target_property} failed: {str(e)}"
            ) from e

    def _compute(self, state: _Materialization, rule: MappingRule, instance: Any) -> Any:
        kind = rule.source_kind
        source = state.source_record

        if kind == SourceKind.DIRECT:
            value = read_field(source, rule.field_name, None)

        elif kind == SourceKind.ALIAS:
            value = None
            for aliased in rule.aliases:
                value = self._compute(state, state.rules[aliased], instance)
                if has_value(value):
                    break

        elif kind == SourceKind.TRANSFORM:
            value = rule.source_ref(instance, source)

        elif kind == SourceKind.STRATEGY:
            strategy = self.strategies.get(rule.source_ref, self._strategy_config(state, rule))
            value = strategy.map(source)

        else:
            raise MappingException(f"Unknown source kind: {kind}")

        if not has_value(value) and rule.default_value is not None:
            value = rule.default_value

        return value

    def _strategy_config(self, state: _Materialization, rule: MappingRule) -> Dict[str, Any]:
        return {
            "property": rule.target_property,
            "property_type": state.hints.get(rule.target_property),
            "source_field": rule.field_name,
            "target_type": state.target_type,
            "context": self.context,
            "registry": state.registry,
            "resolver": self,
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_aliases(self, state: _Materialization) -> None:
        """Walk every alias chain; fail on missing targets and cycles."""
        for rule in state.rules.values():
            if rule.source_kind != SourceKind.ALIAS:
                continue
            self._walk_alias(state, rule, (rule.target_property,))

    def _walk_alias(self, state: _Materialization, rule: MappingRule, chain: Tuple[str, ...]) -> None:
        for aliased in rule.aliases:
            if aliased in chain:
                raise UnresolvableAliasError(chain[0], aliased, "forms an alias cycle")
            aliased_rule = state.rules.get(aliased)
            if aliased_rule is None:
                raise UnresolvableAliasError(rule.target_property, aliased)
            if aliased_rule.source_kind == SourceKind.ALIAS:
                self._walk_alias(state, aliased_rule, chain + (aliased,))

    def _type_hints(self, target_type: type) -> Dict[str, Any]:
        hints = self._hints.get(target_type)
        if hints is None:
            hints = property_types(target_type)
            self._hints[target_type] = hints
        return hints

    @staticmethod
    def _apply_unmapped_defaults(instance: Any, target_type: type, rules: Dict[str, MappingRule]) -> None:
        """Give unmapped dataclass fields their declared defaults."""
        if not is_dataclass(target_type):
            return

        for f in fields(target_type):
            if f.name in rules:
                continue
            if f.default is not DATACLASS_MISSING:
                value = f.default
            elif f.default_factory is not DATACLASS_MISSING:
                value = f.default_factory()
            else:
                value = None
            object.__setattr__(instance, f.name, value)
