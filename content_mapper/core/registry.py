"""
Registry pattern implementation for the content mapper.

MappingRegistry holds the mapping configuration of each target type.
StrategyRegistry holds the named property mappers; built-in strategies
self-register with the default instance via @register_strategy.
"""

from typing import Dict, Callable, Any, List, Optional, Tuple, Type

from content_mapper.config import MappingConfig
from content_mapper.core.interfaces import IPropertyMapper, MappingRule, SourceKind
from content_mapper.core.exceptions import ConfigurationException, MissingStrategyError
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


# ==============================================================================
# MAPPING REGISTRY
# ==============================================================================

class MappingRegistry:
    """
    Registry of mapping configurations, keyed by target type.

    Each target type owns one ordered collection of rules. Configs are
    frozen once added, so rules cannot change after registration.
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._configs: Dict[type, MappingConfig] = {}

    def add(self, config: MappingConfig) -> MappingConfig:
        """
        Register a mapping configuration.

        Args:
            config: Configuration for one target type

        Returns:
            The registered (now frozen) configuration

        Raises:
            ConfigurationException: If the target type already has a configuration
        """
        target_type = config.target_type
        if target_type in self._configs:
            raise ConfigurationException(
                f"Mapping for {target_type.__name__} already registered"
            )

        config.freeze()
        self._configs[target_type] = config
        logger.info(f"✅ Registered mapping: {target_type.__name__} ({len(config.rules)} rules)")
        return config

    def add_rule(
        self,
        target_type: type,
        target_property: str,
        source_kind: SourceKind = SourceKind.DIRECT,
        source_ref: Any = None,
        deferred: bool = False,
    ) -> MappingRule:
        """
        Add a single rule for a target type.

        Creates the type's configuration on first use.

        Raises:
            DuplicateRuleError: If the property already has a rule
        """
        config = self._configs.get(target_type)
        if config is None:
            config = MappingConfig(target_type)
            self._configs[target_type] = config
            logger.debug(f"Created mapping for {target_type.__name__}")

        return config.add_rule(target_property, source_kind, source_ref, deferred)

    def rules_for(self, target_type: type) -> Tuple[MappingRule, ...]:
        """
        Get the ordered rules of a target type.

        Returns:
            Tuple of rules, empty if the type is not registered
        """
        config = self._configs.get(target_type)
        if config is None:
            return ()
        return config.rules

    def rule_for(self, target_type: type, target_property: str) -> Optional[MappingRule]:
        """Get the rule of one property, or None"""
        config = self._configs.get(target_type)
        if config is None:
            return None
        return config.get_rule(target_property)

    def is_registered(self, target_type: type) -> bool:
        """Check if a target type has a mapping"""
        return target_type in self._configs

    def list_types(self) -> List[type]:
        """Get list of registered target types"""
        return list(self._configs.keys())


_default_registry = MappingRegistry()


def get_default_registry() -> MappingRegistry:
    """Get the default mapping registry."""
    return _default_registry


# ==============================================================================
# STRATEGY REGISTRY
# ==============================================================================

class StrategyRegistry:
    """
    Registry for named property mappers.

    Strategies are looked up by identifier when a rule is evaluated.
    """

    def __init__(self):
        self._registry: Dict[str, Callable[[dict], IPropertyMapper]] = {}

    def register(
        self,
        name: str,
        factory_func: Callable[[dict], IPropertyMapper]
    ) -> None:
        """
        Register a strategy factory function.

        Args:
            name: Strategy identifier (EnumPropertyMapper, PickerPropertyMapper, ...)
            factory_func: Function that takes config and returns IPropertyMapper

        Example:
            registry.register("EnumPropertyMapper", EnumPropertyMapper)
        """
        if name in self._registry:
            logger.warning(f"Strategy '{name}' already registered, overwriting")

        self._registry[name] = factory_func
        logger.debug(f"Registered strategy: {name}")

    def get(self, name: str, config: Dict[str, Any]) -> IPropertyMapper:
        """
        Get strategy instance from registry.

        Args:
            name: Strategy identifier
            config: Strategy configuration

        Returns:
            IPropertyMapper instance

        Raises:
            MissingStrategyError: If strategy not registered
        """
        factory_func = self._registry.get(name)

        if not factory_func:
            raise MissingStrategyError(name, self._registry.keys())

        return factory_func(config)

    def list_strategies(self) -> List[str]:
        """Get list of registered strategies"""
        return list(self._registry.keys())

    def is_registered(self, name: str) -> bool:
        """Check if strategy is registered"""
        return name in self._registry

    def copy(self) -> "StrategyRegistry":
        """Create an independent registry with the same strategies"""
        clone = StrategyRegistry()
        clone._registry = dict(self._registry)
        return clone


_default_strategies = StrategyRegistry()


def get_default_strategies() -> StrategyRegistry:
    """Get the default strategy registry."""
    return _default_strategies


def register_strategy(name: str, aliases: Tuple[str, ...] = ()):
    """
    Decorator to register a strategy with the default strategy registry.

    Args:
        name: Strategy identifier, stored as the class's strategy_name
        aliases: Extra identifiers resolving to the same strategy

    Usage:
        @register_strategy("EnumPropertyMapper")
        class EnumPropertyMapper(IPropertyMapper):
            def map(self, source_record):
                # Implementation
    """
    def decorator(cls: Type[IPropertyMapper]):
        cls.strategy_name = name

        def factory(config):
            return cls(config)
        for identifier in (name,) + tuple(aliases):
            _default_strategies.register(identifier, factory)
        return cls
    return decorator
