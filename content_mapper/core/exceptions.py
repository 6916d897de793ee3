"""
Custom exceptions for the content mapper.
"""


class MappingException(Exception):
    """Base exception for content mapping."""
    pass


class ConfigurationException(MappingException):
    """Exception raised for invalid mapping declarations."""
    pass


class DuplicateRuleError(ConfigurationException):
    """Exception raised when a property already has a rule."""

    def __init__(self, target_type: str, target_property: str):
        self.target_type = target_type
        self.target_property = target_property
        super().__init__(
            f"Property '{target_property}' of {target_type} already has a mapping rule"
        )


class MissingStrategyError(MappingException):
    """Exception raised when no strategy is registered under an identifier."""

    def __init__(self, strategy_name: str, available=None):
        self.strategy_name = strategy_name
        self.available = list(available or [])
        super().__init__(
            f"Strategy '{strategy_name}' not registered. "
            f"Available: {self.available}. "
            f"Make sure the strategy module has been imported."
        )


class UnresolvableAliasError(MappingException):
    """Exception raised when an alias points at a property with no rule."""

    def __init__(self, target_property: str, aliased_property: str, reason: str = "has no mapping rule"):
        self.target_property = target_property
        self.aliased_property = aliased_property
        super().__init__(
            f"Alias '{target_property}' -> '{aliased_property}' cannot be resolved: "
            f"'{aliased_property}' {reason}"
        )


class StrategyException(MappingException):
    """Exception raised by strategies that cannot convert a source value."""
    pass


class MaterializationException(MappingException):
    """Exception raised when a target type cannot be materialized."""
    pass
