"""
Core components for the content mapper.
"""

from content_mapper.core.interfaces import (
    SourceKind,
    MappingRule,
    IPropertyMapper,
    MappingResult,
)

from content_mapper.core.exceptions import (
    MappingException,
    ConfigurationException,
    DuplicateRuleError,
    MissingStrategyError,
    UnresolvableAliasError,
    StrategyException,
    MaterializationException,
)

__all__ = [
    # Interfaces
    "SourceKind",
    "MappingRule",
    "IPropertyMapper",
    "MappingResult",
    # Exceptions
    "MappingException",
    "ConfigurationException",
    "DuplicateRuleError",
    "MissingStrategyError",
    "UnresolvableAliasError",
    "StrategyException",
    "MaterializationException",
]
