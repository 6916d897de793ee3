"""
Content Mapper

Typed property mapping from content-management records to Python models.
"""

__version__ = "1.0.0"

from content_mapper.config import MappingConfig, PropertyMap

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

from content_mapper.core.registry import (
    MappingRegistry,
    StrategyRegistry,
    get_default_registry,
    get_default_strategies,
    register_strategy,
)

from content_mapper.core.resolver import Resolver, pending_properties
from content_mapper.core.records import read_field

# Import implementations to trigger registration
import content_mapper.mappers

from content_mapper.loader import load_mapping_config, load_mapping_file
from content_mapper.service import MappingService

__all__ = [
    # Configuration
    "MappingConfig",
    "PropertyMap",
    "load_mapping_config",
    "load_mapping_file",
    # Rules and interfaces
    "SourceKind",
    "MappingRule",
    "IPropertyMapper",
    "MappingResult",
    # Registries
    "MappingRegistry",
    "StrategyRegistry",
    "get_default_registry",
    "get_default_strategies",
    "register_strategy",
    # Resolution
    "Resolver",
    "MappingService",
    "pending_properties",
    "read_field",
    # Exceptions
    "MappingException",
    "ConfigurationException",
    "DuplicateRuleError",
    "MissingStrategyError",
    "UnresolvableAliasError",
    "StrategyException",
    "MaterializationException",
]
