"""
Core interfaces for the content mapper.

Rules describe where a property's value comes from; property mappers
(strategies) implement the domain-specific conversions.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, List, Optional, Tuple
from dataclasses import dataclass, field
from enum import Enum


# ==============================================================================
# MAPPING RULES
# ==============================================================================

class SourceKind(str, Enum):
    """Where a property's value is taken from"""
    DIRECT = "direct"
    ALIAS = "alias"
    TRANSFORM = "transform"
    STRATEGY = "strategy"


@dataclass(frozen=True)
class MappingRule:
    """
    Declarative description of how one target property is populated.

    Rules are immutable. The fluent builder in ``content_mapper.config``
    swaps in a new rule for every ``set_*`` call.

    ``source_ref`` depends on ``source_kind``:
        DIRECT    -> None
        ALIAS     -> tuple of aliased property names, tried in order
        TRANSFORM -> callable ``fn(instance, source_record)``
        STRATEGY  -> strategy identifier (str)
    """
    target_property: str
    source_kind: SourceKind = SourceKind.DIRECT
    source_ref: Any = None
    deferred: bool = False
    default_value: Any = None
    source_field: Optional[str] = None

    @property
    def field_name(self) -> str:
        """Name of the source field read by Direct and Strategy rules"""
        return self.source_field or self.target_property

    @property
    def aliases(self) -> Tuple[str, ...]:
        """Aliased property names (empty unless this is an Alias rule)"""
        if self.source_kind != SourceKind.ALIAS:
            return ()
        return tuple(self.source_ref or ())


# ==============================================================================
# STRATEGY INTERFACE
# ==============================================================================

class IPropertyMapper(ABC):
    """
    Interface for named property mappers (strategies).

    A strategy is created per evaluation with a config dict:
        property       - target property name
        property_type  - resolved type hint of the property (may be None)
        source_field   - source field to read
        target_type    - the class being materialized
        context        - resolver context (lookups, culture, ...)
        registry       - MappingRegistry in use
        resolver       - Resolver in use
    """

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.property_name: str = config.get("property", "")
        self.property_type = config.get("property_type")
        self.source_field: str = config.get("source_field") or self.property_name
        self.context: Dict[str, Any] = config.get("context") or {}

    @abstractmethod
    def map(self, source_record: Any) -> Any:
        """
        Produce the property value from a source record.

        Args:
            source_record: Content record being mapped

        Returns:
            Converted value
        """
        pass


# ==============================================================================
# RESULT TYPES
# ==============================================================================

@dataclass
class MappingResult:
    """Result from a batch mapping operation"""
    success: bool
    items: List[Any] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "success": self.success,
            "items_count": len(self.items),
            "errors": self.errors,
        }


def strategy_identifier(strategy: Any) -> str:
    """
    Resolve the identifier of a strategy given by name or by class.

    Classes use their ``strategy_name`` attribute (set by @register_strategy)
    and fall back to the class name.
    """
    if isinstance(strategy, str):
        return strategy
    if isinstance(strategy, type):
        return getattr(strategy, "strategy_name", None) or strategy.__name__
    raise TypeError(f"Strategy must be an identifier or a class, got {type(strategy).__name__}")
