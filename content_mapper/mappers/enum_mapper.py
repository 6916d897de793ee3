"""
Enum property mapper.

Decodes stored enum values (names, numbers, or lists of either) into the
Enum type declared on the target property.
"""

from enum import Enum
from typing import Any, Optional

from content_mapper.config import unwrap_type
from content_mapper.core.interfaces import IPropertyMapper
from content_mapper.core.exceptions import StrategyException
from content_mapper.core.records import has_value, read_field
from content_mapper.core.registry import register_strategy
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


@register_strategy("EnumPropertyMapper")
class EnumPropertyMapper(IPropertyMapper):
    """
    Map stored values to Enum members.

    Supports:
    - Members passed through unchanged
    - Integers by value
    - Strings by member name (case-insensitive), then by value, then as a number
    - Comma-separated strings and lists for List[Enum] properties
    """

    def __init__(self, config):
        super().__init__(config)
        self.enum_type, self.is_list = unwrap_type(self.property_type)

        if not (isinstance(self.enum_type, type) and issubclass(self.enum_type, Enum)):
            raise StrategyException(
                f"EnumPropertyMapper needs an Enum typed property, "
                f"'{self.property_name}' is {self.property_type!r}"
            )

    def map(self, source_record: Any) -> Any:
        raw = read_field(source_record, self.source_field, None)

        if not has_value(raw):
            return [] if self.is_list else None

        if self.is_list:
            items = raw.split(",") if isinstance(raw, str) else list(raw)
            return [self._to_member(item) for item in items if has_value(item)]

        return self._to_member(raw)

    def _to_member(self, value: Any) -> Enum:
        enum_type = self.enum_type

        if isinstance(value, enum_type):
            return value

        if isinstance(value, str):
            text = value.strip()
            member = self._by_name(text)
            if member is not None:
                return member
            member = self._by_value(text)
            if member is not None:
                return member
            value = int(text) if text.lstrip("-").isdigit() else text

        try:
            return enum_type(value)
        except ValueError:
            logger.warning(f"Unknown {enum_type.__name__} value for '{self.property_name}': {value!r}")
            raise StrategyException(
                f"'{value}' is not a valid {enum_type.__name__} for '{self.property_name}'"
            )

    def _by_name(self, name: str) -> Optional[Enum]:
        lowered = name.lower()
        for member_name, member in self.enum_type.__members__.items():
            if member_name.lower() == lowered:
                return member
        return None

    def _by_value(self, text: str) -> Optional[Enum]:
        try:
            return self.enum_type(text)
        except ValueError:
            return None
