"""
Built-in property mappers (strategies).

Mappers convert stored content values for individual properties.
"""

# Import all mappers to trigger self-registration
from content_mapper.mappers.enum_mapper import EnumPropertyMapper
from content_mapper.mappers.picker_mapper import PickerPropertyMapper
from content_mapper.mappers.date_mapper import DatePropertyMapper

__all__ = [
    "EnumPropertyMapper",
    "PickerPropertyMapper",
    "DatePropertyMapper",
]
