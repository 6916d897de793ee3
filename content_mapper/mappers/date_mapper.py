"""
Date property mapper.

Parses stored date strings with dateutil.
"""

from datetime import date, datetime
from typing import Any

from dateutil import parser as date_parser

from content_mapper.config import unwrap_type
from content_mapper.core.interfaces import IPropertyMapper
from content_mapper.core.exceptions import StrategyException
from content_mapper.core.records import has_value, read_field
from content_mapper.core.registry import register_strategy
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


@register_strategy("DatePropertyMapper")
class DatePropertyMapper(IPropertyMapper):
    """
    Map stored dates to datetime/date values.

    ``date`` typed properties receive the date part only. The resolver
    context may carry ``dayfirst`` for ambiguous formats such as 01/02/2024.
    """

    def map(self, source_record: Any) -> Any:
        raw = read_field(source_record, self.source_field, None)

        if not has_value(raw):
            return None

        if isinstance(raw, datetime):
            value = raw
        elif isinstance(raw, date):
            return raw
        else:
            try:
                value = date_parser.parse(str(raw), dayfirst=self.context.get("dayfirst", False))
            except (ValueError, OverflowError) as e:
                logger.warning(f"Date parse failed for '{self.property_name}': {raw!r}")
                raise StrategyException(
                    f"'{raw}' is not a valid date for '{self.property_name}': {str(e)}"
                ) from e

        wanted, _ = unwrap_type(self.property_type)
        if wanted is date:
            return value.date()
        return value
