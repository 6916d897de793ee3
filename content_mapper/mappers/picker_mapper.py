"""
Picker property mapper.

Resolves content references (ids picked in the CMS) to content records
and, when the property type has a mapping, materializes them.
"""

from typing import Any, List

from content_mapper.config import unwrap_type
from content_mapper.core.interfaces import IPropertyMapper
from content_mapper.core.exceptions import ConfigurationException
from content_mapper.core.records import has_value, read_field
from content_mapper.core.registry import register_strategy
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


@register_strategy("PickerPropertyMapper", aliases=("UmbracoPickerPropertyMapper",))
class PickerPropertyMapper(IPropertyMapper):
    """
    Map picked content references to records or mapped models.

    The source field may hold:
    - A single id ("1051" or 1051)
    - A comma-separated id string ("1051,1052")
    - A list of ids
    - Records already resolved (mappings or objects), used as they are

    Ids are resolved with ``context["content_lookup"](id)``. Ids that do not
    resolve are skipped. Also available as "UmbracoPickerPropertyMapper".

    Example:
        resolver = Resolver(context={"content_lookup": content_store.get})
    """

    def __init__(self, config):
        super().__init__(config)
        self.item_type, self.is_list = unwrap_type(self.property_type)
        self.registry = config.get("registry")
        self.resolver = config.get("resolver")

    def map(self, source_record: Any) -> Any:
        raw = read_field(source_record, self.source_field, None)
        references = self._split(raw)

        picked = []
        for reference in references:
            record = self._resolve(reference)
            if record is None:
                logger.debug(f"'{self.property_name}': reference {reference!r} not found, skipped")
                continue
            picked.append(self._materialize(record))

        if self.is_list:
            return picked
        return picked[0] if picked else None

    def _split(self, raw: Any) -> List[Any]:
        if not has_value(raw):
            return []
        if isinstance(raw, str):
            return [part.strip() for part in raw.split(",") if part.strip()]
        if isinstance(raw, (list, tuple)):
            return [item for item in raw if has_value(item)]
        return [raw]

    def _resolve(self, reference: Any) -> Any:
        if not isinstance(reference, (str, int)):
            return reference

        lookup = self.context.get("content_lookup")
        if lookup is None:
            raise ConfigurationException(
                f"PickerPropertyMapper for '{self.property_name}' needs a "
                f"'content_lookup' in the resolver context"
            )

        record = lookup(reference)
        if record is None and isinstance(reference, str) and reference.isdigit():
            record = lookup(int(reference))
        return record

    def _materialize(self, record: Any) -> Any:
        item_type = self.item_type
        if (
            self.registry is not None
            and self.resolver is not None
            and isinstance(item_type, type)
            and self.registry.is_registered(item_type)
        ):
            return self.resolver.materialize(self.registry, record, item_type)
        return record
