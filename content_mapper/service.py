"""
Mapping Service - main entry point.

Ties a MappingRegistry to a Resolver so callers only name the target type.
"""

from typing import Any, Iterable, Optional, Type, TypeVar

from content_mapper.config import MappingConfig
from content_mapper.core.interfaces import MappingResult
from content_mapper.core.exceptions import MappingException
from content_mapper.core.registry import MappingRegistry, get_default_registry
from content_mapper.core.resolver import Resolver
from shared.utils.logger import setup_logger, log_error

logger = setup_logger(__name__)

T = TypeVar("T")


class MappingService:
    """
    Map content records to models.

    Example:
        service = MappingService()
        service.register(ArticleMap())
        article = service.map_to(Article, record)
    """

    def __init__(
        self,
        registry: Optional[MappingRegistry] = None,
        resolver: Optional[Resolver] = None
    ):
        """
        Initialize mapping service.

        Args:
            registry: Mapping registry (defaults to the global registry)
            resolver: Resolver (defaults to one using the built-in strategies)
        """
        self.registry = registry if registry is not None else get_default_registry()
        self.resolver = resolver or Resolver()

    def register(self, config: MappingConfig) -> MappingConfig:
        """Register a mapping configuration."""
        return self.registry.add(config)

    def map_to(self, target_type: Type[T], record: Any) -> Optional[T]:
        """
        Map one record.

        Raises:
            MappingException: If the record cannot be materialized
        """
        return self.resolver.materialize(self.registry, record, target_type)

    def map_many(self, target_type: Type[T], records: Iterable[Any]) -> MappingResult:
        """
        Map a batch of records.

        A failing record is reported in the result and does not stop the batch.

        Returns:
            MappingResult with the mapped items and error messages
        """
        items = []
        errors = []

        for index, record in enumerate(records):
            try:
                item = self.map_to(target_type, record)
            except MappingException as e:
                log_error(logger, e, f"Record {index} ({target_type.__name__})")
                errors.append(f"Record {index}: {str(e)}")
                continue

            if item is not None:
                items.append(item)

        logger.info(
            f"Mapped {len(items)} {target_type.__name__} records, {len(errors)} failed"
        )

        return MappingResult(success=not errors, items=items, errors=errors)
