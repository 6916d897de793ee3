"""
Mapping file loader.

Builds MappingConfig objects from YAML mapping files:

    properties:
      id: {lazy: true}
      name: null
      slug: {transform: slugify}
      update_date: {alias: [create_date], lazy: true}
      place_order: {mapper: EnumPropertyMapper, lazy: true}
      title: {source: nodeName, default: "Untitled"}
"""

from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import yaml

from content_mapper.config import MappingConfig
from content_mapper.core.exceptions import ConfigurationException
from shared.utils.config import settings
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)

_SOURCE_KEYS = ("alias", "transform", "mapper")
_ALLOWED_KEYS = {"lazy", "default", "source", *_SOURCE_KEYS}


def load_mapping_config(
    data: Dict[str, Any],
    target_type: type,
    transforms: Optional[Dict[str, Callable[[Any, Any], Any]]] = None
) -> MappingConfig:
    """
    Build a MappingConfig from a parsed mapping document.

    Args:
        data: Parsed YAML document with a 'properties' section
        target_type: Class the mapping is for
        transforms: Named transform functions referenced by 'transform'

    Returns:
        MappingConfig (not yet registered)

    Raises:
        ConfigurationException: If the document is malformed
    """
    transforms = transforms or {}

    if not isinstance(data, dict) or "properties" not in data:
        raise ConfigurationException("Mapping document missing 'properties' section")

    properties = data["properties"] or {}
    if not isinstance(properties, dict):
        raise ConfigurationException("'properties' must be a mapping of property name to options")

    config = MappingConfig(target_type)

    for name, options in properties.items():
        options = options or {}
        if not isinstance(options, dict):
            raise ConfigurationException(f"Options for '{name}' must be a mapping")

        unknown = set(options) - _ALLOWED_KEYS
        if unknown:
            raise ConfigurationException(f"Unknown options for '{name}': {sorted(unknown)}")

        sources = [key for key in _SOURCE_KEYS if key in options]
        if len(sources) > 1:
            raise ConfigurationException(
                f"'{name}' declares more than one source: {sources}"
            )

        prop = config.add_map(name)

        if "source" in options:
            prop.set_source(options["source"])

        if "alias" in options:
            aliases = options["alias"]
            if isinstance(aliases, str):
                aliases = [aliases]
            prop.set_alias(name, *aliases)

        if "transform" in options:
            transform_name = options["transform"]
            func = transforms.get(transform_name)
            if func is None:
                raise ConfigurationException(
                    f"Transform '{transform_name}' for '{name}' not provided. "
                    f"Available: {list(transforms.keys())}"
                )
            prop.map_from_instance(func)

        if "mapper" in options:
            prop.set_mapper(options["mapper"])

        if "default" in options:
            prop.set_default_value(options["default"])

        if options.get("lazy", False):
            prop.as_lazy()

    logger.info(f"Loaded mapping for {target_type.__name__}: {len(config.rules)} properties")
    return config


def load_mapping_file(
    path: Union[str, Path],
    target_type: type,
    transforms: Optional[Dict[str, Callable[[Any, Any], Any]]] = None
) -> MappingConfig:
    """
    Load a MappingConfig from a YAML file.

    Relative paths are resolved against MAPPING_FILES_DIR when they do not
    exist as given.

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigurationException: If the file is not valid YAML or is malformed
    """
    path = Path(path)
    if not path.exists() and not path.is_absolute():
        path = Path(settings.MAPPING_FILES_DIR) / path

    if path.suffix.lstrip(".") not in settings.mapping_file_suffixes_list:
        raise ConfigurationException(f"Unsupported mapping file type: {path.name}")

    logger.info(f"Loading mapping file: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationException(f"Invalid YAML in {path}: {str(e)}") from e

    return load_mapping_config(data, target_type, transforms)
