"""Loading and selecting the collections to export."""

from pathlib import Path
from typing import Iterable, Iterator, List

import yaml
from pydantic import ValidationError

from dcexport.catalog.models import CollectionDescriptor
from dcexport.exceptions import ConfigurationError
from dcexport.utils.logger import LoggerManager

logger = LoggerManager.get_logger(__name__)


def load_collections(path: Path) -> List[CollectionDescriptor]:
    """Read the collection list from a JSON or YAML file.

    The file holds a list of objects with at least `uuid` and usually
    `include`. JSON is parsed by the YAML loader as well.

    Args:
        path: Path to the collections file

    Returns:
        Collection descriptors in file order

    Raises:
        ConfigurationError: If the file is missing, unreadable or malformed
    """
    path = Path(path)
    if not path.exists():
        logger.error("collections.missing", extra={"extra_data": {"path": str(path)}})
        raise ConfigurationError.from_missing_file(path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error(
            "collections.load.fail",
            extra={"extra_data": {"path": str(path), "error": str(e)}},
        )
        raise ConfigurationError.from_invalid_content(path, str(e), e) from e

    if not isinstance(data, list):
        raise ConfigurationError.from_invalid_content(path, "expected a list of collections")

    collections = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ConfigurationError.from_invalid_content(
                path, f"entry {index} is not an object"
            )
        try:
            collections.append(CollectionDescriptor(**entry))
        except ValidationError as e:
            raise ConfigurationError.from_invalid_content(
                path, f"entry {index}: {e}", e
            ) from e

    logger.info(
        "collections.loaded",
        extra={"extra_data": {
            "path": str(path),
            "total": len(collections),
            "included": sum(1 for c in collections if c.include),
        }},
    )
    return collections


def select_collections(
    collections: Iterable[CollectionDescriptor],
) -> Iterator[CollectionDescriptor]:
    """Yield only the collections flagged for inclusion, in order."""
    return (collection for collection in collections if collection.include)
