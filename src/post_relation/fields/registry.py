"""Field Registry

Holds registered field types and the field descriptors created from them,
and dispatches reads and writes to the right field type.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .base import Field
from .post_to_post import PostToPostField
from ..store import ContentStore
from ..utils.locking import RelationLocks

logger = logging.getLogger(__name__)


class FieldRegistry:
    """Registry of field types and field descriptors for one store."""

    def __init__(self, store: ContentStore):
        self.store = store
        self._types: Dict[str, Field] = {}
        self._fields: Dict[str, Tuple[str, Any]] = {}

    def register_type(self, field_type: Field) -> None:
        if field_type.store is not self.store:
            raise ValueError(f"Field type {field_type.name} is bound to a different store")
        self._types[field_type.name] = field_type
        logger.info(f"Registered field type {field_type.name} ({field_type.title})")

    def field_type(self, type_name: str) -> Field:
        try:
            return self._types[type_name]
        except KeyError:
            raise KeyError(f"Unknown field type: {type_name}") from None

    def add_field(self, options: Any, type_name: str = PostToPostField.name) -> Any:
        """Create a field from its options and register it under its name.

        Returns:
            The descriptor produced by the field type's ``pre_save_field``
        """
        field_type = self.field_type(type_name)
        field = field_type.pre_save_field(options)
        if field.name in self._fields:
            logger.warning(f"Replacing existing field {field.name}")
        self._fields[field.name] = (type_name, field)
        logger.info(f"Added field {field.name} of type {type_name}")
        return field

    def get_field(self, name: str) -> Any:
        return self._lookup(name)[1]

    def fields(self) -> List[Any]:
        return [field for _, field in self._fields.values()]

    def _lookup(self, name: str) -> Tuple[Field, Any]:
        try:
            type_name, field = self._fields[name]
        except KeyError:
            raise KeyError(f"Unknown field: {name}") from None
        return self._types[type_name], field

    def update_value(self, item_id: int, name: str, value: Any) -> Any:
        field_type, field = self._lookup(name)
        return field_type.update_value(item_id, field, value)

    def get_value(self, item_id: int, name: str) -> Any:
        field_type, field = self._lookup(name)
        return field_type.get_value(item_id, field)

    def get_field_for_api(self, item_id: int, name: str) -> Any:
        """Formatted value of a field, as returned to templates."""
        field_type, field = self._lookup(name)
        return field_type.get_value_for_api(item_id, field)

    def save_post(self, item_id: int, values: Dict[str, Any]) -> Dict[str, Any]:
        """Save submitted field values of an item, once per field.

        Args:
            item_id: Saved item
            values: Submitted values keyed by field name; unknown names are ignored

        Returns:
            Result of each field type's ``update_value`` keyed by field name
        """
        results = {}
        for name, value in values.items():
            if name not in self._fields:
                logger.debug(f"Ignoring unknown field {name} on item {item_id}")
                continue
            results[name] = self.update_value(item_id, name, value)
        return results


def create_registry(
    store: ContentStore,
    field_options: Optional[Iterable[Dict[str, Any]]] = None,
    write_attempts: int = 3,
    retry_wait: float = 0.5
) -> FieldRegistry:
    """Build a registry with the post to post field type and the given fields."""
    registry = FieldRegistry(store)
    registry.register_type(
        PostToPostField(store, locks=RelationLocks(), write_attempts=write_attempts, retry_wait=retry_wait)
    )
    for options in field_options or []:
        registry.add_field(options)
    return registry
