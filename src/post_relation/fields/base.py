"""Generic field machinery

Base class for field types. It stores and loads a field value as item
metadata under the field's name; field types override the hooks they need.
"""

from typing import Any, Dict

from ..store import ContentStore


class Field:
    """Base field type.

    Attributes:
        name: Field type key used at registration
        title: Human-readable field type name
    """

    name: str = "field"
    title: str = "Field"

    def __init__(self, store: ContentStore):
        self.store = store

    def default_options(self) -> Dict[str, Any]:
        return {}

    def pre_save_field(self, options: Any) -> Any:
        """Normalise a field's options before the field is stored.

        The base type stores the descriptor unchanged.
        """
        return options

    def update_value(self, item_id: int, field: Any, value: Any) -> Any:
        return self.store.set_meta(item_id, field.name, value)

    def get_value(self, item_id: int, field: Any) -> Any:
        return self.store.get_meta(item_id, field.name)

    def get_value_for_api(self, item_id: int, field: Any) -> Any:
        return self.get_value(item_id, field)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"
