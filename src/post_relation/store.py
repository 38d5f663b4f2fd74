"""Content Store

The content store is the persistence collaborator of the relation field:
item lookup, batched queries and per-item metadata. Two implementations are
provided, an in-memory store (tests, mock mode) and a WordPress REST store.
"""

import copy
import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Protocol, Set, runtime_checkable

from .client import WordPressClient
from .models.item import ContentItem, ContentType
from .utils.errors import NotFoundError

logger = logging.getLogger(__name__)


@runtime_checkable
class ContentStore(Protocol):
    """Operations the relation field needs from its host."""

    def get_meta(self, item_id: int, key: str) -> Any:
        ...

    def set_meta(self, item_id: int, key: str, value: Any) -> bool:
        ...

    def get_item(self, item_id: int) -> Optional[ContentItem]:
        ...

    def query_items(
        self,
        ids: Optional[Iterable[int]] = None,
        post_types: Optional[Iterable[str]] = None,
        statuses: Optional[Iterable[str]] = None,
        order_by: Optional[str] = None
    ) -> List[ContentItem]:
        ...

    def list_registered_types(self, public_only: bool = True) -> Set[str]:
        ...


def _sort_items(items: List[ContentItem], order_by: Optional[str], ids: Optional[List[int]]) -> List[ContentItem]:
    if order_by == "title":
        return sorted(items, key=lambda i: (i.title.lower(), i.id))
    if order_by == "menu_order":
        return sorted(items, key=lambda i: (i.menu_order, i.title.lower(), i.id))
    if order_by == "include" and ids is not None:
        position = {item_id: n for n, item_id in enumerate(ids)}
        return sorted(items, key=lambda i: position.get(i.id, len(position)))
    if order_by in (None, "id"):
        return sorted(items, key=lambda i: i.id)
    raise ValueError(f"Unsupported order_by: {order_by!r}")


class InMemoryContentStore:
    """Dict-backed content store.

    Deleting an item leaves its metadata and any references to it in place,
    the same way the host behaves when a post is removed.
    """

    def __init__(self):
        self._types: Dict[str, ContentType] = {}
        self._items: Dict[int, ContentItem] = {}
        self._meta: Dict[int, Dict[str, Any]] = {}
        self._lock = threading.RLock()
        self.add_type(ContentType(name="post"))
        self.add_type(ContentType(name="page", hierarchical=True, rest_base="pages"))

    def add_type(self, content_type: ContentType) -> None:
        with self._lock:
            self._types[content_type.name] = content_type

    def add_item(self, item: ContentItem, meta: Optional[Dict[str, Any]] = None) -> ContentItem:
        with self._lock:
            if item.post_type not in self._types:
                raise ValueError(f"Unknown content type: {item.post_type}")
            self._items[item.id] = item
            self._meta.setdefault(item.id, {}).update(meta or {})
            return item

    def delete_item(self, item_id: int) -> bool:
        with self._lock:
            return self._items.pop(item_id, None) is not None

    def get_meta(self, item_id: int, key: str) -> Any:
        with self._lock:
            return copy.deepcopy(self._meta.get(item_id, {}).get(key))

    def set_meta(self, item_id: int, key: str, value: Any) -> bool:
        with self._lock:
            if item_id not in self._items:
                logger.debug(f"Refusing meta write for unknown item {item_id}")
                return False
            self._meta.setdefault(item_id, {})[key] = copy.deepcopy(value)
            return True

    def get_item(self, item_id: int) -> Optional[ContentItem]:
        with self._lock:
            return self._items.get(item_id)

    def query_items(
        self,
        ids: Optional[Iterable[int]] = None,
        post_types: Optional[Iterable[str]] = None,
        statuses: Optional[Iterable[str]] = None,
        order_by: Optional[str] = None
    ) -> List[ContentItem]:
        id_list = list(ids) if ids is not None else None
        id_set = set(id_list) if id_list is not None else None
        type_set = set(post_types) if post_types is not None else None
        status_set = set(statuses) if statuses is not None else None

        with self._lock:
            matches = [
                item for item in self._items.values()
                if (id_set is None or item.id in id_set)
                and (type_set is None or item.post_type in type_set)
                and (status_set is None or item.status in status_set)
            ]
        return _sort_items(matches, order_by, id_list)

    def list_registered_types(self, public_only: bool = True) -> Set[str]:
        with self._lock:
            return {t.name for t in self._types.values() if t.public or not public_only}


class RestContentStore:
    """Content store backed by the WordPress REST API.

    Relation fields must be registered with ``show_in_rest`` so their meta
    keys are readable and writable through the ``meta`` object.
    """

    def __init__(self, client: WordPressClient):
        self.client = client
        self._types: Optional[Dict[str, ContentType]] = None
        self._routes: Dict[int, str] = {}

    def _content_types(self) -> Dict[str, ContentType]:
        if self._types is None:
            raw_types = self.client.get_types()
            self._types = {
                name: ContentType(
                    name=name,
                    public=data.get("viewable", True),
                    hierarchical=data.get("hierarchical", False),
                    rest_base=data.get("rest_base") or name,
                )
                for name, data in raw_types.items()
            }
            logger.info(f"Loaded {len(self._types)} content types from REST API")
        return self._types

    def _fetch(self, item_id: int) -> Optional[Dict[str, Any]]:
        """Find the raw post payload, trying each type route until one matches."""
        routes = []
        if item_id in self._routes:
            routes.append(self._routes[item_id])
        routes.extend(t.route for t in self._content_types().values() if t.route not in routes)

        for route in routes:
            try:
                data = self.client.get_post(route, item_id)
            except NotFoundError:
                continue
            self._routes[item_id] = route
            return data

        self._routes.pop(item_id, None)
        return None

    def get_meta(self, item_id: int, key: str) -> Any:
        data = self._fetch(item_id)
        if data is None:
            return None
        value = (data.get("meta") or {}).get(key)
        return None if value == "" else value

    def set_meta(self, item_id: int, key: str, value: Any) -> bool:
        if item_id not in self._routes and self._fetch(item_id) is None:
            logger.debug(f"Refusing meta write for unknown item {item_id}")
            return False
        self.client.update_post_meta(self._routes[item_id], item_id, {key: value})
        return True

    def get_item(self, item_id: int) -> Optional[ContentItem]:
        data = self._fetch(item_id)
        return ContentItem.from_wp(data) if data is not None else None

    def query_items(
        self,
        ids: Optional[Iterable[int]] = None,
        post_types: Optional[Iterable[str]] = None,
        statuses: Optional[Iterable[str]] = None,
        order_by: Optional[str] = None
    ) -> List[ContentItem]:
        id_list = list(ids) if ids is not None else None
        if id_list is not None and not id_list:
            return []

        types = self._content_types()
        wanted = list(post_types) if post_types is not None else list(types)

        params: Dict[str, Any] = {}
        if id_list is not None:
            params["include"] = ",".join(str(i) for i in id_list)
        if statuses is not None:
            params["status"] = ",".join(sorted(statuses))

        items: List[ContentItem] = []
        for name in wanted:
            content_type = types.get(name)
            if content_type is None:
                logger.warning(f"Skipping unknown content type in query: {name}")
                continue
            for data in self.client.get_posts(content_type.route, **params):
                self._routes[data["id"]] = content_type.route
                items.append(ContentItem.from_wp(data))

        return _sort_items(items, order_by, id_list)

    def list_registered_types(self, public_only: bool = True) -> Set[str]:
        return {t.name for t in self._content_types().values() if t.public or not public_only}
