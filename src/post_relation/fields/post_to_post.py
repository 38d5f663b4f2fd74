"""Post to post relation field

Field type holding a one-to-one relation between two items. When item A is
saved with B as its relation, B is saved with A as its relation, and the item
A pointed at before is cleared.

Metadata writes go through the content store one at a time; the store offers
no transactions. A write that fails after retries triggers compensating
writes restoring the values captured before the update.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field as ModelField
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from .base import Field
from ..models.field import MultiRelation, SingleRelation
from ..models.item import ContentItem, RESOLVABLE_STATUSES
from ..models.value import EmptyValue, MultipleValue, RelationValue, SingleValue, parse_relation_value
from ..store import ContentStore
from ..utils.errors import (
    InvalidTargetError,
    PartialWriteFailure,
    RelationError,
    StaleReferenceError,
    TransientStoreError,
)
from ..utils.locking import RelationLocks

logger = logging.getLogger(__name__)

ResolvedValue = Union[None, ContentItem, List[ContentItem]]

_TRUE_STRINGS = {"1", "true", "yes", "on"}


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


class MetaWrite(BaseModel):
    """A metadata write applied during a relation update."""

    item_id: int
    value: Any = None


class WriteResult(BaseModel):
    """Outcome of a relation update."""

    item_id: int = ModelField(description="Saved item")
    field_name: str = ModelField(description="Relation field name")
    previous: Any = ModelField(default=None, description="Raw value before the update")
    value: Any = ModelField(default=None, description="Raw value requested")
    writes: List[MetaWrite] = ModelField(default_factory=list, description="Writes applied, in order")
    skipped: List[str] = ModelField(default_factory=list, description="Writes skipped and why")
    failure: Optional[str] = ModelField(default=None, description="Error that stopped the update")
    rolled_back: bool = ModelField(default=False, description="Whether applied writes were undone")

    @property
    def ok(self) -> bool:
        return self.failure is None


class PostToPostField(Field):
    """One-to-one post relation field type."""

    name = "post_to_post"
    title = "Post to post relation"

    def __init__(
        self,
        store: ContentStore,
        locks: Optional[RelationLocks] = None,
        write_attempts: int = 3,
        retry_wait: float = 0.5
    ):
        """Initialize the field type.

        Args:
            store: Content store holding items and metadata
            locks: Lock registry shared by every writer of the same store
            write_attempts: Attempts per metadata write on transient errors
            retry_wait: Base delay in seconds for exponential backoff
        """
        super().__init__(store)
        self.locks = locks or RelationLocks()
        self.write_attempts = write_attempts
        self.retry_wait = retry_wait

    def default_options(self) -> Dict[str, Any]:
        return {
            "post_type": "",
            "multiple": "0",
            "allow_null": "0",
            "taxonomy": ["all"],
        }

    def pre_save_field(self, options: Any) -> Union[SingleRelation, MultiRelation]:
        """Turn submitted field options into a relation descriptor.

        Accepts the option dict of the field settings form: string booleans,
        ``post_type`` as a single type or a list, and ``""`` meaning all types.
        """
        if isinstance(options, (SingleRelation, MultiRelation)):
            return options

        merged = {**self.default_options(), **options}
        if not merged.get("name"):
            raise ValueError("Relation field options require a 'name'")

        post_types = merged.get("post_type") or []
        if isinstance(post_types, str):
            post_types = [post_types]

        data = {
            "name": merged["name"],
            "label": merged.get("label", ""),
            "post_types": list(post_types),
            "allow_null": _truthy(merged.get("allow_null")),
            "taxonomy": list(merged.get("taxonomy") or ["all"]),
        }
        if _truthy(merged.get("multiple")):
            return MultiRelation(**data)
        return SingleRelation(**data)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def update_value(self, item_id: int, field: Union[SingleRelation, MultiRelation], value: Any) -> WriteResult:
        """Save a relation value on ``item_id`` and maintain the back-links.

        Args:
            item_id: Saved item
            field: Relation field descriptor
            value: New value: None/"null" to clear, an item ID, or a list of
                IDs for multi-value fields

        Returns:
            WriteResult describing applied and skipped writes

        Raises:
            InvalidTargetError: If several IDs are given for a single relation
        """
        new = parse_relation_value(value)

        if isinstance(field, MultiRelation):
            result = WriteResult(item_id=item_id, field_name=field.name, value=new.to_raw())
            result.previous = self.get_value(item_id, field)
            self._apply(result, [(item_id, new.to_raw())])
            return result

        if isinstance(new, MultipleValue):
            if len(new.item_ids) != 1:
                raise InvalidTargetError(
                    f"Field {field.name} holds a single relation, got {len(new.item_ids)} IDs",
                    details={"item_id": item_id, "value": list(new.item_ids)}
                )
            new = SingleValue(id=new.item_ids[0])

        while True:
            previous = parse_relation_value(self.get_value(item_id, field))
            with self.locks.hold(field.name, (item_id, *previous.ids(), *new.ids())):
                # Another save may have moved the relation before we got the locks
                if parse_relation_value(self.get_value(item_id, field)) != previous:
                    logger.debug(f"Relation {field.name} of item {item_id} changed while locking, retrying")
                    continue
                return self._update_single(item_id, field, previous, new)

    def _update_single(
        self,
        item_id: int,
        field: SingleRelation,
        previous: RelationValue,
        new: Union[EmptyValue, SingleValue]
    ) -> WriteResult:
        logger.info(f"Updating relation {field.name}: item {item_id} {previous.to_raw()} -> {new.to_raw()}")
        result = WriteResult(
            item_id=item_id,
            field_name=field.name,
            previous=previous.to_raw(),
            value=new.to_raw()
        )
        planned: List[Tuple[int, Any]] = []

        # The old counterpart loses its back-link
        if previous != new:
            for old_id in previous.ids():
                if old_id in new.ids():
                    continue
                if self.store.get_item(old_id) is None:
                    skip = StaleReferenceError(f"Previous relation {old_id} no longer exists")
                    logger.debug(f"Skipping cleanup of item {old_id}: {skip}")
                    result.skipped.append(str(skip))
                    continue
                planned.append((old_id, None))

        if isinstance(new, EmptyValue):
            skip = InvalidTargetError("No new relation, back-link not written")
            logger.debug(f"Item {item_id}: {skip}")
            result.skipped.append(str(skip))
        elif self.store.get_item(new.id) is None:
            skip = StaleReferenceError(f"Related item {new.id} does not exist, back-link not written")
            logger.warning(f"Item {item_id}: {skip}")
            result.skipped.append(str(skip))
        else:
            planned.append((new.id, item_id))

        planned.append((item_id, new.to_raw()))
        self._apply(result, planned)
        return result

    def write_meta(self, item_id: int, key: str, value: Any) -> None:
        """Write one metadata value, retrying transient store errors."""

        @retry(
            stop=stop_after_attempt(self.write_attempts),
            wait=wait_exponential(multiplier=self.retry_wait, max=10),
            retry=retry_if_exception_type(TransientStoreError),
            reraise=True
        )
        def write_with_retry():
            if not self.store.set_meta(item_id, key, value):
                raise PartialWriteFailure(
                    f"Store rejected write of {key} on item {item_id}",
                    details={"item_id": item_id, "key": key}
                )

        write_with_retry()

    def _apply(self, result: WriteResult, planned: List[Tuple[int, Any]]) -> None:
        """Apply planned writes in order, compensating if one fails."""
        undo: List[Tuple[int, Any]] = []
        for target_id, value in planned:
            try:
                before = self.store.get_meta(target_id, result.field_name)
                self.write_meta(target_id, result.field_name, value)
            except RelationError as e:
                result.failure = str(e)
                logger.error(
                    f"Relation update of item {result.item_id} failed writing item {target_id} "
                    f"after {len(result.writes)} applied writes: {e}"
                )
                result.rolled_back = self._compensate(result.field_name, undo)
                return
            undo.append((target_id, before))
            result.writes.append(MetaWrite(item_id=target_id, value=value))

    def _compensate(self, key: str, undo: List[Tuple[int, Any]]) -> bool:
        restored = True
        for target_id, before in reversed(undo):
            try:
                if not self.store.set_meta(target_id, key, before):
                    restored = False
                    logger.error(f"Could not restore {key} on item {target_id}")
            except RelationError as e:
                restored = False
                logger.error(f"Could not restore {key} on item {target_id}: {e}")
        if undo:
            logger.info(f"Compensation for {key} {'complete' if restored else 'incomplete'}")
        return restored

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def resolve_value(self, item_id: int, field: Any) -> ResolvedValue:
        """Load the related item(s) for template use.

        Returns:
            None when nothing is stored, the related item (or None if it is
            gone) for a single value, or the related items in stored order for
            a multiple value. Items that no longer resolve are dropped.
        """
        return self.resolve(parse_relation_value(self.get_value(item_id, field)))

    def get_value_for_api(self, item_id: int, field: Any) -> ResolvedValue:
        return self.resolve_value(item_id, field)

    def resolve(self, value: RelationValue) -> ResolvedValue:
        if isinstance(value, EmptyValue):
            return None

        if isinstance(value, SingleValue):
            return self.store.get_item(value.id)

        unique_ids = list(dict.fromkeys(value.item_ids))
        found = self.store.query_items(
            ids=unique_ids,
            post_types=self.store.list_registered_types(public_only=True),
            statuses=RESOLVABLE_STATUSES,
        )
        by_id = {item.id: item for item in found}

        resolved = [by_id[i] for i in value.item_ids if i in by_id]
        missing = len(value.item_ids) - len(resolved)
        if missing:
            logger.debug(f"Dropped {missing} unresolved IDs from {list(value.item_ids)}")
        return resolved
