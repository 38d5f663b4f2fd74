"""Relation reconciliation

Finds and repairs one-to-one relations that are no longer symmetric: links
to items that were deleted, links without a back-link, and links whose
counterpart points to a third item. Relation updates are best effort, so
any of these can be left behind by a failed or concurrent save.
"""

import logging
from typing import Iterable, List, Literal, Optional

from pydantic import BaseModel, Field

from .fields.post_to_post import PostToPostField
from .models.field import SingleRelation
from .models.item import AUDITED_STATUSES
from .models.value import EmptyValue, SingleValue, parse_relation_value
from .utils.errors import RelationError

logger = logging.getLogger(__name__)

IssueKind = Literal["dangling", "one_way", "conflict"]


class RelationIssue(BaseModel):
    """An asymmetric relation found by an audit."""

    kind: IssueKind = Field(description="dangling, one_way or conflict")
    item_id: int = Field(description="Item holding the relation")
    target_id: int = Field(description="Item the relation points to")
    target_value: Optional[int] = Field(
        default=None,
        description="Relation stored on the target (conflicts only)"
    )
    repaired: bool = Field(default=False)


class RelationAuditor:
    """Audit and repair one relation field."""

    def __init__(self, field_type: PostToPostField, field: SingleRelation):
        if not isinstance(field, SingleRelation):
            raise ValueError(f"Only single relations keep back-links, {field.name} holds multiple values")
        self.field_type = field_type
        self.field = field
        self.store = field_type.store

    def _candidate_ids(self) -> List[int]:
        post_types = self.field.post_types or self.store.list_registered_types(public_only=False)
        return [item.id for item in self.store.query_items(
            post_types=post_types,
            statuses=AUDITED_STATUSES,
            order_by="id"
        )]

    def _value(self, item_id: int):
        return parse_relation_value(self.store.get_meta(item_id, self.field.name))

    def check(self, item_id: int) -> Optional[RelationIssue]:
        """Return the issue of a single item's relation, if any."""
        value = self._value(item_id)
        if not isinstance(value, SingleValue):
            return None

        target_id = value.id
        if self.store.get_item(target_id) is None:
            return RelationIssue(kind="dangling", item_id=item_id, target_id=target_id)

        back = self._value(target_id)
        if isinstance(back, EmptyValue):
            return RelationIssue(kind="one_way", item_id=item_id, target_id=target_id)
        if back != SingleValue(id=item_id):
            return RelationIssue(
                kind="conflict",
                item_id=item_id,
                target_id=target_id,
                target_value=back.ids()[0] if back.ids() else None
            )
        return None

    def audit(self, item_ids: Optional[Iterable[int]] = None) -> List[RelationIssue]:
        """Check every item (or the given ones) for asymmetric relations."""
        ids = list(item_ids) if item_ids is not None else self._candidate_ids()
        issues = [issue for issue in (self.check(i) for i in ids) if issue is not None]
        logger.info(f"Audited {len(ids)} items for {self.field.name}: {len(issues)} issues")
        return issues

    def repair(self, issues: Optional[List[RelationIssue]] = None) -> List[RelationIssue]:
        """Fix dangling and one-way relations.

        Conflicts are left alone: which side is right cannot be decided from
        the stored values.

        Returns:
            The issues with ``repaired`` set for those that were fixed
        """
        issues = self.audit() if issues is None else issues
        for issue in issues:
            if issue.kind == "conflict":
                logger.warning(
                    f"Not repairing conflict: {issue.item_id} -> {issue.target_id} "
                    f"but {issue.target_id} -> {issue.target_value}"
                )
                continue

            with self.field_type.locks.hold(self.field.name, (issue.item_id, issue.target_id)):
                current = self.check(issue.item_id)
                if current is None or current.kind != issue.kind or current.target_id != issue.target_id:
                    logger.debug(f"Issue on item {issue.item_id} changed since audit, skipping")
                    continue
                try:
                    if issue.kind == "dangling":
                        self.field_type.write_meta(issue.item_id, self.field.name, None)
                    else:
                        self.field_type.write_meta(issue.target_id, self.field.name, issue.item_id)
                except RelationError as e:
                    logger.error(f"Failed to repair {issue.kind} relation on item {issue.item_id}: {e}")
                    continue
            issue.repaired = True
            logger.info(f"Repaired {issue.kind} relation {issue.item_id} -> {issue.target_id}")
        return issues

    def clear_references_to(self, deleted_id: int) -> List[int]:
        """Clear every relation pointing at a removed item.

        Returns:
            IDs of the items whose relation was cleared
        """
        cleared = []
        for item_id in self._candidate_ids():
            if item_id == deleted_id or deleted_id not in self._value(item_id).ids():
                continue
            with self.field_type.locks.hold(self.field.name, (item_id,)):
                if deleted_id not in self._value(item_id).ids():
                    continue
                try:
                    self.field_type.write_meta(item_id, self.field.name, None)
                except RelationError as e:
                    logger.error(f"Failed to clear reference to {deleted_id} on item {item_id}: {e}")
                    continue
            cleared.append(item_id)
        logger.info(f"Cleared {len(cleared)} references to deleted item {deleted_id}")
        return cleared
