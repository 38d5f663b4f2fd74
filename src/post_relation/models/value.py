"""Relation Value Data Model

The raw metadata value of a relation field comes in three shapes. They are
parsed once, here, into an explicit variant so callers never inspect the raw
value themselves.
"""

from typing import Any, List, Literal, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field


# Literal marker the host stores for an explicitly emptied select
NULL_MARKER = "null"


class EmptyValue(BaseModel):
    """No relation stored."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["empty"] = "empty"

    def ids(self) -> Tuple[int, ...]:
        return ()

    def to_raw(self) -> None:
        return None


class SingleValue(BaseModel):
    """A single related item ID."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["single"] = "single"
    id: int = Field(description="Related item ID")

    def ids(self) -> Tuple[int, ...]:
        return (self.id,)

    def to_raw(self) -> int:
        return self.id


class MultipleValue(BaseModel):
    """An ordered collection of related item IDs (duplicates allowed)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["multiple"] = "multiple"
    item_ids: Tuple[int, ...] = Field(description="Related item IDs in stored order")

    def ids(self) -> Tuple[int, ...]:
        return self.item_ids

    def to_raw(self) -> List[int]:
        return list(self.item_ids)


RelationValue = Union[EmptyValue, SingleValue, MultipleValue]

EMPTY = EmptyValue()


def _coerce_id(raw: Any) -> Optional[int]:
    """Return a positive item ID, or None if ``raw`` is not one."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw > 0 else None
    if isinstance(raw, str):
        raw = raw.strip()
        if raw.isdigit():
            value = int(raw)
            return value if value > 0 else None
    return None


def parse_relation_value(raw: Any) -> RelationValue:
    """Parse a stored or submitted value into a RelationValue.

    Args:
        raw: None, "", "null", an ID (int or numeric string), a list of IDs,
            or an already parsed RelationValue

    Returns:
        EmptyValue, SingleValue or MultipleValue
    """
    if isinstance(raw, (EmptyValue, SingleValue, MultipleValue)):
        return raw

    if isinstance(raw, (list, tuple)):
        item_ids = tuple(i for i in (_coerce_id(v) for v in raw) if i is not None)
        if not item_ids:
            return EMPTY
        return MultipleValue(item_ids=item_ids)

    if isinstance(raw, str) and raw.strip().lower() == NULL_MARKER:
        return EMPTY

    item_id = _coerce_id(raw)
    if item_id is None:
        return EMPTY
    return SingleValue(id=item_id)
