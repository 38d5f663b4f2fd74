"""Post Relation - Relation Tools

Tool implementations over the field registry held in the server lifespan
context:
- Read a relation (raw and resolved)
- Set a relation, maintaining back-links
- Audit and repair asymmetric relations
"""
from typing import Optional, Dict, Any, List, Tuple, Union
import logging

from mcp.server.fastmcp import Context

from ..fields.post_to_post import PostToPostField
from ..fields.registry import FieldRegistry
from ..models.field import SingleRelation
from ..reconcile import RelationAuditor

logger = logging.getLogger(__name__)


def _registry(ctx: Context) -> FieldRegistry:
    return ctx.request_context.lifespan_context["registry"]


def _field(ctx: Context, field_name: str) -> Tuple[FieldRegistry, Any]:
    registry = _registry(ctx)
    try:
        return registry, registry.get_field(field_name)
    except KeyError:
        known = [f.name for f in registry.fields()]
        raise ValueError(f"Unknown relation field '{field_name}'. Known fields: {known}")


def _auditor(ctx: Context, field_name: str) -> RelationAuditor:
    registry, field = _field(ctx, field_name)
    if not isinstance(field, SingleRelation):
        raise ValueError(f"Field '{field_name}' holds multiple values and has no back-links to audit")
    return RelationAuditor(registry.field_type(PostToPostField.name), field)


async def list_relation_fields(ctx: Context) -> List[Dict[str, Any]]:
    """List the configured relation fields."""
    return [field.model_dump() for field in _registry(ctx).fields()]


async def get_relation_raw(ctx: Context, item_id: int, field_name: str) -> Dict[str, Any]:
    """Return the stored value of a relation field without loading items."""
    logger.info(f"Reading raw relation {field_name} of item {item_id}")
    registry, _ = _field(ctx, field_name)
    return {
        "item_id": item_id,
        "field": field_name,
        "value": registry.get_value(item_id, field_name),
    }


async def get_related_post(
    ctx: Context,
    item_id: int,
    field_name: str
) -> Union[None, Dict[str, Any], List[Dict[str, Any]]]:
    """Return the item(s) a relation field points to.

    Returns:
        None if the relation is empty or its target is gone, the related item,
        or the related items in stored order for multi-value fields
    """
    logger.info(f"Resolving relation {field_name} of item {item_id}")
    registry, _ = _field(ctx, field_name)
    value = registry.get_field_for_api(item_id, field_name)

    if value is None:
        return None
    if isinstance(value, list):
        return [item.model_dump() for item in value]
    return value.model_dump()


async def set_related_post(
    ctx: Context,
    item_id: int,
    field_name: str,
    target_id: Optional[int] = None,
    target_ids: Optional[List[int]] = None
) -> Dict[str, Any]:
    """Set (or clear, with no target) the relation of an item.

    Args:
        ctx: Context with the field registry
        item_id: Item being saved
        field_name: Relation field name
        target_id: Related item for single relations; None clears the relation
        target_ids: Related items for multi-value fields

    Returns:
        The write result: applied writes, skipped writes and any failure
    """
    registry, _ = _field(ctx, field_name)
    value = target_ids if target_ids is not None else target_id
    logger.info(f"Setting relation {field_name} of item {item_id} to {value}")

    result = registry.update_value(item_id, field_name, value)
    data = result.model_dump()
    data["ok"] = result.ok
    if not result.ok:
        logger.error(f"Relation update of item {item_id} incomplete: {result.failure}")
    return data


async def audit_relations(
    ctx: Context,
    field_name: str,
    item_ids: Optional[List[int]] = None
) -> List[Dict[str, Any]]:
    """Find relations without a matching back-link."""
    issues = _auditor(ctx, field_name).audit(item_ids)
    return [issue.model_dump() for issue in issues]


async def repair_relations(ctx: Context, field_name: str) -> Dict[str, Any]:
    """Repair dangling and one-way relations; report conflicts."""
    issues = _auditor(ctx, field_name).repair()
    return {
        "issues": [issue.model_dump() for issue in issues],
        "repaired": sum(1 for issue in issues if issue.repaired),
        "unresolved": sum(1 for issue in issues if not issue.repaired),
    }


async def clear_relations_to(ctx: Context, field_name: str, deleted_id: int) -> Dict[str, Any]:
    """Clear relations pointing at an item that was deleted."""
    cleared = _auditor(ctx, field_name).clear_references_to(deleted_id)
    return {"deleted_id": deleted_id, "cleared": cleared}
