import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from typing import Optional

from mcp.server.fastmcp import FastMCP, Context
from .config import Settings, CredentialsError, get_bearer_token, get_wordpress_credentials
from .fields.registry import create_registry
from .store import InMemoryContentStore, RestContentStore
from .tools import relation_tools

# Configure basic logging FIRST
logging.basicConfig(level=logging.INFO, format='%(asctime)s - SERVER - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def build_store(settings: Settings):
    """Create the content store selected by the settings."""
    if settings.mock_mode:
        logger.info("Using InMemoryContentStore due to RELATION_MOCK_MODE=true")
        return InMemoryContentStore()

    if not settings.wp_url:
        logger.error("WP_URL environment variable not set. Cannot connect to WordPress.")
        raise ValueError("WP_URL environment variable is required.")

    from .client import WordPressClient

    bearer_token = get_bearer_token()
    if bearer_token:
        logger.info(f"Using bearer token authentication to WordPress at {settings.wp_url}")
        client = WordPressClient(
            host_domain=settings.wp_url,
            bearer_token=bearer_token,
            requests_per_second=settings.requests_per_second,
            verify_ssl=settings.verify_ssl
        )
    else:
        credentials = get_wordpress_credentials()
        logger.info(f"Using application password authentication to WordPress at {settings.wp_url}")
        client = WordPressClient(
            host_domain=settings.wp_url,
            credentials=credentials,
            requests_per_second=settings.requests_per_second,
            verify_ssl=settings.verify_ssl
        )
    return RestContentStore(client)


@asynccontextmanager
async def relation_lifespan(server: FastMCP) -> AsyncIterator[dict]:
    """
    Builds the content store and the field registry for the server's lifetime.
    """
    try:
        settings = Settings.from_env()
        store = build_store(settings)
        registry = create_registry(store, settings.relation_fields, write_attempts=settings.write_attempts)
        logger.info(f"Relation fields: {[f.name for f in registry.fields()]}")
        yield {"store": store, "registry": registry}
    except CredentialsError as e:
        logger.error(f"Failed to obtain WordPress credentials: {e}")
        raise
    finally:
        logger.info("Relation lifespan context manager exiting.")


mcp = FastMCP(
    "Post Relation Server",
    lifespan=relation_lifespan,
)

# --- Tool Implementations ---

@mcp.tool()
async def list_relation_fields(ctx: Context) -> list[dict]:
    """
    Lists the configured post-to-post relation fields.
    """
    logger.info("Executing list_relation_fields tool")
    return await relation_tools.list_relation_fields(ctx)

@mcp.tool()
async def get_relation_raw(item_id: int, field_name: str, ctx: Context) -> dict:
    """
    Returns the stored value of a relation field on an item.

    Args:
        item_id: The ID of the item.
        field_name: The relation field name.
    """
    return await relation_tools.get_relation_raw(ctx, item_id=item_id, field_name=field_name)

@mcp.tool()
async def get_related_post(item_id: int, field_name: str, ctx: Context) -> dict | list[dict] | None:
    """
    Returns the item (or items) a relation field points to.

    Args:
        item_id: The ID of the item.
        field_name: The relation field name.
    """
    return await relation_tools.get_related_post(ctx, item_id=item_id, field_name=field_name)

@mcp.tool()
async def set_related_post(
    item_id: int,
    field_name: str,
    ctx: Context,
    target_id: Optional[int] = None,
    target_ids: Optional[list[int]] = None
) -> dict:
    """
    Sets the relation of an item and updates the related items' back-links.
    Omit the targets to clear the relation.

    Args:
        item_id: The ID of the item being saved.
        field_name: The relation field name.
        target_id: The related item for one-to-one fields.
        target_ids: The related items for multi-value fields.
    """
    return await relation_tools.set_related_post(
        ctx, item_id=item_id, field_name=field_name, target_id=target_id, target_ids=target_ids
    )

@mcp.tool()
async def audit_relations(field_name: str, ctx: Context, item_ids: Optional[list[int]] = None) -> list[dict]:
    """
    Finds relations whose related item is missing or does not link back.

    Args:
        field_name: The relation field name.
        item_ids: Items to check; all items when omitted.
    """
    return await relation_tools.audit_relations(ctx, field_name=field_name, item_ids=item_ids)

@mcp.tool()
async def repair_relations(field_name: str, ctx: Context) -> dict:
    """
    Clears dangling relations and writes missing back-links. Conflicting
    relations are reported but not changed.

    Args:
        field_name: The relation field name.
    """
    return await relation_tools.repair_relations(ctx, field_name=field_name)

@mcp.tool()
async def clear_relations_to(field_name: str, deleted_id: int, ctx: Context) -> dict:
    """
    Clears every relation pointing at a deleted item.

    Args:
        field_name: The relation field name.
        deleted_id: The ID of the deleted item.
    """
    return await relation_tools.clear_relations_to(ctx, field_name=field_name, deleted_id=deleted_id)


def main():
    mcp.run()


if __name__ == "__main__":
    main()
