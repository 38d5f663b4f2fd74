"""Pytest fixtures for post relation tests.

Common fixtures for an in-memory content store, relation fields and a
mocked WordPress client.
"""

import pytest
from unittest.mock import MagicMock

from post_relation.client import WordPressClient
from post_relation.fields.post_to_post import PostToPostField
from post_relation.fields.registry import create_registry
from post_relation.models.field import MultiRelation, SingleRelation
from post_relation.models.item import ContentItem, ContentType
from post_relation.store import InMemoryContentStore
from post_relation.utils.errors import NotFoundError
from post_relation.utils.locking import RelationLocks
from . import wp_responses


@pytest.fixture
def store():
    """In-memory store with a few items of every status of interest.

    10 Alpha (post), 20 Bravo (post), 30 Charlie (page), 40 Delta (draft post),
    50 Echo (trashed post), 60 Foxtrot (non-public type).
    """
    store = InMemoryContentStore()
    store.add_type(ContentType(name="internal", public=False))
    store.add_item(ContentItem(id=10, post_type="post", title="Alpha"))
    store.add_item(ContentItem(id=20, post_type="post", title="Bravo"))
    store.add_item(ContentItem(id=30, post_type="page", title="Charlie", menu_order=1))
    store.add_item(ContentItem(id=40, post_type="post", title="Delta", status="draft"))
    store.add_item(ContentItem(id=50, post_type="post", title="Echo", status="trash"))
    store.add_item(ContentItem(id=60, post_type="internal", title="Foxtrot"))
    return store


@pytest.fixture
def relation_field():
    """One-to-one relation field."""
    return SingleRelation(name="related_post", label="Related post", allow_null=True)


@pytest.fixture
def multi_field():
    """Multi-value relation field."""
    return MultiRelation(name="related_posts", label="Related posts")


@pytest.fixture
def field_type(store):
    """Post to post field type without retry delays."""
    return PostToPostField(store, locks=RelationLocks(), write_attempts=3, retry_wait=0)


@pytest.fixture
def registry(store):
    """Registry with a single and a multi-value relation field."""
    return create_registry(
        store,
        [
            {"name": "related_post", "label": "Related post", "allow_null": "1"},
            {"name": "related_posts", "label": "Related posts", "multiple": "1"},
        ],
        retry_wait=0
    )


@pytest.fixture
def mock_wp_client():
    """Mock WordPress client with common methods."""
    client = MagicMock(spec=WordPressClient)

    posts = {p["id"]: p for p in wp_responses.MOCK_POSTS_LIST}
    pages = {p["id"]: p for p in wp_responses.MOCK_PAGES_LIST}

    def get_post(rest_base, post_id):
        source = {"posts": posts, "pages": pages}.get(rest_base, {})
        if post_id not in source:
            raise NotFoundError("HTTP 404: rest_post_invalid_id")
        return source[post_id]

    def get_posts(rest_base, **params):
        source = {"posts": wp_responses.MOCK_POSTS_LIST, "pages": wp_responses.MOCK_PAGES_LIST}.get(rest_base, [])
        if "include" in params:
            wanted = {int(i) for i in params["include"].split(",")}
            source = [p for p in source if p["id"] in wanted]
        # The REST API lists published items only unless a status is given
        statuses = set(params.get("status", "publish").split(","))
        return [p for p in source if p["status"] in statuses]

    client.get_types.return_value = wp_responses.MOCK_TYPES
    client.get_post.side_effect = get_post
    client.get_posts.side_effect = get_posts
    client.update_post_meta.return_value = {}
    return client


@pytest.fixture(autouse=True)
def reset_environment_for_tests(monkeypatch):
    """Reset environment variables for each test.

    This fixture automatically runs before each test to ensure
    a clean environment state.
    """
    monkeypatch.setenv("RELATION_MOCK_MODE", "true")
    monkeypatch.setenv("WP_URL", "https://cms.test.example.com")
    monkeypatch.setenv("WP_USERNAME", "test_user")
    monkeypatch.setenv("WP_APP_PASSWORD", "abcd efgh ijkl mnop")
    monkeypatch.delenv("WP_BEARER_TOKEN", raising=False)
    monkeypatch.delenv("RELATION_FIELDS", raising=False)


@pytest.fixture
def mcp_context(store, registry):
    """Mock MCP context with store and registry."""
    context = MagicMock()
    context.request_context.lifespan_context = {"store": store, "registry": registry}
    return context
