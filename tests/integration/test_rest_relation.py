"""Integration tests for relation updates against a live WordPress site.

Set RELATION_MOCK_MODE=false to run these tests.

Prerequisites:
- WordPress site with the relation field meta key registered for REST
  (register_post_meta(..., show_in_rest=True, single=True, type='integer'))
- Credentials (WP_USERNAME + WP_APP_PASSWORD, or WP_BEARER_TOKEN)
- Three existing posts given as RELATION_TEST_POSTS="id1,id2,id3"
"""
import os

import pytest

from post_relation.client import WordPressClient
from post_relation.config import get_bearer_token, get_wordpress_credentials
from post_relation.fields.registry import create_registry
from post_relation.store import RestContentStore


# Skip integration tests if RELATION_MOCK_MODE is true (default in fixtures)
pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        os.getenv("RELATION_MOCK_MODE", "true").lower() == "true",
        reason="Integration tests require RELATION_MOCK_MODE=false and a WordPress site"
    ),
]

FIELD_NAME = os.getenv("RELATION_TEST_FIELD", "related_post")


@pytest.fixture
def post_ids():
    raw = os.getenv("RELATION_TEST_POSTS", "")
    ids = [int(i) for i in raw.split(",") if i.strip()]
    if len(ids) < 3:
        pytest.skip("RELATION_TEST_POSTS must list three post IDs")
    return ids[:3]


@pytest.fixture
def real_store():
    wp_url = os.getenv("WP_URL")
    if not wp_url:
        pytest.skip("Missing required environment variable: WP_URL")

    token = get_bearer_token()
    if token:
        client = WordPressClient(wp_url, bearer_token=token)
    else:
        client = WordPressClient(wp_url, credentials=get_wordpress_credentials())
    return RestContentStore(client)


@pytest.fixture
def registry(real_store, post_ids):
    registry = create_registry(real_store, [{"name": FIELD_NAME}])
    yield registry
    # Cleanup: leave the test posts without relations
    for post_id in post_ids:
        real_store.set_meta(post_id, FIELD_NAME, None)


def test_repoint_relation_real_wordpress(registry, real_store, post_ids):
    a, b, c = post_ids

    assert registry.update_value(a, FIELD_NAME, b).ok
    assert int(real_store.get_meta(b, FIELD_NAME)) == a

    assert registry.update_value(a, FIELD_NAME, c).ok
    assert int(real_store.get_meta(a, FIELD_NAME)) == c
    assert int(real_store.get_meta(c, FIELD_NAME)) == a
    assert not real_store.get_meta(b, FIELD_NAME)

    assert registry.get_field_for_api(a, FIELD_NAME).id == c
