"""Mock WordPress REST API Response Data

Realistic mock responses for testing the REST content store.
Based on WordPress REST API (wp/v2) response formats with context=edit.
"""

from typing import Dict, Any


# Type responses

MOCK_TYPES: Dict[str, Dict[str, Any]] = {
    "post": {
        "name": "Posts",
        "slug": "post",
        "hierarchical": False,
        "viewable": True,
        "rest_base": "posts",
    },
    "page": {
        "name": "Pages",
        "slug": "page",
        "hierarchical": True,
        "viewable": True,
        "rest_base": "pages",
    },
    "wp_block": {
        "name": "Patterns",
        "slug": "wp_block",
        "hierarchical": False,
        "viewable": False,
        "rest_base": "blocks",
    },
}


# Post responses

MOCK_POST_10 = {
    "id": 10,
    "type": "post",
    "status": "publish",
    "parent": 0,
    "menu_order": 0,
    "title": {"raw": "Alpha", "rendered": "Alpha"},
    "meta": {"related_post": 20},
}

MOCK_POST_20 = {
    "id": 20,
    "type": "post",
    "status": "draft",
    "title": {"raw": "Bravo", "rendered": "Bravo"},
    "meta": {"related_post": 10},
}

MOCK_PAGE_30 = {
    "id": 30,
    "type": "page",
    "status": "publish",
    "parent": 5,
    "menu_order": 2,
    "title": {"raw": "Charlie", "rendered": "Charlie"},
    "meta": {"related_post": ""},
}

MOCK_POSTS_LIST = [MOCK_POST_10, MOCK_POST_20]

MOCK_PAGES_LIST = [MOCK_PAGE_30]
