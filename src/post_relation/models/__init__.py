"""Post Relation Data Models

This package contains Pydantic models for content items, relation field
descriptors and relation values.
"""

__all__ = [
    "item",
    "field",
    "value",
]
