"""Field types and the field registry."""

from .base import Field
from .post_to_post import PostToPostField, WriteResult
from .registry import FieldRegistry, create_registry

__all__ = [
    "Field",
    "PostToPostField",
    "WriteResult",
    "FieldRegistry",
    "create_registry",
]
