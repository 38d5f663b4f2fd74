"""Content Item Data Model

Pydantic models for content items ("posts") and registered content types.
"""

from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator


class PostStatus(str, Enum):
    """Post statuses known to the relation field.

    Hosts may register additional statuses, so ``ContentItem.status`` is a
    plain string rather than this enum.
    """

    PUBLISH = "publish"
    PRIVATE = "private"
    DRAFT = "draft"
    INHERIT = "inherit"
    FUTURE = "future"
    PENDING = "pending"
    TRASH = "trash"


# Statuses an API read will resolve; anything else counts as removed
RESOLVABLE_STATUSES = frozenset({
    PostStatus.PUBLISH.value,
    PostStatus.PRIVATE.value,
    PostStatus.DRAFT.value,
    PostStatus.INHERIT.value,
    PostStatus.FUTURE.value,
})

# Statuses that can hold a live relation; the REST API lists only published
# items unless asked
AUDITED_STATUSES = RESOLVABLE_STATUSES | {PostStatus.PENDING.value}


class ContentType(BaseModel):
    """A registered content type (post type)."""

    name: str = Field(description="Type tag, e.g. 'post' or 'page'")
    public: bool = Field(default=True, description="Whether the type is publicly queryable")
    hierarchical: bool = Field(default=False, description="Whether items may have parents")
    rest_base: Optional[str] = Field(
        default=None,
        description="REST route segment; defaults to the type name"
    )

    @property
    def route(self) -> str:
        return self.rest_base or self.name


class ContentItem(BaseModel):
    """A content item as loaded from the content store."""

    id: int = Field(description="Unique item ID")
    post_type: str = Field(default="post", description="Content type tag")
    status: str = Field(default=PostStatus.PUBLISH.value, description="Post status")
    title: str = Field(default="", description="Item title")
    parent: Optional[int] = Field(
        default=None,
        description="Parent item ID for hierarchical types"
    )
    menu_order: int = Field(default=0, description="Position among siblings")

    @field_validator('id')
    @classmethod
    def validate_id(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Item ID must be positive, got {v}")
        return v

    @field_validator('parent')
    @classmethod
    def normalize_parent(cls, v: Optional[int]) -> Optional[int]:
        """The host reports top-level items with parent 0."""
        return v or None

    @property
    def is_published(self) -> bool:
        return self.status == PostStatus.PUBLISH.value

    @classmethod
    def from_wp(cls, data: Dict[str, Any]) -> "ContentItem":
        """Build an item from a WordPress REST API payload."""
        title = data.get("title", "")
        if isinstance(title, dict):
            title = title.get("raw", title.get("rendered", ""))
        return cls(
            id=data["id"],
            post_type=data.get("type", "post"),
            status=data.get("status", PostStatus.PUBLISH.value),
            title=title or "",
            parent=data.get("parent"),
            menu_order=data.get("menu_order", 0) or 0,
        )

    class Config:
        json_schema_extra = {
            "example": {
                "id": 42,
                "post_type": "page",
                "status": "publish",
                "title": "About us",
                "parent": None,
                "menu_order": 0
            }
        }
