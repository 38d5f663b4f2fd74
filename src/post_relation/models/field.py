"""Relation Field Descriptor Data Model

Field descriptors are tagged variants: a ``SingleRelation`` maintains the
1:1 back-link on save, a ``MultiRelation`` only stores its value.
"""

from typing import Annotated, Any, Dict, List, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class _RelationFieldBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Metadata key the value is stored under")
    label: str = Field(default="", description="Human-readable field label")
    post_types: List[str] = Field(
        default_factory=list,
        description="Allowed target content types; empty means every public type"
    )
    allow_null: bool = Field(default=False, description="Whether an empty relation is permitted")
    taxonomy: List[str] = Field(
        default_factory=lambda: ["all"],
        description="Taxonomy filter options (not used when saving)"
    )

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field name cannot be empty")
        if any(c.isspace() for c in v):
            raise ValueError(f"Field name may not contain whitespace: {v!r}")
        return v

    @field_validator('post_types')
    @classmethod
    def drop_blank_types(cls, v: List[str]) -> List[str]:
        # The options UI submits "" for "All"
        return [t for t in v if t]

    def accepts_type(self, post_type: str) -> bool:
        return not self.post_types or post_type in self.post_types


class SingleRelation(_RelationFieldBase):
    """One-to-one relation with back-link maintenance."""

    kind: Literal["single"] = "single"

    @property
    def multiple(self) -> bool:
        return False


class MultiRelation(_RelationFieldBase):
    """Relation holding an ordered list of targets, without back-links."""

    kind: Literal["multiple"] = "multiple"

    @property
    def multiple(self) -> bool:
        return True


RelationField = Annotated[Union[SingleRelation, MultiRelation], Field(discriminator="kind")]

_relation_field_adapter = TypeAdapter(RelationField)


def load_relation_field(data: Dict[str, Any]) -> Union[SingleRelation, MultiRelation]:
    """Validate a serialized descriptor (with a ``kind`` tag)."""
    return _relation_field_adapter.validate_python(data)
