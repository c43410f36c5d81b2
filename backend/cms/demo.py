"""Sample content types used by the development server."""
from typing import Literal

from pydantic import BaseModel, Field

from cms.schema.representation import RelationRef, relation_field
from cms.services.schema_registry import ContentTypeDeclaration


class Product(BaseModel):
    name: str = Field(min_length=1, max_length=200, description="Product name")
    description: str | None = Field(
        default=None, json_schema_extra={"fieldType": "textarea"}
    )
    price: float = Field(ge=0)
    featured: bool = False
    status: Literal["draft", "published"] = "draft"
    image: str | None = Field(default=None, json_schema_extra={"fieldType": "file"})


class Category(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None


class Resource(BaseModel):
    name: str = Field(min_length=1)
    url: str | None = Field(default=None, json_schema_extra={"format": "uri"})
    description: str | None = Field(
        default=None, json_schema_extra={"fieldType": "textarea"}
    )
    categories: list[RelationRef] | None = relation_field(
        "manyToMany", "category", creatable=True, description="Categories"
    )


class Comment(BaseModel):
    author: str = Field(min_length=1)
    content: str = Field(min_length=1, json_schema_extra={"fieldType": "textarea"})
    resource: RelationRef | None = relation_field(
        "belongsTo", "resource", description="Commented resource"
    )


CONTENT_TYPES = [
    ContentTypeDeclaration(
        name="Product",
        slug="product",
        description="Products for the storefront",
        shape=Product,
    ),
    ContentTypeDeclaration(name="Category", slug="category", shape=Category),
    ContentTypeDeclaration(
        name="Resource",
        slug="resource",
        description="Links grouped by category",
        shape=Resource,
    ),
    ContentTypeDeclaration(
        name="Comment",
        slug="comment",
        description="Comments on resources",
        shape=Comment,
    ),
]
