"""Shared fixtures: content type declarations and an in-memory engine."""
from typing import Literal

import pytest
from pydantic import BaseModel, Field

from cms.adapter.memory import MemoryAdapter
from cms.schema.representation import RelationRef, relation_field
from cms.services.content_store import ContentItemStore
from cms.services.hooks import CMSHooks, HookContext
from cms.services.relations import RelationEngine
from cms.services.schema_registry import ContentTypeDeclaration, SchemaRegistry


class Article(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    body: str | None = Field(default=None, json_schema_extra={"fieldType": "textarea"})
    views: int = Field(default=0, ge=0)
    status: Literal["draft", "published"] = "draft"
    tags: list[str] | None = None


class Category(BaseModel):
    name: str = Field(min_length=1)


class Tag(BaseModel):
    name: str


class Post(BaseModel):
    title: str
    categories: list[RelationRef] | None = relation_field(
        "manyToMany", "category", creatable=True
    )
    tags: list[RelationRef] | None = relation_field("hasMany", "tag")


class Comment(BaseModel):
    body: str
    post: RelationRef | None = relation_field(
        "belongsTo", "post", display_field="title", creatable=True
    )


DECLARATIONS = [
    ContentTypeDeclaration(name="Article", slug="article", shape=Article),
    ContentTypeDeclaration(name="Category", slug="category", shape=Category),
    ContentTypeDeclaration(name="Tag", slug="tag", shape=Tag),
    ContentTypeDeclaration(name="Post", slug="post", shape=Post),
    ContentTypeDeclaration(name="Comment", slug="comment", shape=Comment),
]


@pytest.fixture
def declarations():
    return list(DECLARATIONS)


@pytest.fixture
def adapter():
    return MemoryAdapter()


@pytest.fixture
def registry(adapter, declarations):
    return SchemaRegistry(adapter, declarations)


@pytest.fixture
def hooks():
    return CMSHooks()


@pytest.fixture
def store(adapter, registry, hooks):
    return ContentItemStore(adapter, registry, RelationEngine(adapter, registry), hooks)


@pytest.fixture
def ctx():
    def make(type_slug: str, user_id: str | None = None) -> HookContext:
        return HookContext(type_slug=type_slug, user_id=user_id)

    return make
