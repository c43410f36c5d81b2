"""Tests for the SQLAlchemy adapter against in-memory SQLite."""
import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cms.adapter.base import SortBy, Where, eq
from cms.adapter.sql import SqlAlchemyAdapter
from cms.database import Base, build_engine, init_db
from cms.exceptions import AdapterError, UniqueViolationError
from cms.services.content_store import ContentItemStore
from cms.services.schema_registry import SchemaRegistry
from cms.utils import utcnow
from tests.conftest import DECLARATIONS


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def sql_adapter(engine):
    return SqlAlchemyAdapter(sessionmaker(autocommit=False, autoflush=False, bind=engine))


@pytest.fixture
def sql_store(sql_adapter):
    return ContentItemStore(sql_adapter, SchemaRegistry(sql_adapter, DECLARATIONS))


def _content_type(slug):
    now = utcnow()
    return {
        "name": slug.title(),
        "slug": slug,
        "json_schema": '{"type": "object", "properties": {}, "required": []}',
        "representation_version": 2,
        "created_at": now,
        "updated_at": now,
    }


async def test_create_and_find(sql_adapter):
    created = await sql_adapter.create("content_type", _content_type("page"))

    found = await sql_adapter.find_one("content_type", [eq("slug", "page")])

    assert created["id"]
    assert found["id"] == created["id"]
    assert found["name"] == "Page"
    assert await sql_adapter.find_one("content_type", [eq("slug", "nope")]) is None


async def test_unique_violation(sql_adapter):
    await sql_adapter.create("content_type", _content_type("page"))

    with pytest.raises(UniqueViolationError):
        await sql_adapter.create("content_type", _content_type("page"))


async def test_operators_sorting_and_paging(sql_adapter):
    for slug in ("c", "a", "d", "b"):
        await sql_adapter.create("content_type", _content_type(slug))

    ordered = await sql_adapter.find_many(
        "content_type", sort_by=SortBy(field="slug", direction="desc"), limit=2, offset=1
    )
    subset = await sql_adapter.find_many(
        "content_type", [Where(field="slug", value=["a", "d"], operator="in")]
    )
    after_b = await sql_adapter.count("content_type", [Where(field="slug", value="b", operator="gt")])

    assert [row["slug"] for row in ordered] == ["c", "b"]
    assert sorted(row["slug"] for row in subset) == ["a", "d"]
    assert after_b == 2


async def test_update_and_join(sql_adapter):
    content_type = await sql_adapter.create("content_type", _content_type("page"))
    now = utcnow()
    item = await sql_adapter.create(
        "content_item",
        {
            "content_type_id": content_type["id"],
            "slug": "home",
            "data": "{}",
            "created_at": now,
            "updated_at": now,
        },
    )

    updated = await sql_adapter.update("content_item", [eq("id", item["id"])], {"slug": "index"})
    joined = await sql_adapter.find_one(
        "content_item", [eq("id", item["id"])], join={"content_type": True}
    )

    assert updated["slug"] == "index"
    assert joined["content_type"]["slug"] == "page"
    assert await sql_adapter.update("content_item", [eq("id", "missing")], {"slug": "x"}) is None


async def test_delete_cascades(sql_adapter):
    content_type = await sql_adapter.create("content_type", _content_type("page"))
    now = utcnow()
    item = await sql_adapter.create(
        "content_item",
        {"content_type_id": content_type["id"], "slug": "home", "data": "{}", "created_at": now, "updated_at": now},
    )
    await sql_adapter.create(
        "content_relation",
        {"source_id": item["id"], "target_id": item["id"], "field_name": "links", "created_at": now},
    )

    await sql_adapter.delete("content_type", [eq("id", content_type["id"])])

    assert await sql_adapter.count("content_item") == 0
    assert await sql_adapter.count("content_relation") == 0


async def test_deleting_target_cascades_to_edges(sql_adapter):
    content_type = await sql_adapter.create("content_type", _content_type("page"))
    now = utcnow()
    source, target = [
        await sql_adapter.create(
            "content_item",
            {"content_type_id": content_type["id"], "slug": slug, "data": "{}", "created_at": now, "updated_at": now},
        )
        for slug in ("source", "target")
    ]
    await sql_adapter.create(
        "content_relation",
        {"source_id": source["id"], "target_id": target["id"], "field_name": "links", "created_at": now},
    )

    await sql_adapter.delete("content_item", [eq("id", target["id"])])

    assert await sql_adapter.count("content_relation") == 0
    assert await sql_adapter.find_one("content_item", [eq("id", source["id"])]) is not None


async def test_edge_to_missing_item_is_rejected(sql_adapter):
    content_type = await sql_adapter.create("content_type", _content_type("page"))
    now = utcnow()
    item = await sql_adapter.create(
        "content_item",
        {"content_type_id": content_type["id"], "slug": "home", "data": "{}", "created_at": now, "updated_at": now},
    )

    with pytest.raises(AdapterError):
        await sql_adapter.create(
            "content_relation",
            {"source_id": item["id"], "target_id": "elsewhere", "field_name": "links", "created_at": now},
        )


async def test_transaction_rolls_back(sql_adapter):
    async def work(tx):
        await tx.create("content_type", _content_type("page"))
        raise RuntimeError("abort")

    with pytest.raises(RuntimeError):
        await sql_adapter.transaction(work)

    assert await sql_adapter.count("content_type") == 0


async def test_transaction_commits(sql_adapter):
    async def work(tx):
        await tx.create("content_type", _content_type("one"))
        await tx.create("content_type", _content_type("two"))
        return await tx.count("content_type")

    assert await sql_adapter.transaction(work) == 2
    assert await sql_adapter.count("content_type") == 2


async def test_unknown_field_is_an_adapter_error(sql_adapter):
    with pytest.raises(AdapterError):
        await sql_adapter.find_many("content_type", [eq("nope", 1)])


async def test_store_over_sql(sql_store):
    category = await sql_store.create_item("category", "news", {"name": "News"})
    post = await sql_store.create_item(
        "post",
        "hello",
        {
            "title": "Hello",
            "categories": [{"id": category["id"]}, {"_new": True, "data": {"name": "Fresh"}}],
        },
    )
    for i in range(3):
        await sql_store.create_item("tag", f"t{i}", {"name": f"T{i}"})

    populated = await sql_store.get_populated("post", post["id"])
    page = await sql_store.list_items("tag", limit=2, offset=2)

    assert post["parsed_data"]["title"] == "Hello"
    assert len(populated["_relations"]["categories"]) == 2
    assert populated["_relations"]["tags"] == []
    assert page["total"] == 3
    assert len(page["items"]) == 1

    await sql_store.delete_item("post", post["id"])
    assert (await sql_store.list_items("post"))["total"] == 0
