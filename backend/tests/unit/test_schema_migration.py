from __future__ import annotations

import pytest

from cph.infra.docstore import InMemoryDocumentStore
from cph.infra.schema import SCHEMA_META_COLLECTION, SCHEMA_META_DOC, CollectionKey, SchemaVersion
from cph.maintenance import schema_migration

VERSION = SchemaVersion("v1")


@pytest.mark.asyncio
async def test_copy_collection_pages_through_everything():
    store = InMemoryDocumentStore()
    for index in range(7):
        await store.set("users", f"u{index}", {"email": f"u{index}@x.com"})

    copied = await schema_migration.copy_collection(store, "users", "cph_v1_users", page_size=3)
    assert copied == 7
    assert await store.count("cph_v1_users") == 7


@pytest.mark.asyncio
async def test_migrate_merges_into_existing_versioned_docs():
    store = InMemoryDocumentStore()
    await store.set("users", "u1", {"email": "old@x.com", "bio": "legacy bio"})
    await store.set("cph_v1_users", "u1", {"email": "new@x.com"})
    await store.set("eventRegistrations", "lent_u1", {"eventSlug": "lent"})

    reports = await schema_migration.migrate(store, VERSION)
    by_key = {report.key: report for report in reports}
    assert len(reports) == len(CollectionKey)
    assert by_key["users"].copied == 1
    assert by_key["users"].versioned_count == 1
    assert by_key["eventRegistrations"].versioned_collection == "cph_v1_eventRegistrations"
    assert by_key["launches"].copied == 0

    merged = await store.get("cph_v1_users", "u1")
    assert merged.data == {"email": "old@x.com", "bio": "legacy bio"}

    meta = await store.get(SCHEMA_META_COLLECTION, SCHEMA_META_DOC)
    assert meta.data["activeVersion"] == "v1"
    assert meta.data["activeNamespace"] == "cph_v1"
    assert meta.data["collections"][0]["key"] == reports[0].key


@pytest.mark.asyncio
async def test_status_reports_counts_and_meta():
    store = InMemoryDocumentStore()
    await store.set("users", "u1", {})
    reports, meta = await schema_migration.status(store, VERSION, keys=[CollectionKey.USERS])
    assert [(r.legacy_count, r.versioned_count) for r in reports] == [(1, 0)]
    assert meta is None


@pytest.mark.asyncio
async def test_resets_only_touch_their_generation():
    store = InMemoryDocumentStore()
    for index in range(5):
        await store.set("users", f"u{index}", {})
        await store.set("cph_v1_users", f"u{index}", {})

    deleted = await schema_migration.reset_legacy(store, VERSION)
    assert deleted["users"] == 5
    assert await store.count("users") == 0
    assert await store.count("cph_v1_users") == 5

    deleted = await schema_migration.reset_versioned(store, VERSION)
    assert deleted["cph_v1_users"] == 5
    assert await store.count("cph_v1_users") == 0
    meta = await store.get(SCHEMA_META_COLLECTION, SCHEMA_META_DOC)
    assert "resetAt" in meta.data
