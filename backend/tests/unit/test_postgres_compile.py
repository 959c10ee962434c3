from __future__ import annotations

import pytest

from cph.infra.docstore import Query
from cph.infra.docstore.postgres import compile_query, index_ddl


def test_equality_and_array_contains():
    query = Query().where("eventSlug", "==", "lent").where("memberEmails", "array_contains", "a@x.com").take(1)
    sql, args = compile_query("cph_v1_eventApplications", query)
    assert sql == (
        "SELECT id, data FROM documents WHERE collection = $1 "
        "AND data #> '{eventSlug}' = $2::jsonb "
        "AND data #> '{memberEmails}' @> $3::jsonb "
        "ORDER BY id ASC LIMIT 1"
    )
    assert args == ["cph_v1_eventApplications", '"lent"', '["a@x.com"]']


def test_range_filters_are_type_guarded():
    sql, args = compile_query("launches", Query().where("upvotes", ">=", 3))
    assert "data #> '{upvotes}' >= $2::jsonb" in sql
    assert "jsonb_typeof(data #> '{upvotes}') = jsonb_typeof($2::jsonb)" in sql
    assert args[1] == "3"


def test_order_with_cursor():
    query = Query().where("status", "==", "LIVE").order("launchDate", "desc").after("2026-02-01", "l9").take(5)
    sql, args = compile_query("launches", query)
    assert "data #> '{launchDate}' IS NOT NULL" in sql
    assert "((data #> '{launchDate}' < $3::jsonb) OR (data #> '{launchDate}' = $4::jsonb AND id < $5))" in sql
    assert sql.endswith("ORDER BY data #> '{launchDate}' DESC, id DESC LIMIT 5")
    assert args == ["launches", '"LIVE"', '"2026-02-01"', '"2026-02-01"', "l9"]


def test_count_mode_ignores_ordering():
    sql, _ = compile_query("users", Query().where("email", "==", "a@x.com").order("email"), count=True)
    assert sql == "SELECT count(*) FROM documents WHERE collection = $1 AND data #> '{email}' = $2::jsonb"


def test_nested_field_paths():
    sql, _ = compile_query("users", Query().where("profile.city", "==", "Rome"))
    assert "data #> '{profile,city}'" in sql


@pytest.mark.parametrize("bad", ["users; drop", "a-b"])
def test_rejects_unsafe_collection_names(bad):
    with pytest.raises(ValueError):
        compile_query(bad, Query())


def test_rejects_unsafe_field_paths():
    with pytest.raises(ValueError):
        compile_query("users", Query().where("a'--", "==", 1))


def test_index_ddl_is_stable_and_scoped():
    ddl = index_ddl("eventRegistrations", ("eventSlug", "createdAt"))
    assert ddl == index_ddl("eventRegistrations", ("eventSlug", "createdAt"))
    assert ddl.startswith("CREATE INDEX IF NOT EXISTS documents_idx_")
    assert "(data #> '{eventSlug}'), (data #> '{createdAt}'), id" in ddl
    assert ddl.endswith("WHERE collection = 'eventRegistrations'")
