"""asyncpg-backed document store keeping every collection in one JSONB table."""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import re
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Optional

import asyncpg

from cph.infra.docstore.base import Document, DocumentStore, Query, WriteBatch
from cph.infra.docstore.errors import BackendUnavailableError

LOGGER = logging.getLogger(__name__)

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")
_COLLECTION_RE = re.compile(r"^[A-Za-z0-9_]+$")

_COMPARISON_SQL = {"==": "=", "<": "<", "<=": "<=", ">": ">", ">=": ">="}

_UNAVAILABLE_ERRORS: tuple[type[BaseException], ...] = (
	OSError,
	asyncio.TimeoutError,
	asyncpg.exceptions.PostgresConnectionError,
	asyncpg.exceptions.InvalidPasswordError,
	asyncpg.exceptions.InvalidAuthorizationSpecificationError,
	asyncpg.exceptions.InsufficientPrivilegeError,
	asyncpg.exceptions.CannotConnectNowError,
	asyncpg.exceptions.TooManyConnectionsError,
	asyncpg.exceptions.InvalidCatalogNameError,
	asyncpg.exceptions.UndefinedTableError,
	asyncpg.exceptions.InterfaceError,
)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS documents (
	collection TEXT NOT NULL,
	id TEXT NOT NULL,
	data JSONB NOT NULL DEFAULT '{}'::jsonb,
	updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
	PRIMARY KEY (collection, id)
);
CREATE INDEX IF NOT EXISTS documents_data_gin ON documents USING GIN (data jsonb_path_ops);
"""


def _field_expr(path: str) -> str:
	if not _FIELD_RE.match(path):
		raise ValueError(f"invalid field path: {path!r}")
	return "data #> '{%s}'" % ",".join(path.split("."))


def _check_collection(name: str) -> str:
	if not _COLLECTION_RE.match(name):
		raise ValueError(f"invalid collection name: {name!r}")
	return name


def index_ddl(collection: str, fields: tuple[str, ...]) -> str:
	"""DDL for a declared composite index as a partial expression index."""
	_check_collection(collection)
	digest = hashlib.sha1(f"{collection}:{','.join(fields)}".encode()).hexdigest()[:16]
	columns = ", ".join(f"({_field_expr(name)})" for name in fields)
	return (
		f"CREATE INDEX IF NOT EXISTS documents_idx_{digest} "
		f"ON documents ({columns}, id) WHERE collection = '{collection}'"
	)


def compile_query(collection: str, query: Query, *, count: bool = False) -> tuple[str, list[Any]]:
	"""Translate a :class:`Query` into SQL plus positional arguments."""
	args: list[Any] = [_check_collection(collection)]
	clauses = ["collection = $1"]

	def _bind(value: Any) -> str:
		args.append(value)
		return f"${len(args)}"

	for flt in query.filters:
		expr = _field_expr(flt.field)
		if flt.op == "array_contains":
			clauses.append(f"{expr} @> {_bind(json.dumps([flt.value]))}::jsonb")
			continue
		placeholder = _bind(json.dumps(flt.value))
		clauses.append(f"{expr} {_COMPARISON_SQL[flt.op]} {placeholder}::jsonb")
		if flt.op != "==":
			clauses.append(f"jsonb_typeof({expr}) = jsonb_typeof({placeholder}::jsonb)")

	if count:
		return f"SELECT count(*) FROM documents WHERE {' AND '.join(clauses)}", args

	order_terms: list[tuple[str, str]] = [(_field_expr(name), direction) for name, direction in query.order_by]
	for expr, _ in order_terms:
		clauses.append(f"{expr} IS NOT NULL")
	id_direction = order_terms[-1][1] if order_terms else "asc"
	keys = order_terms + [("id", id_direction)]

	if query.start_after is not None:
		alternatives: list[str] = []
		for position, (expr, direction) in enumerate(keys):
			parts: list[str] = []
			for prev_position in range(position):
				prev_expr = keys[prev_position][0]
				prev_value = query.start_after[prev_position]
				if prev_expr == "id":
					parts.append(f"id = {_bind(prev_value)}")
				else:
					parts.append(f"{prev_expr} = {_bind(json.dumps(prev_value))}::jsonb")
			op = ">" if direction == "asc" else "<"
			value = query.start_after[position]
			if expr == "id":
				parts.append(f"id {op} {_bind(value)}")
			else:
				parts.append(f"{expr} {op} {_bind(json.dumps(value))}::jsonb")
			alternatives.append("(" + " AND ".join(parts) + ")")
		clauses.append("(" + " OR ".join(alternatives) + ")")

	sql = f"SELECT id, data FROM documents WHERE {' AND '.join(clauses)}"
	sql += " ORDER BY " + ", ".join(f"{expr} {direction.upper()}" for expr, direction in keys)
	if query.limit is not None:
		sql += f" LIMIT {int(query.limit)}"
	return sql, args


def _upsert_sql(merge: bool) -> str:
	update = "documents.data || EXCLUDED.data" if merge else "EXCLUDED.data"
	return (
		"INSERT INTO documents (collection, id, data) VALUES ($1, $2, $3::jsonb) "
		f"ON CONFLICT (collection, id) DO UPDATE SET data = {update}, updated_at = NOW()"
	)


_DELETE_SQL = "DELETE FROM documents WHERE collection = $1 AND id = $2"


@contextmanager
def _translate_errors() -> Iterator[None]:
	try:
		yield
	except _UNAVAILABLE_ERRORS as exc:
		raise BackendUnavailableError(f"{type(exc).__name__}: {exc}") from exc


def _load(raw: Any) -> dict[str, Any]:
	if isinstance(raw, str):
		return json.loads(raw)
	return dict(raw or {})


class _PostgresBatch(WriteBatch):
	def __init__(self, pool: asyncpg.pool.Pool) -> None:
		super().__init__()
		self._pool = pool

	async def commit(self) -> None:
		if not self._ops:
			return
		with _translate_errors():
			async with self._pool.acquire() as conn:
				async with conn.transaction():
					for op, collection, doc_id, data, merge in self._ops:
						if op == "set":
							await conn.execute(_upsert_sql(merge), _check_collection(collection), doc_id, json.dumps(data))
						else:
							await conn.execute(_DELETE_SQL, _check_collection(collection), doc_id)
		self._ops.clear()


class PostgresDocumentStore(DocumentStore):
	"""Document store over a single ``documents`` table (JSONB payloads)."""

	def __init__(self, pool: asyncpg.pool.Pool, composite_indexes: Iterable[str] = ()) -> None:
		super().__init__(composite_indexes)
		self._pool = pool

	@classmethod
	async def connect(
		cls,
		dsn: str,
		*,
		min_size: int = 1,
		max_size: int = 10,
		ssl: bool = False,
		composite_indexes: Iterable[str] = (),
	) -> "PostgresDocumentStore":
		# Force 127.0.0.1 instead of localhost to avoid IPv6 resolution issues
		dsn = dsn.replace("@localhost", "@127.0.0.1")
		with _translate_errors():
			pool = await asyncpg.create_pool(
				dsn=dsn,
				min_size=min_size,
				max_size=max_size,
				ssl="require" if ssl else "disable",
			)
		return cls(pool, composite_indexes)

	async def ensure_schema(self) -> None:
		"""Create the documents table and every declared composite index."""
		with _translate_errors():
			async with self._pool.acquire() as conn:
				await conn.execute(SCHEMA_SQL)
				for collection, index_set in self.declared_indexes().items():
					for fields in sorted(index_set):
						await conn.execute(index_ddl(collection, fields))
		LOGGER.info("docstore_schema_ready", extra={"indexes": sum(len(v) for v in self.declared_indexes().values())})

	async def get(self, collection: str, doc_id: str) -> Optional[Document]:
		with _translate_errors():
			async with self._pool.acquire() as conn:
				record = await conn.fetchrow(
					"SELECT id, data FROM documents WHERE collection = $1 AND id = $2",
					_check_collection(collection),
					doc_id,
				)
		if record is None:
			return None
		return Document(id=record["id"], data=_load(record["data"]))

	async def query(self, collection: str, query: Query) -> list[Document]:
		self._check_index(collection, query)
		sql, args = compile_query(collection, query)
		with _translate_errors():
			async with self._pool.acquire() as conn:
				records = await conn.fetch(sql, *args)
		return [Document(id=record["id"], data=_load(record["data"])) for record in records]

	async def count(self, collection: str, query: Optional[Query] = None) -> int:
		sql, args = compile_query(collection, (query or Query()).unordered(), count=True)
		with _translate_errors():
			async with self._pool.acquire() as conn:
				value = await conn.fetchval(sql, *args)
		return int(value or 0)

	async def set(self, collection: str, doc_id: str, data: dict[str, Any], *, merge: bool = False) -> None:
		with _translate_errors():
			async with self._pool.acquire() as conn:
				await conn.execute(_upsert_sql(merge), _check_collection(collection), doc_id, json.dumps(data))

	async def delete(self, collection: str, doc_id: str) -> None:
		with _translate_errors():
			async with self._pool.acquire() as conn:
				await conn.execute(_DELETE_SQL, _check_collection(collection), doc_id)

	def batch(self) -> WriteBatch:
		return _PostgresBatch(self._pool)

	async def ping(self) -> None:
		with _translate_errors():
			async with self._pool.acquire() as conn:
				await conn.execute("SELECT 1")

	async def close(self) -> None:
		await self._pool.close()


__all__ = ["PostgresDocumentStore", "compile_query", "index_ddl"]
