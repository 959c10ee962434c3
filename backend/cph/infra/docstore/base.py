"""Backend-neutral document store contract.

Documents are JSON objects addressed by ``(collection, id)``. Queries support
equality, range and array-contains filters, ordering with ``start_after``
cursors, limits and count aggregation. Ordered queries that filter on another
field need a declared composite index; backends raise
:class:`~cph.infra.docstore.errors.MissingIndexError` otherwise.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Literal, Optional
from uuid import uuid4

from cph.infra.docstore.errors import MissingIndexError

FilterOp = Literal["==", "<", "<=", ">", ">=", "array_contains"]
Direction = Literal["asc", "desc"]

_FILTER_OPS = frozenset({"==", "<", "<=", ">", ">=", "array_contains"})


@dataclass(slots=True, frozen=True)
class Document:
	id: str
	data: dict[str, Any]


@dataclass(slots=True, frozen=True)
class FieldFilter:
	field: str
	op: FilterOp
	value: Any


@dataclass(slots=True, frozen=True)
class Query:
	"""Immutable query description; builder methods return new instances.

	``start_after`` holds the values of the ``order_by`` fields followed by the
	document id of the last row already seen. Documents are always ordered by
	id after the declared fields, so a cursor is unambiguous.
	"""

	filters: tuple[FieldFilter, ...] = ()
	order_by: tuple[tuple[str, Direction], ...] = ()
	limit: Optional[int] = None
	start_after: Optional[tuple[Any, ...]] = None

	def where(self, field_name: str, op: FilterOp, value: Any) -> "Query":
		if op not in _FILTER_OPS:
			raise ValueError(f"unsupported filter op: {op}")
		return replace(self, filters=self.filters + (FieldFilter(field_name, op, value),))

	def order(self, field_name: str, direction: Direction = "asc") -> "Query":
		return replace(self, order_by=self.order_by + ((field_name, direction),))

	def take(self, limit: Optional[int]) -> "Query":
		if limit is not None and limit < 0:
			raise ValueError("limit must be >= 0")
		return replace(self, limit=limit)

	def after(self, *values: Any) -> "Query":
		if len(values) != len(self.order_by) + 1:
			raise ValueError("cursor must carry one value per order field plus the document id")
		return replace(self, start_after=tuple(values))

	def unordered(self) -> "Query":
		"""Drop ordering, cursor and limit (used by unindexed scan fallbacks)."""
		return replace(self, order_by=(), start_after=None, limit=None)

	def required_index(self) -> Optional[tuple[str, ...]]:
		"""Return the composite index fields this query needs, if any."""
		if not self.order_by:
			return None
		filter_fields = tuple(dict.fromkeys(f.field for f in self.filters))
		order_fields = tuple(name for name, _ in self.order_by)
		if not filter_fields or set(filter_fields) <= set(order_fields[:1]):
			return None
		return filter_fields + order_fields


def parse_index_declarations(declarations: Iterable[str]) -> dict[str, set[tuple[str, ...]]]:
	"""Parse ``"collection:field,field"`` declarations into a lookup table."""
	indexes: dict[str, set[tuple[str, ...]]] = {}
	for raw in declarations:
		collection, _, fields = raw.partition(":")
		names = tuple(part.strip() for part in fields.split(",") if part.strip())
		if not collection.strip() or not names:
			raise ValueError(f"invalid index declaration: {raw!r}")
		indexes.setdefault(collection.strip(), set()).add(names)
	return indexes


class WriteBatch(abc.ABC):
	"""Collects writes and applies them atomically on :meth:`commit`."""

	def __init__(self) -> None:
		self._ops: list[tuple[str, str, str, Optional[dict[str, Any]], bool]] = []

	def set(self, collection: str, doc_id: str, data: dict[str, Any], *, merge: bool = False) -> "WriteBatch":
		self._ops.append(("set", collection, doc_id, dict(data), merge))
		return self

	def delete(self, collection: str, doc_id: str) -> "WriteBatch":
		self._ops.append(("delete", collection, doc_id, None, False))
		return self

	def __len__(self) -> int:
		return len(self._ops)

	@abc.abstractmethod
	async def commit(self) -> None:
		...


class DocumentStore(abc.ABC):
	"""Async document store used by the domain services."""

	def __init__(self, composite_indexes: Iterable[str] = ()) -> None:
		self._indexes = parse_index_declarations(composite_indexes)

	@staticmethod
	def new_id() -> str:
		return uuid4().hex

	def has_index(self, collection: str, fields: tuple[str, ...]) -> bool:
		return fields in self._indexes.get(collection, set())

	def declared_indexes(self) -> dict[str, set[tuple[str, ...]]]:
		return {name: set(fields) for name, fields in self._indexes.items()}

	def _check_index(self, collection: str, query: Query) -> None:
		needed = query.required_index()
		if needed is not None and not self.has_index(collection, needed):
			raise MissingIndexError(collection, needed)

	@abc.abstractmethod
	async def get(self, collection: str, doc_id: str) -> Optional[Document]:
		...

	@abc.abstractmethod
	async def query(self, collection: str, query: Query) -> list[Document]:
		...

	@abc.abstractmethod
	async def count(self, collection: str, query: Optional[Query] = None) -> int:
		...

	@abc.abstractmethod
	async def set(self, collection: str, doc_id: str, data: dict[str, Any], *, merge: bool = False) -> None:
		...

	@abc.abstractmethod
	async def delete(self, collection: str, doc_id: str) -> None:
		...

	@abc.abstractmethod
	def batch(self) -> WriteBatch:
		...

	@abc.abstractmethod
	async def ping(self) -> None:
		...

	async def close(self) -> None:
		return None


__all__ = [
	"Direction",
	"Document",
	"DocumentStore",
	"FieldFilter",
	"FilterOp",
	"Query",
	"WriteBatch",
	"parse_index_declarations",
]
