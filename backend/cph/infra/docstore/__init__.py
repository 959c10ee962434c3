"""Document store package: contract, in-memory and Postgres backends."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cph.infra.docstore.base import (
	Direction,
	Document,
	DocumentStore,
	FieldFilter,
	FilterOp,
	Query,
	WriteBatch,
	parse_index_declarations,
)
from cph.infra.docstore.errors import BackendUnavailableError, DocumentStoreError, MissingIndexError
from cph.infra.docstore.memory import InMemoryDocumentStore

if TYPE_CHECKING:  # pragma: no cover
	from cph.settings import Settings

LOGGER = logging.getLogger(__name__)


async def build_document_store(config: "Settings") -> DocumentStore:
	"""Construct the configured backend; called once from the app lifespan."""
	from cph.infra.schema import SchemaVersion, expand_index_declarations

	version = SchemaVersion(config.schema_version)
	indexes = expand_index_declarations(config.docstore_composite_indexes, version)
	backend = config.docstore_backend.strip().lower()
	if backend == "memory":
		LOGGER.info("docstore_backend_selected", extra={"backend": "memory"})
		return InMemoryDocumentStore(indexes)
	if backend != "postgres":
		raise ValueError(f"unknown DOCSTORE_BACKEND: {config.docstore_backend}")

	from cph.infra.docstore.postgres import PostgresDocumentStore

	store = await PostgresDocumentStore.connect(
		config.postgres_url,
		min_size=config.postgres_min_pool_size,
		max_size=config.postgres_max_pool_size,
		ssl=config.postgres_ssl,
		composite_indexes=indexes,
	)
	if config.docstore_auto_migrate:
		await store.ensure_schema()
	LOGGER.info("docstore_backend_selected", extra={"backend": "postgres"})
	return store


__all__ = [
	"BackendUnavailableError",
	"Direction",
	"Document",
	"DocumentStore",
	"DocumentStoreError",
	"FieldFilter",
	"FilterOp",
	"InMemoryDocumentStore",
	"MissingIndexError",
	"Query",
	"WriteBatch",
	"build_document_store",
	"parse_index_declarations",
]
