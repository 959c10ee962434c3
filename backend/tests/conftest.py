import sys
from pathlib import Path
from typing import Any, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from cph.infra.docstore import InMemoryDocumentStore
from cph.infra.schema import CollectionKey, SchemaVersion, expand_index_declarations
from cph.main import app
from cph.settings import DEFAULT_COMPOSITE_INDEXES, settings

VERSION = SchemaVersion("v1")


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Ensure a consistent test environment.

	API tests authenticate via X-User-Id/X-User-Email headers, which are only
	accepted in dev mode.
	"""
	original = (settings.environment, settings.legacy_fallback, settings.schema_version)
	settings.environment = "dev"
	settings.legacy_fallback = True
	settings.schema_version = VERSION.tag
	try:
		yield
	finally:
		settings.environment, settings.legacy_fallback, settings.schema_version = original


@pytest.fixture
def docstore() -> InMemoryDocumentStore:
	return InMemoryDocumentStore(expand_index_declarations(DEFAULT_COMPOSITE_INDEXES, VERSION))


class Seeder:
	"""Writes fixture documents straight into the store."""

	def __init__(self, store: InMemoryDocumentStore) -> None:
		self.store = store

	def collection(self, key: CollectionKey, *, legacy: bool = False) -> str:
		return VERSION.legacy_name(key) if legacy else VERSION.versioned_name(key)

	async def user(
		self,
		user_id: str,
		email: str,
		*,
		username: Optional[str] = None,
		name: str = "Test User",
		experience: Optional[str] = None,
		github_url: Optional[str] = None,
		legacy: bool = False,
		**extra: Any,
	) -> None:
		data = {
			"email": email.lower(),
			"username": (username or user_id).lower(),
			"name": name,
			"bio": None,
			"avatarUrl": None,
			"role": "USER",
			"experience": experience,
			"githubUrl": github_url,
			"createdAt": "2026-01-01T00:00:00.000Z",
			"updatedAt": "2026-01-01T00:00:00.000Z",
			**extra,
		}
		await self.store.set(self.collection(CollectionKey.USERS, legacy=legacy), user_id, data)

	async def complete_user(self, user_id: str, email: str, **kwargs: Any) -> None:
		await self.user(
			user_id,
			email,
			experience="Ten years shipping parish software",
			github_url="https://github.com/" + user_id,
			**kwargs,
		)

	async def registration(
		self,
		event_slug: str,
		user_id: str,
		*,
		created_at: str = "2026-02-18T10:00:00.000Z",
		legacy: bool = False,
		**extra: Any,
	) -> str:
		doc_id = f"{event_slug}_{user_id}"
		data = {
			"eventSlug": event_slug,
			"userId": user_id,
			"participationType": "INDIVIDUAL",
			"teamName": None,
			"projectName": "",
			"skills": [],
			"bio": "",
			"createdAt": created_at,
			"updatedAt": created_at,
			**extra,
		}
		await self.store.set(self.collection(CollectionKey.EVENT_REGISTRATIONS, legacy=legacy), doc_id, data)
		return doc_id


@pytest.fixture
def seed(docstore) -> Seeder:
	return Seeder(docstore)


@pytest_asyncio.fixture
async def api_client(docstore):
	app.state.docstore = docstore
	transport = ASGITransport(app=app)
	try:
		async with AsyncClient(transport=transport, base_url="http://testserver") as client:
			yield client
	finally:
		app.state.docstore = None
