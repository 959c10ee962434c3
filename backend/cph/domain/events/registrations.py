"""Event registrations: upsert, participant listing and snapshot fan-out."""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from cph.domain.common import now_iso
from cph.domain.events.models import EventRegistration, RegistrationUpdate
from cph.domain.exceptions import ValidationError
from cph.domain.users.directory import UserDirectory
from cph.domain.users.models import UserSnapshot
from cph.infra.docstore import Document, DocumentStore, MissingIndexError, Query
from cph.infra.schema import CollectionKey
from cph.infra.versioned import VersionedCollection
from cph.obs import metrics as obs_metrics
from cph.settings import Settings, settings

LOGGER = logging.getLogger(__name__)

SNAPSHOT_BATCH_SIZE = 400
DEFAULT_PAGE_SIZE = 200


def registration_id(event_slug: str, user_id: str) -> str:
	return f"{event_slug}_{user_id}"


def encode_cursor(created_at: str, doc_id: str) -> str:
	payload = {"t": created_at, "id": doc_id}
	return base64.urlsafe_b64encode(json.dumps(payload).encode()).decode()


def decode_cursor(value: str) -> tuple[str, str]:
	try:
		data = json.loads(base64.urlsafe_b64decode(value.encode()).decode())
		return str(data["t"]), str(data["id"])
	except (binascii.Error, UnicodeDecodeError, ValueError, KeyError, TypeError) as exc:
		raise ValidationError("Invalid cursor") from exc


def _row_key(doc: Document) -> tuple[str, str]:
	return (str(doc.data.get("createdAt") or ""), doc.id)


@dataclass(slots=True)
class RegistrationPage:
	rows: list[EventRegistration]
	has_more: bool
	next_cursor: Optional[str]


class RegistrationService:
	def __init__(self, store: DocumentStore, directory: UserDirectory, *, config: Optional[Settings] = None) -> None:
		self._config = config or settings
		self._store = store
		self._registrations = VersionedCollection.for_key(store, CollectionKey.EVENT_REGISTRATIONS, self._config)
		self._teammate_posts = VersionedCollection.for_key(store, CollectionKey.TEAMMATE_POSTS, self._config)
		self._directory = directory

	async def get_by_user(self, event_slug: str, user_id: str) -> Optional[EventRegistration]:
		doc = await self._registrations.get(registration_id(event_slug, user_id))
		return EventRegistration.from_document(doc) if doc else None

	async def upsert_registration(self, event_slug: str, user_id: str, update: RegistrationUpdate) -> EventRegistration:
		"""Idempotent upsert keyed by ``(event_slug, user_id)``.

		Fields missing from ``update`` keep their stored values, including the
		participation type. When an update sets the teammate preference without
		a participation type, or the record is new, the type follows the
		preference: ``team`` registers a TEAM, anything else an INDIVIDUAL.
		"""
		now = now_iso()
		doc_id = registration_id(event_slug, user_id)
		existing = await self._registrations.get(doc_id)
		prior: dict[str, Any] = dict(existing.data) if existing else {}
		changes = update.model_dump(by_alias=True, exclude_unset=True, exclude={"user_snapshot"})
		data = {**prior, **changes}

		# Re-derive only when the preference changed or nothing was stored yet
		if "participationType" not in changes and (
			"teammatePreference" in changes or "participationType" not in prior
		):
			data["participationType"] = "TEAM" if data.get("teammatePreference") == "team" else "INDIVIDUAL"
		if data["participationType"] != "TEAM":
			data["teamName"] = None
		else:
			data.setdefault("teamName", None)

		if update.user_snapshot is not None:
			data.update(update.user_snapshot.model_dump(by_alias=True))

		data.update(
			{
				"eventSlug": event_slug,
				"userId": user_id,
				"createdAt": data.get("createdAt") or now,
				"updatedAt": now,
			}
		)
		registration = EventRegistration.model_validate({**data, "id": doc_id})
		await self._registrations.set(doc_id, {**data, **registration.to_document()})
		obs_metrics.inc_registration_upserted(registration.participation_type)
		LOGGER.info(
			"event_registration_upserted",
			extra={"event_slug": event_slug, "user_id": user_id, "participation": registration.participation_type},
		)
		return registration

	async def update_registrations_user_snapshot(self, user_id: str, snapshot: UserSnapshot) -> int:
		"""Copy display fields onto every registration of ``user_id``.

		Writes are committed in batches of at most ``SNAPSHOT_BATCH_SIZE``. Each
		batch is atomic; a failing batch raises and leaves earlier ones applied.
		"""
		docs = await self._registrations.find_merged(Query().where("userId", "==", user_id))
		fields = snapshot.model_dump(by_alias=True)
		written = 0
		for offset in range(0, len(docs), SNAPSHOT_BATCH_SIZE):
			chunk = docs[offset : offset + SNAPSHOT_BATCH_SIZE]
			batch = self._store.batch()
			for doc in chunk:
				self._registrations.batch_set(batch, doc.id, {**doc.data, **fields})
			await batch.commit()
			written += len(chunk)
			obs_metrics.inc_snapshot_writes(len(chunk))
		LOGGER.info("registration_snapshots_updated", extra={"user_id": user_id, "count": written})
		return written

	async def _page_docs(self, event_slug: str, limit: int, after: Optional[tuple[str, str]]) -> list[Document]:
		query = Query().where("eventSlug", "==", event_slug).order("createdAt", "asc").take(limit + 1)
		if after is not None:
			query = query.after(*after)
		try:
			return await self._registrations.find_merged(query)
		except MissingIndexError as exc:
			ceiling = self._config.registrations_scan_ceiling
			LOGGER.warning(
				"registrations_index_missing",
				extra={"event_slug": event_slug, "detail": str(exc), "ceiling": ceiling},
			)
			obs_metrics.inc_degraded_scan(CollectionKey.EVENT_REGISTRATIONS.value)
			return await self._registrations.scan_merged(Query().where("eventSlug", "==", event_slug), ceiling)

	async def get_registrations_page(
		self,
		event_slug: str,
		*,
		limit: int = DEFAULT_PAGE_SIZE,
		cursor: Optional[str] = None,
	) -> RegistrationPage:
		"""Registrations by ``createdAt`` ascending with the document id as tiebreak."""
		if limit <= 0:
			raise ValidationError("limit must be a positive number")
		after = decode_cursor(cursor) if cursor else None
		docs = sorted(await self._page_docs(event_slug, limit, after), key=_row_key)
		if after is not None:
			docs = [doc for doc in docs if _row_key(doc) > after]
		page = docs[:limit]
		has_more = len(docs) > limit
		next_cursor = encode_cursor(*_row_key(page[-1])) if has_more and page else None
		return RegistrationPage(
			rows=[EventRegistration.from_document(doc) for doc in page],
			has_more=has_more,
			next_cursor=next_cursor,
		)

	async def list_participants(
		self,
		event_slug: str,
		*,
		limit: int = DEFAULT_PAGE_SIZE,
		cursor: Optional[str] = None,
	) -> dict[str, Any]:
		page = await self.get_registrations_page(event_slug, limit=limit, cursor=cursor)
		missing = list(dict.fromkeys(row.user_id for row in page.rows if not row.has_snapshot()))
		users = await asyncio.gather(*(self._directory.get_user_by_id(user_id) for user_id in missing))
		resolved = {user.id: user for user in users if user is not None}

		participants = []
		for row in page.rows:
			user = resolved.get(row.user_id)
			participants.append(
				{
					"userId": row.user_id or row.id,
					"userName": (user.name if user else row.user_name) or "",
					"username": (user.username if user else row.user_username) or "",
					"avatarUrl": user.avatar_url if user else row.user_avatar_url,
					"bio": user.bio if user else row.user_bio,
					"participationType": row.participation_type,
					"teamName": row.team_name,
					"projectName": row.project_name or "",
					"skills": row.skills,
					"teammatePreference": row.teammate_preference,
				}
			)
		return {"participants": participants, "hasMore": page.has_more, "nextCursor": page.next_cursor}

	async def get_event_stats(self, event_slug: str) -> dict[str, int]:
		by_event = Query().where("eventSlug", "==", event_slug)
		registrations, posts, teams, individuals = await asyncio.gather(
			self._registrations.count(by_event),
			self._teammate_posts.count(by_event),
			self._registrations.count(by_event.where("participationType", "==", "TEAM")),
			self._registrations.count(by_event.where("participationType", "==", "INDIVIDUAL")),
		)
		return {
			"registrations": registrations,
			"teammatePosts": posts,
			"teams": teams,
			"individuals": individuals,
		}


__all__ = [
	"RegistrationPage",
	"RegistrationService",
	"SNAPSHOT_BATCH_SIZE",
	"decode_cursor",
	"encode_cursor",
	"registration_id",
]
