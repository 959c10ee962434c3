"""Teammate board posts for an event."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, Optional

from cph.domain.common import now_iso
from cph.domain.events.models import ParticipationType, TeammatePost
from cph.domain.exceptions import ForbiddenError, NotFoundError, ValidationError
from cph.domain.users.directory import UserDirectory
from cph.infra.docstore import DocumentStore, Query
from cph.infra.schema import CollectionKey
from cph.infra.versioned import VersionedCollection
from cph.settings import Settings

LOGGER = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 30


def _clean_tags(values: Iterable[str]) -> list[str]:
	cleaned = [value.strip() for value in values if value and value.strip()]
	if not cleaned:
		raise ValidationError("Add at least one role you are looking for")
	return cleaned


class TeammatePostService:
	def __init__(self, store: DocumentStore, directory: UserDirectory, *, config: Optional[Settings] = None) -> None:
		self._store = store
		self._posts = VersionedCollection.for_key(store, CollectionKey.TEAMMATE_POSTS, config)
		self._directory = directory

	async def create_post(
		self,
		event_slug: str,
		user_id: str,
		participation_type: ParticipationType,
		looking_for: Iterable[str],
		message: str,
	) -> TeammatePost:
		post = TeammatePost(
			id=self._store.new_id(),
			event_slug=event_slug,
			user_id=user_id,
			participation_type=participation_type,
			looking_for=_clean_tags(looking_for),
			message=message.strip(),
			created_at=now_iso(),
		)
		await self._posts.set(post.id, post.to_document())
		LOGGER.info("teammate_post_created", extra={"event_slug": event_slug, "user_id": user_id})
		return post

	async def update_post(
		self,
		post_id: str,
		user_id: str,
		participation_type: ParticipationType,
		looking_for: Iterable[str],
		message: str,
	) -> TeammatePost:
		doc = await self._posts.get(post_id)
		if doc is None:
			raise NotFoundError("Post not found")
		post = TeammatePost.from_document(doc)
		if post.user_id != user_id:
			raise ForbiddenError("You can only edit your own post")
		updated = post.model_copy(
			update={
				"participation_type": participation_type,
				"looking_for": _clean_tags(looking_for),
				"message": message.strip(),
				"updated_at": now_iso(),
			}
		)
		await self._posts.set(post_id, {**doc.data, **updated.to_document()})
		return updated

	async def list_posts(self, event_slug: str, limit: int = DEFAULT_LIST_LIMIT) -> list[dict[str, Any]]:
		"""Newest first, each post joined with its author's public fields."""
		query = Query().where("eventSlug", "==", event_slug).order("createdAt", "desc").take(limit)
		docs = await self._posts.find_merged(query)
		docs.sort(key=lambda doc: (str(doc.data.get("createdAt") or ""), doc.id), reverse=True)
		posts = [TeammatePost.from_document(doc) for doc in docs[:limit]]

		author_ids = list(dict.fromkeys(post.user_id for post in posts))
		authors = await asyncio.gather(*(self._directory.get_user_by_id(uid) for uid in author_ids))
		by_id = {
			author.id: {"id": author.id, "name": author.name, "username": author.username, "avatarUrl": author.avatar_url}
			for author in authors
			if author is not None
		}
		return [{**post.to_api(), "user": by_id.get(post.user_id)} for post in posts]


__all__ = ["DEFAULT_LIST_LIMIT", "TeammatePostService"]
