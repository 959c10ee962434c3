"""FastAPI dependencies wiring request handlers to the app's document store."""

from __future__ import annotations

from fastapi import Depends, Request

from cph.domain.events.applications import EventApplicationManager
from cph.domain.events.registrations import RegistrationService
from cph.domain.events.teammates import TeammatePostService
from cph.domain.ranking.feed import FeedService
from cph.domain.users.directory import UserDirectory
from cph.infra.docstore import BackendUnavailableError, DocumentStore


def get_docstore(request: Request) -> DocumentStore:
	store = getattr(request.app.state, "docstore", None)
	if store is None:
		raise BackendUnavailableError("docstore_not_initialised")
	return store


def get_directory(store: DocumentStore = Depends(get_docstore)) -> UserDirectory:
	return UserDirectory(store)


def get_application_manager(
	store: DocumentStore = Depends(get_docstore),
	directory: UserDirectory = Depends(get_directory),
) -> EventApplicationManager:
	return EventApplicationManager(store, directory)


def get_registration_service(
	store: DocumentStore = Depends(get_docstore),
	directory: UserDirectory = Depends(get_directory),
) -> RegistrationService:
	return RegistrationService(store, directory)


def get_teammate_service(
	store: DocumentStore = Depends(get_docstore),
	directory: UserDirectory = Depends(get_directory),
) -> TeammatePostService:
	return TeammatePostService(store, directory)


def get_feed_service(store: DocumentStore = Depends(get_docstore)) -> FeedService:
	return FeedService(store)


__all__ = [
	"get_application_manager",
	"get_directory",
	"get_docstore",
	"get_feed_service",
	"get_registration_service",
	"get_teammate_service",
]
