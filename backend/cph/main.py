"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cph import __version__
from cph.api import applications, events, feed, ops, profile
from cph.api.errors import install_error_handlers
from cph.infra.docstore import build_document_store
from cph.obs import init as obs_init
from cph.settings import settings

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	store = getattr(app.state, "docstore", None)
	owned = store is None
	if owned:
		store = await build_document_store(settings)
		app.state.docstore = store
	LOGGER.info(
		"startup_complete",
		extra={"schema_version": settings.schema_version, "legacy_fallback": settings.legacy_fallback},
	)
	try:
		yield
	finally:
		if owned:
			await store.close()
			app.state.docstore = None


app = FastAPI(title="Catholic Product Hunt API", version=__version__, lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins:
	allow_origins = ["http://localhost:3000"] if settings.is_dev() else []
# Starlette disallows wildcard '*' with allow_credentials=True
if "*" in allow_origins:
	allow_origins = ["http://localhost:3000", "http://127.0.0.1:3000"] if settings.is_dev() else []

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

obs_init(app)

app.include_router(feed.router)
app.include_router(events.router)
app.include_router(applications.router)
app.include_router(profile.router)
app.include_router(ops.router)
