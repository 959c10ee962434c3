"""Operator-facing messages for document store failures."""

from __future__ import annotations


def backend_error_message(error: BaseException | str | None) -> str:
	raw = str(error) if error is not None else "Unknown backend error"
	lowered = raw.lower()

	if "connection refused" in lowered or "could not connect" in lowered or "connectionrefused" in lowered:
		return "Database is unreachable. Check POSTGRES_URL and that Postgres is running, then retry."

	if "password authentication failed" in lowered or "invalidpassword" in lowered or "invalidauthorization" in lowered:
		return "Database credentials are invalid. Verify the user and password in POSTGRES_URL."

	if "does not exist" in lowered or "invalidcatalogname" in lowered or "undefinedtable" in lowered:
		return "Database is not initialised. Create the database and run with DOCSTORE_AUTO_MIGRATE enabled."

	if "permission" in lowered or "insufficientprivilege" in lowered:
		return "Database permission denied. Check the grants of the configured database role."

	if "docstore_not_initialised" in lowered or "postgres_url" in lowered:
		return "Document store is not configured. Set DOCSTORE_BACKEND and POSTGRES_URL."

	return "Backend is currently unavailable. Please check the database configuration and try again."


__all__ = ["backend_error_message"]
