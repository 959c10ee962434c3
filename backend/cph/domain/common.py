"""Shared helpers for document-backed domain models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from cph.infra.docstore import Document

ModelT = TypeVar("ModelT", bound="CamelModel")


def now_iso() -> str:
	"""UTC timestamp in the millisecond ``...Z`` form stored on documents."""
	return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_instant(value: Any) -> Optional[datetime]:
	"""Parse a stored timestamp; returns ``None`` when it cannot be read."""
	if isinstance(value, datetime):
		return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
	if not isinstance(value, str) or not value.strip():
		return None
	text = value.strip()
	if text.endswith("Z"):
		text = text[:-1] + "+00:00"
	try:
		parsed = datetime.fromisoformat(text)
	except ValueError:
		return None
	return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class CamelModel(BaseModel):
	"""Base model whose serialized form uses camelCase document keys."""

	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

	@classmethod
	def from_document(cls: type[ModelT], doc: Document) -> ModelT:
		return cls.model_validate({**doc.data, "id": doc.id})

	def to_document(self) -> dict[str, Any]:
		return self.model_dump(by_alias=True, mode="json", exclude={"id"})

	def to_api(self) -> dict[str, Any]:
		return self.model_dump(by_alias=True, mode="json")


__all__ = ["CamelModel", "now_iso", "parse_instant"]
