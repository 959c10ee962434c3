"""JSON logging with per-request context for the API and maintenance scripts."""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from cph.settings import settings

_LOGGER_NAME = "cph"

# Context field name -> key emitted in the JSON payload
_CONTEXT_FIELDS = {
	"request_id": "request_id",
	"route": "route",
	"user_id": "user_id",
	"client_ip": "ip",
}
_CONTEXT: Dict[str, ContextVar[Optional[str]]] = {
	name: ContextVar(f"cph_log_{name}", default=None) for name in _CONTEXT_FIELDS
}

# Extra fields whose names contain one of these are never logged verbatim.
# Applications and registrations carry member emails and free-text answers.
_REDACT_MARKERS = ("token", "secret", "authorization", "password", "email", "sections", "bio", "message")

_MAX_TEXT = 256
_MAX_ITEMS = 10

_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def bind_context(**fields: Optional[str]) -> Dict[str, Token]:
	"""Bind request-scoped fields; pass the result to :func:`reset_context`."""
	tokens: Dict[str, Token] = {}
	for name, value in fields.items():
		if name not in _CONTEXT:
			raise KeyError(f"unknown log context field: {name}")
		if value is not None:
			tokens[name] = _CONTEXT[name].set(value)
	return tokens


def reset_context(tokens: Dict[str, Token]) -> None:
	for name, token in tokens.items():
		_CONTEXT[name].reset(token)


def current_request_id(default: str = "unknown") -> str:
	return _CONTEXT["request_id"].get() or default


def _scrub(key: str, value: Any) -> Any:
	if any(marker in key.lower() for marker in _REDACT_MARKERS):
		return "[redacted]"
	if isinstance(value, str) and len(value) > _MAX_TEXT:
		return value[:_MAX_TEXT] + "…"
	if isinstance(value, dict):
		items = list(value.items())
		scrubbed = {str(k): _scrub(str(k), v) for k, v in items[:_MAX_ITEMS]}
		if len(items) > _MAX_ITEMS:
			scrubbed["…"] = f"+{len(items) - _MAX_ITEMS} keys"
		return scrubbed
	if isinstance(value, (list, tuple, set)):
		values = list(value)
		scrubbed_list = [_scrub(key, item) for item in values[:_MAX_ITEMS]]
		if len(values) > _MAX_ITEMS:
			scrubbed_list.append("…")
		return scrubbed_list
	return value


class JSONLogFormatter(logging.Formatter):
	"""One JSON object per line; ``extra=`` fields are merged in after scrubbing."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003
		payload: Dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"msg": record.getMessage(),
			"logger": record.name,
			"service": settings.service_name,
			"env": settings.environment,
			"schema": settings.schema_version,
		}
		for name, output_key in _CONTEXT_FIELDS.items():
			value = _CONTEXT[name].get()
			if value:
				payload[output_key] = value
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		for key, value in vars(record).items():
			if key not in _RECORD_ATTRS and key not in payload:
				payload[key] = _scrub(key, value)
		return json.dumps(payload, separators=(",", ":"), default=str)


class InfoSamplingFilter(logging.Filter):
	"""Drop a share of INFO records; other levels always pass."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO:
			return True
		rate = min(1.0, max(0.0, settings.obs_log_sampling_rate_info))
		return rate >= 1.0 or random.random() < rate


def configure_logging() -> logging.Logger:
	root = logging.getLogger()
	root.handlers.clear()
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root.addHandler(handler)
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(_LOGGER_NAME)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(name or _LOGGER_NAME)
