"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


REQUEST_COUNTER = Counter(
	"cph_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"cph_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

FEED_RANK_CANDIDATES = Counter(
	"cph_feed_rank_candidates_total",
	"Launches considered by the feed ranker",
)

FEED_RANK_DURATION = Histogram(
	"cph_feed_rank_duration_ms",
	"Feed rank duration",
	buckets=[1, 2, 5, 10, 20, 40, 80, 160],
)

FEED_RANK_SCORE_TOP = Gauge(
	"cph_feed_rank_score_top",
	"Score of the highest ranked launch",
)

DOCSTORE_LEGACY_READS = Counter(
	"cph_docstore_legacy_fallback_reads_total",
	"Reads answered by the legacy collection generation",
	["collection"],
)

DOCSTORE_DEGRADED_SCANS = Counter(
	"cph_docstore_degraded_scans_total",
	"Queries served by the unindexed scan path",
	["collection"],
)

DOCSTORE_UP = Gauge(
	"cph_docstore_up",
	"Document store readiness (1 = reachable)",
)

DOCSTORE_LATENCY = Histogram(
	"cph_docstore_ping_seconds",
	"Document store readiness ping latency",
	buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

EVENT_REGISTRATIONS_UPSERTED = Counter(
	"cph_event_registrations_upserted_total",
	"Event registrations created or updated",
	["participation"],
)

EVENT_SNAPSHOT_WRITES = Counter(
	"cph_event_registration_snapshot_writes_total",
	"Registration documents rewritten with a fresh user snapshot",
)

EVENT_APPLICATION_DRAFTS = Counter(
	"cph_event_application_drafts_total",
	"Event application draft saves",
)

EVENT_APPLICATION_SUBMITTED = Counter(
	"cph_event_application_submitted_total",
	"Event applications transitioned to submitted",
)

EVENT_APPLICATION_SUBMIT_BLOCKED = Counter(
	"cph_event_application_submit_blocked_total",
	"Submissions rejected by the team completeness guard",
)

EVENT_TEAM_MEMBER_CHANGES = Counter(
	"cph_event_team_member_changes_total",
	"Team member additions and removals",
	["action"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def observe_feed_rank(candidates: int, elapsed_ms: float, top_score: float | None) -> None:
	if candidates:
		FEED_RANK_CANDIDATES.inc(candidates)
	if top_score is not None:
		FEED_RANK_SCORE_TOP.set(top_score)
	FEED_RANK_DURATION.observe(elapsed_ms)


def inc_legacy_read(collection: str) -> None:
	DOCSTORE_LEGACY_READS.labels(collection=collection).inc()


def inc_degraded_scan(collection: str) -> None:
	DOCSTORE_DEGRADED_SCANS.labels(collection=collection).inc()


def mark_docstore(ok: bool, *, latency_seconds: float | None = None) -> None:
	DOCSTORE_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		DOCSTORE_LATENCY.observe(latency_seconds)


def inc_registration_upserted(participation: str) -> None:
	EVENT_REGISTRATIONS_UPSERTED.labels(participation=participation).inc()


def inc_snapshot_writes(count: int) -> None:
	if count:
		EVENT_SNAPSHOT_WRITES.inc(count)


def inc_application_draft() -> None:
	EVENT_APPLICATION_DRAFTS.inc()


def inc_application_submitted() -> None:
	EVENT_APPLICATION_SUBMITTED.inc()


def inc_application_submit_blocked() -> None:
	EVENT_APPLICATION_SUBMIT_BLOCKED.inc()


def inc_team_member_change(action: str) -> None:
	EVENT_TEAM_MEMBER_CHANGES.labels(action=action).inc()
