"""Time-decayed launch scoring.

``score = upvotes * (1 / age_hours ** 0.2) + comments * 0.45`` where the age is
floored at one hour. Scores are rounded to three decimals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from time import perf_counter
from typing import Any, Iterable, Optional

from cph.domain.common import parse_instant
from cph.obs import metrics as obs_metrics

UPVOTE_WEIGHT = 1.0
COMMENT_WEIGHT = 0.45
DECAY_EXPONENT = 0.2
MIN_AGE_HOURS = 1.0


@dataclass(slots=True)
class LaunchEngagement:
	"""Launch identity plus the counts needed for scoring.

	``payload`` carries the product summary through ranking untouched.
	"""

	id: str
	launch_date: str | datetime
	upvotes: int = 0
	comments: int = 0
	payload: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class RankedLaunch:
	launch: LaunchEngagement
	score: float


def score_launch(
	upvotes: int,
	comments: int,
	launch_date: str | datetime | None,
	*,
	now: Optional[datetime] = None,
) -> float:
	current = now or datetime.now(timezone.utc)
	if current.tzinfo is None:
		current = current.replace(tzinfo=timezone.utc)
	# Unreadable dates score as brand new rather than NaN
	launched = parse_instant(launch_date) or current
	age_hours = max((current - launched).total_seconds() / 3600.0, MIN_AGE_HOURS)
	freshness_decay = 1.0 / (age_hours ** DECAY_EXPONENT)
	score = upvotes * UPVOTE_WEIGHT * freshness_decay + comments * COMMENT_WEIGHT
	return round(score, 3)


def rank_launches(launches: Iterable[LaunchEngagement], *, now: Optional[datetime] = None) -> list[RankedLaunch]:
	"""Order launches by score, highest first. Ties keep their input order."""

	start = perf_counter()
	current = now or datetime.now(timezone.utc)
	scored = [
		RankedLaunch(launch=item, score=score_launch(item.upvotes, item.comments, item.launch_date, now=current))
		for item in launches
	]
	ranked = sorted(scored, key=lambda entry: entry.score, reverse=True)
	obs_metrics.observe_feed_rank(
		len(ranked),
		(perf_counter() - start) * 1000.0,
		ranked[0].score if ranked else None,
	)
	return ranked


__all__ = ["LaunchEngagement", "RankedLaunch", "rank_launches", "score_launch"]
