"""Static event catalog. Registrations and posts are keyed by the event slug."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional


@dataclass(slots=True, frozen=True)
class EventSection:
	title: str
	body: str


@dataclass(slots=True, frozen=True)
class EventConfig:
	slug: str
	title: str
	description: str
	date_range: str
	tagline: Optional[str] = None
	tags: tuple[str, ...] = ()
	location: Optional[str] = None
	format: Optional[str] = None
	tracks: tuple[str, ...] = ()
	who_can_participate: Optional[str] = None
	what_to_build: Optional[str] = None
	what_to_submit: tuple[str, ...] = ()
	sections: tuple[EventSection, ...] = ()
	timeline: tuple[str, ...] = ()
	prizes: tuple[dict[str, str], ...] = ()
	judging_criteria: tuple[dict[str, str], ...] = ()

	def to_api(self) -> dict[str, Any]:
		raw = asdict(self)
		return {
			"slug": raw["slug"],
			"title": raw["title"],
			"description": raw["description"],
			"dateRange": raw["date_range"],
			"tagline": raw["tagline"],
			"tags": list(raw["tags"]),
			"location": raw["location"],
			"format": raw["format"],
			"tracks": list(raw["tracks"]),
			"whoCanParticipate": raw["who_can_participate"],
			"whatToBuild": raw["what_to_build"],
			"whatToSubmit": list(raw["what_to_submit"]),
			"sections": [dict(section) for section in raw["sections"]],
			"timeline": list(raw["timeline"]),
			"prizes": [dict(prize) for prize in raw["prizes"]],
			"judgingCriteria": [dict(item) for item in raw["judging_criteria"]],
		}


_EVENTS: tuple[EventConfig, ...] = (
	EventConfig(
		slug="lent-hack-2026",
		title="Lent Hack 2026",
		description=(
			"A 50-day challenge for developers, designers, and innovators to build products that help "
			"people grow spiritually or help the Church take its next leap into the future."
		),
		tagline="Build What's Eternal. This Lent, don't just give up something. Build something.",
		date_range="February 18, 2026 - Easter Week 2026",
		tags=("50-day challenge", "Team or Individual", "WhatsApp Community"),
		location="Online",
		format="Public",
		tracks=("FaithTech", "Education", "Parish Ops", "Digital Mission"),
		who_can_participate="Developers, designers, and innovators. Team or individual. All builders welcome.",
		what_to_build=(
			"Build a NEW product or tool in 50 days. Examples: AI-powered prayer assistant, community "
			"coordination platform, liturgical tool, or digital mission experience."
		),
		what_to_submit=(
			"Phase 1 (Ideation): Submit a Problem Statement or Product Concept to the Ideation Board.",
			"Phase 2 (The Build): Form teams, join the technical channels, develop your MVP.",
			"Phase 3 (Submission): Submit your GitHub repo, deployed website or app, and a 3-minute demo video.",
		),
		sections=(
			EventSection(
				"Why Participate?",
				"Purpose-driven code, a community of like-minded builders, and tools that can help parishes and people pray.",
			),
			EventSection("Phase 1: Ideation (The Seed)", "Identify the need and submit a problem statement or product concept."),
			EventSection("Phase 2: The Build (The Growth)", "A 50-day sprint with weekly check-ins and mentorship."),
			EventSection("Phase 3: Submission (The Harvest)", "Finalize your code, record your demo and submit during Easter Week."),
		),
		timeline=(
			"Launch: Ash Wednesday (February 18, 2026)",
			"The Build: 50 Days of Innovation",
			"Submission Deadline: Easter Week",
		),
		prizes=({"label": "Community showcase", "detail": "Featured on Catholic Product Hunt and the broader community."},),
		judging_criteria=(
			{"name": "Impact & relevance", "description": "Helps people grow spiritually or the Church move forward."},
			{"name": "Technical quality", "description": "Solid implementation and sensible architecture."},
			{"name": "Presentation", "description": "Clear 3-minute demo and communication."},
		),
	),
)

_BY_SLUG = {event.slug: event for event in _EVENTS}


def get_event(slug: str) -> Optional[EventConfig]:
	return _BY_SLUG.get(slug)


def all_events() -> list[EventConfig]:
	return list(_EVENTS)


def all_event_slugs() -> list[str]:
	return [event.slug for event in _EVENTS]


__all__ = ["EventConfig", "EventSection", "all_event_slugs", "all_events", "get_event"]
