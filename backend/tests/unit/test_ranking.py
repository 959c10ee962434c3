from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from cph.domain.ranking.scoring import LaunchEngagement, rank_launches, score_launch

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _hours_ago(hours: float) -> datetime:
    return NOW - timedelta(hours=hours)


@pytest.mark.parametrize("age_hours", [0.25, 1, 6, 48, 24 * 30])
def test_score_strictly_increases_with_upvotes(age_hours):
    launched = _hours_ago(age_hours)
    scores = [score_launch(upvotes, 2, launched, now=NOW) for upvotes in range(0, 25)]
    assert all(later > earlier for earlier, later in zip(scores, scores[1:]))


def test_score_strictly_decreases_with_age_and_stays_positive():
    ages = [1, 2, 5, 24, 24 * 7, 24 * 365]
    scores = [score_launch(5, 0, _hours_ago(age), now=NOW) for age in ages]
    assert all(later < earlier for earlier, later in zip(scores, scores[1:]))
    assert all(score > 0 for score in scores)


@pytest.mark.parametrize("age_hours", [0, 3, 72, 24 * 90])
def test_extra_comment_adds_fixed_weight(age_hours):
    launched = _hours_ago(age_hours)
    base = score_launch(7, 3, launched, now=NOW)
    bumped = score_launch(7, 4, launched, now=NOW)
    assert bumped - base == pytest.approx(0.45, abs=1e-3)


def test_day_old_launch_score():
    score = score_launch(10, 4, _hours_ago(24), now=NOW)
    assert score == pytest.approx(10 / 24 ** 0.2 + 1.8, abs=1e-3)
    assert score == pytest.approx(7.096, abs=1e-3)


def test_age_is_floored_at_one_hour():
    fresh = score_launch(3, 0, _hours_ago(0.1), now=NOW)
    future = score_launch(3, 0, NOW + timedelta(hours=5), now=NOW)
    assert fresh == future == 3.0


def test_unparseable_date_scores_as_now():
    assert score_launch(3, 1, "not-a-date", now=NOW) == pytest.approx(3.45)
    assert score_launch(3, 1, None, now=NOW) == pytest.approx(3.45)


def test_iso_strings_with_z_suffix_are_parsed():
    iso = (NOW - timedelta(hours=24)).isoformat().replace("+00:00", "Z")
    assert score_launch(10, 4, iso, now=NOW) == score_launch(10, 4, _hours_ago(24), now=NOW)


def test_scores_are_rounded_to_three_decimals():
    score = score_launch(7, 1, _hours_ago(13), now=NOW)
    assert score == round(score, 3)


def test_rank_orders_by_score_descending():
    launches = [
        LaunchEngagement(id="quiet", launch_date=_hours_ago(2), upvotes=1),
        LaunchEngagement(id="popular", launch_date=_hours_ago(2), upvotes=40, comments=5),
        LaunchEngagement(id="middle", launch_date=_hours_ago(2), upvotes=10),
    ]
    ranked = rank_launches(launches, now=NOW)
    assert [entry.launch.id for entry in ranked] == ["popular", "middle", "quiet"]
    assert ranked[0].score > ranked[1].score > ranked[2].score


def test_rank_is_stable_for_equal_scores():
    launched = _hours_ago(5)
    launches = [LaunchEngagement(id=name, launch_date=launched, upvotes=4) for name in ("a", "b", "c", "d")]
    assert [entry.launch.id for entry in rank_launches(launches, now=NOW)] == ["a", "b", "c", "d"]
    reversed_input = list(reversed(launches))
    assert [entry.launch.id for entry in rank_launches(reversed_input, now=NOW)] == ["d", "c", "b", "a"]


def test_rank_carries_payload_through():
    launch = LaunchEngagement(id="l1", launch_date=_hours_ago(1), payload={"slug": "rosary-app"})
    (entry,) = rank_launches([launch], now=NOW)
    assert entry.launch.payload == {"slug": "rosary-app"}


def test_rank_empty_input():
    assert rank_launches([], now=NOW) == []
