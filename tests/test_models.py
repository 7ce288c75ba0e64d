from __future__ import annotations

import pytest

from models import DAY_MS, NEVER_DONE, Draft, Job, make_job, overdue


@pytest.mark.parametrize("days", ["1", "2", "7", "365"])
def test_valid_draft_builds_job(days: str) -> None:
    job = make_job(Draft(title="Water plants", period=days))
    assert job is not None
    assert job.period == int(days) * DAY_MS
    assert job.last_done is None
    assert job.period_days == int(days)


@pytest.mark.parametrize(
    "draft",
    [
        Draft(title="", period="5"),
        Draft(title="Water plants", period=""),
        Draft(title="Water plants", period="abc"),
        Draft(title="Water plants", period="1.5"),
        Draft(title="Water plants", period="0"),
        Draft(title="Water plants", period="-3"),
        Draft(title="Water plants", period="1_0"),
        Draft(title="Water plants", period="\u0663"),
        Draft(title="Water plants", period="\uff15"),
    ],
)
def test_invalid_draft_builds_nothing(draft: Draft) -> None:
    assert make_job(draft) is None


def test_never_done_is_maximally_overdue() -> None:
    job = Job(title="Water plants", period=2 * DAY_MS)
    assert overdue(0, job) == NEVER_DONE
    assert overdue(10**15, job) == NEVER_DONE


def test_not_due_until_period_elapses() -> None:
    t0 = 1_700_000_000_000
    job = Job(title="Feed cat", period=DAY_MS, last_done=t0)
    assert overdue(t0 + DAY_MS - 1, job) is None
    assert overdue(t0 + DAY_MS, job) == 0
    assert overdue(t0 + DAY_MS + 5000, job) == 5000


def test_finite_overdue_stays_below_sentinel() -> None:
    job = Job(title="Old", period=DAY_MS, last_done=0)
    assert overdue(4_000_000_000_000, job) < NEVER_DONE


def test_days_tolerate_surrounding_whitespace() -> None:
    job = make_job(Draft(title="Water plants", period=" 3 "))
    assert job is not None
    assert job.period == 3 * DAY_MS


def test_sentinel_exceeds_any_finite_overdue() -> None:
    job = Job(title="Ancient", period=DAY_MS, last_done=-(2**64))
    amount = overdue(10**18, job)
    assert amount > 2**64
    assert amount < NEVER_DONE
