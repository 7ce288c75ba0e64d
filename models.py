# models.py
import math
import re
from dataclasses import dataclass
from typing import Optional, Union

DAY_MS = 86_400_000
NEVER_DONE = math.inf  # overdue amount for jobs that were never completed

# ASCII digits only: no "1_0", no non-Latin numerals
DAYS_PATTERN = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class Job:
    title: str
    period: int                       # milliseconds, always a whole number of days
    last_done: Optional[int] = None   # ms since epoch, None = never done

    @property
    def period_days(self) -> int:
        return self.period // DAY_MS


@dataclass(frozen=True)
class Draft:
    title: str = ""
    period: str = ""


def parse_days(text: str) -> Optional[int]:
    if not isinstance(text, str):
        return None
    text = text.strip()
    if not DAYS_PATTERN.fullmatch(text):
        return None
    return int(text)


def make_job(draft: Draft) -> Optional[Job]:
    """Build a Job from user input, or None when the draft is not valid."""
    if not draft.title:
        return None
    days = parse_days(draft.period)
    if days is None or days < 1:
        return None
    return Job(title=draft.title, period=days * DAY_MS)


def overdue(now: int, job: Job) -> Optional[Union[int, float]]:
    """
    How many ms past its due time a job is:
    - NEVER_DONE (infinity) when the job has no last_done
    - None when it is not due yet
    - now - (last_done + period) otherwise
    """
    if job.last_done is None:
        return NEVER_DONE
    due_at = job.last_done + job.period
    if now < due_at:
        return None
    return now - due_at
