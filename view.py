# view.py
from dataclasses import dataclass
from typing import List, Optional

from jobstore import JobStore
from models import DAY_MS


@dataclass
class DueRow:
    job_id: int
    title: str
    period_days: int
    days_since: Optional[int]   # None = never done

    @property
    def last_done_label(self) -> str:
        if self.days_since is None:
            return "never done"
        return f"{self.days_since} days ago"


def due_rows(store: JobStore) -> List[DueRow]:
    rows = []
    for job_id, job in store.due_list():
        days_since = None
        if job.last_done is not None:
            days_since = (store.now - job.last_done) // DAY_MS
        rows.append(DueRow(job_id, job.title, job.period_days, days_since))
    return rows
