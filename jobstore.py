# jobstore.py
import json
import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from models import DAY_MS, Draft, Job, make_job, overdue


def log(message: str) -> None:
    now = datetime.now(timezone.utc).isoformat()
    print(f"[{now}] {message}")


def now_ms() -> int:
    return int(time.time() * 1000)


class Effect(Enum):
    NONE = "none"
    PERSIST = "persist"


# ---------------- Messages ----------------
@dataclass(frozen=True)
class SetTitle:
    text: str


@dataclass(frozen=True)
class SetPeriod:
    text: str


@dataclass(frozen=True)
class AddJob:
    pass


@dataclass(frozen=True)
class MarkDone:
    job_id: int


@dataclass(frozen=True)
class DeleteJob:
    job_id: int


@dataclass(frozen=True)
class Tick:
    now: int


Msg = Union[SetTitle, SetPeriod, AddJob, MarkDone, DeleteJob, Tick]


# ---------------- State ----------------
@dataclass(frozen=True)
class JobStore:
    jobs: Dict[int, Job] = field(default_factory=dict)
    next_id: int = 0
    now: int = 0
    draft: Draft = field(default_factory=Draft)

    @classmethod
    def load(cls, now: int, text: Optional[str]) -> "JobStore":
        """Bootstrap from a snapshot string; anything unreadable gives an empty store."""
        jobs = decode_snapshot(text) if text else None
        if jobs is None:
            if text:
                log("Snapshot could not be decoded, starting with an empty store")
            jobs = {}
        next_id = max(jobs) + 1 if jobs else 0
        return cls(jobs=jobs, next_id=next_id, now=now)

    @property
    def can_create(self) -> bool:
        return make_job(self.draft) is not None

    def due_list(self) -> List[Tuple[int, Job]]:
        """Due jobs, most overdue first. Equal amounts keep ascending id order."""
        entries = []
        for job_id, job in self.jobs.items():
            amount = overdue(self.now, job)
            if amount is not None:
                entries.append((amount, job_id, job))
        entries.sort(key=lambda e: (-e[0], e[1]))
        return [(job_id, job) for _, job_id, job in entries]

    def snapshot(self) -> dict:
        return {
            "jobs": [
                {
                    "k": job_id,
                    "v": {"title": job.title, "period": job.period, "lastDone": job.last_done},
                }
                for job_id, job in sorted(self.jobs.items())
            ]
        }

    def to_json(self) -> str:
        return json.dumps(self.snapshot())


# ---------------- Snapshot decoding ----------------
def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _decode_job(value) -> Optional[Job]:
    if not isinstance(value, dict) or "lastDone" not in value:
        return None
    title = value.get("title")
    period = value.get("period")
    last_done = value["lastDone"]
    if not isinstance(title, str) or not title:
        return None
    if not _is_int(period) or period <= 0 or period % DAY_MS:
        return None
    if last_done is not None and not _is_int(last_done):
        return None
    return Job(title=title, period=period, last_done=last_done)


def decode_jobs(data) -> Optional[Dict[int, Job]]:
    if not isinstance(data, dict) or not isinstance(data.get("jobs"), list):
        return None
    jobs: Dict[int, Job] = {}
    for entry in data["jobs"]:
        if not isinstance(entry, dict) or not _is_int(entry.get("k")):
            return None
        job = _decode_job(entry.get("v"))
        if job is None or entry["k"] in jobs:
            return None
        jobs[entry["k"]] = job
    return jobs


def decode_snapshot(text: str) -> Optional[Dict[int, Job]]:
    """Parse snapshot JSON into an id -> Job mapping, or None if it doesn't match the format."""
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        return None
    return decode_jobs(data)


# ---------------- Transitions ----------------
def add_job(store: JobStore, job: Job) -> JobStore:
    jobs = dict(store.jobs)
    jobs[store.next_id] = job
    log(f"Job {store.next_id}: added '{job.title}' (every {job.period_days}d)")
    return replace(store, jobs=jobs, next_id=store.next_id + 1, draft=Draft())


def update(store: JobStore, msg: Msg) -> Tuple[JobStore, Effect]:
    """Apply one message and report whether the result needs persisting."""
    if isinstance(msg, SetTitle):
        return replace(store, draft=replace(store.draft, title=msg.text)), Effect.NONE

    if isinstance(msg, SetPeriod):
        return replace(store, draft=replace(store.draft, period=msg.text)), Effect.NONE

    if isinstance(msg, AddJob):
        job = make_job(store.draft)
        if job is None:
            return store, Effect.NONE
        return add_job(store, job), Effect.PERSIST

    if isinstance(msg, MarkDone):
        job = store.jobs.get(msg.job_id)
        if job is None:
            return store, Effect.PERSIST
        jobs = dict(store.jobs)
        jobs[msg.job_id] = replace(job, last_done=store.now)
        log(f"Job {msg.job_id}: done at {store.now}")
        return replace(store, jobs=jobs), Effect.PERSIST

    if isinstance(msg, DeleteJob):
        if msg.job_id not in store.jobs:
            return store, Effect.PERSIST
        jobs = dict(store.jobs)
        del jobs[msg.job_id]
        log(f"Job {msg.job_id}: deleted")
        return replace(store, jobs=jobs), Effect.PERSIST

    if isinstance(msg, Tick):
        return replace(store, now=msg.now), Effect.NONE

    raise TypeError(f"Unknown message: {msg!r}")
