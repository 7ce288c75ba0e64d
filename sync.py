# sync.py
import sqlite3
import threading
from typing import Optional

import httpx

from jobstore import Effect, JobStore, Msg, decode_snapshot, log, now_ms, update
from storage import Storage


class BootstrapError(Exception):
    """The remote snapshot could not be read, so there is nothing safe to start from."""


class LocalPersister:
    """Writes snapshots straight into the sqlite store."""

    def __init__(self, db: Storage):
        self.db = db

    def fetch(self) -> Optional[str]:
        return self.db.load_snapshot()

    def persist(self, store: JobStore) -> bool:
        try:
            self.db.save_snapshot(store.to_json())
        except sqlite3.Error as e:
            log(f"Persist failed: {e}")
            return False
        return True


class HttpPersister:
    """
    Talks to a dashboard's /data endpoint.

    A failed fetch raises BootstrapError so an empty store is never pushed
    over the server copy. A failed persist is logged and reported through
    the return value only: the local store already holds the change, and
    nothing is retried.
    """

    def __init__(self, base_url: str, client: Optional[httpx.Client] = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client(timeout=timeout)

    def fetch(self) -> Optional[str]:
        try:
            resp = self.client.get(f"{self.base_url}/data")
            resp.raise_for_status()
        except httpx.HTTPError as e:
            log(f"Bootstrap fetch failed: {e}")
            raise BootstrapError(f"Could not load jobs from {self.base_url}/data: {e}") from e
        if decode_snapshot(resp.text) is None:
            log("Bootstrap fetch returned something that is not a job snapshot")
            raise BootstrapError(f"{self.base_url}/data did not return a job snapshot")
        return resp.text

    def persist(self, store: JobStore) -> bool:
        try:
            resp = self.client.post(f"{self.base_url}/data", json=store.snapshot())
            resp.raise_for_status()
        except httpx.HTTPError as e:
            log(f"Persist failed: {e}")
            return False
        return True


class Session:
    """Owns the live store and runs the persist effect after each message."""

    def __init__(self, persister, now: Optional[int] = None):
        self.persister = persister
        self.store = JobStore.load(now if now is not None else now_ms(), persister.fetch())
        self.lock = threading.Lock()
        self.last_persist_ok = True

    def dispatch(self, msg: Msg) -> JobStore:
        with self.lock:
            self.store, effect = update(self.store, msg)
            if effect is Effect.PERSIST:
                self.last_persist_ok = self.persister.persist(self.store)
            return self.store

    def replace_jobs(self, text: str) -> JobStore:
        """Swap in a snapshot pushed by another client and persist it as-is."""
        with self.lock:
            self.store = JobStore.load(self.store.now, text)
            self.last_persist_ok = self.persister.persist(self.store)
            return self.store
