# src/jobfeed/cache.py
"""
In-process cache for the job collection and per-job details.

One JobDataCache instance owns all of its state; build one per app session and
pass it to whatever needs job data.

How reads are served:
- fetch_all_jobs: fresh cache -> no I/O. Fetch already running -> wait on it.
  Otherwise start exactly one fetch; every caller that arrives meanwhile awaits
  the same task and gets the same list or the same exception.
- fetch_job_details: detail index, then the cached collection, then the network.

Everything runs on one asyncio loop; the "lock" is the pending task itself,
checked and set before the first await.
"""

from __future__ import annotations
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Set
import asyncio
import datetime as dt
import inspect
import itertools
import logging
import random
import time

from jobfeed.config import DEFAULT_CACHE_TTL
from jobfeed.errors import FetchError, JobFeedError
from jobfeed.models import JobRecord
from jobfeed.pipeline.normalize import stamp_cached_at

logger = logging.getLogger(__name__)

# Give the app a moment to start before the background fetch competes with it
PRELOAD_DELAY = 1.0

Listener = Callable[[List[JobRecord]], Any]


class JobSource(Protocol):
    async def fetch_listing(self) -> List[dict]: ...

    async def fetch_detail(self, job_id: str) -> dict: ...


def _mark_retrieved(task: "asyncio.Task") -> None:
    # the failure is already logged in _run_fetch; don't let asyncio warn
    # about it again when every waiter has gone away
    if not task.cancelled():
        task.exception()


class JobDataCache:
    """
    Single-flight, TTL-expiring cache in front of a JobSource.

    `ttl` is the freshness window in seconds. `fetch_timeout`, when set, bounds a
    collection fetch; by default a hung request keeps the fetch pending until the
    transport gives up. `clock`, `rng` and `today` exist so tests can control
    time and randomness.
    """

    def __init__(
        self,
        client: JobSource,
        *,
        ttl: float = DEFAULT_CACHE_TTL,
        fetch_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
        today: Callable[[], dt.date] = dt.date.today,
    ):
        self._client = client
        self.ttl = ttl
        self.fetch_timeout = fetch_timeout
        self._clock = clock
        self._rng = rng or random.Random()
        self._today = today

        self._listeners: Dict[int, Listener] = {}
        self._listener_ids = itertools.count()
        self._background: Set[asyncio.Task] = set()

        # bumped by clear(); a fetch started under an older generation
        # must not write into the cleared cache
        self._generation = 0
        self._jobs: Optional[List[JobRecord]] = None
        self._details: Dict[str, JobRecord] = {}
        self._last_fetched: Optional[float] = None
        self._pending: Optional[asyncio.Task] = None

    # ---- State ---------------------------------------------------------------

    def _is_fresh(self) -> bool:
        return (
            self._jobs is not None
            and self._last_fetched is not None
            and (self._clock() - self._last_fetched) < self.ttl
        )

    @property
    def state(self) -> str:
        """One of "empty", "fetching", "ready", "stale"."""
        if self._pending is not None:
            return "fetching"
        if self._jobs is None:
            return "empty"
        return "ready" if self._is_fresh() else "stale"

    @property
    def is_fetching(self) -> bool:
        return self._pending is not None

    @property
    def last_fetched_at(self) -> Optional[float]:
        """Clock reading of the last successful collection fetch, or None."""
        return self._last_fetched

    # ---- Collection ----------------------------------------------------------

    async def fetch_all_jobs(self, force_refresh: bool = False) -> List[JobRecord]:
        """
        Return every job, from cache when fresh.

        Raises FetchError when the network fetch fails; whatever was cached
        before stays cached.
        """
        if not force_refresh and self._is_fresh():
            logger.debug("Using cached job data")
            return list(self._jobs)

        if self._pending is None:
            task = asyncio.get_running_loop().create_task(self._run_fetch(self._generation))
            task.add_done_callback(_mark_retrieved)
            self._pending = task
        else:
            logger.debug("Already fetching job data, waiting...")

        # shield: a caller that gives up must not cancel the fetch for the others
        jobs = await asyncio.shield(self._pending)
        return list(jobs)

    async def _fetch_listing(self) -> List[dict]:
        if self.fetch_timeout is None:
            return await self._client.fetch_listing()
        try:
            return await asyncio.wait_for(self._client.fetch_listing(), self.fetch_timeout)
        except asyncio.TimeoutError as e:
            raise FetchError(f"Job listing fetch timed out after {self.fetch_timeout}s") from e

    async def _run_fetch(self, generation: int) -> List[JobRecord]:
        try:
            logger.info("Fetching fresh job data")
            try:
                records = await self._fetch_listing()
            except Exception:
                logger.error("Error fetching jobs", exc_info=True)
                raise

            jobs = stamp_cached_at(records, self._today())
            if generation != self._generation:
                logger.info("Job cache was cleared during fetch; result not cached")
                return jobs

            self._jobs = jobs
            self._last_fetched = self._clock()
            logger.info("Cached %d jobs", len(jobs))
            self._notify(jobs)
            return jobs
        finally:
            if self._pending is asyncio.current_task():
                self._pending = None

    async def get_featured_jobs(self, count: int = 3) -> List[JobRecord]:
        """
        Up to `count` distinct jobs picked uniformly at random.
        Never raises on fetch failure: returns [] so the caller can simply hide the section.
        """
        if count <= 0:
            return []
        try:
            jobs = await self.fetch_all_jobs()
        except Exception:
            logger.error("Error getting featured jobs", exc_info=True)
            return []
        return self._rng.sample(jobs, min(count, len(jobs)))

    # ---- Details -------------------------------------------------------------

    async def fetch_job_details(self, job_id: str, force_refresh: bool = False) -> JobRecord:
        """
        Return one job.

        Raises NotFoundError when the gateway has no such job and FetchError when
        the request itself fails. Only successful lookups are cached.
        """
        key = str(job_id)

        if not force_refresh:
            cached = self._details.get(key)
            if cached is not None:
                logger.debug("Using cached details for job %s", key)
                return cached

            if self._jobs is not None:
                for job in self._jobs:
                    if str(job.get("job_id")) == key:
                        self._details[key] = job
                        return job

        logger.info("Fetching details for job %s", key)
        generation = self._generation
        try:
            job = await self._client.fetch_detail(key)
        except JobFeedError as e:
            logger.error("Error fetching job %s: %s", key, e)
            raise

        if generation == self._generation:
            self._details[key] = job
        return job

    # ---- Subscribers -----------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Call `listener(jobs)` after every successful collection refresh (not on
        cache hits). Returns a function that unsubscribes; calling it twice is fine.

        A coroutine function works too: its coroutine is scheduled as a task
        on the running loop; the refresh does not wait for it.
        """
        token = next(self._listener_ids)
        self._listeners[token] = listener

        def unsubscribe() -> None:
            self._listeners.pop(token, None)

        return unsubscribe

    def _notify(self, jobs: List[JobRecord]) -> None:
        for listener in list(self._listeners.values()):
            try:
                result = listener(list(jobs))
            except Exception:
                # one broken subscriber must not starve the rest
                logger.exception("Job data listener %r failed", listener)
                continue
            if inspect.isawaitable(result):
                self._spawn(self._await_listener(listener, result))

    async def _await_listener(self, listener: Listener, result: Awaitable[Any]) -> None:
        try:
            await result
        except Exception:
            logger.exception("Job data listener %r failed", listener)

    def _spawn(self, coro) -> "asyncio.Task":
        # hold a strong reference until done so the task isn't garbage-collected
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    # ---- Lifecycle -------------------------------------------------------------

    def preload(self, delay: float = PRELOAD_DELAY) -> "asyncio.Task":
        """
        Start a background fetch after `delay` seconds and return its task.
        Must be called from a running event loop. Failures are logged only.
        """
        logger.info("Preloading job data in background")

        async def _run() -> None:
            await asyncio.sleep(delay)
            try:
                await self.fetch_all_jobs()
            except Exception:
                logger.error("Error preloading job data", exc_info=True)

        return self._spawn(_run())

    def clear(self) -> None:
        """Drop all cached data. Subscribers stay registered."""
        self._generation += 1
        self._jobs = None
        self._details = {}
        self._last_fetched = None
        self._pending = None
        logger.info("Job cache cleared")
