"""
Create/update/delete load test for any calendar backend.

The harness only needs three async callables (save, update, delete), so it can
drive an EventStore, an HTTP client, or a fake. Phases run strictly in order and
each phase feeds the next from its own successful results. By default every
phase is sequential: call i+1 starts only after call i has resolved.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from pydantic import BaseModel, Field

from calendar_engine.models import CalendarEvent, EventDraft
from loadtest.generator import SyntheticEvent, generate_random_events
from storage.event_store import EventStore

logger = logging.getLogger(__name__)

SaveFn = Callable[[Any], Awaitable[Any]]
UpdateFn = Callable[[Any], Awaitable[Any]]
DeleteFn = Callable[[str], Awaitable[bool]]

UPDATED_MARKER = "UPDATED:"


class PhaseErrors(BaseModel):
    creation: int = 0
    update: int = 0
    deletion: int = 0


class LoadTestReport(BaseModel):
    requested: int
    events_created: int = 0
    events_updated: int = 0
    events_deleted: int = 0
    errors: PhaseErrors = Field(default_factory=PhaseErrors)

    update_batch_size: int = 0
    delete_batch_size: int = 0

    creation_seconds: float = 0.0
    update_seconds: float = 0.0
    deletion_seconds: float = 0.0

    @staticmethod
    def _rate(ok: int, total: int) -> float:
        # an empty batch has nothing that failed
        return 100.0 if total == 0 else ok / total * 100

    @property
    def creation_success_rate(self) -> float:
        return self._rate(self.events_created, self.requested)

    @property
    def update_success_rate(self) -> float:
        return self._rate(self.events_updated, self.update_batch_size)

    @property
    def deletion_success_rate(self) -> float:
        return self._rate(self.events_deleted, self.delete_batch_size)

    @property
    def total_seconds(self) -> float:
        return self.creation_seconds + self.update_seconds + self.deletion_seconds

    def summary(self) -> str:
        return (
            f"Created: {self.events_created}/{self.requested} ({self.creation_success_rate:.1f}%)\n"
            f"Updated: {self.events_updated}/{self.update_batch_size} ({self.update_success_rate:.1f}%)\n"
            f"Deleted: {self.events_deleted}/{self.delete_batch_size} ({self.deletion_success_rate:.1f}%)"
        )

    def to_dict(self) -> dict:
        return {
            "eventsCreated": self.events_created,
            "eventsUpdated": self.events_updated,
            "eventsDeleted": self.events_deleted,
            "errors": self.errors.model_dump(),
            "requested": self.requested,
            "updateBatchSize": self.update_batch_size,
            "deleteBatchSize": self.delete_batch_size,
            "successRates": {
                "creation": self.creation_success_rate,
                "update": self.update_success_rate,
                "deletion": self.deletion_success_rate,
            },
            "elapsedSeconds": {
                "creation": self.creation_seconds,
                "update": self.update_seconds,
                "deletion": self.deletion_seconds,
                "total": self.total_seconds,
            },
        }


def _event_id(event: Any) -> Optional[str]:
    if isinstance(event, dict):
        return event.get("id")
    return getattr(event, "id", None)


def mark_updated(event: Any, now: Optional[datetime] = None) -> Any:
    """Copy of `event` with the UPDATED marker on title and description."""
    if isinstance(event, dict):
        title, description = event.get("title", ""), event.get("description")
    else:
        title, description = event.title, getattr(event, "description", None)

    changes = {
        "title": f"{UPDATED_MARKER} {title}",
        "description": (
            f"{UPDATED_MARKER} {description}"
            if description
            else f"New description added during load test at {(now or datetime.now()).isoformat()}"
        ),
    }
    if isinstance(event, dict):
        return {**event, **changes}
    return event.model_copy(update=changes)


class LoadHarness:
    def __init__(
        self,
        save: SaveFn,
        update: UpdateFn,
        delete: DeleteFn,
        *,
        concurrency: int = 1,
        timeout_s: Optional[float] = None,
        rng: Optional[random.Random] = None,
        now: Optional[datetime] = None,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.save = save
        self.update = update
        self.delete = delete
        self.concurrency = concurrency
        self.timeout_s = timeout_s
        self.rng = rng or random.Random()
        self.now = now

    async def _call(self, op: Callable[[Any], Awaitable[Any]], arg: Any) -> Any:
        if self.timeout_s is None:
            return await op(arg)
        return await asyncio.wait_for(op(arg), timeout=self.timeout_s)

    async def _attempt(self, phase: str, op: Callable[[Any], Awaitable[Any]], arg: Any) -> Tuple[bool, Any]:
        try:
            result = await self._call(op, arg)
        except asyncio.TimeoutError:
            logger.error("Timed out during %s after %ss", phase, self.timeout_s)
            return False, None
        except Exception as e:
            logger.error("Error during %s: %s", phase, e)
            return False, None
        if not result:
            logger.warning("%s returned no result", phase.capitalize())
            return False, None
        return True, result

    async def _run_phase(
        self, phase: str, op: Callable[[Any], Awaitable[Any]], items: List[Any]
    ) -> List[Tuple[bool, Any]]:
        if self.concurrency == 1:
            outcomes = []
            for item in items:
                outcomes.append(await self._attempt(phase, op, item))
            return outcomes

        sem = asyncio.Semaphore(self.concurrency)

        async def bounded(item: Any) -> Tuple[bool, Any]:
            async with sem:
                return await self._attempt(phase, op, item)

        return list(await asyncio.gather(*(bounded(item) for item in items)))

    async def _delete_by_id(self, event: Any) -> bool:
        event_id = _event_id(event)
        if not event_id:
            raise ValueError("saved event has no id")
        return await self.delete(event_id)

    async def run(self, count: int = 20) -> LoadTestReport:
        if count < 0:
            raise ValueError("count must be >= 0")
        report = LoadTestReport(requested=count)

        # 1. creation
        logger.info("Generating %d random events...", count)
        events = generate_random_events(count, self.rng, self.now)
        started = time.perf_counter()
        outcomes = await self._run_phase("creation", self.save, events)
        saved = [result for ok, result in outcomes if ok]
        report.events_created = len(saved)
        report.errors.creation = count - len(saved)
        report.creation_seconds = time.perf_counter() - started
        logger.info("Successfully created %d events.", report.events_created)

        # 2. update the first half of what was saved
        half = len(saved) // 2
        to_update = [mark_updated(e) for e in saved[:half]]
        report.update_batch_size = len(to_update)
        started = time.perf_counter()
        outcomes = await self._run_phase("update", self.update, to_update)
        report.events_updated = sum(1 for ok, _ in outcomes if ok)
        report.errors.update = len(to_update) - report.events_updated
        report.update_seconds = time.perf_counter() - started
        logger.info("Successfully updated %d events.", report.events_updated)

        # 3. delete the third quarter, disjoint from the updated half
        to_delete = saved[half:int(len(saved) * 0.75)]
        report.delete_batch_size = len(to_delete)
        started = time.perf_counter()
        outcomes = await self._run_phase("deletion", self._delete_by_id, to_delete)
        report.events_deleted = sum(1 for ok, _ in outcomes if ok)
        report.errors.deletion = len(to_delete) - report.events_deleted
        report.deletion_seconds = time.perf_counter() - started
        logger.info("Successfully deleted %d events.", report.events_deleted)

        logger.info("Load test results:\n%s", report.summary())
        return report


async def run_load_test(
    save: SaveFn,
    update: UpdateFn,
    delete: DeleteFn,
    count: int = 20,
    **kwargs: Any,
) -> LoadTestReport:
    return await LoadHarness(save, update, delete, **kwargs).run(count)


def store_operations(store: EventStore) -> Tuple[SaveFn, UpdateFn, DeleteFn]:
    """Bind an EventStore to the async save/update/delete trio the harness drives."""

    async def save(event: SyntheticEvent) -> Optional[CalendarEvent]:
        draft = EventDraft(
            title=event.title,
            category=event.category,
            date=event.start_time,
            description=event.description or "",
        )
        return store.add_event(draft)

    async def update(event: CalendarEvent) -> Optional[CalendarEvent]:
        return store.update_event(event)

    async def delete(event_id: str) -> bool:
        return store.delete_event(event_id)

    return save, update, delete
