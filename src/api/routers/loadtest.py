import logging
import random
import time
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from api.dependencies import LOAD_TEST_MAX_EVENTS, get_event_store
from api.metrics import LOAD_TEST_RUNS_TOTAL, REQUEST_LATENCY_SECONDS, REQUESTS_TOTAL
from loadtest.harness import LoadHarness, store_operations
from storage.backends import InMemoryBackend
from storage.event_store import EventStore

router = APIRouter()
logger = logging.getLogger(__name__)


class LoadTestIn(BaseModel):
    count: int = Field(20, ge=0)
    # "isolated" runs against a throwaway in-memory store
    target: Literal["isolated", "live"] = "isolated"
    concurrency: int = Field(1, ge=1)
    timeout_s: Optional[float] = Field(None, gt=0)
    seed: Optional[int] = None


@router.post("/load-test")
async def run_load_test(
    payload: LoadTestIn, store: EventStore = Depends(get_event_store)
) -> dict:
    start = time.time()
    if payload.count > LOAD_TEST_MAX_EVENTS:
        raise HTTPException(
            status_code=400,
            detail=f"count must not exceed {LOAD_TEST_MAX_EVENTS}",
        )

    target_store = store if payload.target == "live" else EventStore(InMemoryBackend())
    save, update, delete = store_operations(target_store)
    harness = LoadHarness(
        save,
        update,
        delete,
        concurrency=payload.concurrency,
        timeout_s=payload.timeout_s,
        rng=random.Random(payload.seed),
    )

    logger.info(f"Starting load test: {payload.count} events against {payload.target} store")
    report = await harness.run(payload.count)

    LOAD_TEST_RUNS_TOTAL.labels(target=payload.target).inc()
    REQUESTS_TOTAL.labels(endpoint="/load-test", status="completed").inc()
    REQUEST_LATENCY_SECONDS.labels(endpoint="/load-test").observe(time.time() - start)

    return {
        "target": payload.target,
        "summary": report.summary(),
        **report.to_dict(),
    }
