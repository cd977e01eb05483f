import os
import logging

from fastapi import APIRouter, Depends, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from api.dependencies import get_event_store
from api.metrics import EVENTS_STORED
from storage.event_store import EventStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(store: EventStore = Depends(get_event_store)) -> dict:
    """Health check endpoint for container orchestration."""
    return {
        "status": "healthy",
        "profile": os.getenv("DEPLOYMENT_PROFILE", "unknown"),
        "storage_key": store.storage_key,
        "events": len(store.get_all_events()),
    }


@router.get("/metrics")
async def metrics(store: EventStore = Depends(get_event_store)) -> Response:
    """
    Prometheus scrape endpoint.
    """
    EVENTS_STORED.set(len(store.get_all_events()))
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
