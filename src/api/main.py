import logging

from fastapi import FastAPI

from api.routers import events, loadtest, ops

# Logging configuration
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Calendar Engine")

app.include_router(events.router)
app.include_router(loadtest.router)
app.include_router(ops.router)


@app.on_event("startup")
async def startup() -> None:
    logger.info("Calendar engine API started")


if __name__ == "__main__":
    import os

    import uvicorn
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))
