import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .domain.intake.router import router as intake_router
from .redis_client import close_redis_client

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    yield
    close_redis_client()
    logger.info("Application shut down")


app = FastAPI(title="Intake Form API", lifespan=lifespan)

app.include_router(intake_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
