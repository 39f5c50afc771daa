import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import FileResponse

from vitalscore.config import DEMOMED_API_KEY, DEMOMED_BASE_URL, LOG_LEVEL
from vitalscore.routers import assessment, patients

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting VitalScore (remote API: %s)", DEMOMED_BASE_URL)
    if not DEMOMED_API_KEY:
        logger.warning("DEMOMED_API_KEY is not set; patient fetch and submission will fail")
    yield
    logger.info("VitalScore shut down")


app = FastAPI(
    title="VitalScore",
    description="Vital-sign risk scoring and patient alert triage",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(patients.router)
app.include_router(assessment.router)


@app.get("/")
async def serve_calculator():
    return FileResponse(STATIC_DIR / "index.html")


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
