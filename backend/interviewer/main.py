from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import os

from core.config import QA_MODE
from interviewer.api.interview import router as interview_router
from interviewer.runtime import get_runtime

app = FastAPI(title="Interview Session Service")
logger = logging.getLogger("interviewer.main")


def _get_allowed_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if not raw:
        return [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    return [item.strip() for item in raw.split(",") if item.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_allowed_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

app.include_router(interview_router)


@app.on_event("startup")
async def startup_handler():
    if QA_MODE:
        logger.info("[SYSTEM] QA_MODE ENABLED, interview history kept in memory only")


@app.on_event("shutdown")
async def shutdown_handler():
    await get_runtime().shutdown()
    logger.info("[SYSTEM] shutdown complete")


@app.get("/healthz")
async def healthz():
    return {"status": "ok", "service": "interview-session"}
