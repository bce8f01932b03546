import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI

from healthcore.config import settings
from healthcore.db import get_store, init_db
from healthcore.kernel import users
from healthcore.kernel.router import router as kernel_router

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    users.migrate_legacy_user(get_store())
    logger.info("Store ready")
    yield


app = FastAPI(title="HealthCore", version="0.1.0", lifespan=lifespan)
app.include_router(kernel_router)


@app.get("/")
async def root() -> dict:
    return {
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "kernel": {
            "metrics": "/kernel/metrics",
            "users": "/kernel/users",
            "login": "/kernel/users/login",
            "current_user": "/kernel/users/current",
            "rollover": "/kernel/users/{id}/rollover",
            "dashboard": "/kernel/users/{id}/dashboard",
            "labs": "/kernel/users/{id}/labs",
            "history": "/kernel/users/{id}/history/{domain}",
        },
    }


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
