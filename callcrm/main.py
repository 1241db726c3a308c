import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from callcrm.db.redis_client import close_redis
from callcrm.db.session import close_db
from callcrm.routers import audit, call, case, case_note, client, dashboard, lead, user

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Call-center CRM starting")
    yield
    await close_db()
    await close_redis()
    logger.info("Call-center CRM stopped")


app = FastAPI(
    title="Call-center CRM",
    version="1.0.0",
    lifespan=lifespan,
)

# --- Register Routers ---
app.include_router(lead.router)       # /api/v1/leads/*
app.include_router(client.router)     # /api/v1/clients/*
app.include_router(case.router)       # /api/v1/cases/*
app.include_router(case_note.router)  # /api/v1/notes/*
app.include_router(call.router)       # /api/v1/calls
app.include_router(user.router)       # /api/v1/users/*
app.include_router(audit.router)      # /api/v1/audit
app.include_router(dashboard.router)  # /api/v1/dashboard/metrics


# --- Root health check ---
@app.get("/")
async def root():
    return {"message": "Call-center CRM API is running"}
