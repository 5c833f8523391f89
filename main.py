import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from core.database import engine
from models.base import Base

# Register every table on Base.metadata
import models.profile  # noqa: F401
import models.travel_schedule  # noqa: F401
import models.job_posting  # noqa: F401
import models.saved_job  # noqa: F401
import models.job_application  # noqa: F401
import models.credential  # noqa: F401

from routers.health import router as health_router
from routers.auth import router as auth_router
from routers.webhooks import router as webhooks_router
from routers.countries import router as countries_router
from routers.profile import router as profile_router
from routers.creators import router as creators_router
from routers.travel import router as travel_router
from routers.jobs import router as jobs_router
from routers.admin import router as admin_router

app = FastAPI(
    title="AdHub API",
    version="0.1.0",
    description="Marketplace connecting content creators with businesses",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.SITE_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = logging.getLogger("uvicorn.error")


@app.middleware("http")
async def log_request_time(request: Request, call_next):
    start_time = time.perf_counter()
    response = await call_next(request)
    process_time = (time.perf_counter() - start_time) * 1000
    logger.info(
        f"{request.method} {request.url.path} completed in {process_time:.2f} ms"
    )
    return response

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(webhooks_router)
app.include_router(countries_router)
app.include_router(profile_router)
app.include_router(creators_router)
app.include_router(travel_router)
app.include_router(jobs_router)
app.include_router(admin_router)


@app.on_event("startup")
async def on_startup():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@app.get("/")
async def root():
    return {"message": "AdHub API"}


@app.on_event("shutdown")
async def shutdown():
    await engine.dispose()
