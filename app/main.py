from fastapi import FastAPI, Request, APIRouter
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from app.api.v1.routes import rsvp_requests as rsvp_requests_router, health as health_router
from app.db.session import engine, Base
from app.core.config import settings
from app.core.exceptions import RSVPRequestError
from app.core.logging import logger
from app.events.publisher import close_connection
from app.cache.redis_client import cache
from app.db import models  # noqa: F401  registers every table on Base.metadata

app = FastAPI(title="RSVP Admission")

# Rate limiter lives with the routes it guards
app.state.limiter = rsvp_requests_router.limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RSVPRequestError)
async def rsvp_request_error_handler(request: Request, exc: RSVPRequestError):
    """Render classified workflow failures as ``{"detail", "code"}`` with their status."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


api_router = APIRouter(prefix="/api/v1")
api_router.include_router(rsvp_requests_router.router)
api_router.include_router(health_router.router)

app.include_router(api_router)


@app.on_event("startup")
async def on_startup():
    # create tables (simple approach for local runs; deployments apply the alembic revision)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("RSVP admission service started")


@app.on_event("shutdown")
async def on_shutdown():
    await close_connection()
    cache.close()
    await engine.dispose()
