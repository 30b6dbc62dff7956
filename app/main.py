import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from app.db.init_db import create_database
from app.db.base import Base
from app.db.session import engine, SessionLocal
from app.core.config import settings
from app.core.errors import AppError
from app.api.v1.router import api_router
from app.services.listings import expire_listings, purge_abandoned_drafts

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def _listing_expiry_loop() -> None:
    """Background task: expire listings and purge abandoned drafts on a fixed interval."""
    while True:
        try:
            db = SessionLocal()
            try:
                expire_listings(db)
                purge_abandoned_drafts(db, older_than_days=settings.DRAFT_RETENTION_DAYS)
            finally:
                db.close()
        except Exception:
            logger.exception("Error during listing expiry sweep.")
        await asyncio.sleep(settings.EXPIRY_SWEEP_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists and create tables
    create_database()
    Base.metadata.create_all(bind=engine)

    sweep_task = None
    if settings.EXPIRY_SWEEP_SECONDS > 0:
        sweep_task = asyncio.create_task(_listing_expiry_loop())
    yield

    # Shutdown: cancel background task
    if sweep_task:
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            pass


from fastapi.middleware.cors import CORSMiddleware

app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
def read_root():
    return {"service": settings.PROJECT_NAME, "status": "ok"}
