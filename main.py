from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from config.settings import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
# quiet HTTP client debug logs
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


# ✅ middlewares
from middlewares.timing import TimingMiddleware
from middlewares.error_handler import add_error_handlers

# ✅ database
from database.db import Base, engine

# ✅ routers
from routers import (
    batches, structure, modules, students, grades, ingest, statistics, activity,
)

app = FastAPI(
    title=settings.APP_TITLE,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
)

# ✅ CORS for the dashboard / public lookup frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ✅ latency header (X-Latency-Ms)
app.add_middleware(TimingMiddleware)

# ✅ global JSON error handler
add_error_handlers(app)

# ✅ /v1 prefixed routers
app.include_router(batches.router,     prefix="/v1")
app.include_router(structure.router,   prefix="/v1")
app.include_router(modules.router,     prefix="/v1")
app.include_router(students.router,    prefix="/v1")
app.include_router(grades.router,      prefix="/v1")
app.include_router(ingest.router,      prefix="/v1")
app.include_router(statistics.router,  prefix="/v1")
app.include_router(activity.router,    prefix="/v1")

# ✅ health check
@app.get("/health")
def health_check():
    return {"status": "ok", "message": "API is running"}

@app.on_event("startup")
def _create_tables():
    if settings.AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")

# ✅ root
@app.get("/")
def root():
    return {"message": settings.APP_TITLE}
