from sqlalchemy import create_engine               # engine factory
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from config.settings import settings               # ✅ env-driven settings


def _engine_kwargs(url: str) -> dict:
    # in-memory SQLite must share a single connection across threads
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {"pool_pre_ping": True}


# ✅ engine built from the DB URL in settings
engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

# ✅ session factory used by every request / script
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# ✅ declarative Base inherited by all models
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
