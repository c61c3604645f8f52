from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from shared.core.config import MARKETPLACE_DATABASE_URL, settings

Base = declarative_base()


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # local development / test database
        return {"connect_args": {"check_same_thread": False, "timeout": 30}}
    return {
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "pool_size": settings.DB_POOL_SIZE,          # max idle connections
        "max_overflow": settings.DB_MAX_OVERFLOW,    # max temporary extra connections
        "pool_timeout": 30,                          # wait time before failing
    }


marketplace_engine = create_engine(
    MARKETPLACE_DATABASE_URL, **_engine_options(MARKETPLACE_DATABASE_URL))
MarketplaceSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=marketplace_engine)


# Dependency


def get_marketplace_db():
    db = MarketplaceSessionLocal()
    try:
        yield db
    finally:
        db.close()
