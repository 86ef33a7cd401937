# pos_sync/core/database.py

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
import os

from .config import settings

DATABASE_URL = os.getenv("DATABASE_URL", settings.database_url)

# Create engine with optional echo for development
engine_kwargs = {
    "echo": os.getenv("LOG_SQL_QUERIES", "false").lower() == "true",
    "pool_pre_ping": True,
}

if DATABASE_URL.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}
    if DATABASE_URL in {"sqlite://", "sqlite:///:memory:"}:
        engine_kwargs["poolclass"] = StaticPool
else:
    engine_kwargs["pool_size"] = int(os.getenv("DB_POOL_SIZE", "10"))
    engine_kwargs["max_overflow"] = int(os.getenv("DB_MAX_OVERFLOW", "20"))

engine = create_engine(
    DATABASE_URL,
    **engine_kwargs,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None):
    """Create all tables registered on ``Base``."""
    # Model modules register their tables on import
    from pos_sync.modules.menu.models import menu_models  # noqa: F401
    from pos_sync.modules.orders.models import order_models  # noqa: F401
    from pos_sync.modules.pos.models import pos_integration  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
