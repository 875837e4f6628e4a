"""
Engine and session factory. SQLite (local dev, tests) needs cross-thread access
because FastAPI runs sync endpoints in a threadpool; server databases get pre-ping.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from tailorcv.app.core.config import settings

_is_sqlite = settings.database_url.startswith("sqlite")

engine = create_engine(
    settings.database_url,
    echo=False,
    connect_args={"check_same_thread": False} if _is_sqlite else {},
    pool_pre_ping=not _is_sqlite,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
