# acme_hr/db.py
from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from acme_hr.config import settings

Base = declarative_base()


class RecordStore:
    """
    Owns the engine and the session factory. Built once at startup and passed
    to the loader, the API and the dashboard.
    """

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.DATABASE_URL
        kwargs = {"pool_pre_ping": True}
        if self.database_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in self.database_url or self.database_url.rstrip("/") == "sqlite:":
                kwargs["poolclass"] = StaticPool
        self.engine = create_engine(self.database_url, **kwargs)
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, autocommit=False)

    def ping(self):
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def init_db(self):
        import acme_hr.models  # noqa: F401  registers the tables on Base
        Base.metadata.create_all(bind=self.engine)

    def connect(self):
        """Check connectivity and make sure the tables exist."""
        self.ping()
        self.init_db()

    def session(self):
        return self.SessionLocal()

    def dispose(self):
        self.engine.dispose()
