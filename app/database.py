"""Database connection handle.

A single Database is created at startup, connected once and shared by every
request for the lifetime of the process. Repositories receive it explicitly.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

logger = logging.getLogger(__name__)


class Database:
    """Owns the SQLAlchemy engine (and its connection pool)."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[Engine] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not connected; call connect() first")
        return self._engine

    @property
    def connected(self) -> bool:
        return self._engine is not None

    def connect(self) -> Engine:
        """Create the engine on first call and return the same engine afterwards."""
        if self._engine is not None:
            return self._engine

        kwargs = {"echo": self.echo, "pool_pre_ping": True}
        if self.url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                # one shared connection, otherwise every session sees an empty database
                kwargs["poolclass"] = StaticPool

        self._engine = create_engine(self.url, **kwargs)
        logger.info("Database engine created for %s", self._engine.url.render_as_string(hide_password=True))
        return self._engine

    def init_db(self) -> None:
        """Create all tables that do not exist yet."""
        # register table metadata
        from app.models import ChatRecord, User  # noqa: F401

        SQLModel.metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self.engine, expire_on_commit=False) as session:
            yield session

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Database engine disposed")
