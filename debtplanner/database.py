from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker


logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Owns the SQLAlchemy engine for profile storage.

    Created by the app factory and handed to whatever needs persistence;
    nothing touches the database before ``connect`` or after ``disconnect``.
    """

    def __init__(self, database_uri: str, echo: bool = False) -> None:
        self.database_uri = database_uri
        self.echo = echo
        self._engine: Optional[Engine] = None
        self._sessions = sessionmaker(
            autocommit=False, autoflush=False, future=True, expire_on_commit=False
        )

    @property
    def connected(self) -> bool:
        return self._engine is not None

    def connect(self) -> None:
        """Create the engine and tables if needed."""

        if self._engine is not None:
            return
        self._engine = create_engine(self.database_uri, echo=self.echo, future=True)
        self._sessions.configure(bind=self._engine)

        # Import models so metadata is populated before create_all.
        from . import models  # noqa: F401  # pylint: disable=unused-import

        Base.metadata.create_all(bind=self._engine)
        logger.info("Connected profile store at %s", self._engine.url.render_as_string())

    def disconnect(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        logger.info("Disconnected profile store")

    def get_engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._engine

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Provide transactional scope around a series of operations."""

        self.get_engine()
        session = self._sessions()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
