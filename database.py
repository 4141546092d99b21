# database.py
"""
SQLAlchemy engine and session management.

This module provides:
- Engine construction from a database URL (MS SQL Server by default)
- Session factory construction
- The FastAPI session dependency, bound to whatever factory the
  application was created with (no module-level engine)

Usage:
     from database import build_engine, build_session_factory, get_session

     engine = build_engine()
     app = create_app(build_session_factory(engine))

     # In FastAPI routes:
     @router.get("/items")
     def get_items(db: Session = Depends(get_session)):
          return db.query(Item).all()
     """
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config import DATABASE_URL, SQL_ECHO

logger = logging.getLogger(__name__)


def build_engine(url: Optional[str] = None, **kwargs) -> Engine:
     """
     Create the SQLAlchemy engine.

     Pooling options apply to server databases only; SQLite URLs
     (used by the test suite) get the driver defaults.
     """
     url = url or DATABASE_URL
     options = {"echo": SQL_ECHO}
     if not url.startswith("sqlite"):
          options.update(
               pool_size=5,
               max_overflow=10,
               pool_timeout=30,
               pool_recycle=1800,  # Recycle connections after 30 minutes
               pool_pre_ping=True,
          )
     options.update(kwargs)
     return create_engine(url, **options)


def build_session_factory(engine: Engine) -> sessionmaker:
     """Session factory used for every request and job."""
     return sessionmaker(
          bind=engine,
          autocommit=False,
          autoflush=False,
          expire_on_commit=False,
     )


def get_session(request: Request) -> Generator[Session, None, None]:
     """
     FastAPI dependency that provides a database session.

     The session is committed when the route returns normally and rolled
     back when it raises, so every route is one all-or-nothing unit.

     Yields:
          Session: SQLAlchemy database session
     """
     session = request.app.state.session_factory()
     try:
          yield session
          session.commit()
     except Exception:
          session.rollback()
          raise
     finally:
          session.close()


@contextmanager
def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
     """
     Context manager for database sessions (for use outside FastAPI routes).

     Usage:
          with session_scope(factory) as db:
               InvitationWorkflow(db, enforcer).expire_stale_invitations()
     """
     session = session_factory()
     try:
          yield session
          session.commit()
     except Exception:
          session.rollback()
          raise
     finally:
          session.close()


def init_db(engine: Engine) -> None:
     """
     Create all tables defined in the models if they don't exist.
     For production, use Alembic migrations instead.
     """
     from models import Base
     Base.metadata.create_all(bind=engine)


def check_connection(engine: Engine) -> bool:
     """
     Test database connectivity.

     Returns:
          bool: True if connection successful, False otherwise
     """
     try:
          with engine.connect() as conn:
               conn.execute(text("SELECT 1"))
          return True
     except Exception as e:
          logger.error("Database connection failed: %s", e)
          return False
