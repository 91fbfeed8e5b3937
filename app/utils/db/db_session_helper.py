from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from sqlalchemy.orm import Session

from app.db import SessionLocal


@contextmanager
def db_session(
    session_factory: Optional[Callable[[], Session]] = None,
) -> Iterator[Session]:
    """Open a session, roll back on error, always close."""
    db = (session_factory or SessionLocal)()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
