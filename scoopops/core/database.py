from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from scoopops.core.config import settings

engine = create_engine(
    settings.APP_DATABASE_DSN,
    connect_args=({"check_same_thread": False} if "sqlite" in settings.APP_DATABASE_DSN else {}),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()

_ATOMIC_DEPTH = "atomic_depth"


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit(db: Session) -> None:
    """Commit the session, or only flush it while inside ``atomic(db)``."""
    if db.info.get(_ATOMIC_DEPTH):
        db.flush()
    else:
        db.commit()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Group repository writes into one transaction.

    Repository commits inside the block become flushes. The outermost block
    commits on success and rolls everything back if the block raises.
    """
    depth = db.info.get(_ATOMIC_DEPTH, 0)
    db.info[_ATOMIC_DEPTH] = depth + 1
    try:
        yield db
    except BaseException:
        db.info[_ATOMIC_DEPTH] = depth
        if depth == 0:
            db.rollback()
        raise
    db.info[_ATOMIC_DEPTH] = depth
    if depth == 0:
        db.commit()


def init_db() -> None:
    """Initialize database tables."""
    import scoopops.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
