from typing import Generator

from sqlmodel import Session, SQLModel, create_engine

from formbuilder import models  # noqa: F401  (registers tables on the metadata)
from formbuilder.config import get_database_url

_engine = None


def get_engine():
    global _engine
    if _engine is None:
        db_url = get_database_url()

        connect_args = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False

        _engine = create_engine(
            db_url,
            echo=False,
            pool_pre_ping=True,
            connect_args=connect_args,
        )

    return _engine


def init_db() -> None:
    """Create all tables if they do not exist. Runs at application startup."""
    SQLModel.metadata.create_all(get_engine())


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency, injected with Depends(get_session)."""
    with Session(get_engine()) as session:
        yield session
