"""Generate database sessions"""

from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from gamehub.core.config import Settings
from gamehub.db.schema import Base


def build_engine(settings: Settings) -> Engine:
    url = settings.database_url
    if url in ("sqlite://", "sqlite:///:memory:"):
        # a single shared connection, otherwise every session sees its own empty database
        return create_engine(
            url,
            echo=settings.sql_echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, echo=settings.sql_echo)


def build_session_factory(settings: Settings) -> sessionmaker[Session]:
    engine = build_engine(settings)
    # Ensure all tables are created
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine)


def get_db(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
