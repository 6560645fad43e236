from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from vitrine.config import settings

engine = create_engine(settings.database_url, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create the tables owned by this service if they are missing."""
    from vitrine import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
