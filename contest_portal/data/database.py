# contest_portal/data/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from contest_portal.utils.settings import DATABASE_URL


def _engine_kwargs(url: str) -> dict:
    # sqlite (lokalnie / testy) - jedno polaczenie wspoldzielone miedzy watkami
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {"pool_pre_ping": True}


engine = create_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autoflush=True, expire_on_commit=False)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    # import modeli, zeby zarejestrowaly sie w Base.metadata
    import contest_portal.data.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
