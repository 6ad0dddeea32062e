import os

# Settings() is built at import time; give it a throwaway DB before app.* loads.
os.environ.setdefault("PROJECTOR_DB_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.infra.db import Base
from app.infra import models  # noqa: F401  # register tables on Base


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = Session()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def cache_dir(tmp_path, monkeypatch):
    from app.infra.settings import settings

    monkeypatch.setattr(settings, "projector_cache_dir", str(tmp_path / "ttl"))
    return tmp_path / "ttl"
