import sys
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, create_engine

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from recurring_planner import models as _models  # noqa: E402,F401
from recurring_planner.core import clock  # noqa: E402


@pytest.fixture(autouse=True)
def _fixed_zone(monkeypatch):
    monkeypatch.setenv("PLANNER_TIMEZONE", "UTC")
    clock.init_timezone("UTC")
    yield
    clock.init_timezone("UTC")


@pytest.fixture()
def engine(tmp_path):
    db_engine = create_engine(
        f"sqlite:///{tmp_path / 'planner.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    SQLModel.metadata.create_all(db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture()
def db(engine):
    with Session(engine) as session:
        yield session
