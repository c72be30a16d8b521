from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from plantkeep.adapters.sqlalchemy import create_all_tables, start_mappers
from plantkeep.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyGardenUnitOfWork,
    prepare_engine,
    shutdown,
    startup,
)
from tests.helpers.garden import FakeAssetStore

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = prepare_engine(create_engine("sqlite+pysqlite:///:memory:", future=True))
    start_mappers()
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyGardenUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyGardenUnitOfWork:
        return SqlAlchemyGardenUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def asset_store() -> FakeAssetStore:
    return FakeAssetStore()


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = tmp_path / "plantkeep"
    monkeypatch.setenv("PLANTKEEP_DATA_DIR", str(root))
    monkeypatch.delenv("PLANTKEEP_ASSET_DIR", raising=False)
    return root
