from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.pool import StaticPool

from propimport.adapters.sqlalchemy import SqlAlchemyPropertyUnitOfWork
from propimport.adapters.sqlalchemy.unit_of_work import shutdown, startup
from propimport.domain.importing import RepositoryPropertyStore

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyPropertyUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyPropertyUnitOfWork:
        return SqlAlchemyPropertyUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def property_store(
    sqlite_unit_of_work: Callable[[], SqlAlchemyPropertyUnitOfWork],
) -> RepositoryPropertyStore:
    return RepositoryPropertyStore(sqlite_unit_of_work)
