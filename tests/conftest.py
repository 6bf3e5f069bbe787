from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.pool import StaticPool

from civicview.adapters.sqlalchemy import SqlAlchemyStores, create_source_tables, startup
from civicview.app import Runtime, create_runtime
from civicview.config import MaterializationConfig
from tests.helpers.records import SourceData, scenario_data, seed_source

os.environ.setdefault("SOURCE_DATABASE_URI", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("TARGET_DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator


def _memory_engine() -> Engine:
    # one shared connection, so every session sees the same in-memory database
    return create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def source_engine() -> Iterator[Engine]:
    engine = _memory_engine()
    create_source_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def target_engine() -> Iterator[Engine]:
    engine = _memory_engine()
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def stores(source_engine: Engine, target_engine: Engine) -> SqlAlchemyStores:
    return startup(source_engine=source_engine, target_engine=target_engine)


@pytest.fixture
def scenario(source_engine: Engine) -> SourceData:
    data = scenario_data()
    seed_source(source_engine, data)
    return data


@pytest.fixture
def runtime(stores: SqlAlchemyStores) -> Iterator[Runtime]:
    runtime = create_runtime(stores=stores, materialization=MaterializationConfig())
    try:
        yield runtime
    finally:
        runtime.close()
