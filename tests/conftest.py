from __future__ import annotations

import pytest
from models import FILTERS, Base, seed
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session

from query_filter import (
    QueryFilterCompiler,
    RecordingObserver,
    SQLAlchemySchemaProvider,
)


@pytest.fixture
def schema():
    return SQLAlchemySchemaProvider.from_base(Base)


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def compiler(schema, observer):
    return QueryFilterCompiler(registry=FILTERS, schema=schema, observers=[observer])


@pytest.fixture
def session():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    with Session(engine, expire_on_commit=False) as sess:
        seed(sess)
        sess.commit()
        yield sess
    engine.dispose()


@pytest.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as sess:
        await sess.run_sync(seed)
        await sess.commit()

    yield factory
    await engine.dispose()
