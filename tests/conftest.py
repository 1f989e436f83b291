
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("FRONTEND_API_KEY", "")
os.environ.setdefault("ADMIN_API_KEY", "")

from datetime import datetime
from typing import Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from catalog.core.database import Base, get_session_maker
from catalog.models.content import get_source
from catalog.main import app


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def client(session_maker):
    app.dependency_overrides[get_session_maker] = lambda: session_maker
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def add_content(session_maker):
    async def _add(
        content_type: str,
        name: str,
        post_date: Optional[datetime],
        created_at: Optional[datetime] = None,
        category: Optional[str] = None,
        slug: Optional[str] = None,
        id: Optional[int] = None,
    ):
        model = get_source(content_type).model
        created_at = created_at or post_date or datetime(2024, 1, 1)
        row = model(
            name=name,
            slug=slug,
            category=category,
            post_date=post_date,
            created_at=created_at,
            updated_at=created_at,
        )
        if id is not None:
            row.id = id
        async with session_maker() as session:
            session.add(row)
            await session.commit()
            return row.id

    return _add


@pytest.fixture
def drop_table(session_maker):
    async def _drop(content_type: str):
        table = get_source(content_type).model.__tablename__
        async with session_maker() as session:
            await session.execute(text(f"DROP TABLE {table}"))
            await session.commit()

    return _drop
