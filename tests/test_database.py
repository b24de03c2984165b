from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import IntegrityError

from app.database import Database
from app.db_models import Actor, Medialist, MedialistItem


def test_create_all_builds_every_table(tmp_path) -> None:
    """Creating the schema twice is harmless and yields the four tables."""

    database_path = tmp_path / "fresh.db"

    async def runner() -> None:
        database = Database(f"sqlite+aiosqlite:///{database_path}")
        await database.create_all()
        await database.create_all()
        await database.dispose()

    asyncio.run(runner())

    inspector_engine = create_engine(f"sqlite:///{database_path}")
    try:
        inspector = inspect(inspector_engine)
        tables = set(inspector.get_table_names())
        columns = {column["name"] for column in inspector.get_columns("medialists")}
    finally:
        inspector_engine.dispose()

    assert tables == {"actors", "media", "medialists", "medialist_items"}
    assert {"source_type", "source_limit", "auto_update"} <= columns


def test_item_requires_media_or_name(tmp_path) -> None:
    """Items with neither a media reference nor a name are rejected."""

    async def runner() -> None:
        database = Database(f"sqlite+aiosqlite:///{tmp_path / 'check.db'}")
        await database.create_all()
        async with database.session_factory() as session:
            actor = Actor(display_name="someone", permissions=0)
            session.add(actor)
            await session.flush()
            medialist = Medialist(name="Empty", created_by_id=actor.id)
            session.add(medialist)
            await session.flush()
            session.add(MedialistItem(medialist_id=medialist.id, tmdb_id=5))
            with pytest.raises(IntegrityError):
                await session.commit()
        await database.dispose()

    asyncio.run(runner())
