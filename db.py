from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator
import logging

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

import config
from models.base import Base
"""
Imports of these models are needed to correctly create tables in the database.
For more information see https://stackoverflow.com/questions/7478403/sqlalchemy-classes-across-files
"""
from models.user import User
from models.product import Product, ProductVariant
from models.order import Order
from models.orderLine import OrderLine

logger = logging.getLogger(__name__)


def set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Handle on the order store.

    One instance is built by the hosting process (see server.create_app), handed
    to every component that touches persistence and disposed at shutdown.

    Usage:
        database = Database("sqlite+aiosqlite:///data/storefront.db")
        await database.create_all()
        async with database.session() as session:
            await session.execute(...)
        await database.dispose()
    """

    def __init__(self, url: str | None = None, echo: bool = False):
        self.url = url or config.DB_URL
        parsed_url = make_url(self.url)
        engine_kwargs = {}
        if parsed_url.get_backend_name() == "sqlite":
            if parsed_url.database in (None, "", ":memory:"):
                # One shared connection, otherwise every session sees an empty database
                engine_kwargs["poolclass"] = StaticPool
                engine_kwargs["connect_args"] = {"check_same_thread": False}
            else:
                data_folder = Path(parsed_url.database).parent
                if data_folder.exists() is False:
                    data_folder.mkdir(parents=True)

        # SQL echo stays off, statements would clutter the application log
        self.engine = create_async_engine(self.url, echo=echo, **engine_kwargs)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", set_sqlite_pragma)
        self.session_maker = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.session_maker() as session:
            yield session

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"[DB] Tables ready ({len(Base.metadata.tables)} tables)")

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("[DB] Engine disposed")
