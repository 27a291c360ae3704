from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from core.config import settings


class DatabaseHelper:
    def __init__(self, url: str, echo: bool = False):
        engine_kwargs: dict = {"url": url, "echo": echo}
        if not url.startswith("sqlite"):
            engine_kwargs["pool_pre_ping"] = True
            engine_kwargs["pool_recycle"] = 300
        self.engine = create_async_engine(**engine_kwargs)
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            expire_on_commit=False,
        )

    async def session_dependency(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            yield session

    async def dispose(self) -> None:
        await self.engine.dispose()


db_helper = DatabaseHelper(
    url=settings.db.url,
    echo=settings.db.echo,
)
