from sqlalchemy import text
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine


def get_engine(database_url: str | None):
    if not database_url:
        raise RuntimeError("SEARCH_DATABASE_URL environment variable is not set")
    return create_async_engine(database_url, echo=False, pool_pre_ping=True)


def get_session(engine):
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
    )


async def database_ready(session_factory) -> bool:
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
