"""
Ledger over a real AsyncSession for tests.

Creates the schema from the ORM metadata on a SQLite file database so the
check constraints, row counts and UPDATE ... RETURNING statements of the
repositories run against an actual engine.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy import BigInteger
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.ext.compiler import compiles

from placement_rewards.config.database import create_session_maker
from placement_rewards.models import Base
from placement_rewards.repositories.ledger import Ledger


# SQLite assigns ids only to INTEGER primary keys
@compiles(BigInteger, "sqlite")
def compile_big_integer(type_, compiler, **kw) -> str:
    return "INTEGER"


@asynccontextmanager
async def sqlite_ledger(directory: Path) -> AsyncIterator[Ledger]:
    """
    Yield a ledger bound to a fresh database under ``directory``.

    Usage:
        async with sqlite_ledger(tmp_path) as ledger:
            await PlacementOpener(ledger).open_location(...)
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{directory / 'ledger.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = create_session_maker(engine)
    try:
        async with session_maker() as session:
            yield Ledger(session)
    finally:
        await engine.dispose()
