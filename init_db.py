"""Create the MeetDesk tables; --reset drops existing ones first"""
import argparse
import asyncio

from meetdesk.database import engine, Base
from meetdesk import models  # noqa: F401 - registers tables on Base.metadata


async def init(reset: bool = False):
    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
            print("Dropped existing tables.")
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--reset", action="store_true", help="drop all tables before creating them")
    asyncio.run(init(reset=parser.parse_args().reset))
