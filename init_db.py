import argparse
import asyncio
import sys

from pdfnotebook.core.config import Settings
from pdfnotebook.db.session import Database

if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


async def init_models(drop_existing: bool):
    settings = Settings()
    database = Database(settings.DB_URL, echo=settings.SQL_ECHO)
    try:
        await database.init_models(drop_existing=drop_existing)
    finally:
        await database.close()
    print(f"✔ Database initialized successfully! ({settings.DB_URL.split('://')[0]})")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the notebook service tables")
    parser.add_argument("--drop", action="store_true", help="Drop existing tables first")
    args = parser.parse_args()
    asyncio.run(init_models(args.drop))
