import asyncio
import logging
import sys

from userhub.app.db import init_models
from userhub.app.db.session import engine

logging.basicConfig(level=logging.INFO)


async def main(drop: bool) -> None:
    # --drop: recreate tables from scratch - DEV MODE ONLY
    await init_models(engine, drop=drop)
    await engine.dispose()
    print(">>> Tables Created Successfully!")


if __name__ == "__main__":
    asyncio.run(main(drop="--drop" in sys.argv[1:]))
