"""Main entry point for Chat Core."""

import asyncio
from pathlib import Path

from dotenv import load_dotenv

from chat_core.app import Application
from chat_core.logging_config import get_logger, setup_logging
from sim import Sim

logger = get_logger(__name__)


async def run() -> None:
    """Start the application, run the seeding scenario, shut down."""
    app = Application()
    await app.start()
    try:
        await Sim(app).run()
    finally:
        await app.stop()


def main():
    """Run the application."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")

    # LOG_LEVEL / LOG_FILE / DATABASE_URL come from the environment
    setup_logging()

    asyncio.run(run())


if __name__ == "__main__":
    main()
