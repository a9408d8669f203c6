from __future__ import annotations

import asyncio

from onboarding.bot import run_bot
from onboarding.config import LOG_LEVEL
from onboarding.utils.log_setup import setup_logging


def main() -> None:
    setup_logging(LOG_LEVEL)
    asyncio.run(run_bot())


if __name__ == "__main__":
    main()
