from __future__ import annotations

import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from onboarding.config import BOT_TOKEN, DB_PATH
from onboarding.db.repository import init_db
from onboarding.handlers import setup_flow, start

logger = logging.getLogger(__name__)


async def run_bot() -> None:
    # aiogram>=3.7: parse_mode через DefaultBotProperties
    bot = Bot(token=BOT_TOKEN, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    dp = Dispatcher()

    await init_db(DB_PATH)

    dp.include_router(start.router)
    dp.include_router(setup_flow.router)

    logger.info("Starting polling, db=%s", DB_PATH)
    await dp.start_polling(bot)
