from __future__ import annotations

from aiogram.types import Message

SETUP_SUCCESS_TEXT = "School setup successful"
SETUP_NEXT_STAGE_TEXT = "Next stage: campus setup. Your school ID is saved."


async def send_setup_success(message: Message) -> None:
    # единая точка финального ответа после успешной настройки школы
    await message.answer(f"🎉 {SETUP_SUCCESS_TEXT}")
    await message.answer(SETUP_NEXT_STAGE_TEXT)
