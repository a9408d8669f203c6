from __future__ import annotations

from aiogram.fsm.state import State, StatesGroup


class SetupForm(StatesGroup):
    # какое поле спрашивать, не храним: шаг выводится из заполненных полей
    filling = State()

    # файл для поля, выбранного кнопкой «Заменить»
    replacing = State()

    confirm = State()
