from __future__ import annotations

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from onboarding.constants.fields import SCHOOL_SETUP_FIELDS, SEEDED_FIELDS


def _cancel_row() -> list[InlineKeyboardButton]:
    return [InlineKeyboardButton(text="❌ Cancel", callback_data="setup:cancel")]


def step_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="✏️ Edit a field", callback_data="setup:edit")],
            _cancel_row(),
        ]
    )


def attachment_kb(field_name: str) -> InlineKeyboardMarkup:
    # callback: att:<action>:<field>
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text="🔁 Upload a different file", callback_data=f"att:replace:{field_name}"),
                InlineKeyboardButton(text="🗑 Remove", callback_data=f"att:remove:{field_name}"),
            ],
            [InlineKeyboardButton(text="👁 Preview", callback_data=f"att:preview:{field_name}")],
        ]
    )


def edit_fields_kb() -> InlineKeyboardMarkup:
    rows: list[list[InlineKeyboardButton]] = []
    for field in SCHOOL_SETUP_FIELDS:
        if field.name in SEEDED_FIELDS:
            continue
        rows.append([InlineKeyboardButton(text=field.title, callback_data=f"setup:clear:{field.name}")])
    rows.append([InlineKeyboardButton(text="⬅️ Back", callback_data="setup:resume")])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def confirm_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text="✅ Create Account", callback_data="setup:send"),
                InlineKeyboardButton(text="✏️ Edit", callback_data="setup:edit"),
            ],
            _cancel_row(),
        ]
    )
