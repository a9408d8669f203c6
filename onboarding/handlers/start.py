from __future__ import annotations

import html
import logging

from aiogram import Router
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.types import Message

from onboarding.config import DB_PATH
from onboarding.db.repository import save_registration
from onboarding.errors import ValidationError
from onboarding.utils.validators import is_non_empty_text, is_valid_email

logger = logging.getLogger(__name__)

router = Router()

REGISTER_USAGE = "Usage: /register School Name | school@email.com | access-token"


def parse_registration(args: str | None) -> dict[str, str]:
    """`Name | email | token` -> поля регистрации. Токен можно не указывать."""
    parts = [p.strip() for p in (args or "").split("|")]
    if len(parts) not in (2, 3):
        raise ValidationError({"registration": REGISTER_USAGE})

    name, email = parts[0], parts[1]
    token = parts[2] if len(parts) == 3 else ""
    errors: dict[str, str] = {}
    if not is_non_empty_text(name):
        errors["name"] = "School name is required"
    if not is_valid_email(email):
        errors["email"] = "Invalid email address"
    if errors:
        raise ValidationError(errors)
    return {"name": name, "email": email, "token": token}


@router.message(CommandStart())
async def cmd_start(message: Message) -> None:
    text = (
        "Hi! This bot sets up your school on the admin platform.\n"
        "Send /setup to enter the school phone number, address, prefix, logo and stamp 👇\n"
        "No account yet? Register first with /register."
    )
    await message.answer(text)


@router.message(Command("register"))
async def cmd_register(message: Message, command: CommandObject) -> None:
    try:
        data = parse_registration(command.args)
    except ValidationError as exc:
        await message.answer("⚠️ " + "\n".join(exc.errors.values()))
        return

    await save_registration(DB_PATH, tg_user_id=message.from_user.id, **data)
    logger.info("Registration saved for user %s", message.from_user.id)
    await message.answer(f"Registered <b>{html.escape(data['name'])}</b> ({html.escape(data['email'])}). Now send /setup.")


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    text = (
        "<b>Help</b>\n"
        "/register Name | email | token — save the school account the wizard works with.\n"
        "/setup — start (or restart) the school setup wizard.\n"
        "The step you are on follows from the fields already filled: "
        "clear a field with «Edit» and the wizard goes back to it.\n"
        "Logo and stamp: only *.jpeg, *.webp and *.png images are accepted."
    )
    await message.answer(text)
