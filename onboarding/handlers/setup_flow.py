from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import BufferedInputFile, CallbackQuery, Message

from onboarding.config import API_BASE_URL, DB_PATH, MAX_UPLOAD_BYTES, SCHOOL_SETUP_PATH
from onboarding.constants.fields import (
    ADDRESS,
    EMAIL,
    LOGO,
    NAME,
    PHONE_NUMBER,
    PREFIX,
    STAMP,
    field_title,
    get_field,
)
from onboarding.db.repository import get_registration, save_school_id
from onboarding.errors import SubmissionInProgress, UnsupportedFileType, ValidationError
from onboarding.keyboards.inline import attachment_kb, confirm_kb, edit_fields_kb, step_kb
from onboarding.services.attachments import SelectedFile, format_size
from onboarding.services.session import WizardSession
from onboarding.services.submission import SubmissionStatus
from onboarding.services.summary import format_field_errors, format_review, format_stepper
from onboarding.services.transport import HttpTransport
from onboarding.states.setup_form import SetupForm
from onboarding.utils.replies import send_setup_success
from onboarding.utils.validators import FILE_TYPE_MESSAGE

logger = logging.getLogger(__name__)

router = Router()

_PROMPTS: dict[str, str] = {
    PHONE_NUMBER: "Enter the school phone number:",
    ADDRESS: "Enter the school address:",
    PREFIX: "Enter the prefix (school name initials):",
    LOGO: f"Upload your school logo (photo or image file).\n({FILE_TYPE_MESSAGE})",
    STAMP: f"Upload your school stamp (photo or image file).\n({FILE_TYPE_MESSAGE})",
}

# вложения (bytes + preview) в FSM storage не кладём, сессии живут в памяти процесса
_sessions: dict[int, WizardSession] = {}
# (user_id, field) -> message_id сообщения с живой клавиатурой вложения
_controls: dict[tuple[int, str], int] = {}
_markup_tasks: set[asyncio.Task] = set()


def _new_session(user_id: int, registration: dict) -> WizardSession:
    _drop_session(user_id)
    session = WizardSession(
        seed={NAME: registration.get("name") or "", EMAIL: registration.get("email") or ""},
        transport=HttpTransport(API_BASE_URL, SCHOOL_SETUP_PATH),
    )
    _sessions[user_id] = session
    return session


def _drop_session(user_id: int) -> None:
    session = _sessions.pop(user_id, None)
    if session is not None:
        session.attachments.release_all()
    for key in [k for k in _controls if k[0] == user_id]:
        del _controls[key]


async def _session_lost(message: Message, state: FSMContext) -> None:
    await state.clear()
    await message.answer("Your setup session has expired. Start again with /setup.")


async def _show_current_step(message: Message, state: FSMContext, session: WizardSession) -> None:
    snapshot = session.snapshot()
    stepper = format_stepper(session.engine, snapshot)
    gate = session.engine.gating_field(snapshot)

    if gate is None:
        await state.set_state(SetupForm.confirm)
        await message.answer(f"{stepper}\n\n{format_review(snapshot)}", reply_markup=confirm_kb())
        return

    await state.set_state(SetupForm.filling)
    await message.answer(f"{stepper}\n\n{_PROMPTS[gate]}", reply_markup=step_kb())


async def _download(message: Message) -> SelectedFile | None:
    if message.photo:
        photo = message.photo[-1]
        file_id, size = photo.file_id, photo.file_size
        name, content_type = f"{photo.file_unique_id}.jpg", "image/jpeg"
    elif message.document:
        doc = message.document
        file_id, size = doc.file_id, doc.file_size
        name, content_type = doc.file_name or "", doc.mime_type
    else:
        return None

    if size and size > MAX_UPLOAD_BYTES:
        await message.answer(f"File is too large ({format_size(size)}). Limit: {format_size(MAX_UPLOAD_BYTES)}.")
        return None

    buf = await message.bot.download(file_id)
    return SelectedFile(name=name, data=buf.getvalue(), content_type=content_type)


def _markup_reset_done(task: asyncio.Task) -> None:
    _markup_tasks.discard(task)
    if not task.cancelled() and task.exception() is not None:
        logger.warning("Could not remove attachment keyboard: %s", task.exception())


def _attachment_control(user_id: int, field_name: str, sent: Message) -> Callable[[], None]:
    _controls[(user_id, field_name)] = sent.message_id

    def reset() -> None:
        if _controls.get((user_id, field_name)) == sent.message_id:
            del _controls[(user_id, field_name)]
        task = asyncio.create_task(sent.edit_reply_markup(reply_markup=None))
        _markup_tasks.add(task)
        task.add_done_callback(_markup_reset_done)

    return reset


async def _attach_from_message(
    message: Message, state: FSMContext, session: WizardSession, field_name: str
) -> None:
    selected = await _download(message)
    if selected is None:
        return

    try:
        attachment = session.attach(field_name, selected)
    except UnsupportedFileType:
        await message.answer(f"⚠️ {FILE_TYPE_MESSAGE}")
        return

    sent = await message.answer(
        f"📎 {field_title(field_name)}: {attachment.file_name} ({attachment.display_size})",
        reply_markup=attachment_kb(field_name),
    )
    # кнопки прошлого сообщения с этим полем гаснут при новой привязке
    session.attachments.bind_input(field_name, _attachment_control(message.from_user.id, field_name, sent))
    await _show_current_step(message, state, session)


@router.message(Command("setup"))
async def start_setup(message: Message, state: FSMContext) -> None:
    user_id = message.from_user.id
    registration = await get_registration(DB_PATH, user_id)
    if registration is None:
        await message.answer("Complete the registration step first, then come back with /setup.")
        return

    await state.clear()
    session = _new_session(user_id, registration)
    snapshot = session.snapshot()
    await message.answer(
        "<b>School Setup</b>\n"
        "Let's get you all set up so you can access the school account.\n\n"
        f"School Name: {snapshot[NAME] or '—'}\n"
        f"School Email: {snapshot[EMAIL] or '—'}"
    )
    await _show_current_step(message, state, session)


@router.callback_query(F.data == "setup:cancel")
async def setup_cancel(call: CallbackQuery, state: FSMContext) -> None:
    _drop_session(call.from_user.id)
    await state.clear()
    await call.message.answer("Ok, setup cancelled. Start again with /setup.")
    await call.answer()


# ---------- ввод полей ----------
@router.message(SetupForm.filling, F.photo | F.document)
async def input_file(message: Message, state: FSMContext) -> None:
    session = _sessions.get(message.from_user.id)
    if session is None:
        await _session_lost(message, state)
        return

    gate = session.engine.gating_field(session.snapshot())
    field = get_field(gate) if gate else None
    if field is None or field.kind != "file":
        await message.answer("On this step send text, not a file.", reply_markup=step_kb())
        return
    await _attach_from_message(message, state, session, gate)


@router.message(SetupForm.filling, F.text)
async def input_text(message: Message, state: FSMContext) -> None:
    session = _sessions.get(message.from_user.id)
    if session is None:
        await _session_lost(message, state)
        return

    gate = session.engine.gating_field(session.snapshot())
    if gate is None:
        await _show_current_step(message, state, session)
        return
    if get_field(gate).kind == "file":
        await message.answer(f"On this step send an image.\n({FILE_TYPE_MESSAGE})", reply_markup=step_kb())
        return

    try:
        session.enter_text(gate, message.text)
    except ValidationError as exc:
        await message.answer(f"⚠️ {exc.errors.get(gate)}", reply_markup=step_kb())
        return
    await _show_current_step(message, state, session)


# ---------- вложения ----------
@router.callback_query(F.data.startswith("att:"))
async def attachment_action(call: CallbackQuery, state: FSMContext) -> None:
    session = _sessions.get(call.from_user.id)
    if session is None:
        await call.answer()
        await _session_lost(call.message, state)
        return

    parts = (call.data or "").split(":", 2)
    if len(parts) != 3 or parts[2] not in (LOGO, STAMP):
        await call.answer("Invalid action")
        return
    action, field_name = parts[1], parts[2]
    if _controls.get((call.from_user.id, field_name)) != call.message.message_id:
        await call.answer("This file was replaced or removed", show_alert=True)
        return

    if action == "remove":
        # сброс контрола снимает клавиатуру с этого сообщения
        session.clear_field(field_name)
        await call.answer("Removed")
        await _show_current_step(call.message, state, session)
        return

    if action == "replace":
        await state.set_state(SetupForm.replacing)
        await state.update_data(replacing_field=field_name)
        await call.answer()
        await call.message.answer(f"Send a new file for {field_title(field_name)}.\n({FILE_TYPE_MESSAGE})")
        return

    if action == "preview":
        attachment = session.attachments.get(field_name)
        data = session.preview_bytes(field_name)
        if attachment is None or data is None:
            await call.answer("No file selected")
            return
        await call.answer()
        await call.message.answer_photo(
            BufferedInputFile(data, filename=attachment.file_name),
            caption=f"{attachment.file_name} ({attachment.display_size})",
        )
        return

    await call.answer("Invalid action")


@router.message(SetupForm.replacing, F.photo | F.document)
async def replace_file(message: Message, state: FSMContext) -> None:
    session = _sessions.get(message.from_user.id)
    if session is None:
        await _session_lost(message, state)
        return

    data = await state.get_data()
    field_name = data.get("replacing_field")
    if field_name not in (LOGO, STAMP):
        await _show_current_step(message, state, session)
        return
    await _attach_from_message(message, state, session, field_name)


@router.message(SetupForm.replacing)
async def replace_unexpected(message: Message) -> None:
    await message.answer(f"Send an image file or press «Cancel».\n({FILE_TYPE_MESSAGE})", reply_markup=step_kb())


# ---------- правка ----------
@router.callback_query(F.data == "setup:edit")
async def setup_edit(call: CallbackQuery) -> None:
    await call.answer()
    await call.message.answer("Which field do you want to change?", reply_markup=edit_fields_kb())


@router.callback_query(F.data.startswith("setup:clear:"))
async def setup_clear_field(call: CallbackQuery, state: FSMContext) -> None:
    session = _sessions.get(call.from_user.id)
    if session is None:
        await call.answer()
        await _session_lost(call.message, state)
        return

    field_name = (call.data or "").split(":", 2)[2]
    if get_field(field_name) is None:
        await call.answer("Invalid field")
        return

    # шаг откатится сам: он считается по первому пустому полю
    session.clear_field(field_name)
    await call.answer()
    await _show_current_step(call.message, state, session)


@router.callback_query(F.data == "setup:resume")
async def setup_resume(call: CallbackQuery, state: FSMContext) -> None:
    session = _sessions.get(call.from_user.id)
    await call.answer()
    if session is None:
        await _session_lost(call.message, state)
        return
    await _show_current_step(call.message, state, session)


# ---------- отправка ----------
@router.callback_query(SetupForm.confirm, F.data == "setup:send")
async def setup_send(call: CallbackQuery, state: FSMContext) -> None:
    user_id = call.from_user.id
    session = _sessions.get(user_id)
    if session is None:
        await call.answer()
        await _session_lost(call.message, state)
        return
    if session.status is SubmissionStatus.SUBMITTING:
        await call.answer("Already submitting, please wait…")
        return

    registration = await get_registration(DB_PATH, user_id)
    token = (registration or {}).get("token") or ""

    await call.message.answer("⏳ Creating Account...")
    try:
        result = await session.submit(token)
    except SubmissionInProgress:
        await call.answer("Already submitting, please wait…")
        return
    await call.answer()
    logger.info("School setup for user %s finished: %s", user_id, result.status.value)

    if result.ok:
        await save_school_id(DB_PATH, tg_user_id=user_id, school_id=result.school_id)
        _drop_session(user_id)
        await state.clear()
        await send_setup_success(call.message)
        return

    if result.field_errors:
        await call.message.answer(format_field_errors(result.field_errors))
        await _show_current_step(call.message, state, session)
        return

    await call.message.answer(f"❌ {result.error}. Please try again.", reply_markup=confirm_kb())
