from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from onboarding.constants.fields import SEEDED_FIELDS, StepDefinition, get_field
from onboarding.errors import ValidationError
from onboarding.services.attachments import Attachment, AttachmentManager, PreviewRegistry, SelectedFile, previews
from onboarding.services.field_store import FieldStateStore
from onboarding.services.steps import StepInferenceEngine
from onboarding.services.submission import SubmissionPipeline, SubmissionResult, SubmissionStatus, Transport
from onboarding.utils.validators import validate_field

ResultCallback = Callable[[SubmissionResult], "Awaitable[None] | None"]


class WizardSession:
    """Сессия мастера одного пользователя: поля, вложения, шаг и отправка."""

    def __init__(
        self,
        seed: Mapping[str, str],
        transport: Transport,
        *,
        registry: PreviewRegistry = previews,
        engine: StepInferenceEngine | None = None,
        on_result: ResultCallback | None = None,
    ) -> None:
        self.registry = registry
        self.store = FieldStateStore(seed=seed)
        self.attachments = AttachmentManager(self.store, registry=registry)
        self.engine = engine or StepInferenceEngine()
        self.pipeline = SubmissionPipeline(transport)
        self._on_result = on_result

    @property
    def current_step(self) -> int:
        return self.engine.current_step(self.store.get_all())

    @property
    def current_definition(self) -> StepDefinition:
        return self.engine.step_for(self.current_step)

    @property
    def status(self) -> SubmissionStatus:
        return self.pipeline.status

    def snapshot(self) -> Mapping[str, Any]:
        return self.store.get_all()

    def enter_text(self, field_name: str, text: str) -> None:
        field = get_field(field_name)
        if field is None or field.kind != "text" or field_name in SEEDED_FIELDS:
            raise ValueError(f"{field_name!r} is not an editable text field")

        value = (text or "").strip()
        error = validate_field(field_name, value)
        if error:
            raise ValidationError({field_name: error})
        self.store.set(field_name, value)

    def attach(self, field_name: str, file: SelectedFile) -> Attachment:
        return self.attachments.select(field_name, file)

    def preview_bytes(self, field_name: str) -> bytes | None:
        attachment = self.attachments.get(field_name)
        if attachment is None:
            return None
        return self.registry.resolve(attachment.preview.url)

    def clear_field(self, field_name: str) -> None:
        field = get_field(field_name)
        if field is None:
            return
        if field.kind == "file":
            self.attachments.remove(field_name)
        else:
            self.store.clear(field_name)

    async def submit(self, auth_token: str) -> SubmissionResult:
        result = await self.pipeline.submit(self.store.get_all(), self.attachments.current(), auth_token)
        if result.ok:
            self.attachments.release_all()

        if self._on_result is not None:
            maybe_awaitable = self._on_result(result)
            if inspect.isawaitable(maybe_awaitable):
                await maybe_awaitable
        return result
