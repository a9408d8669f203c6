from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from onboarding.constants.fields import ADDRESS, EMAIL, LOGO, NAME, PHONE_NUMBER, PREFIX, STAMP
from onboarding.errors import SubmissionInProgress, TransportFailure
from onboarding.services.attachments import Attachment
from onboarding.utils.validators import validate_school_setup

logger = logging.getLogger(__name__)

# порядок частей multipart как в исходной форме
SCALAR_PARTS: tuple[str, ...] = (NAME, EMAIL, PHONE_NUMBER, ADDRESS, PREFIX)
FILE_PARTS: tuple[str, ...] = (LOGO, STAMP)

GENERIC_FAILURE_MESSAGE = "Failed to submit form"
VALIDATION_FAILURE_MESSAGE = "Please fix the highlighted fields"

Validator = Callable[[Mapping[str, Any]], Mapping[str, "str | None"]]


class SubmissionStatus(str, enum.Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class MultipartPart:
    name: str
    value: str | None = None
    data: bytes | None = field(default=None, repr=False)
    filename: str | None = None
    content_type: str | None = None

    @property
    def is_file(self) -> bool:
        return self.data is not None


@dataclass(frozen=True)
class MultipartPayload:
    parts: tuple[MultipartPart, ...]

    def names(self) -> list[str]:
        return [p.name for p in self.parts]

    def get(self, name: str) -> MultipartPart | None:
        for part in self.parts:
            if part.name == name:
                return part
        return None


@dataclass(frozen=True)
class SubmissionResult:
    status: SubmissionStatus
    school_id: str | None = None
    error: str | None = None
    field_errors: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status is SubmissionStatus.SUCCEEDED

    @classmethod
    def success(cls, school_id: str) -> SubmissionResult:
        return cls(SubmissionStatus.SUCCEEDED, school_id=school_id)

    @classmethod
    def failure(cls, error: str, field_errors: Mapping[str, str] | None = None) -> SubmissionResult:
        return cls(SubmissionStatus.FAILED, error=error, field_errors=dict(field_errors or {}))


class Transport(Protocol):
    async def send(self, payload: MultipartPayload, token: str) -> Mapping[str, Any]: ...


def build_payload(snapshot: Mapping[str, Any], attachments: Mapping[str, Attachment]) -> MultipartPayload:
    parts: list[MultipartPart] = []
    for name in SCALAR_PARTS:
        value = snapshot.get(name)
        parts.append(MultipartPart(name=name, value=value if isinstance(value, str) else ""))

    # пустые файловые поля не отправляем вовсе
    for name in FILE_PARTS:
        attachment = attachments.get(name)
        if attachment is None:
            continue
        parts.append(
            MultipartPart(
                name=name,
                data=attachment.data,
                filename=attachment.file_name,
                content_type=attachment.content_type or "application/octet-stream",
            )
        )
    return MultipartPayload(parts=tuple(parts))


def extract_identifier(body: Any, path: Sequence[str]) -> str:
    node = body
    for key in path:
        if not isinstance(node, Mapping) or key not in node:
            raise TransportFailure(f"malformed response: missing {'.'.join(path)}")
        node = node[key]
    if node is None or isinstance(node, (dict, list)) or str(node) == "":
        raise TransportFailure(f"malformed response: bad {'.'.join(path)}")
    return str(node)


class SubmissionPipeline:
    """
    idle -> submitting -> succeeded | failed.
    Повторная отправка разрешена из failed; во время submitting - SubmissionInProgress.
    """

    def __init__(
        self,
        transport: Transport,
        validate: Validator = validate_school_setup,
        id_path: Sequence[str] = ("school", "id"),
    ) -> None:
        self._transport = transport
        self._validate = validate
        self._id_path = tuple(id_path)
        self._status = SubmissionStatus.IDLE

    @property
    def status(self) -> SubmissionStatus:
        return self._status

    async def submit(
        self,
        snapshot: Mapping[str, Any],
        attachments: Mapping[str, Attachment],
        auth_token: str,
    ) -> SubmissionResult:
        if self._status is SubmissionStatus.SUBMITTING:
            raise SubmissionInProgress()

        # до первого await: второй submit на том же loop уже увидит submitting
        self._status = SubmissionStatus.SUBMITTING
        result: SubmissionResult | None = None
        try:
            result = await self._submit(snapshot, attachments, auth_token)
            return result
        finally:
            self._status = SubmissionStatus.SUCCEEDED if result is not None and result.ok else SubmissionStatus.FAILED

    async def _submit(
        self,
        snapshot: Mapping[str, Any],
        attachments: Mapping[str, Attachment],
        auth_token: str,
    ) -> SubmissionResult:
        errors = {name: msg for name, msg in self._validate(snapshot).items() if msg}
        if errors:
            logger.info("School setup rejected by validation: %s", ", ".join(sorted(errors)))
            return SubmissionResult.failure(VALIDATION_FAILURE_MESSAGE, errors)

        payload = build_payload(snapshot, attachments)
        try:
            body = await self._transport.send(payload, auth_token)
            school_id = extract_identifier(body, self._id_path)
        except (TransportFailure, OSError) as exc:
            logger.warning("School setup submission failed: %s", exc, exc_info=exc)
            return SubmissionResult.failure(GENERIC_FAILURE_MESSAGE)

        logger.info("School setup submitted, school id %s", school_id)
        return SubmissionResult.success(school_id)
