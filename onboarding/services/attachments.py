from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import PurePath
from types import MappingProxyType

from onboarding.constants.fields import ACCEPTED_IMAGE_TYPES, FILE_FIELDS
from onboarding.errors import UnsupportedFileType
from onboarding.services.field_store import FieldStateStore

logger = logging.getLogger(__name__)

SIZE_UNITS: tuple[str, ...] = ("Bytes", "KB", "MB", "GB")


def format_size(num_bytes: int) -> str:
    """
    1024-based: 0 -> "0 Bytes", 1024 -> "1 KB", 1536 -> "1.5 KB".
    Всё, что больше GB, остаётся в GB.
    """
    if num_bytes < 0:
        raise ValueError("size must be non-negative")
    if num_bytes == 0:
        return "0 Bytes"

    # floor(log1024(n)) без плавающей погрешности на точных степенях 1024
    idx = 0
    while idx < len(SIZE_UNITS) - 1 and num_bytes >= 1024 ** (idx + 1):
        idx += 1

    mantissa = f"{num_bytes / 1024 ** idx:.2f}".rstrip("0").rstrip(".")
    return f"{mantissa} {SIZE_UNITS[idx]}"


@dataclass(frozen=True)
class SelectedFile:
    name: str
    data: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class PreviewHandle:
    url: str
    content_type: str | None
    revoked: bool = False


class PreviewRegistry:
    """Аналог object URL: bytes по blob-ссылке живут, пока ссылку не отозвали."""

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}

    def create(self, data: bytes, content_type: str | None = None) -> PreviewHandle:
        url = f"blob:{uuid.uuid4()}"
        self._blobs[url] = data
        return PreviewHandle(url=url, content_type=content_type)

    def resolve(self, url: str) -> bytes | None:
        return self._blobs.get(url)

    def revoke(self, handle: PreviewHandle) -> None:
        if handle.revoked:
            return
        self._blobs.pop(handle.url, None)
        handle.revoked = True

    def live_count(self) -> int:
        return len(self._blobs)


# общий на процесс
previews = PreviewRegistry()


@dataclass
class Attachment:
    field_name: str
    file_name: str
    size: int
    content_type: str | None
    extension: str
    data: bytes = field(repr=False)
    preview: PreviewHandle = field(repr=False)

    @property
    def display_size(self) -> str:
        return format_size(self.size)


def file_extension(file: SelectedFile) -> str:
    suffix = PurePath(file.name or "").suffix.lower().lstrip(".")
    if suffix:
        return suffix
    # у фото из Telegram имени нет, остаётся MIME
    content_type = (file.content_type or "").lower()
    if content_type.startswith("image/"):
        return content_type.split("/", 1)[1]
    return ""


class AttachmentManager:
    def __init__(
        self,
        store: FieldStateStore,
        registry: PreviewRegistry = previews,
        fields: Iterable[str] = FILE_FIELDS,
        accepted: Iterable[str] = ACCEPTED_IMAGE_TYPES,
    ) -> None:
        self._store = store
        self._registry = registry
        self._fields = frozenset(fields)
        self._accepted = frozenset(a.lower() for a in accepted)
        self._attachments: dict[str, Attachment] = {}
        self._input_resets: dict[str, Callable[[], None]] = {}

    def _check_field(self, field_name: str) -> None:
        if field_name not in self._fields:
            raise ValueError(f"{field_name!r} is not a file field")

    def bind_input(self, field_name: str, reset: Callable[[], None]) -> None:
        """
        Привязать сброс контрола ввода к полю. Новая привязка сразу сбрасывает
        предыдущий контрол, так что живым остаётся только последний.
        """
        self._check_field(field_name)
        previous = self._input_resets.get(field_name)
        self._input_resets[field_name] = reset
        if previous is not None and previous is not reset:
            previous()

    def select(self, field_name: str, file: SelectedFile) -> Attachment:
        self._check_field(field_name)

        ext = file_extension(file)
        if ext not in self._accepted:
            raise UnsupportedFileType(field_name, file.name, file.content_type)

        prior = self._attachments.get(field_name)
        if prior is not None:
            self._registry.revoke(prior.preview)

        attachment = Attachment(
            field_name=field_name,
            file_name=file.name or f"{field_name}.{ext}",
            size=file.size,
            content_type=file.content_type,
            extension=ext,
            data=file.data,
            preview=self._registry.create(file.data, file.content_type),
        )
        self._attachments[field_name] = attachment
        self._store.set(field_name, attachment)
        logger.debug("Selected %s for %s (%s)", attachment.file_name, field_name, attachment.display_size)
        return attachment

    def remove(self, field_name: str) -> None:
        self._check_field(field_name)
        attachment = self._attachments.pop(field_name, None)
        if attachment is None:
            return

        self._registry.revoke(attachment.preview)
        self._store.set(field_name, None)
        # контрол сбрасывается один раз, дальше привязки нет
        reset = self._input_resets.pop(field_name, None)
        if reset is not None:
            reset()

    def release_all(self) -> None:
        for field_name in list(self._attachments):
            self.remove(field_name)

    def get(self, field_name: str) -> Attachment | None:
        return self._attachments.get(field_name)

    def current(self) -> Mapping[str, Attachment]:
        return MappingProxyType(dict(self._attachments))

    def describe(self, field_name: str) -> str:
        attachment = self._attachments.get(field_name)
        if attachment is None:
            return "—"
        return f"{attachment.file_name} ({attachment.display_size})"
