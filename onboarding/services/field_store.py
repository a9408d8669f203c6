from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Any

from onboarding.constants.fields import SCHOOL_SETUP_FIELDS, SEEDED_FIELDS, FormField

logger = logging.getLogger(__name__)

Subscriber = Callable[[str, Any], None]


class FieldStateStore:
    """
    Текущие значения всех полей мастера.

    name/email приходят из регистрации один раз при создании и через set() не меняются.
    Подписчики вызываются синхронно, до возврата из set().
    """

    def __init__(
        self,
        seed: Mapping[str, str] | None = None,
        fields: Iterable[FormField] = SCHOOL_SETUP_FIELDS,
        read_only: Iterable[str] = SEEDED_FIELDS,
    ) -> None:
        self._fields: dict[str, FormField] = {f.name: f for f in fields}
        self._read_only = frozenset(read_only)
        self._values: dict[str, Any] = {
            name: ("" if f.kind == "text" else None) for name, f in self._fields.items()
        }
        self._subscribers: list[Subscriber] = []

        seed = seed or {}
        for name in self._read_only:
            if name in self._fields:
                self._values[name] = (seed.get(name) or "").strip()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def set(self, field_name: str, value: Any) -> None:
        field = self._fields.get(field_name)
        if field is None:
            logger.warning("Ignoring unknown field %r", field_name)
            return
        if field_name in self._read_only:
            return

        if field.kind == "text":
            if value is None:
                value = ""
            if not isinstance(value, str):
                logger.warning("Ignoring non-text value for %s", field_name)
                return
        elif value is not None:
            # файловое поле: либо вложение, либо None
            from onboarding.services.attachments import Attachment  # циклический импорт

            if not isinstance(value, Attachment):
                logger.warning("Ignoring non-attachment value for file field %s", field_name)
                return

        self._values[field_name] = value
        for callback in list(self._subscribers):
            callback(field_name, value)

    def clear(self, field_name: str) -> None:
        field = self._fields.get(field_name)
        if field is None:
            return
        self.set(field_name, "" if field.kind == "text" else None)

    def get(self, field_name: str) -> Any:
        return self._values.get(field_name)

    def get_all(self) -> Mapping[str, Any]:
        return MappingProxyType(dict(self._values))

    def field(self, field_name: str) -> FormField | None:
        return self._fields.get(field_name)
