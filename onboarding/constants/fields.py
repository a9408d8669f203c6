from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

FieldKind = Literal["text", "file"]

# Имена полей совпадают с multipart-контрактом бэкенда, менять нельзя.
NAME = "name"
EMAIL = "email"
PHONE_NUMBER = "phoneNumber"
ADDRESS = "address"
PREFIX = "prefix"
LOGO = "logoUrl"
STAMP = "stampUrl"


@dataclass(frozen=True)
class StepDefinition:
    rank: int
    label: str
    gate: str | None


@dataclass(frozen=True)
class FormField:
    name: str
    kind: FieldKind
    required: bool = True
    step_rank: int | None = None
    title: str = ""


SCHOOL_SETUP_STEPS: tuple[StepDefinition, ...] = (
    StepDefinition(1, "Email", PHONE_NUMBER),
    StepDefinition(2, "Number", ADDRESS),
    StepDefinition(3, "Address", PREFIX),
    StepDefinition(4, "Prefix", LOGO),
    StepDefinition(5, "Logo", STAMP),
    # финальный шаг (review) без подписи и без поля
    StepDefinition(6, "", None),
)

SCHOOL_SETUP_FIELDS: tuple[FormField, ...] = (
    FormField(NAME, "text", title="School Name"),
    FormField(EMAIL, "text", title="School Email"),
    FormField(PHONE_NUMBER, "text", step_rank=1, title="School Phone Number"),
    FormField(ADDRESS, "text", step_rank=2, title="School Address"),
    FormField(PREFIX, "text", step_rank=3, title="Prefix (school name initials)"),
    FormField(LOGO, "file", step_rank=4, title="School Logo"),
    FormField(STAMP, "file", step_rank=5, title="School Stamp"),
)

FIELDS_BY_NAME: dict[str, FormField] = {f.name: f for f in SCHOOL_SETUP_FIELDS}

# Поля из шага регистрации: только для чтения внутри мастера.
SEEDED_FIELDS: tuple[str, ...] = (NAME, EMAIL)

TEXT_FIELDS: tuple[str, ...] = tuple(f.name for f in SCHOOL_SETUP_FIELDS if f.kind == "text")
FILE_FIELDS: tuple[str, ...] = tuple(f.name for f in SCHOOL_SETUP_FIELDS if f.kind == "file")

ACCEPTED_IMAGE_TYPES: frozenset[str] = frozenset({"jpeg", "jpg", "png", "webp"})


def get_field(name: str) -> FormField | None:
    return FIELDS_BY_NAME.get(name)


def field_title(name: str) -> str:
    field = FIELDS_BY_NAME.get(name)
    return field.title if field else name
