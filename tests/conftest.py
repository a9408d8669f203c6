from __future__ import annotations

import pytest
import pytest_asyncio

from onboarding.constants.fields import ADDRESS, EMAIL, NAME, PHONE_NUMBER, PREFIX
from onboarding.db.repository import init_db
from onboarding.services.attachments import PreviewRegistry, SelectedFile


@pytest_asyncio.fixture
async def inited_db(tmp_path):
    db_path = tmp_path / "onboarding.sqlite3"
    await init_db(db_path)
    return db_path


@pytest.fixture
def registry() -> PreviewRegistry:
    return PreviewRegistry()


@pytest.fixture
def seed() -> dict[str, str]:
    return {NAME: "Acme", EMAIL: "a@acme.io"}


@pytest.fixture
def logo_file() -> SelectedFile:
    return SelectedFile(name="logo.png", data=b"\x89PNG" + b"\x00" * 1532, content_type="image/png")


@pytest.fixture
def stamp_file() -> SelectedFile:
    return SelectedFile(name="stamp.webp", data=b"RIFF" + b"\x00" * 1020, content_type="image/webp")


@pytest.fixture
def text_values() -> dict[str, str]:
    return {PHONE_NUMBER: "555", ADDRESS: "1 Main St", PREFIX: "ACM"}
