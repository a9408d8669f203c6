from __future__ import annotations

from pathlib import Path
from typing import Any

import aiosqlite

# Регистрацию (name/email/token) пишет предыдущий шаг онбординга или команда /register
# (handlers/start.py), мастер настройки школы только читает её и сохраняет school_id.
_SCHEMA = """
CREATE TABLE IF NOT EXISTS registrations (
    tg_user_id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT NOT NULL,
    token TEXT NOT NULL DEFAULT '',
    school_id TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


async def init_db(db_path: Path | str) -> None:
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    async with aiosqlite.connect(str(db_path)) as db:
        await db.executescript(_SCHEMA)
        await db.commit()


async def save_registration(
    db_path: Path | str,
    *,
    tg_user_id: int,
    name: str,
    email: str,
    token: str,
) -> None:
    async with aiosqlite.connect(str(db_path)) as db:
        await db.execute(
            """
            INSERT INTO registrations (tg_user_id, name, email, token)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(tg_user_id) DO UPDATE SET
                name=excluded.name,
                email=excluded.email,
                token=excluded.token,
                updated_at=datetime('now')
            """,
            (tg_user_id, name, email, token),
        )
        await db.commit()


async def get_registration(db_path: Path | str, tg_user_id: int) -> dict[str, Any] | None:
    async with aiosqlite.connect(str(db_path)) as db:
        db.row_factory = aiosqlite.Row
        async with db.execute(
            "SELECT tg_user_id, name, email, token, school_id FROM registrations WHERE tg_user_id=?",
            (tg_user_id,),
        ) as cur:
            row = await cur.fetchone()
    return dict(row) if row is not None else None


async def save_school_id(db_path: Path | str, *, tg_user_id: int, school_id: str) -> bool:
    async with aiosqlite.connect(str(db_path)) as db:
        cur = await db.execute(
            "UPDATE registrations SET school_id=?, updated_at=datetime('now') WHERE tg_user_id=?",
            (school_id, tg_user_id),
        )
        await db.commit()
        return cur.rowcount > 0
