from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from onboarding.errors import TransportFailure
from onboarding.services.submission import MultipartPayload

logger = logging.getLogger(__name__)


def to_form_data(payload: MultipartPayload) -> aiohttp.FormData:
    form = aiohttp.FormData()
    for part in payload.parts:
        if part.is_file:
            form.add_field(part.name, part.data, filename=part.filename, content_type=part.content_type)
        else:
            form.add_field(part.name, part.value or "")
    return form


class HttpTransport:
    """POST multipart/form-data на бэкенд платформы с Bearer-токеном."""

    def __init__(self, base_url: str, path: str = "/school/setup", session: aiohttp.ClientSession | None = None) -> None:
        self.url = base_url.rstrip("/") + "/" + path.lstrip("/")
        self._session = session

    async def send(self, payload: MultipartPayload, token: str) -> Mapping[str, Any]:
        headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}

        if self._session is not None:
            return await self._post(self._session, payload, headers)
        async with aiohttp.ClientSession() as session:
            return await self._post(session, payload, headers)

    async def _post(
        self,
        session: aiohttp.ClientSession,
        payload: MultipartPayload,
        headers: dict[str, str],
    ) -> Mapping[str, Any]:
        try:
            async with session.post(self.url, data=to_form_data(payload), headers=headers) as resp:
                if resp.status >= 400:
                    text = await resp.text()
                    raise TransportFailure(text.strip() or resp.reason or "request failed", status=resp.status)
                try:
                    body = await resp.json(content_type=None)
                except ValueError as exc:
                    raise TransportFailure("response is not JSON", status=resp.status) from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise TransportFailure(f"{type(exc).__name__}: {exc}") from exc

        if not isinstance(body, Mapping):
            raise TransportFailure("response body is not an object", status=resp.status)
        logger.debug("POST %s -> %s", self.url, resp.status)
        return body
