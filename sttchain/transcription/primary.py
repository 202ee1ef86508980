"""PrimaryTranscriptionClient — directly hosted OpenAI-style transcription endpoint."""
import asyncio
from pathlib import Path
from typing import Any, Optional

import httpx

from sttchain.constants import (
    BACKEND_PRIMARY,
    DEFAULT_PRIMARY_MODEL,
    DEFAULT_PRIMARY_TIMEOUT,
    DEFAULT_PRIMARY_URL,
    MSG_ERR_AUDIO_READ,
    MSG_ERR_NO_TEXT,
    MSG_ERR_NOT_JSON,
    PRIMARY_TEXT_FIELDS,
)
from sttchain.errors import AudioStreamError, EmptyResultError, HttpError, NetworkError
from sttchain.transcription.client import TranscriptionClient, TranscriptionRequest
from sttchain.transcription.gradio_params import mime_type_for
from sttchain.transcription.normalize import TextField, extract_text


def primary_text_field(body: Any) -> Optional[str]:
    """First present of `text`, `transcript`, `transcription`."""
    match body:
        case dict():
            return next(
                (body[k] for k in PRIMARY_TEXT_FIELDS if isinstance(body.get(k), str)),
                None,
            )
        case _:
            return None


class PrimaryTranscriptionClient(TranscriptionClient):
    name = BACKEND_PRIMARY

    def __init__(
        self,
        url: str = DEFAULT_PRIMARY_URL,
        model: str = DEFAULT_PRIMARY_MODEL,
        timeout: float = DEFAULT_PRIMARY_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._url = url
        self._model = model
        self._timeout = timeout
        self._http_client = http_client

    async def transcribe(self, request: TranscriptionRequest) -> str:
        path = Path(request.file_path)
        try:
            content = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise AudioStreamError(MSG_ERR_AUDIO_READ % path, self.name) from exc

        files = {"file": (path.name, content, mime_type_for(path.name))}
        response = await self._post(files=files, data={"model": self._model})
        if response.is_error:
            raise HttpError("transcription request failed", response.status_code, backend=self.name)

        try:
            body = response.json()
        except ValueError as exc:
            raise EmptyResultError(MSG_ERR_NOT_JSON, backend=self.name) from exc

        match primary_text_field(body):
            case None:
                raise EmptyResultError(MSG_ERR_NO_TEXT, backend=self.name)
            case text:
                return extract_text(TextField(text))

    async def _post(self, **kwargs: Any) -> httpx.Response:
        try:
            match self._http_client:
                case None:
                    async with httpx.AsyncClient(timeout=httpx.Timeout(self._timeout)) as client:
                        return await client.post(self._url, **kwargs)
                case client:
                    return await client.post(self._url, **kwargs)
        except httpx.HTTPError as exc:
            raise NetworkError(f"POST {self._url} failed: {exc}", backend=self.name) from exc
