"""GradioTranscriptionClient — remote Whisper-WebUI batch backend.

Three round-trips, none retried: upload the file, submit the job, then read
the job's event stream once. The service blocks the event request until the
job finishes, so the last `data:` line is the result.
"""
import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

import httpx

from sttchain.constants import (
    BACKEND_GRADIO,
    DEFAULT_API_NAME,
    DEFAULT_BATCH_TIMEOUT,
    DEFAULT_WHISPER_DEVICE,
    DEFAULT_WHISPER_MODEL,
    GRADIO_CALL_PATH,
    GRADIO_EVENT_ID_KEYS,
    GRADIO_UPLOAD_FIELD,
    GRADIO_UPLOAD_PATH,
    MSG_ERR_AUDIO_READ,
    MSG_ERR_NO_API_URL,
    MSG_ERR_NO_DATA_LINE,
    MSG_ERR_NO_EVENT_ID,
    MSG_ERR_NO_UPLOAD_REF,
    MSG_ERR_NOT_JSON,
    MSG_ERR_NULL_EVENT,
    MSG_GRADIO_SUBMITTED,
    MSG_GRADIO_SUBTITLE,
    MSG_GRADIO_UPLOADED,
    SSE_DATA_PREFIX,
)
from sttchain.errors import (
    AudioStreamError,
    CallError,
    ConfigError,
    EventError,
    NetworkError,
    ProtocolError,
    UploadError,
)
from sttchain.transcription.client import TranscriptionClient, TranscriptionRequest
from sttchain.transcription.gradio_params import GradioJobParams, mime_type_for
from sttchain.transcription.normalize import (
    clean_subtitle_text,
    extract_text,
    find_subtitle_url,
)

logger = logging.getLogger(__name__)

NO_EVENT_DATA = object()


# ── pure helpers (module-level so tests can import them directly) ──────────────


def last_event_payload(body: str) -> Any:
    """Payload of the last `data:` line; raw text when it is not JSON.

    Returns `NO_EVENT_DATA` when the stream has no `data:` line at all, so a
    literal `data: null` error event stays distinguishable as `None`.
    """
    data_lines = [
        line.strip()[len(SSE_DATA_PREFIX):].strip()
        for line in body.splitlines()
        if line.strip().startswith(SSE_DATA_PREFIX)
    ]
    match data_lines:
        case []:
            return NO_EVENT_DATA
        case [*_, last]:
            try:
                return json.loads(last)
            except json.JSONDecodeError:
                return last


def event_id_from(payload: Any) -> Optional[str]:
    match payload:
        case dict():
            found = next(
                (payload[k] for k in GRADIO_EVENT_ID_KEYS if payload.get(k) not in (None, "")),
                None,
            )
            return str(found) if found is not None else None
        case _:
            return None


def _api_path(api_name: str) -> str:
    return api_name if api_name.startswith("/") else f"/{api_name}"


# ── client ────────────────────────────────────────────────────────────────────


class GradioTranscriptionClient(TranscriptionClient):
    name = BACKEND_GRADIO

    def __init__(
        self,
        base_url: Optional[str],
        model: str = DEFAULT_WHISPER_MODEL,
        device: str = DEFAULT_WHISPER_DEVICE,
        api_name: str = DEFAULT_API_NAME,
        timeout: float = DEFAULT_BATCH_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") if base_url else None
        self._model = model
        self._device = device
        self._api_name = api_name
        self._timeout = timeout
        self._http_client = http_client

    async def transcribe(self, request: TranscriptionRequest) -> str:
        match self._base_url:
            case None | "":
                raise ConfigError(MSG_ERR_NO_API_URL, backend=self.name)
            case base:
                pass

        api_name = _api_path(request.api_name or self._api_name or DEFAULT_API_NAME)
        async with self._session() as http:
            file_ref = await self._upload(http, base, request.file_path)
            params = GradioJobParams.for_request(
                request,
                file_ref=file_ref,
                model=request.model or self._model,
                device=request.device or self._device,
            )
            event_id = await self._call(http, base, api_name, params)
            payload = await self._poll(http, base, api_name, event_id)
            return await self._render(http, base, payload)

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        match self._http_client:
            case None:
                async with httpx.AsyncClient(timeout=httpx.Timeout(self._timeout)) as client:
                    yield client
            case client:
                yield client

    async def _upload(self, http: httpx.AsyncClient, base: str, file_path: str) -> str:
        path = Path(file_path).resolve()
        try:
            content = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise AudioStreamError(MSG_ERR_AUDIO_READ % path, self.name) from exc

        files = {GRADIO_UPLOAD_FIELD: (path.name, content, mime_type_for(path.name))}
        response = await self._send(http, "POST", f"{base}{GRADIO_UPLOAD_PATH}", files=files)
        if response.is_error:
            raise UploadError("upload failed", response.status_code, backend=self.name)

        match self._json(response):
            case [str() as ref, *_] if ref:
                logger.debug(MSG_GRADIO_UPLOADED, ref)
                return ref
            case _:
                raise ProtocolError(MSG_ERR_NO_UPLOAD_REF, backend=self.name)

    async def _call(
        self,
        http: httpx.AsyncClient,
        base: str,
        api_name: str,
        params: GradioJobParams,
    ) -> str:
        url = f"{base}{GRADIO_CALL_PATH}{api_name}"
        response = await self._send(http, "POST", url, json={"data": params.to_data()})
        if response.is_error:
            raise CallError("job submission failed", response.status_code, backend=self.name)

        match event_id_from(self._json(response)):
            case None:
                raise ProtocolError(MSG_ERR_NO_EVENT_ID, backend=self.name)
            case event_id:
                logger.debug(MSG_GRADIO_SUBMITTED, event_id)
                return event_id

    async def _poll(self, http: httpx.AsyncClient, base: str, api_name: str, event_id: str) -> Any:
        url = f"{base}{GRADIO_CALL_PATH}{api_name}/{event_id}"
        response = await self._send(http, "GET", url)
        if response.is_error:
            raise EventError("event stream failed", response.status_code, backend=self.name)

        match last_event_payload(response.text):
            case missing if missing is NO_EVENT_DATA:
                raise EventError(MSG_ERR_NO_DATA_LINE, response.status_code, backend=self.name)
            case None:
                raise EventError(MSG_ERR_NULL_EVENT, response.status_code, backend=self.name)
            case payload:
                return payload

    async def _render(self, http: httpx.AsyncClient, base: str, payload: Any) -> str:
        match find_subtitle_url(payload, base):
            case None:
                return clean_subtitle_text(extract_text(payload))
            case url:
                logger.debug(MSG_GRADIO_SUBTITLE, url)
                response = await self._send(http, "GET", url)
                if response.is_error:
                    raise EventError("subtitle download failed", response.status_code, backend=self.name)
                return clean_subtitle_text(response.text)

    async def _send(self, http: httpx.AsyncClient, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise NetworkError(f"{method} {url} failed: {exc}", backend=self.name) from exc

    def _json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ProtocolError(MSG_ERR_NOT_JSON, backend=self.name) from exc
