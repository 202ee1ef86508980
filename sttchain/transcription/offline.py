"""VoskTranscriptionClient — offline last-resort backend.

The Vosk model is loaded once per loader (single-flight) and shared read-only.
Each call opens its own RecognizerSession, feeds the file in 4 KiB chunks in
byte order, and frees the session on every exit path.
"""
import asyncio
import json
import logging
import sys
from contextlib import closing
from pathlib import Path
from typing import Any, Callable, Optional

import vosk

from sttchain.constants import (
    BACKEND_VOSK,
    EXIT_MODEL_MISSING,
    MSG_ERR_AUDIO_READ,
    MSG_ERR_DECODE,
    MSG_VOSK_MODEL_LOADED,
    MSG_VOSK_MODEL_MISSING,
    MSG_VOSK_NO_SPEECH,
    NO_SPEECH,
    OFFLINE_CHUNK_BYTES,
    VOSK_LOG_LEVEL,
    VOSK_MAX_ALTERNATIVES,
    VOSK_SAMPLE_RATE,
)
from sttchain.errors import AudioStreamError, DecodeError, ModelMissing
from sttchain.transcription.client import TranscriptionClient, TranscriptionRequest

logger = logging.getLogger(__name__)


def _load_vosk_model(path: Path) -> Any:
    vosk.SetLogLevel(VOSK_LOG_LEVEL)
    return vosk.Model(str(path))


class VoskModelLoader:
    """Lazily loads the Vosk model exactly once, even under concurrent first use.

    A missing model directory is fatal: `exit_hook` is called (sys.exit by
    default) and ModelMissing is raised for callers whose hook returns.
    """

    def __init__(
        self,
        model_path: Path,
        exit_hook: Callable[[int], Any] = sys.exit,
        model_factory: Callable[[Path], Any] = _load_vosk_model,
    ) -> None:
        self._model_path = Path(model_path)
        self._exit_hook = exit_hook
        self._model_factory = model_factory
        self._lock = asyncio.Lock()
        self._model: Any = None
        self._error: Optional[BaseException] = None

    async def get(self) -> Any:
        if self._model is not None:
            return self._model
        async with self._lock:
            match (self._model, self._error):
                case (None, None):
                    self._model = await self._load()
                case (None, error):
                    raise error
                case _:
                    pass
        return self._model

    async def _load(self) -> Any:
        if not self._model_path.exists():
            logger.critical(MSG_VOSK_MODEL_MISSING, self._model_path)
            self._error = ModelMissing(MSG_VOSK_MODEL_MISSING % self._model_path, backend=BACKEND_VOSK)
            self._exit_hook(EXIT_MODEL_MISSING)
            raise self._error
        try:
            model = await asyncio.to_thread(self._model_factory, self._model_path)
        except Exception as exc:
            self._error = exc
            raise
        logger.info(MSG_VOSK_MODEL_LOADED, self._model_path)
        return model


class RecognizerSession:
    """One streaming decoder bound to a model. Never shared between calls."""

    def __init__(self, recognizer: Any) -> None:
        self._recognizer = recognizer

    @classmethod
    def open(cls, model: Any) -> "RecognizerSession":
        recognizer = vosk.KaldiRecognizer(model, VOSK_SAMPLE_RATE)
        recognizer.SetMaxAlternatives(VOSK_MAX_ALTERNATIVES)
        recognizer.SetWords(True)
        return cls(recognizer)

    def accept(self, chunk: bytes) -> None:
        self._recognizer.AcceptWaveform(chunk)

    def final_text(self) -> str:
        result = json.loads(self._recognizer.FinalResult())
        match result:
            case {"alternatives": [{"text": str() as text}, *_]}:
                return text.strip()
            case {"text": str() as text}:
                return text.strip()
            case _:
                return ""

    def close(self) -> None:
        # dropping the last reference frees the native recognizer
        self._recognizer = None


class VoskTranscriptionClient(TranscriptionClient):
    name = BACKEND_VOSK

    def __init__(
        self,
        loader: VoskModelLoader,
        session_factory: Callable[[Any], RecognizerSession] = RecognizerSession.open,
    ) -> None:
        self._loader = loader
        self._session_factory = session_factory

    async def transcribe(self, request: TranscriptionRequest) -> str:
        path = Path(request.file_path)
        try:
            stream = open(path, "rb")
        except OSError as exc:
            raise AudioStreamError(MSG_ERR_AUDIO_READ % path, self.name) from exc

        with stream:
            model = await self._loader.get()
            with closing(self._session_factory(model)) as session:
                await self._feed(session, stream, path)
                text = await self._finish(session, path)

        match text:
            case "":
                logger.info(MSG_VOSK_NO_SPEECH, path)
                return NO_SPEECH
            case _:
                return text

    async def _feed(self, session: RecognizerSession, stream: Any, path: Path) -> None:
        while True:
            try:
                chunk = await asyncio.to_thread(stream.read, OFFLINE_CHUNK_BYTES)
            except OSError as exc:
                raise AudioStreamError(MSG_ERR_AUDIO_READ % path, self.name) from exc
            if not chunk:
                return
            try:
                await asyncio.to_thread(session.accept, chunk)
            except Exception as exc:
                raise DecodeError(MSG_ERR_DECODE % path, backend=self.name) from exc

    async def _finish(self, session: RecognizerSession, path: Path) -> str:
        try:
            return await asyncio.to_thread(session.final_text)
        except Exception as exc:
            raise DecodeError(MSG_ERR_DECODE % path, backend=self.name) from exc
