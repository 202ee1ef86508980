"""TranscriptionOrchestrator — ordered fallback across transcription backends."""
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Optional

from sttchain.constants import MSG_ALL_FAILED, MSG_FALLBACK, MSG_ROUTING, MSG_TRANSCRIBED
from sttchain.transcription.client import TranscriptionClient, TranscriptionRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attempt:
    backend: str
    text: Optional[str] = None
    error: Optional[Exception] = None


class TranscriptionOrchestrator:
    """Tries each backend in order; the first one that returns without raising wins.

    Backends run strictly one after another. An empty transcript is a result,
    not a failure. When every backend fails, the last backend's error is raised.
    """

    def __init__(self, backends: Sequence[TranscriptionClient]) -> None:
        match list(backends):
            case []:
                raise ValueError("at least one transcription backend is required")
            case chain:
                self._backends = chain

    @property
    def backends(self) -> list[TranscriptionClient]:
        return list(self._backends)

    async def transcribe(self, file_path: str, **options: Any) -> str:
        return await self.run(TranscriptionRequest(file_path=file_path, **options))

    async def run(self, request: TranscriptionRequest) -> str:
        last: Optional[Attempt] = None
        for backend in self._backends:
            last = await self._attempt(backend, request)
            match last:
                case Attempt(error=None, text=text):
                    return text
                case Attempt(backend=name, error=error):
                    logger.warning(MSG_FALLBACK, name, error)

        logger.error(MSG_ALL_FAILED, request.file_path)
        raise last.error

    async def _attempt(self, backend: TranscriptionClient, request: TranscriptionRequest) -> Attempt:
        logger.info(MSG_ROUTING, backend.name)
        start = time.monotonic()
        try:
            text = await backend.transcribe(request)
        except Exception as exc:
            return Attempt(backend=backend.name, error=exc)
        logger.info(MSG_TRANSCRIBED, backend.name, request.file_path, time.monotonic() - start)
        return Attempt(backend=backend.name, text=text)
