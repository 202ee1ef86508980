"""TranscriptionClient — abstract base for speech-to-text backends."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TranscriptionRequest:
    """One audio file plus the optional hints a backend may honour."""

    file_path: str
    model: Optional[str] = None
    language: Optional[str] = None
    device: Optional[str] = None
    compute_type: Optional[str] = None
    hotwords: Optional[str] = None
    initial_prompt: Optional[str] = None
    max_new_tokens: Optional[int] = None
    hallucination_silence_threshold: Optional[float] = None
    prefix: Optional[str] = None
    file_format: Optional[str] = None
    api_name: Optional[str] = None


class TranscriptionClient(ABC):
    name: str

    @abstractmethod
    async def transcribe(self, request: TranscriptionRequest) -> str:
        """Convert the request's audio file to text. Raises on failure."""
        ...
