from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os
from dotenv import load_dotenv

from sttchain.constants import (
    DEFAULT_API_NAME,
    DEFAULT_BATCH_TIMEOUT,
    DEFAULT_MODEL_DIR,
    DEFAULT_PRIMARY_MODEL,
    DEFAULT_PRIMARY_TIMEOUT,
    DEFAULT_PRIMARY_URL,
    DEFAULT_VOSK_MODEL,
    DEFAULT_WHISPER_DEVICE,
    DEFAULT_WHISPER_MODEL,
)


@dataclass(frozen=True)
class Config:
    log_level: str
    model_dir: str
    vosk_model: str
    whisper_model: str
    whisper_device: str
    whisper_api_url: Optional[str]
    whisper_api_name: str
    whisper_primary_url: str
    whisper_primary_model: str
    primary_timeout: int
    batch_timeout: int

    @property
    def vosk_model_path(self) -> Path:
        return Path(self.model_dir) / self.vosk_model

    @classmethod
    def from_env(cls) -> "Config":
        load_dotenv()

        log_level = os.getenv("LOG_LEVEL", "INFO")
        model_dir = os.getenv("MODEL_DIR", DEFAULT_MODEL_DIR)
        vosk_model = os.getenv("VOSK_MODEL", DEFAULT_VOSK_MODEL)
        whisper_model = os.getenv("WHISPER_MODEL", DEFAULT_WHISPER_MODEL)
        whisper_device = os.getenv("WHISPER_DEVICE", DEFAULT_WHISPER_DEVICE)
        whisper_api_url = os.getenv("WHISPER_API_URL") or None
        whisper_api_name = os.getenv("WHISPER_API_NAME") or DEFAULT_API_NAME
        primary_url = os.getenv("WHISPER_PRIMARY_URL") or DEFAULT_PRIMARY_URL
        primary_model = os.getenv("WHISPER_PRIMARY_MODEL") or DEFAULT_PRIMARY_MODEL
        primary_timeout = os.getenv("PRIMARY_TIMEOUT", str(DEFAULT_PRIMARY_TIMEOUT))
        batch_timeout = os.getenv("BATCH_TIMEOUT", str(DEFAULT_BATCH_TIMEOUT))

        return cls._validate(
            log_level=log_level,
            model_dir=model_dir,
            vosk_model=vosk_model.strip(),
            whisper_model=whisper_model,
            whisper_device=whisper_device,
            whisper_api_url=whisper_api_url,
            whisper_api_name=whisper_api_name,
            whisper_primary_url=primary_url,
            whisper_primary_model=primary_model,
            primary_timeout=_parse_timeout("PRIMARY_TIMEOUT", primary_timeout),
            batch_timeout=_parse_timeout("BATCH_TIMEOUT", batch_timeout),
        )

    @staticmethod
    def _validate(
        log_level: str,
        model_dir: str,
        vosk_model: str,
        whisper_model: str,
        whisper_device: str,
        whisper_api_url: Optional[str],
        whisper_api_name: str,
        whisper_primary_url: str,
        whisper_primary_model: str,
        primary_timeout: int,
        batch_timeout: int,
    ) -> "Config":
        match vosk_model:
            case "":
                raise ValueError("VOSK_MODEL must not be empty")
            case _:
                pass

        match (primary_timeout > 0, batch_timeout > 0):
            case (True, True):
                pass
            case (False, _):
                raise ValueError("PRIMARY_TIMEOUT must be greater than 0")
            case _:
                raise ValueError("BATCH_TIMEOUT must be greater than 0")

        return Config(
            log_level=log_level,
            model_dir=model_dir,
            vosk_model=vosk_model,
            whisper_model=whisper_model,
            whisper_device=whisper_device,
            whisper_api_url=whisper_api_url,
            whisper_api_name=whisper_api_name,
            whisper_primary_url=whisper_primary_url,
            whisper_primary_model=whisper_primary_model,
            primary_timeout=primary_timeout,
            batch_timeout=batch_timeout,
        )


def _parse_timeout(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
