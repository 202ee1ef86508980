"""Named job parameters for the Whisper-WebUI `/transcribe_file` endpoint.

The remote endpoint takes a positional `data` array. Fields below are declared
in wire order, so `to_data()` is the only place positions exist.
"""
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

from sttchain.constants import (
    APPEND_PUNCTUATIONS,
    AUDIO_MIME_TYPES,
    CUDA_DEVICE_ALIASES,
    DEFAULT_COMPUTE_TYPE,
    DEFAULT_FILE_FORMAT,
    DEFAULT_HALLUCINATION_SILENCE_THRESHOLD,
    DEFAULT_LANGUAGE,
    DEFAULT_MAX_NEW_TOKENS,
    DEFAULT_MIME_TYPE,
    DEFAULT_UVR_MODEL,
    DEFAULT_WHISPER_MODEL,
    DEVICE_CPU,
    DEVICE_CUDA,
    GRADIO_FILE_DATA_TYPE,
    MODEL_ALIASES,
    PREPEND_PUNCTUATIONS,
)
from sttchain.transcription.client import TranscriptionRequest


def normalize_model_name(model: Optional[str]) -> str:
    """Canonical Whisper size name. Underscored and shorthand spellings are aliases."""
    match model:
        case None | "":
            return DEFAULT_WHISPER_MODEL
        case _:
            name = str(model).lower().strip()
            return MODEL_ALIASES.get(name, name) or DEFAULT_WHISPER_MODEL


def normalize_device(device: Optional[str]) -> str:
    match str(device or "").lower().strip():
        case d if d in CUDA_DEVICE_ALIASES:
            return DEVICE_CUDA
        case _:
            return DEVICE_CPU


def mime_type_for(file_path: str) -> str:
    return AUDIO_MIME_TYPES.get(Path(file_path).suffix.lower(), DEFAULT_MIME_TYPE)


def file_data(ref: str, file_path: str) -> dict[str, Any]:
    """Gradio FileData pointing at an uploaded file."""
    return {
        "path": ref,
        "orig_name": Path(file_path).name,
        "meta": {"_type": GRADIO_FILE_DATA_TYPE},
    }


@dataclass(frozen=True)
class GradioJobParams:
    files: list[dict[str, Any]]
    input_folder_path: str = ""
    include_subdirectory: bool = False
    save_same_dir: bool = True
    file_format: str = DEFAULT_FILE_FORMAT
    add_timestamp: bool = False
    model_size: str = DEFAULT_WHISPER_MODEL
    language: str = DEFAULT_LANGUAGE
    is_translate: bool = False
    beam_size: int = 5
    log_prob_threshold: float = -1
    no_speech_threshold: float = 0.6
    compute_type: str = DEFAULT_COMPUTE_TYPE
    best_of: int = 5
    patience: float = 1
    condition_on_previous_text: bool = True
    prompt_reset_on_temperature: float = 0.5
    initial_prompt: str = ""
    temperature: float = 0
    compression_ratio_threshold: float = 2.4
    length_penalty: float = 1
    repetition_penalty: float = 1
    no_repeat_ngram_size: int = 0
    prefix: str = ""
    suppress_blank: bool = True
    suppress_tokens: str = "[-1]"
    max_initial_timestamp: float = 1
    word_timestamps: bool = False
    prepend_punctuations: str = PREPEND_PUNCTUATIONS
    append_punctuations: str = APPEND_PUNCTUATIONS
    max_new_tokens: int = DEFAULT_MAX_NEW_TOKENS
    chunk_length: int = 30
    hallucination_silence_threshold: float = DEFAULT_HALLUCINATION_SILENCE_THRESHOLD
    hotwords: str = ""
    language_detection_threshold: float = 0.5
    language_detection_segments: int = 1
    batch_size: int = 24
    enable_offload: bool = True
    vad_filter: bool = False
    vad_threshold: float = 0.5
    min_speech_duration_ms: int = 250
    max_speech_duration_s: float = 9999
    min_silence_duration_ms: int = 1000
    speech_pad_ms: int = 2000
    diarize: bool = False
    # primary device slot
    diarization_device: str = DEVICE_CPU
    hf_token: str = ""
    enable_diarization_offload: bool = True
    bgm_separation: bool = False
    uvr_model_size: str = DEFAULT_UVR_MODEL
    # secondary device slot, always equal to diarization_device
    uvr_device: str = DEVICE_CPU
    uvr_segment_size: int = 256
    uvr_save_file: bool = False

    @classmethod
    def for_request(
        cls,
        request: TranscriptionRequest,
        file_ref: str,
        model: str,
        device: str,
    ) -> "GradioJobParams":
        overrides = {
            "file_format": request.file_format,
            "language": request.language,
            "compute_type": request.compute_type,
            "initial_prompt": request.initial_prompt,
            "prefix": request.prefix,
            "max_new_tokens": request.max_new_tokens,
            "hallucination_silence_threshold": request.hallucination_silence_threshold,
            "hotwords": request.hotwords,
        }
        return cls(
            files=[file_data(file_ref, request.file_path)],
            model_size=normalize_model_name(model),
            diarization_device=normalize_device(device),
            uvr_device=normalize_device(device),
            **{k: v for k, v in overrides.items() if v is not None and v != ""},
        )

    def to_data(self) -> list[Any]:
        return [getattr(self, f.name) for f in fields(self)]
