"""All magic values live here — no inline literals anywhere else."""

# Offline recognizer (Vosk)
DEFAULT_MODEL_DIR = "model"
DEFAULT_VOSK_MODEL = "vosk-model-small-en-us-0.15"
VOSK_LOG_LEVEL = 0
VOSK_SAMPLE_RATE = 16000
VOSK_MAX_ALTERNATIVES = 1
OFFLINE_CHUNK_BYTES = 4096
EXIT_MODEL_MISSING = 1

# No-speech sentinel: an empty transcript is a successful result, not an error
NO_SPEECH = ""

# Primary transcription service
DEFAULT_PRIMARY_URL = "http://localhost:8080/v1/audio/transcriptions"
DEFAULT_PRIMARY_MODEL = "whisper-1"
PRIMARY_TEXT_FIELDS = ("text", "transcript", "transcription")
DEFAULT_PRIMARY_TIMEOUT = 60

# Remote batch service (Gradio)
DEFAULT_WHISPER_MODEL = "base"
DEFAULT_WHISPER_DEVICE = "cpu"
DEFAULT_API_NAME = "/transcribe_file"
DEFAULT_BATCH_TIMEOUT = 600
GRADIO_UPLOAD_PATH = "/gradio_api/upload"
GRADIO_CALL_PATH = "/gradio_api/call"
GRADIO_FILE_PATH = "/gradio_api/file="
GRADIO_UPLOAD_FIELD = "files"
GRADIO_FILE_DATA_TYPE = "gradio.FileData"
GRADIO_EVENT_ID_KEYS = ("event_id", "eventId", "id")
SSE_DATA_PREFIX = "data:"

# Model / device aliases
MODEL_ALIASES = {
    "mid": "medium",
    "large_v2": "large-v2",
    "largev2": "large-v2",
}
CUDA_DEVICE_ALIASES = ("gpu", "cuda")
DEVICE_CUDA = "cuda"
DEVICE_CPU = "cpu"

# Upload MIME types by file extension
DEFAULT_MIME_TYPE = "application/octet-stream"
AUDIO_MIME_TYPES = {
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".ogg": "audio/ogg",
    ".flac": "audio/flac",
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
}

# Job parameter defaults
DEFAULT_FILE_FORMAT = "SRT"
DEFAULT_LANGUAGE = "Automatic Detection"
DEFAULT_COMPUTE_TYPE = "float16"
DEFAULT_MAX_NEW_TOKENS = 3
DEFAULT_HALLUCINATION_SILENCE_THRESHOLD = 3
DEFAULT_UVR_MODEL = "UVR-MDX-NET-Inst_HQ_4"
PREPEND_PUNCTUATIONS = "\"'“¿([{-"
APPEND_PUNCTUATIONS = "\"'.。,，!！?？:：”)]}、"

# Subtitle cleanup patterns
SUBTITLE_FILENAME_PREFIX_RE = r"^\s*\d{10,}-\d{6,}"
SUBTITLE_SEQUENCE_RE = r"^\d+$"
SUBTITLE_TIME_RANGE_RE = (
    r"^\d{2}:\d{2}:\d{2}[,.]\d{3}\s*-->\s*\d{2}:\d{2}:\d{2}[,.]\d{3}$"
)
SUBTITLE_SEPARATOR_RE = r"^-{3,}$"
SUBTITLE_BANNER_PREFIX = "Done in "

# Backend names
BACKEND_PRIMARY = "primary"
BACKEND_GRADIO = "gradio"
BACKEND_VOSK = "vosk"

# Log messages
MSG_ROUTING = "→ %s"
MSG_FALLBACK = "✗ %s failed: %s, trying next backend"
MSG_TRANSCRIBED = "✓ %s transcribed %s (%.1fs)"
MSG_ALL_FAILED = "All transcription backends failed for %s"
MSG_VOSK_MODEL_LOADED = "Vosk model loaded from %s"
MSG_VOSK_MODEL_MISSING = "Vosk model not found: %s"
MSG_VOSK_NO_SPEECH = "Vosk: no speech detected in %s"
MSG_GRADIO_UPLOADED = "Gradio upload → %s"
MSG_GRADIO_SUBMITTED = "Gradio job submitted: %s"
MSG_GRADIO_SUBTITLE = "Gradio subtitle download: %s"

# Error messages
MSG_ERR_NO_API_URL = "WHISPER_API_URL is not configured"
MSG_ERR_NO_UPLOAD_REF = "upload response has no file reference"
MSG_ERR_NO_EVENT_ID = "call response has no event id"
MSG_ERR_NO_DATA_LINE = "event stream has no data: line"
MSG_ERR_NULL_EVENT = "event stream ended with a null payload (job error)"
MSG_ERR_NOT_JSON = "response is not JSON"
MSG_ERR_NO_TEXT = "response has no text field"
MSG_ERR_AUDIO_READ = "cannot read audio file %s"
MSG_ERR_DECODE = "recognizer failed on %s"
