"""Entry point — wires Config → backends → TranscriptionOrchestrator."""
import argparse
import asyncio
import logging
from typing import Sequence

from rich.logging import RichHandler

from sttchain.config import Config
from sttchain.orchestrator import TranscriptionOrchestrator
from sttchain.transcription.gradio import GradioTranscriptionClient
from sttchain.transcription.offline import VoskModelLoader, VoskTranscriptionClient
from sttchain.transcription.primary import PrimaryTranscriptionClient


def _setup_logging(level: str) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    list(map(root.removeHandler, root.handlers[:]))
    root.addHandler(RichHandler(rich_tracebacks=True))


def build_orchestrator(config: Config) -> TranscriptionOrchestrator:
    """Primary service first, then the Gradio batch service, then Vosk."""
    return TranscriptionOrchestrator(
        [
            PrimaryTranscriptionClient(
                url=config.whisper_primary_url,
                model=config.whisper_primary_model,
                timeout=config.primary_timeout,
            ),
            GradioTranscriptionClient(
                base_url=config.whisper_api_url,
                model=config.whisper_model,
                device=config.whisper_device,
                api_name=config.whisper_api_name,
                timeout=config.batch_timeout,
            ),
            VoskTranscriptionClient(VoskModelLoader(config.vosk_model_path)),
        ]
    )


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="sttchain", description="Transcribe an audio file to text.")
    parser.add_argument("audio", help="path to the audio file")
    parser.add_argument("--model", help="Whisper model size hint (e.g. base, medium, large-v2)")
    parser.add_argument("--language", help="language hint passed to the batch service")
    parser.add_argument("--device", help="cpu or cuda/gpu for the batch service")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    config = Config.from_env()
    _setup_logging(config.log_level)

    orchestrator = build_orchestrator(config)
    text = asyncio.run(
        orchestrator.transcribe(
            args.audio,
            model=args.model,
            language=args.language,
            device=args.device,
        )
    )
    print(text)


if __name__ == "__main__":
    main()
