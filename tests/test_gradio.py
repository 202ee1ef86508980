"""Gradio batch client: job parameters, protocol steps and result rendering."""
import json

import httpx
import pytest

from sttchain.errors import (
    CallError,
    ConfigError,
    EventError,
    NetworkError,
    ProtocolError,
    UploadError,
)
from sttchain.transcription.client import TranscriptionClient, TranscriptionRequest
from sttchain.transcription.gradio import (
    GradioTranscriptionClient,
    NO_EVENT_DATA,
    event_id_from,
    last_event_payload,
)
from sttchain.transcription.gradio_params import (
    GradioJobParams,
    mime_type_for,
    normalize_device,
    normalize_model_name,
)

BASE = "http://gradio.local:7860"


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "clip.wav"
    path.write_bytes(b"RIFF0000WAVEfmt fake-audio")
    return path


class FakeGradio:
    """Records requests and answers the three protocol steps."""

    def __init__(self, *, event_body: str = 'data: ["hello world"]\n', **overrides) -> None:
        self.requests: list[httpx.Request] = []
        self.event_body = event_body
        self.overrides = overrides

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        match path:
            case "/gradio_api/upload":
                return self.overrides.get("upload", httpx.Response(200, json=["/tmp/gradio/abc/clip.wav"]))
            case "/gradio_api/call/transcribe_file":
                return self.overrides.get("call", httpx.Response(200, json={"event_id": "evt-1"}))
            case "/gradio_api/call/transcribe_file/evt-1":
                return self.overrides.get("event", httpx.Response(200, text=self.event_body))
            case _:
                return self.overrides.get("other", httpx.Response(404))

    def call_body(self) -> dict:
        request = next(r for r in self.requests if r.url.path == "/gradio_api/call/transcribe_file")
        return json.loads(request.content)


def make_client(handler, **kwargs) -> GradioTranscriptionClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GradioTranscriptionClient(base_url=BASE, http_client=http, **kwargs)


def test_gradio_client_implements_abc():
    assert issubclass(GradioTranscriptionClient, TranscriptionClient)


# ── normalization ─────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("MID", "medium"),
        ("large_v2", "large-v2"),
        ("largev2", "large-v2"),
        ("large-v2", "large-v2"),
        (" Small ", "small"),
        (None, "base"),
        ("", "base"),
    ],
)
def test_normalize_model_name(raw, expected):
    assert normalize_model_name(raw) == expected


@pytest.mark.parametrize("raw", ["MID", "large_v2", "tiny", None, "Large-V3"])
def test_normalize_model_name_is_stable(raw):
    once = normalize_model_name(raw)

    assert normalize_model_name(once) == once


@pytest.mark.parametrize(
    "raw, expected",
    [("GPU", "cuda"), ("cuda", "cuda"), ("Cuda", "cuda"), ("cpu", "cpu"), ("mps", "cpu"), ("", "cpu"), (None, "cpu")],
)
def test_normalize_device(raw, expected):
    assert normalize_device(raw) == expected


@pytest.mark.parametrize(
    "name, expected",
    [
        ("a.wav", "audio/wav"),
        ("a.MP3", "audio/mpeg"),
        ("a.ogg", "audio/ogg"),
        ("a.flac", "audio/flac"),
        ("a.m4a", "audio/mp4"),
        ("a.aac", "audio/aac"),
        ("a.webm", "application/octet-stream"),
        ("noext", "application/octet-stream"),
    ],
)
def test_mime_type_for(name, expected):
    assert mime_type_for(name) == expected


# ── job parameters ────────────────────────────────────────────────────────────


def test_job_params_serialize_to_53_positions():
    request = TranscriptionRequest(file_path="/audio/clip.wav")
    data = GradioJobParams.for_request(request, file_ref="/tmp/x.wav", model="mid", device="gpu").to_data()

    assert len(data) == 53
    assert data[0] == [
        {"path": "/tmp/x.wav", "orig_name": "clip.wav", "meta": {"_type": "gradio.FileData"}}
    ]
    assert data[4] == "SRT"
    assert data[6] == "medium"
    assert data[7] == "Automatic Detection"
    assert data[12] == "float16"
    assert data[45] == data[50] == "cuda"


def test_job_params_apply_request_overrides():
    request = TranscriptionRequest(
        file_path="clip.wav",
        language="german",
        compute_type="int8",
        hotwords="Kubernetes",
        initial_prompt="Tech talk.",
        max_new_tokens=0,
        hallucination_silence_threshold=1.5,
        prefix="So",
        file_format="txt",
    )
    params = GradioJobParams.for_request(request, file_ref="ref", model="base", device="cpu")

    assert params.language == "german"
    assert params.compute_type == "int8"
    assert params.hotwords == "Kubernetes"
    assert params.initial_prompt == "Tech talk."
    assert params.max_new_tokens == 0
    assert params.hallucination_silence_threshold == 1.5
    assert params.prefix == "So"
    assert params.file_format == "txt"


# ── event stream parsing ──────────────────────────────────────────────────────


def test_last_event_payload_last_data_line_wins():
    body = "event: generating\ndata: [1,[\"hi\"]]\n\nevent: complete\ndata: [2,[\"final\"]]\n"

    assert last_event_payload(body) == [2, ["final"]]


def test_last_event_payload_raw_text_when_not_json():
    assert last_event_payload("data:   plain transcript  \n") == "plain transcript"


def test_last_event_payload_without_data_lines():
    assert last_event_payload("event: heartbeat\n\n") is NO_EVENT_DATA


def test_last_event_payload_null_is_not_missing():
    assert last_event_payload("event: error\ndata: null\n") is None


@pytest.mark.parametrize(
    "payload, expected",
    [({"event_id": "a"}, "a"), ({"eventId": "b"}, "b"), ({"id": 7}, "7"), ({}, None), (["a"], None)],
)
def test_event_id_from(payload, expected):
    assert event_id_from(payload) == expected


# ── full protocol ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_transcribe_runs_upload_call_poll(audio_file):
    fake = FakeGradio()
    client = make_client(fake, model="large_v2", device="GPU")

    result = await client.transcribe(TranscriptionRequest(file_path=str(audio_file)))

    assert result == "hello world"
    assert [r.method for r in fake.requests] == ["POST", "POST", "GET"]
    upload = fake.requests[0]
    assert b'name="files"' in upload.content
    assert b"audio/wav" in upload.content
    data = fake.call_body()["data"]
    assert len(data) == 53
    assert data[0][0]["path"] == "/tmp/gradio/abc/clip.wav"
    assert data[6] == "large-v2"
    assert data[45] == data[50] == "cuda"


@pytest.mark.asyncio
async def test_transcribe_last_data_line_wins(audio_file):
    fake = FakeGradio(event_body='data: [1,["hi"]]\ndata: [2,["final"]]\n')

    result = await make_client(fake).transcribe(TranscriptionRequest(file_path=str(audio_file)))

    assert result == "final"


@pytest.mark.asyncio
async def test_transcribe_request_overrides_model_and_api_name(audio_file):
    requests = []

    def handler(request):
        requests.append(request)
        match request.url.path:
            case "/gradio_api/upload":
                return httpx.Response(200, json=["ref"])
            case "/gradio_api/call/custom":
                return httpx.Response(200, json={"eventId": "e9"})
            case "/gradio_api/call/custom/e9":
                return httpx.Response(200, text='data: "ok"\n')
        return httpx.Response(404)

    request = TranscriptionRequest(file_path=str(audio_file), model="MID", api_name="custom")
    result = await make_client(handler).transcribe(request)

    assert result == "ok"
    assert json.loads(requests[1].content)["data"][6] == "medium"


@pytest.mark.asyncio
async def test_transcribe_downloads_subtitle_file(audio_file):
    srt = "1\n00:00:00,000 --> 00:00:01,000\nFrom the file.\n"
    fake = FakeGradio(
        event_body='data: ["inline", [{"path": "/tmp/out.srt", "url": "http://gradio.local:7860/gradio_api/file=/tmp/out.srt"}]]\n',
        other=httpx.Response(200, text=srt),
    )

    result = await make_client(fake).transcribe(TranscriptionRequest(file_path=str(audio_file)))

    assert result == "From the file."
    assert fake.requests[-1].url.path == "/gradio_api/file=/tmp/out.srt"


@pytest.mark.asyncio
async def test_transcribe_cleans_inline_subtitle_text(audio_file):
    body = "data: " + json.dumps(["1\n00:00:00,000 --> 00:00:01,000\nInline subtitle.\n"]) + "\n"
    fake = FakeGradio(event_body=body)

    result = await make_client(fake).transcribe(TranscriptionRequest(file_path=str(audio_file)))

    assert result == "Inline subtitle."


# ── failures ──────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_transcribe_without_base_url_raises_config_error(audio_file):
    client = GradioTranscriptionClient(base_url=None)

    with pytest.raises(ConfigError):
        await client.transcribe(TranscriptionRequest(file_path=str(audio_file)))


@pytest.mark.asyncio
async def test_upload_error_carries_status(audio_file):
    fake = FakeGradio(upload=httpx.Response(502))

    with pytest.raises(UploadError) as info:
        await make_client(fake).transcribe(TranscriptionRequest(file_path=str(audio_file)))

    assert info.value.status_code == 502
    assert len(fake.requests) == 1


@pytest.mark.asyncio
async def test_upload_without_reference_is_protocol_error(audio_file):
    fake = FakeGradio(upload=httpx.Response(200, json=[]))

    with pytest.raises(ProtocolError):
        await make_client(fake).transcribe(TranscriptionRequest(file_path=str(audio_file)))


@pytest.mark.asyncio
async def test_call_error_carries_status(audio_file):
    fake = FakeGradio(call=httpx.Response(422, json={"detail": "bad"}))

    with pytest.raises(CallError) as info:
        await make_client(fake).transcribe(TranscriptionRequest(file_path=str(audio_file)))

    assert info.value.status_code == 422


@pytest.mark.asyncio
async def test_call_without_event_id_is_protocol_error(audio_file):
    fake = FakeGradio(call=httpx.Response(200, json={"status": "queued"}))

    with pytest.raises(ProtocolError):
        await make_client(fake).transcribe(TranscriptionRequest(file_path=str(audio_file)))


@pytest.mark.asyncio
async def test_event_error_carries_status(audio_file):
    fake = FakeGradio(event=httpx.Response(500))

    with pytest.raises(EventError) as info:
        await make_client(fake).transcribe(TranscriptionRequest(file_path=str(audio_file)))

    assert info.value.status_code == 500


@pytest.mark.asyncio
async def test_event_stream_without_data_line_is_event_error(audio_file):
    fake = FakeGradio(event_body="event: heartbeat\n\n")

    with pytest.raises(EventError, match="no data: line"):
        await make_client(fake).transcribe(TranscriptionRequest(file_path=str(audio_file)))


@pytest.mark.asyncio
async def test_null_event_payload_is_event_error(audio_file):
    fake = FakeGradio(event_body="event: error\ndata: null\n")

    with pytest.raises(EventError, match="null payload") as info:
        await make_client(fake).transcribe(TranscriptionRequest(file_path=str(audio_file)))

    assert info.value.status_code == 200

@pytest.mark.asyncio
async def test_transport_failure_is_network_error(audio_file):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(NetworkError):
        await make_client(handler).transcribe(TranscriptionRequest(file_path=str(audio_file)))
