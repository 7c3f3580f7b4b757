"""Unit tests for TTSService."""

import json

import httpx
import pytest

from services.tts_service import MAX_INPUT_CHARS, TTSService, TTSServiceError
from utils.retry import RateLimitedExecutor, RateLimitExceeded
from utils.temp_files import TempFileManager


def _service(handler, tmp_path, no_sleep) -> TTSService:
    return TTSService(
        api_key="secret",
        temp_files=TempFileManager(tmp_path / "temp"),
        url="https://tts.example.com/v1/audio/speech",
        executor=RateLimitedExecutor(max_retries=3, sleep=no_sleep),
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_generate_audio_writes_file(tmp_path, no_sleep):
    """Audio bytes are written to audio_{index}.aac in the temp directory."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, content=b"AAC-DATA")

    service = _service(handler, tmp_path, no_sleep)
    try:
        path = await service.generate_audio("Hackers love weak passwords.", 3)
    finally:
        await service.close()

    assert path == str(tmp_path / "temp" / "audio_3.aac")
    assert (tmp_path / "temp" / "audio_3.aac").read_bytes() == b"AAC-DATA"

    request = requests[0]
    assert request.headers["Authorization"] == "Bearer secret"
    body = json.loads(request.content)
    assert body == {
        "model": "tts-1",
        "input": "Hackers love weak passwords.",
        "voice": "nova",
        "response_format": "aac",
    }


@pytest.mark.unit
@pytest.mark.asyncio
async def test_long_input_is_truncated(tmp_path, no_sleep):
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, content=b"x")

    service = _service(handler, tmp_path, no_sleep)
    try:
        await service.generate_audio("a" * (MAX_INPUT_CHARS + 500), 0)
    finally:
        await service.close()

    assert len(bodies[0]["input"]) == MAX_INPUT_CHARS


@pytest.mark.unit
@pytest.mark.asyncio
async def test_rate_limit_retried_then_succeeds(tmp_path, no_sleep):
    responses = iter([httpx.Response(429), httpx.Response(200, content=b"ok")])

    service = _service(lambda request: next(responses), tmp_path, no_sleep)
    try:
        path = await service.generate_audio("Hi.", 1)
    finally:
        await service.close()

    assert (tmp_path / "temp" / "audio_1.aac").read_bytes() == b"ok"
    assert path.endswith("audio_1.aac")
    no_sleep.assert_awaited_once_with(1.0)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_persistent_rate_limit_raises(tmp_path, no_sleep):
    service = _service(lambda request: httpx.Response(429), tmp_path, no_sleep)
    try:
        with pytest.raises(RateLimitExceeded):
            await service.generate_audio("Hi.", 1)
    finally:
        await service.close()

    assert no_sleep.await_count == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_server_error_is_not_retried(tmp_path, no_sleep):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, text="internal error")

    service = _service(handler, tmp_path, no_sleep)
    try:
        with pytest.raises(TTSServiceError, match="500"):
            await service.generate_audio("Hi.", 1)
    finally:
        await service.close()

    assert len(calls) == 1
    assert not (tmp_path / "temp" / "audio_1.aac").exists()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_timeout_raises_service_error(tmp_path, no_sleep):
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    service = _service(handler, tmp_path, no_sleep)
    try:
        with pytest.raises(TTSServiceError, match="timed out"):
            await service.generate_audio("Hi.", 2)
    finally:
        await service.close()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_empty_audio_raises(tmp_path, no_sleep):
    service = _service(lambda request: httpx.Response(200, content=b""), tmp_path, no_sleep)
    try:
        with pytest.raises(TTSServiceError, match="Empty audio"):
            await service.generate_audio("Hi.", 4)
    finally:
        await service.close()
