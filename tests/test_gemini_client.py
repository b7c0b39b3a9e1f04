from types import SimpleNamespace

import httpx
import pytest
from google.genai import errors

from job_matcher.errors import ProtocolError, TransientError
from job_matcher.services.gemini_client import GeminiProvider


def _provider(outcome) -> tuple[GeminiProvider, list[dict]]:
    calls: list[dict] = []

    async def generate_content(**kwargs):
        calls.append(kwargs)
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(text=outcome)

    client = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content)))
    return GeminiProvider(model="test-model", temperature=0.2, max_output_tokens=500, client=client), calls


def _api_error(code: int) -> errors.APIError:
    return errors.APIError(code, {"error": {"code": code, "message": "failure", "status": "ERROR"}})


class TestGeminiProvider:
    @pytest.mark.asyncio
    async def test_returns_text_and_requests_json(self):
        provider, calls = _provider('{"matchScore": 70}')
        text = await provider.generate("prompt", system="be strict")
        assert text == '{"matchScore": 70}'
        config = calls[0]["config"]
        assert calls[0]["model"] == "test-model"
        assert config.response_mime_type == "application/json"
        assert config.system_instruction == "be strict"
        assert config.max_output_tokens == 500

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", [429, 500, 503])
    async def test_retryable_status_is_transient(self, code):
        provider, _ = _provider(_api_error(code))
        with pytest.raises(TransientError):
            await provider.generate("prompt")

    @pytest.mark.asyncio
    async def test_client_error_is_protocol_error(self):
        provider, _ = _provider(_api_error(400))
        with pytest.raises(ProtocolError):
            await provider.generate("prompt")

    @pytest.mark.asyncio
    async def test_network_error_is_transient(self):
        provider, _ = _provider(httpx.ConnectError("connection refused"))
        with pytest.raises(TransientError):
            await provider.generate("prompt")

    @pytest.mark.asyncio
    async def test_empty_text_is_protocol_error(self):
        provider, _ = _provider("")
        with pytest.raises(ProtocolError):
            await provider.generate("prompt")
