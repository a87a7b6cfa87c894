"""Model gateway and provider tests."""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from galaxy_chat.config import Settings
from galaxy_chat.services.gateway import FALLBACK_TEXT, ModelGateway
from galaxy_chat.services.providers import (
    GenerationParams,
    GroqProvider,
    HuggingFaceProvider,
    OpenAIProvider,
    Success,
    Unavailable,
    build_providers,
    estimate_tokens,
)
from tests.conftest import StubProvider

HISTORY = [{"role": "user", "content": "hi"}]


@pytest.mark.asyncio
async def test_no_providers_returns_fallback_with_zero_tokens():
    result = await ModelGateway([]).generate(HISTORY)

    assert result.text == FALLBACK_TEXT
    assert result.tokens_used == 0
    assert result.is_fallback


@pytest.mark.asyncio
async def test_unconfigured_settings_never_yield_empty_text():
    empty = Settings(GROQ_API_KEY="", HF_API_KEY="", OPENAI_API_KEY="", _env_file=None)
    gateway = ModelGateway.from_settings(empty)

    result = await gateway.generate(HISTORY)

    assert result.text
    assert result.text == FALLBACK_TEXT
    assert result.tokens_used == 0


@pytest.mark.asyncio
async def test_first_successful_provider_wins():
    primary = StubProvider("groq", text="from groq", tokens=12)
    secondary = StubProvider("huggingface", text="from hf")

    result = await ModelGateway([primary, secondary]).generate(HISTORY)

    assert result.text == "from groq"
    assert result.tokens_used == 12
    assert result.provider == "groq"
    assert secondary.calls == []


@pytest.mark.asyncio
async def test_unavailable_provider_falls_through_to_next():
    primary = StubProvider("groq", text=None)
    secondary = StubProvider("huggingface", text="from hf")

    result = await ModelGateway([primary, secondary]).generate(HISTORY)

    assert result.provider == "huggingface"
    assert len(primary.calls) == 1


@pytest.mark.asyncio
async def test_raising_provider_falls_through_to_next():
    broken = StubProvider("groq", error=RuntimeError("socket closed"))
    backup = StubProvider("openai", text="from openai")

    result = await ModelGateway([broken, backup]).generate(HISTORY)

    assert result.text == "from openai"
    assert result.provider == "openai"
    assert len(backup.calls) == 1


@pytest.mark.asyncio
async def test_raising_providers_end_in_fallback():
    providers = [StubProvider("groq", error=ValueError()), StubProvider("openai", error=KeyError("x"))]

    result = await ModelGateway(providers).generate(HISTORY)

    assert result.text == FALLBACK_TEXT
    assert result.tokens_used == 0


@pytest.mark.asyncio
async def test_malformed_huggingface_payload_moves_to_next_provider():
    huggingface = HuggingFaceProvider(
        api_key="hf-key",
        models=["a/b"],
        api_url="https://hf.test/models",
        transport=httpx.MockTransport(
            lambda request: httpx.Response(200, json=[{"generated_text": ["odd"]}])
        ),
    )
    backup = StubProvider("openai", text="from openai")

    result = await ModelGateway([huggingface, backup]).generate(HISTORY)

    assert result.provider == "openai"
    assert len(backup.calls) == 1


@pytest.mark.asyncio
async def test_unconfigured_provider_is_skipped():
    skipped = StubProvider("groq", text="never", configured=False)
    used = StubProvider("openai", text="used")

    result = await ModelGateway([skipped, used]).generate(HISTORY)

    assert result.text == "used"
    assert skipped.calls == []


@pytest.mark.asyncio
async def test_all_providers_failing_gives_fallback():
    providers = [StubProvider("groq", text=None), StubProvider("openai", text=None)]

    result = await ModelGateway(providers).generate(HISTORY)

    assert result.text == FALLBACK_TEXT
    assert result.tokens_used == 0


@pytest.mark.asyncio
async def test_preferred_provider_is_tried_first():
    groq = StubProvider("groq", text="groq")
    openai = StubProvider("openai", text="openai")

    result = await ModelGateway([groq, openai]).generate(HISTORY, preferred="openai")

    assert result.provider == "openai"
    assert groq.calls == []


@pytest.mark.asyncio
async def test_unknown_preferred_provider_keeps_default_order():
    groq = StubProvider("groq", text="groq")
    gateway = ModelGateway([groq, StubProvider("openai", text="openai")])

    result = await gateway.generate(HISTORY, preferred="gpt-4")

    assert result.provider == "groq"


def test_build_providers_priority_order():
    names = [p.name for p in build_providers(Settings(_env_file=None))]
    assert names == ["groq", "huggingface", "openai"]


def test_estimate_tokens_uses_four_chars_per_token():
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2


def _completion(content, total_tokens=None):
    usage = SimpleNamespace(total_tokens=total_tokens) if total_tokens is not None else None
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=usage,
    )


def _client_returning(value=None, error=None):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=value, side_effect=error)
    return client


@pytest.mark.asyncio
async def test_chat_completions_provider_reports_usage():
    client = _client_returning(_completion("Hello!", total_tokens=42))
    provider = GroqProvider(api_key="key", model="llama", client=client)

    result = await provider.generate(HISTORY, GenerationParams(temperature=0.2, max_tokens=99))

    assert result == Success(text="Hello!", tokens_used=42, provider="groq")
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "llama"
    assert kwargs["messages"] == HISTORY
    assert kwargs["temperature"] == 0.2
    assert kwargs["max_tokens"] == 99


@pytest.mark.asyncio
async def test_chat_completions_provider_estimates_missing_usage():
    client = _client_returning(_completion("12345678"))
    provider = OpenAIProvider(api_key="key", model="gpt", client=client)

    result = await provider.generate(HISTORY, GenerationParams())

    assert result.tokens_used == 2


@pytest.mark.asyncio
async def test_chat_completions_provider_swallows_errors():
    client = _client_returning(error=RuntimeError("boom"))
    provider = GroqProvider(api_key="key", model="llama", client=client)

    result = await provider.generate(HISTORY, GenerationParams())

    assert isinstance(result, Unavailable)
    assert "boom" in result.reason


@pytest.mark.asyncio
async def test_chat_completions_provider_empty_content_is_unavailable():
    client = _client_returning(_completion(""))
    provider = GroqProvider(api_key="key", model="llama", client=client)

    result = await provider.generate(HISTORY, GenerationParams())

    assert isinstance(result, Unavailable)


@pytest.mark.asyncio
async def test_provider_without_key_is_unavailable():
    provider = OpenAIProvider(api_key="", model="gpt")

    assert not provider.configured
    assert isinstance(await provider.generate(HISTORY, GenerationParams()), Unavailable)


def test_huggingface_prompt_format():
    prompt = HuggingFaceProvider.build_prompt(
        [{"role": "system", "content": "be brief"}, {"role": "user", "content": "hi"}]
    )
    assert prompt == "system: be brief\nuser: hi\nassistant:"


@pytest.mark.asyncio
async def test_huggingface_tries_models_in_order():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        assert request.headers["Authorization"] == "Bearer hf-key"
        if request.url.path.endswith("/first/model"):
            return httpx.Response(503, text="loading")
        return httpx.Response(200, json=[{"generated_text": "  answer  "}])

    provider = HuggingFaceProvider(
        api_key="hf-key",
        models=["first/model", "second/model"],
        api_url="https://hf.test/models",
        transport=httpx.MockTransport(handler),
    )

    result = await provider.generate(HISTORY, GenerationParams())

    assert result == Success(text="answer", tokens_used=2, provider="huggingface")
    assert seen == ["/models/first/model", "/models/second/model"]


@pytest.mark.asyncio
async def test_huggingface_all_models_failing_is_unavailable():
    provider = HuggingFaceProvider(
        api_key="hf-key",
        models=["a/b"],
        api_url="https://hf.test/models",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"error": "x"})),
    )

    result = await provider.generate(HISTORY, GenerationParams())

    assert isinstance(result, Unavailable)
