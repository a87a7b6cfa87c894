"""Text-generation providers consulted by the model gateway.

Each provider makes a single attempt per call and never raises: any failure is
logged and reported as ``Unavailable`` so the gateway can move on to the next
provider.
"""
import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

import httpx
from openai import AsyncOpenAI

from galaxy_chat.config import Settings

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Rough token count used when a provider reports no usage."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


@dataclass
class GenerationParams:
    temperature: float = 0.7
    max_tokens: int = 1500


@dataclass
class Success:
    text: str
    tokens_used: int
    provider: str


@dataclass
class Unavailable:
    reason: str


ProviderResult = Union[Success, Unavailable]


class ChatCompletionsProvider:
    """
    Provider speaking the OpenAI chat-completions protocol.

    Used directly for OpenAI and OpenAI-compatible backends, and with Groq's
    base URL for the primary provider.
    """

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            kwargs = {"api_key": self.api_key, "max_retries": 0}
            if self.base_url:
                kwargs["base_url"] = self.base_url
            if self.timeout is not None:
                kwargs["timeout"] = self.timeout
            self._client = AsyncOpenAI(**kwargs)
        return self._client

    async def generate(
        self, messages: List[Dict[str, str]], params: GenerationParams
    ) -> ProviderResult:
        if not self.configured:
            return Unavailable(f"{self.name} is not configured")

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=params.temperature,
                max_tokens=params.max_tokens,
            )
        except Exception as e:
            logger.error(f"{self.name} API error: {e}")
            return Unavailable(str(e))

        text = ""
        if response.choices:
            text = response.choices[0].message.content or ""
        if not text:
            logger.warning(f"{self.name} returned an empty completion")
            return Unavailable("empty completion")

        usage = getattr(response, "usage", None)
        tokens = usage.total_tokens if usage and usage.total_tokens else estimate_tokens(text)
        logger.info(f"{self.name} response received ({tokens} tokens)")
        return Success(text=text, tokens_used=tokens, provider=self.name)


class GroqProvider(ChatCompletionsProvider):
    name = "groq"


class OpenAIProvider(ChatCompletionsProvider):
    name = "openai"


class HuggingFaceProvider:
    """Hugging Face inference API; tries each configured model in turn."""

    name = "huggingface"

    def __init__(
        self,
        api_key: str,
        models: List[str],
        api_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.models = list(models)
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key) and bool(self.models)

    @staticmethod
    def build_prompt(messages: List[Dict[str, str]]) -> str:
        lines = [f"{m['role']}: {m['content']}" for m in messages]
        return "\n".join(lines) + "\nassistant:"

    async def generate(
        self, messages: List[Dict[str, str]], params: GenerationParams
    ) -> ProviderResult:
        if not self.configured:
            return Unavailable(f"{self.name} is not configured")

        payload = {
            "inputs": self.build_prompt(messages),
            "parameters": {
                "max_new_tokens": params.max_tokens,
                "temperature": params.temperature,
                "return_full_text": False,
            },
            "options": {"wait_for_model": True},
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        client_kwargs = {"transport": self.transport}
        if self.timeout is not None:
            client_kwargs["timeout"] = self.timeout

        async with httpx.AsyncClient(**client_kwargs) as client:
            for model_name in self.models:
                logger.info(f"Trying Hugging Face model: {model_name}")
                try:
                    response = await client.post(
                        f"{self.api_url}/{model_name}", json=payload, headers=headers
                    )
                except httpx.HTTPError as e:
                    logger.error(f"Error with model {model_name}: {e}")
                    continue

                if response.status_code != 200:
                    logger.warning(
                        f"Failed with {model_name}: {response.status_code} {response.text[:200]}"
                    )
                    continue

                try:
                    result = response.json()
                except ValueError:
                    logger.warning(f"Non-JSON response from {model_name}")
                    continue

                if isinstance(result, list) and result and isinstance(result[0], dict):
                    text = result[0].get("generated_text")
                    if not isinstance(text, str):
                        logger.warning(f"Unexpected generated_text from {model_name}")
                        continue
                    text = text.strip()
                    if text:
                        logger.info(f"Success with {model_name}")
                        return Success(
                            text=text,
                            tokens_used=estimate_tokens(text),
                            provider=self.name,
                        )

        return Unavailable("no Hugging Face model produced text")


def build_providers(settings: Settings) -> list:
    """Providers in default priority order: Groq, Hugging Face, OpenAI."""
    return [
        GroqProvider(
            api_key=settings.GROQ_API_KEY,
            model=settings.GROQ_MODEL,
            base_url=settings.GROQ_BASE_URL,
            timeout=settings.PROVIDER_TIMEOUT,
        ),
        HuggingFaceProvider(
            api_key=settings.HF_API_KEY,
            models=settings.HF_MODELS,
            api_url=settings.HF_API_URL,
            timeout=settings.PROVIDER_TIMEOUT,
        ),
        OpenAIProvider(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_MODEL,
            base_url=settings.OPENAI_BASE_URL,
            timeout=settings.PROVIDER_TIMEOUT,
        ),
    ]
