"""Model gateway: ordered provider fallback ending in a fixed reply."""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from galaxy_chat.services.providers import (
    GenerationParams,
    Success,
    Unavailable,
    build_providers,
)

logger = logging.getLogger(__name__)

FALLBACK_TEXT = (
    "I apologize, but I'm currently unable to generate responses. "
    "Please set up your API keys:\n\n"
    "1. GROQ (Recommended - FREE & FAST): Get your key at https://console.groq.com\n"
    "2. Or use Hugging Face: Get your key at https://huggingface.co/settings/tokens\n\n"
    "Add the key to your environment as GROQ_API_KEY or HF_API_KEY"
)


@dataclass
class GenerationResult:
    text: str
    tokens_used: int
    provider: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.provider is None


class ModelGateway:
    """
    Try each provider once, in priority order.

    The first provider returning non-empty text wins. When every provider is
    unconfigured or fails, the fixed FALLBACK_TEXT is returned with zero token
    usage; this is a normal result, not an error.
    """

    def __init__(self, providers: Sequence, fallback_text: str = FALLBACK_TEXT):
        self.providers = list(providers)
        self.fallback_text = fallback_text

    @classmethod
    def from_settings(cls, settings) -> "ModelGateway":
        return cls(build_providers(settings))

    def ordered_providers(self, preferred: Optional[str] = None) -> list:
        """Providers with the preferred one (if known) moved to the front."""
        if not preferred:
            return list(self.providers)
        first = [p for p in self.providers if p.name == preferred]
        rest = [p for p in self.providers if p.name != preferred]
        return first + rest

    async def generate(
        self,
        messages: List[Dict[str, str]],
        params: Optional[GenerationParams] = None,
        preferred: Optional[str] = None,
    ) -> GenerationResult:
        params = params or GenerationParams()

        for provider in self.ordered_providers(preferred):
            if not provider.configured:
                logger.debug(f"Skipping unconfigured provider {provider.name}")
                continue

            logger.info(f"Using {provider.name} provider")
            try:
                result = await provider.generate(messages, params)
            except Exception as e:
                logger.exception(f"{provider.name} raised during generation: {e}")
                result = Unavailable(str(e) or e.__class__.__name__)

            if isinstance(result, Success) and result.text:
                return GenerationResult(
                    text=result.text,
                    tokens_used=result.tokens_used,
                    provider=result.provider,
                )
            logger.warning(f"{provider.name} unavailable: {getattr(result, 'reason', '')}")

        logger.warning("All providers exhausted, returning fallback text")
        return GenerationResult(text=self.fallback_text, tokens_used=0)
