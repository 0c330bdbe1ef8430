"""Chat completion providers.

Two vendors sit behind one ``complete(system_prompt, user_prompt, history)``
call so the chat pipeline never depends on a vendor SDK directly.
"""

from functools import lru_cache
from typing import Protocol

from anthropic import Anthropic
from openai import OpenAI

from copilot.core.config import Settings, get_settings
from copilot.core.exceptions import CompletionError
from copilot.core.logging import get_logger

logger = get_logger(__name__)


class CompletionProvider(Protocol):
    """Anything that answers a user prompt under a system instruction."""

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        history: list[dict[str, str]] | None = None,
    ) -> str: ...


class OpenAICompletionProvider:
    """Completion provider backed by OpenAI chat completions."""

    def __init__(self, client: OpenAI, model: str, temperature: float, max_tokens: int):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAICompletionProvider":
        client = OpenAI(
            api_key=settings.OPENAI_API_KEY,
            timeout=settings.PROVIDER_TIMEOUT_SECONDS,
        )
        return cls(
            client,
            model=settings.OPENAI_CHAT_MODEL,
            temperature=settings.CHAT_TEMPERATURE,
            max_tokens=settings.CHAT_MAX_TOKENS,
        )

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        history: list[dict[str, str]] | None = None,
    ) -> str:
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(history or [])
        messages.append({"role": "user", "content": user_prompt})

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            logger.error(f"OpenAI completion failed: {e}")
            raise CompletionError(f"Completion request failed: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


class AnthropicCompletionProvider:
    """Completion provider backed by the Anthropic messages API."""

    def __init__(self, client: Anthropic, model: str, temperature: float, max_tokens: int):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnthropicCompletionProvider":
        if not settings.ANTHROPIC_API_KEY:
            raise ValueError("ANTHROPIC_API_KEY must be set when COMPLETION_PROVIDER=anthropic")
        client = Anthropic(
            api_key=settings.ANTHROPIC_API_KEY,
            timeout=settings.PROVIDER_TIMEOUT_SECONDS,
        )
        return cls(
            client,
            model=settings.ANTHROPIC_CHAT_MODEL,
            temperature=settings.CHAT_TEMPERATURE,
            max_tokens=settings.CHAT_MAX_TOKENS,
        )

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        history: list[dict[str, str]] | None = None,
    ) -> str:
        messages = list(history or [])
        messages.append({"role": "user", "content": user_prompt})

        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=system_prompt,
                messages=messages,
            )
        except Exception as e:
            logger.error(f"Anthropic completion failed: {e}")
            raise CompletionError(f"Completion request failed: {e}") from e

        return "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )


def build_completion_provider(settings: Settings) -> CompletionProvider:
    """Construct the completion provider named by COMPLETION_PROVIDER."""
    if settings.COMPLETION_PROVIDER == "anthropic":
        return AnthropicCompletionProvider.from_settings(settings)
    return OpenAICompletionProvider.from_settings(settings)


@lru_cache(maxsize=1)
def get_completion_provider() -> CompletionProvider:
    """Get the configured completion provider (cached singleton)."""
    return build_completion_provider(get_settings())
