"""OpenAI embeddings generation with validation."""

from functools import lru_cache
from typing import Protocol

from openai import OpenAI

from copilot.core.config import Settings, get_settings
from copilot.core.exceptions import DimensionMismatchError, EmbeddingError
from copilot.core.logging import get_logger

logger = get_logger(__name__)


class EmbeddingProvider(Protocol):
    """Anything that turns text into a fixed-length vector."""

    def embed(self, text: str) -> list[float]: ...


class OpenAIEmbeddingProvider:
    """Embedding provider backed by the OpenAI embeddings API."""

    def __init__(self, client: OpenAI, model: str, dimension: int):
        self.client = client
        self.model = model
        self.dimension = dimension

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIEmbeddingProvider":
        client = OpenAI(
            api_key=settings.OPENAI_API_KEY,
            timeout=settings.PROVIDER_TIMEOUT_SECONDS,
        )
        return cls(client, settings.EMBEDDING_MODEL, settings.EMBEDDING_DIM)

    def embed(self, text: str) -> list[float]:
        """
        Generate an embedding for a single text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector of exactly ``self.dimension`` floats

        Raises:
            DimensionMismatchError: If the provider returns a vector of another length
            EmbeddingError: If the OpenAI API call fails
        """
        kwargs = {"model": self.model, "input": text}
        # Only the text-embedding-3 family accepts a requested output size
        if self.model.startswith("text-embedding-3"):
            kwargs["dimensions"] = self.dimension

        try:
            response = self.client.embeddings.create(**kwargs)
        except Exception as e:
            logger.error(f"Failed to generate embedding: {e}")
            raise EmbeddingError(f"Embedding request failed: {e}") from e

        if not response.data:
            raise EmbeddingError("Embedding response contained no vectors")

        embedding = list(response.data[0].embedding)
        if len(embedding) != self.dimension:
            raise DimensionMismatchError(self.dimension, len(embedding))

        logger.debug(
            f"Generated embedding using {self.model}",
            extra={"extra_data": {"model": self.model, "dimension": len(embedding)}},
        )
        return embedding


@lru_cache(maxsize=1)
def get_embedding_provider() -> EmbeddingProvider:
    """Get the configured embedding provider (cached singleton)."""
    return OpenAIEmbeddingProvider.from_settings(get_settings())
