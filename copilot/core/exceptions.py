"""Error taxonomy for the chat pipeline and its collaborators.

Expected degradations (an empty retrieval stage, a missing pinned company,
a clean answer) are handled inline and never raised. These exceptions
cover the failures that callers must decide about.
"""


class CopilotError(Exception):
    """Base class for all Portfolio Copilot errors."""


class ProviderError(CopilotError):
    """An embedding or completion provider call failed."""


class EmbeddingError(ProviderError):
    """The embedding provider could not produce a vector."""


class CompletionError(ProviderError):
    """The completion provider could not produce an answer."""


class DimensionMismatchError(EmbeddingError, ValueError):
    """An embedding's length disagrees with the configured dimension."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Embedding dimension mismatch: expected {expected}, got {actual}")


class StoreError(CopilotError):
    """A Supabase / PostgREST call failed."""


class NotFoundError(CopilotError):
    """A primary-subject lookup matched nothing."""


class VectorDecodeError(ValueError):
    """A stored embedding could not be decoded into numbers."""
