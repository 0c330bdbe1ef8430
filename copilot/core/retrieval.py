"""Retrieval cascade for the chat pipeline.

Strategies run in a fixed order and the first one that yields candidates
wins:

1. vector search (server-side RPC, falling back to client-side scoring)
2. keyword search on the first meaningful token of the question
3. blind fallback to the first companies by name

A non-final strategy that fails with a provider or store error counts as
"no candidates" so the cascade moves on. A failure in the final strategy
propagates.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from copilot.core.config import Settings, get_settings
from copilot.core.embeddings import EmbeddingProvider, get_embedding_provider
from copilot.core.exceptions import ProviderError, StoreError, VectorDecodeError
from copilot.core.logging import get_logger, log_with_context
from copilot.core.schemas_companies import Company
from copilot.core.vectors import cosine_distance, decode_vector
from copilot.db.companies import CompanyStore, get_company_store

logger = get_logger(__name__)

KEYWORD_DISTANCE = 1.0
FALLBACK_DISTANCE = 2.0
KEYWORD_MIN_TOKEN_LENGTH = 2

STOP_WORDS = frozenset(
    {
        "about",
        "all",
        "and",
        "any",
        "are",
        "can",
        "does",
        "for",
        "how",
        "tell",
        "the",
        "what",
        "which",
        "who",
        "with",
    }
)

_TOKEN_RE = re.compile(r"[a-z0-9]+")


class Provenance(str, Enum):
    """Which cascade stage produced a candidate."""

    VECTOR = "vector"
    KEYWORD = "keyword"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Candidate:
    """A company plus a relevance distance (lower is more relevant)."""

    company: Company
    distance: float
    provenance: Provenance


class RetrievalStrategy(Protocol):
    name: str

    def attempt(self, question: str, top_k: int) -> list[Candidate] | None: ...


def tokenize(question: str) -> list[str]:
    """Lowercase alphanumeric tokens longer than two characters, minus stop words."""
    return [
        token
        for token in _TOKEN_RE.findall(question.lower())
        if len(token) > KEYWORD_MIN_TOKEN_LENGTH and token not in STOP_WORDS
    ]


class VectorSearchStrategy:
    """Semantic search over stored company embeddings."""

    name = "vector"

    def __init__(
        self,
        store: CompanyStore,
        embedder: EmbeddingProvider,
        source: str,
        dimension: int,
        similarity_floor: float,
    ):
        self.store = store
        self.embedder = embedder
        self.source = source
        self.dimension = dimension
        self.similarity_floor = similarity_floor

    def attempt(self, question: str, top_k: int) -> list[Candidate] | None:
        if self.store.count_embeddings(self.source) == 0:
            logger.info(f"No '{self.source}' embeddings stored, skipping vector search")
            return None

        query_embedding = self.embedder.embed(question)

        try:
            matches = self.store.search_similar_companies(
                query_embedding, self.similarity_floor, top_k
            )
        except StoreError as e:
            logger.warning(f"Similarity RPC unavailable, scoring client-side: {e}")
            return self._search_client_side(query_embedding, top_k) or None

        candidates = [
            Candidate(company, 1.0 - similarity, Provenance.VECTOR)
            for company, similarity in matches
            if similarity > self.similarity_floor
        ]
        candidates.sort(key=lambda c: c.distance)
        return candidates[:top_k] or None

    def _search_client_side(self, query_embedding: list[float], top_k: int) -> list[Candidate]:
        rows = self.store.list_embeddings(self.source)

        scored: list[tuple[str, float]] = []
        skipped = 0
        for row in rows:
            try:
                vector = decode_vector(row.get("embedding"))
            except VectorDecodeError as e:
                logger.debug(f"Skipping embedding for {row.get('company_id')}: {e}")
                skipped += 1
                continue

            if len(vector) != self.dimension:
                skipped += 1
                continue

            distance = cosine_distance(query_embedding, vector)
            if distance is None:
                skipped += 1
                continue

            if 1.0 - distance > self.similarity_floor:
                scored.append((row["company_id"], distance))

        if skipped:
            logger.warning(
                f"Skipped {skipped} unusable embedding rows",
                extra={"extra_data": {"source": self.source, "skipped": skipped}},
            )

        scored.sort(key=lambda pair: pair[1])
        scored = scored[:top_k]
        if not scored:
            return []

        companies = self.store.get_companies_by_ids([company_id for company_id, _ in scored])
        by_id = {company.id: company for company in companies}

        # Keep ranking order; ids with no company row are dropped
        return [
            Candidate(by_id[company_id], distance, Provenance.VECTOR)
            for company_id, distance in scored
            if company_id in by_id
        ]


class KeywordSearchStrategy:
    """ILIKE match on the first meaningful token of the question."""

    name = "keyword"

    def __init__(self, store: CompanyStore):
        self.store = store

    def attempt(self, question: str, top_k: int) -> list[Candidate] | None:
        tokens = tokenize(question)
        if not tokens:
            return None

        companies = self.store.keyword_search(tokens[0], top_k)
        return [Candidate(c, KEYWORD_DISTANCE, Provenance.KEYWORD) for c in companies] or None


class FallbackAllStrategy:
    """Blind fallback: the first companies by name."""

    name = "fallback"

    def __init__(self, store: CompanyStore, limit: int):
        self.store = store
        self.limit = limit

    def attempt(self, question: str, top_k: int) -> list[Candidate] | None:
        companies = self.store.list_first_companies(self.limit)
        return [Candidate(c, FALLBACK_DISTANCE, Provenance.FALLBACK) for c in companies] or None


class RetrievalEngine:
    """Runs strategies in order and returns the first non-empty result."""

    def __init__(self, strategies: list[RetrievalStrategy]):
        self.strategies = strategies

    def retrieve(
        self, question: str, top_k: int, request_id: str | None = None
    ) -> list[Candidate]:
        """
        Retrieve candidate companies for a question.

        Args:
            question: User question
            top_k: Requested candidate count (clamped to at least 1)
            request_id: Optional id for log correlation

        Returns:
            Candidates sorted ascending by distance; empty only if every stage is empty

        Raises:
            ProviderError: If the final strategy's provider call fails
            StoreError: If the final strategy's store call fails
        """
        top_k = max(1, top_k)
        last_index = len(self.strategies) - 1

        for index, strategy in enumerate(self.strategies):
            try:
                candidates = strategy.attempt(question, top_k)
            except (ProviderError, StoreError) as e:
                if index == last_index:
                    raise
                log_with_context(
                    logger,
                    logging.WARNING,
                    f"Retrieval stage '{strategy.name}' failed, trying next stage: {e}",
                    request_id=request_id,
                    stage=strategy.name,
                )
                continue

            if candidates:
                candidates = sorted(candidates, key=lambda c: c.distance)
                log_with_context(
                    logger,
                    logging.INFO,
                    f"Retrieved {len(candidates)} candidates via {strategy.name}",
                    request_id=request_id,
                    stage=strategy.name,
                    count=len(candidates),
                )
                return candidates

            logger.debug(f"Retrieval stage '{strategy.name}' returned nothing")

        log_with_context(
            logger, logging.WARNING, "All retrieval stages were empty", request_id=request_id
        )
        return []


def build_retrieval_engine(
    store: CompanyStore, embedder: EmbeddingProvider, settings: Settings
) -> RetrievalEngine:
    """Assemble the vector -> keyword -> fallback cascade."""
    return RetrievalEngine(
        [
            VectorSearchStrategy(
                store,
                embedder,
                source=settings.EMBEDDING_SOURCE,
                dimension=settings.EMBEDDING_DIM,
                similarity_floor=settings.SIMILARITY_FLOOR,
            ),
            KeywordSearchStrategy(store),
            FallbackAllStrategy(store, limit=settings.FALLBACK_COMPANY_LIMIT),
        ]
    )


def get_retrieval_engine() -> RetrievalEngine:
    """Build the retrieval engine from the shared store and embedding provider."""
    return build_retrieval_engine(get_company_store(), get_embedding_provider(), get_settings())
