"""In-memory stand-ins for the company store and the model providers."""

from typing import Any

from copilot.core.exceptions import CompletionError, EmbeddingError, StoreError
from copilot.core.schemas_companies import Company


def make_company(slug: str, **overrides: Any) -> Company:
    """Build a Company with sensible defaults for tests."""
    data = {
        "id": f"id-{slug}",
        "name": slug.replace("-", " ").title(),
        "slug": slug,
        "radical_primary_category": "AI",
        "radical_all_categories": ["AI"],
        "description": f"{slug} builds things",
    }
    data.update(overrides)
    return Company.model_validate(data)


class FakeCompanyStore:
    """In-memory CompanyStore with call recording."""

    def __init__(
        self,
        companies: list[Company] | None = None,
        embeddings: list[dict[str, Any]] | None = None,
        rpc_matches: list[tuple[Company, float]] | None = None,
        rpc_error: bool = False,
        fail: bool = False,
    ):
        self.companies = list(companies or [])
        self.embeddings = list(embeddings or [])
        self.rpc_matches = rpc_matches
        self.rpc_error = rpc_error
        self.fail = fail
        self.keyword_tokens: list[str] = []
        self.keyword_limits: list[int] = []
        self.rpc_counts: list[int] = []
        self.list_embeddings_calls = 0

    def _check(self) -> None:
        if self.fail:
            raise StoreError("store unavailable")

    def get_company_by_slug(self, slug: str) -> Company | None:
        self._check()
        return next((c for c in self.companies if c.slug == slug), None)

    def get_companies_by_ids(self, company_ids: list[str]) -> list[Company]:
        self._check()
        wanted = set(company_ids)
        # Reverse to prove callers do not rely on store ordering
        return [c for c in reversed(self.companies) if c.id in wanted]

    def count_embeddings(self, source: str) -> int:
        self._check()
        return len(self.embeddings)

    def search_similar_companies(
        self, query_embedding: list[float], match_threshold: float, match_count: int
    ) -> list[tuple[Company, float]]:
        self._check()
        self.rpc_counts.append(match_count)
        if self.rpc_error or self.rpc_matches is None:
            raise StoreError("Failed to run similarity search")
        return self.rpc_matches[:match_count]

    def list_embeddings(self, source: str) -> list[dict[str, Any]]:
        self._check()
        self.list_embeddings_calls += 1
        return list(self.embeddings)

    def keyword_search(self, token: str, limit: int) -> list[Company]:
        self._check()
        self.keyword_tokens.append(token)
        self.keyword_limits.append(limit)
        needle = token.lower()
        matches = [
            c
            for c in self.companies
            if needle in c.name.lower()
            or needle in (c.description or "").lower()
            or needle in (c.radical_primary_category or "").lower()
        ]
        return sorted(matches, key=lambda c: c.name)[:limit]

    def list_first_companies(self, limit: int) -> list[Company]:
        self._check()
        return sorted(self.companies, key=lambda c: c.name)[:limit]

    def list_companies(self, q=None, categories=None, year=None, limit=20, offset=0):
        self._check()
        page = sorted(self.companies, key=lambda c: c.name)
        return page[offset : offset + limit], len(page)

    def list_company_facets(self) -> list[dict[str, Any]]:
        self._check()
        return [
            c.model_dump(
                include={
                    "radical_primary_category",
                    "radical_all_categories",
                    "radical_investment_year",
                }
            )
            for c in self.companies
        ]


class FakeEmbeddingProvider:
    """Returns a fixed vector and counts calls."""

    def __init__(self, vector: list[float] | None = None, fail: bool = False):
        self.vector = vector or [1.0, 0.0, 0.0]
        self.fail = fail
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail:
            raise EmbeddingError("embedding service down")
        return list(self.vector)


class FakeCompletionProvider:
    """Returns scripted answers in order and records every prompt."""

    def __init__(self, answers: list[str] | None = None, fail: bool = False):
        self.answers = list(answers or ["An answer."])
        self.fail = fail
        self.calls: list[dict[str, Any]] = []

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        history: list[dict[str, str]] | None = None,
    ) -> str:
        self.calls.append(
            {"system_prompt": system_prompt, "user_prompt": user_prompt, "history": history}
        )
        if self.fail:
            raise CompletionError("completion service down")
        index = min(len(self.calls), len(self.answers)) - 1
        return self.answers[index]
