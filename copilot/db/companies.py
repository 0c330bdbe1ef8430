"""Database operations for companies and their embeddings."""

import re
from functools import lru_cache
from typing import Any

from pydantic import ValidationError
from supabase import Client

from copilot.core.exceptions import StoreError
from copilot.core.logging import get_logger
from copilot.core.schemas_companies import Company
from copilot.db.supabase_client import get_supabase

logger = get_logger(__name__)

COMPANIES_TABLE = "companies"
EMBEDDINGS_TABLE = "company_embeddings"
SEARCH_RPC = "search_similar_companies"
SEARCH_RPC_SCORE_COLUMN = "distance"

# Characters that would break a PostgREST or=(...) filter expression
_FILTER_UNSAFE = re.compile(r'[,()"\\]')


def _filter_value(value: str) -> str:
    return _FILTER_UNSAFE.sub(" ", value).strip()


class CompanyStore:
    """Read-only access to the company catalog and its embedding index."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _execute(self, action: str, query: Any) -> Any:
        try:
            return query.execute()
        except Exception as e:
            logger.error(f"Failed to {action}: {e}")
            raise StoreError(f"Failed to {action}") from e

    def _to_companies(self, action: str, rows: list[dict[str, Any]] | None) -> list[Company]:
        try:
            return [Company.model_validate(row) for row in rows or []]
        except ValidationError as e:
            logger.error(f"Malformed company row while trying to {action}: {e}")
            raise StoreError(f"Malformed company row while trying to {action}") from e

    # Lookups

    def get_company_by_slug(self, slug: str) -> Company | None:
        """Return the company with this slug, or None."""
        response = self._execute(
            f"fetch company {slug}",
            self.supabase.table(COMPANIES_TABLE).select("*").eq("slug", slug).limit(1),
        )
        if not response.data:
            return None
        return self._to_companies(f"fetch company {slug}", response.data[:1])[0]

    def get_companies_by_ids(self, company_ids: list[str]) -> list[Company]:
        """Return companies for the given ids, in no particular order."""
        if not company_ids:
            return []
        response = self._execute(
            "fetch companies by id",
            self.supabase.table(COMPANIES_TABLE).select("*").in_("id", company_ids),
        )
        return self._to_companies("fetch companies by id", response.data)

    # Retrieval support

    def count_embeddings(self, source: str) -> int:
        """Count embedding rows for a source label without fetching them."""
        response = self._execute(
            "count embeddings",
            self.supabase.table(EMBEDDINGS_TABLE)
            .select("id", count="exact", head=True)
            .eq("source", source),
        )
        return response.count or 0

    def search_similar_companies(
        self,
        query_embedding: list[float],
        match_threshold: float,
        match_count: int,
    ) -> list[tuple[Company, float]]:
        """
        Server-side nearest-neighbour search via the search_similar_companies RPC.

        Args:
            query_embedding: Query vector
            match_threshold: Minimum cosine similarity to return
            match_count: Maximum number of matches

        Returns:
            List of (company, similarity) pairs as ranked by the database

        Raises:
            StoreError: If the RPC is missing, fails or returns malformed rows
        """
        response = self._execute(
            "run similarity search",
            self.supabase.rpc(
                SEARCH_RPC,
                {
                    "query_embedding": query_embedding,
                    "match_threshold": match_threshold,
                    "match_count": match_count,
                },
            ),
        )
        rows = response.data or []
        companies = self._to_companies("run similarity search", rows)
        try:
            # The function returns 1 - (embedding <=> query), a similarity, as "distance"
            similarities = [float(row[SEARCH_RPC_SCORE_COLUMN]) for row in rows]
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Similarity search row without a usable score: {e}")
            raise StoreError("Similarity search returned rows without a score") from e
        return list(zip(companies, similarities))

    def list_embeddings(self, source: str) -> list[dict[str, Any]]:
        """Return raw ``{company_id, embedding}`` rows for a source label."""
        response = self._execute(
            "list embeddings",
            self.supabase.table(EMBEDDINGS_TABLE)
            .select("company_id, embedding")
            .eq("source", source),
        )
        return response.data or []

    def keyword_search(self, token: str, limit: int) -> list[Company]:
        """Case-insensitive substring match on name, description or primary category."""
        term = _filter_value(token)
        if not term:
            return []
        pattern = f"%{term}%"
        response = self._execute(
            "run keyword search",
            self.supabase.table(COMPANIES_TABLE)
            .select("*")
            .or_(
                f"name.ilike.{pattern},"
                f"description.ilike.{pattern},"
                f"radical_primary_category.ilike.{pattern}"
            )
            .order("name")
            .limit(limit),
        )
        return self._to_companies("run keyword search", response.data)

    def list_first_companies(self, limit: int) -> list[Company]:
        """Return the first ``limit`` companies by name."""
        response = self._execute(
            "list companies",
            self.supabase.table(COMPANIES_TABLE).select("*").order("name").limit(limit),
        )
        return self._to_companies("list companies", response.data)

    # Dashboard listing

    def list_companies(
        self,
        q: str | None = None,
        categories: list[str] | None = None,
        year: int | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Company], int]:
        """
        List companies with optional filters, ordered by name.

        Args:
            q: Substring matched against name and description
            categories: OR-matched against primary category and category array overlap
            year: Exact investment year
            limit: Page size
            offset: Page start

        Returns:
            Tuple of (page of companies, total matching count)
        """
        query = self.supabase.table(COMPANIES_TABLE).select("*", count="exact")

        if q:
            term = _filter_value(q)
            if term:
                query = query.or_(f"name.ilike.%{term}%,description.ilike.%{term}%")

        cleaned = [_filter_value(c) for c in categories or []]
        cleaned = [c for c in cleaned if c]
        if cleaned:
            quoted = ",".join(f'"{c}"' for c in cleaned)
            query = query.or_(
                f"radical_primary_category.in.({quoted}),radical_all_categories.ov.{{{quoted}}}"
            )

        if year is not None:
            query = query.eq("radical_investment_year", year)

        query = query.order("name").range(offset, offset + limit - 1)
        response = self._execute("list companies", query)
        companies = self._to_companies("list companies", response.data)
        return companies, response.count or 0

    def list_company_facets(self) -> list[dict[str, Any]]:
        """Return category and year columns for every company."""
        response = self._execute(
            "list company facets",
            self.supabase.table(COMPANIES_TABLE).select(
                "radical_primary_category, radical_all_categories, radical_investment_year"
            ),
        )
        return response.data or []


@lru_cache(maxsize=1)
def get_company_store() -> CompanyStore:
    """Get the company store bound to the shared Supabase client."""
    return CompanyStore(get_supabase())
