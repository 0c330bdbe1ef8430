"""Context assembly for grounded chat answers."""

import json
from dataclasses import dataclass, field

from pydantic import BaseModel

from copilot.core.exceptions import StoreError
from copilot.core.logging import get_logger
from copilot.core.retrieval import Candidate
from copilot.core.schemas_chat import Source
from copilot.core.schemas_companies import Company
from copilot.db.companies import CompanyStore

logger = get_logger(__name__)

PINNED_MATCH = "selected"

SYSTEM_PROMPT = """You are Portfolio Copilot, an internal assistant for a venture firm. You answer questions about the firm's portfolio companies.

The user message contains a JSON list of portfolio companies followed by the question.

Rules:
- Only discuss companies that appear in the supplied list. Never name or describe any other company.
- Every time you mention a company, include its slug and primary category, e.g. "Acme (slug: acme, category: Climate)".
- If none of the supplied companies is relevant to the question, say so explicitly instead of guessing.
- If the question is unrelated to the portfolio, you may give a brief general-knowledge answer, clearly labelled as general knowledge and not about the portfolio.

Each company carries a "match" field:
- "selected": the company the user is currently viewing. Treat it as the main subject.
- "vector": a semantic match for the question.
- "keyword": matched a word of the question, weaker evidence of relevance.
- "fallback": listed only because nothing matched. Do not present these as answers to the question.

Be concise and specific."""


class ContextCompany(BaseModel):
    """The projection of a company that the model sees."""

    name: str
    slug: str
    radical_primary_category: str | None = None
    radical_all_categories: list[str] = []
    tagline: str | None = None
    description: str | None = None
    radical_investment_year: int | None = None
    all_sectors: list[str] = []
    match: str

    @classmethod
    def from_company(cls, company: Company, match: str) -> "ContextCompany":
        return cls(
            name=company.name,
            slug=company.slug,
            radical_primary_category=company.radical_primary_category,
            radical_all_categories=company.radical_all_categories,
            tagline=company.tagline,
            description=company.description,
            radical_investment_year=company.radical_investment_year,
            all_sectors=company.all_sectors,
            match=match,
        )


@dataclass
class ChatContext:
    """Companies supplied to the model for one request, pinned company first."""

    companies: list[ContextCompany] = field(default_factory=list)
    system_prompt: str = SYSTEM_PROMPT
    has_pinned: bool = False

    def serialize(self) -> str:
        return json.dumps(
            {"companies": [c.model_dump() for c in self.companies]},
            indent=2,
            ensure_ascii=False,
        )

    def render_user_prompt(self, question: str) -> str:
        """Context JSON followed by the question."""
        return f"Portfolio companies:\n{self.serialize()}\n\nQuestion: {question}"

    def citations(self) -> list[Source]:
        """Sources for every company in the context, in context order."""
        return [
            Source(
                name=c.name,
                slug=c.slug,
                radical_primary_category=c.radical_primary_category,
            )
            for c in self.companies
        ]


def resolve_pinned_company(store: CompanyStore, slug: str | None) -> Company | None:
    """
    Look up the caller's selected company.

    A missing slug, an unknown slug and a failed lookup all resolve to None;
    the chat carries on without a pinned entry.
    """
    if not slug:
        return None

    try:
        company = store.get_company_by_slug(slug)
    except StoreError as e:
        logger.warning(f"Pinned company lookup failed for '{slug}': {e}")
        return None

    if company is None:
        logger.info(f"Pinned company '{slug}' not found, continuing without it")
    return company


def build_context(
    candidates: list[Candidate],
    pinned: Company | None,
    max_companies: int,
) -> ChatContext:
    """
    Assemble the chat context.

    Args:
        candidates: Retrieval output, already ranked
        pinned: Selected company, placed first when present
        max_companies: Cap on total entries, pinned included

    Returns:
        ChatContext with unique slugs, pinned first
    """
    companies: list[ContextCompany] = []
    seen: set[str] = set()

    if pinned is not None:
        companies.append(ContextCompany.from_company(pinned, PINNED_MATCH))
        seen.add(pinned.slug)

    for candidate in candidates:
        if len(companies) >= max_companies:
            break
        slug = candidate.company.slug
        if slug in seen:
            continue
        seen.add(slug)
        companies.append(
            ContextCompany.from_company(candidate.company, candidate.provenance.value)
        )

    return ChatContext(companies=companies, has_pinned=pinned is not None)
