"""Company list and detail endpoints."""

import asyncio

from fastapi import APIRouter, Depends, HTTPException, Query

from copilot.core.exceptions import NotFoundError
from copilot.core.logging import get_logger
from copilot.core.schemas_companies import Company, CompanyListResponse
from copilot.db.companies import CompanyStore, get_company_store

logger = get_logger(__name__)

router = APIRouter()

MAX_PAGE_SIZE = 100


def _parse_year(raw: str | None) -> int | None:
    """Lenient year filter: anything that is not an integer means no filter."""
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


@router.get("", response_model=CompanyListResponse)
async def list_companies(
    q: str | None = Query(None, description="Substring matched against name and description"),
    category: str | None = Query(None, description="Comma-separated categories (OR)"),
    year: str | None = Query(None, description="Investment year; ignored if not a number"),
    limit: int = Query(20, description="Page size, clamped to 1..100"),
    offset: int = Query(0, description="Page start, clamped at 0"),
    store: CompanyStore = Depends(get_company_store),
) -> CompanyListResponse:
    """List portfolio companies ordered by name."""
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    offset = max(offset, 0)
    categories = [c.strip() for c in category.split(",") if c.strip()] if category else []

    try:
        companies, total = await asyncio.to_thread(
            store.list_companies,
            q=q,
            categories=categories,
            year=_parse_year(year),
            limit=limit,
            offset=offset,
        )
    except Exception as e:
        logger.exception("Failed to list companies")
        raise HTTPException(status_code=500, detail="Failed to fetch companies") from e

    return CompanyListResponse(companies=companies, total=total)


@router.get("/{slug}", response_model=Company)
async def get_company(
    slug: str,
    store: CompanyStore = Depends(get_company_store),
) -> Company:
    """
    Get a single company by slug.

    Raises:
        NotFoundError: If no company has this slug (rendered as 404)
    """
    try:
        company = await asyncio.to_thread(store.get_company_by_slug, slug)
    except Exception as e:
        logger.exception(f"Failed to fetch company {slug}")
        raise HTTPException(status_code=500, detail="Failed to fetch company") from e

    if company is None:
        raise NotFoundError("Company not found")
    return company
