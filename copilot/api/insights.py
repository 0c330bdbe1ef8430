"""Insights endpoint: portfolio aggregations."""

import asyncio

from fastapi import APIRouter, Depends, HTTPException

from copilot.core.insights import summarize_portfolio
from copilot.core.logging import get_logger
from copilot.core.schemas_companies import InsightsSummary
from copilot.db.companies import CompanyStore, get_company_store

logger = get_logger(__name__)

router = APIRouter()


@router.get("/summary", response_model=InsightsSummary)
async def get_summary(store: CompanyStore = Depends(get_company_store)) -> InsightsSummary:
    """Companies per category and per investment year."""
    try:
        rows = await asyncio.to_thread(store.list_company_facets)
    except Exception as e:
        logger.exception("Failed to load insights")
        raise HTTPException(status_code=500, detail="Failed to fetch insights") from e

    return summarize_portfolio(rows)
