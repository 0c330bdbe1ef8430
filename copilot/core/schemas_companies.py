"""Pydantic schemas for portfolio companies and insights."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Company(BaseModel):
    """A portfolio company row from the ``companies`` table."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Company UUID")
    name: str = Field(..., description="Display name")
    slug: str = Field(..., description="Unique, immutable human-readable identifier")
    radical_portfolio_url: str | None = Field(None, description="Portfolio page URL")
    radical_investment_year: int | None = Field(None, description="Year of first investment")
    radical_all_categories: list[str] = Field(default_factory=list, description="All categories")
    radical_primary_category: str | None = Field(None, description="Primary category")
    tagline: str | None = Field(None, description="One-line tagline")
    all_sectors: list[str] = Field(default_factory=list, description="All sectors")
    primary_sector: str | None = Field(None, description="Primary sector")
    description: str | None = Field(None, description="Free-text description")
    founder_names: list[str] = Field(default_factory=list, description="Founders, in order")
    company_website_url: str | None = Field(None, description="Company website")
    last_scraped_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("radical_all_categories", "all_sectors", "founder_names", mode="before")
    @classmethod
    def coerce_null_to_list(cls, v: Any) -> list[str]:
        """Postgres array columns may come back as null; expose them as empty lists."""
        if v is None:
            return []
        return v


class CompanyListResponse(BaseModel):
    """Response schema for the company list endpoint."""

    companies: list[Company] = Field(..., description="Page of companies ordered by name")
    total: int = Field(..., description="Total number of matching companies")


class CategoryCount(BaseModel):
    category: str
    count: int


class YearCount(BaseModel):
    year: int
    count: int


class InsightsSummary(BaseModel):
    """Portfolio aggregations for the dashboard charts."""

    model_config = ConfigDict(populate_by_name=True)

    by_category: list[CategoryCount] = Field(..., alias="byCategory")
    by_year: list[YearCount] = Field(..., alias="byYear")
