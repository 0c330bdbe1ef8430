"""Portfolio aggregations for the dashboard charts."""

from collections import Counter
from typing import Any

from copilot.core.schemas_companies import CategoryCount, InsightsSummary, YearCount

UNCATEGORIZED = "Uncategorized"


def _category_of(row: dict[str, Any]) -> str:
    primary = row.get("radical_primary_category")
    if primary:
        return primary
    categories = row.get("radical_all_categories") or []
    if categories:
        return categories[0]
    return UNCATEGORIZED


def summarize_portfolio(rows: list[dict[str, Any]]) -> InsightsSummary:
    """
    Count companies per category and per investment year.

    Args:
        rows: Company rows with category and year columns

    Returns:
        InsightsSummary with byCategory sorted by count desc then name,
        and byYear ascending (companies without a year are not counted)
    """
    categories = Counter(_category_of(row) for row in rows)
    years = Counter(
        row["radical_investment_year"]
        for row in rows
        if row.get("radical_investment_year") is not None
    )

    by_category = [
        CategoryCount(category=category, count=count)
        for category, count in sorted(categories.items(), key=lambda item: (-item[1], item[0]))
    ]
    by_year = [YearCount(year=year, count=count) for year, count in sorted(years.items())]

    return InsightsSummary(by_category=by_category, by_year=by_year)
