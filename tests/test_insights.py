"""Tests for portfolio aggregation."""

from copilot.core.insights import summarize_portfolio


def test_category_precedence():
    rows = [
        {"radical_primary_category": "Climate", "radical_all_categories": ["AI"]},
        {"radical_primary_category": None, "radical_all_categories": ["Health", "AI"]},
        {"radical_primary_category": None, "radical_all_categories": None},
        {},
    ]

    summary = summarize_portfolio(rows)

    counts = {c.category: c.count for c in summary.by_category}
    assert counts == {"Climate": 1, "Health": 1, "Uncategorized": 2}


def test_category_order_count_desc_then_name():
    rows = [
        {"radical_primary_category": "Bio"},
        {"radical_primary_category": "AI"},
        {"radical_primary_category": "Robotics"},
        {"radical_primary_category": "Robotics"},
    ]

    summary = summarize_portfolio(rows)

    assert [c.category for c in summary.by_category] == ["Robotics", "AI", "Bio"]


def test_years_ascending_and_missing_years_skipped():
    rows = [
        {"radical_investment_year": 2022},
        {"radical_investment_year": 2018},
        {"radical_investment_year": 2022},
        {"radical_investment_year": None},
    ]

    summary = summarize_portfolio(rows)

    assert [(y.year, y.count) for y in summary.by_year] == [(2018, 1), (2022, 2)]


def test_empty_portfolio():
    summary = summarize_portfolio([])
    assert summary.by_category == []
    assert summary.by_year == []
