"""Tests for company, insights and health endpoints."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from copilot.core.exceptions import StoreError
from copilot.db.companies import get_company_store
from copilot.main import app
from tests.fakes.fake_store import FakeCompanyStore, make_company


@pytest.fixture
def override_store():
    def _override(store):
        app.dependency_overrides[get_company_store] = lambda: store
        return TestClient(app, raise_server_exceptions=False)

    yield _override
    app.dependency_overrides.clear()


def test_health():
    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_list_companies_clamps_paging_and_splits_categories(override_store):
    store = MagicMock()
    store.list_companies.return_value = ([make_company("acme")], 1)
    client = override_store(store)

    response = client.get("/api/companies?category=AI, Climate&limit=500&offset=-4&year=2021")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["companies"][0]["slug"] == "acme"
    assert data["companies"][0]["founder_names"] == []
    store.list_companies.assert_called_once_with(
        q=None, categories=["AI", "Climate"], year=2021, limit=100, offset=0
    )


def test_list_companies_zero_limit_becomes_one(override_store):
    store = MagicMock()
    store.list_companies.return_value = ([], 0)
    client = override_store(store)

    client.get("/api/companies?limit=0&q=robot")

    assert store.list_companies.call_args.kwargs["limit"] == 1
    assert store.list_companies.call_args.kwargs["q"] == "robot"


def test_list_companies_ignores_non_numeric_year(override_store):
    store = MagicMock()
    store.list_companies.return_value = ([], 0)
    client = override_store(store)

    response = client.get("/api/companies?year=recent")

    assert response.status_code == 200
    assert store.list_companies.call_args.kwargs["year"] is None


def test_list_companies_store_failure(override_store):
    store = MagicMock()
    store.list_companies.side_effect = StoreError("down")
    client = override_store(store)

    response = client.get("/api/companies")

    assert response.status_code == 500
    assert response.json() == {"error": {"message": "Failed to fetch companies"}}


def test_get_company(override_store):
    client = override_store(FakeCompanyStore(companies=[make_company("acme", name="Acme")]))

    response = client.get("/api/companies/acme")

    assert response.status_code == 200
    assert response.json()["name"] == "Acme"


def test_get_company_not_found(override_store):
    client = override_store(FakeCompanyStore())

    response = client.get("/api/companies/nope")

    assert response.status_code == 404
    assert response.json() == {"error": {"message": "Company not found"}}


def test_insights_summary(override_store):
    client = override_store(
        FakeCompanyStore(
            companies=[
                make_company("a", radical_investment_year=2020),
                make_company("b", radical_investment_year=2019),
                make_company("c", radical_primary_category=None, radical_all_categories=[]),
            ]
        )
    )

    response = client.get("/api/insights/summary")

    assert response.status_code == 200
    assert response.json() == {
        "byCategory": [
            {"category": "AI", "count": 2},
            {"category": "Uncategorized", "count": 1},
        ],
        "byYear": [{"year": 2019, "count": 1}, {"year": 2020, "count": 1}],
    }
