"""Integration tests for product catalog endpoints."""

from collections.abc import Generator
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from src.services.price_ledger_service import PriceLedgerService, get_price_ledger_service

PRODUCT_ROWS = [
    {
        "sku": "SKU-A",
        "product_id": 1001,
        "variant_id": "2001",
        "price": "24.99",
        "currency": "eur",
        "stock": 12,
        "data": {"title": "Leinen Kissen", "images": ["https://cdn.example.com/a.jpg"]},
    },
    {
        "sku": "SKU-B",
        "product_id": None,
        "variant_id": None,
        "price": "15.00",
        "currency": "eur",
        "stock": None,
        "data": None,
    },
]


@pytest.fixture
def products_client() -> Generator[tuple[TestClient, MagicMock], None, None]:
    """Provide a test client backed by a mocked products table."""
    from src.main import app

    supabase = MagicMock()
    app.dependency_overrides[get_price_ledger_service] = lambda: PriceLedgerService(supabase_client=supabase)
    with TestClient(app) as test_client:
        yield test_client, supabase
    app.dependency_overrides.pop(get_price_ledger_service, None)


def set_rows(supabase: MagicMock, rows: list[dict]) -> None:
    response = MagicMock()
    response.data = rows
    supabase.table.return_value.select.return_value.execute.return_value = response
    supabase.table.return_value.select.return_value.eq.return_value.limit.return_value.execute.return_value = response


class TestListProducts:
    """Tests for GET /api/v1/products."""

    def test_lists_catalog(self, products_client: tuple[TestClient, MagicMock]) -> None:
        """Test the catalog listing."""
        client, supabase = products_client
        set_rows(supabase, PRODUCT_ROWS)

        response = client.get("/api/v1/products")

        assert response.status_code == 200
        data = response.json()
        assert [p["sku"] for p in data] == ["SKU-A", "SKU-B"]
        assert data[0]["stock"] == 12
        assert data[0]["data"]["title"] == "Leinen Kissen"

    def test_empty_catalog(self, products_client: tuple[TestClient, MagicMock]) -> None:
        """Test an empty products table."""
        client, supabase = products_client
        set_rows(supabase, [])

        response = client.get("/api/v1/products")

        assert response.status_code == 200
        assert response.json() == []


class TestGetProduct:
    """Tests for GET /api/v1/products/{sku}."""

    def test_returns_sku_price_and_data(self, products_client: tuple[TestClient, MagicMock]) -> None:
        """Test that only SKU, price and display data are exposed."""
        client, supabase = products_client
        set_rows(supabase, PRODUCT_ROWS[:1])

        response = client.get("/api/v1/products/SKU-A")

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"sku", "price", "data"}
        assert data["sku"] == "SKU-A"
        assert data["price"] == "24.99"

    def test_unknown_sku_returns_404(self, products_client: tuple[TestClient, MagicMock]) -> None:
        """Test a missing product."""
        client, supabase = products_client
        set_rows(supabase, [])

        response = client.get("/api/v1/products/NOPE")

        assert response.status_code == 404
