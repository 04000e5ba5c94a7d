from decimal import Decimal

import pytest
import requests
from fastapi.testclient import TestClient

from checkout.domain.errors import CatalogUnavailable
from checkout.product_service.main import app as product_app
from checkout.services.product_client import ProductClient, normalize_product


class FakeResponse:
    def __init__(self, status_code, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


def test_fetch_product_normalizes_payload(monkeypatch):
    seen = []

    def fake_get(url, timeout):
        seen.append(url)
        return FakeResponse(200, {"id": 7, "name": "Lamp", "sku": "LP-7", "price": 19.99,
                                  "discounted_price": 14.5, "stock_quantity": 3, "is_active": True})

    monkeypatch.setattr(requests, "get", fake_get)

    product = ProductClient(base_url="http://catalog/").fetch_product(7)

    assert seen == ["http://catalog/products/7"]
    assert product["price"] == Decimal("19.99")
    assert product["discounted_price"] == Decimal("14.5")
    assert product["stock_quantity"] == 3


def test_missing_product_is_none(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda url, timeout: FakeResponse(404))

    assert ProductClient(base_url="http://catalog").fetch_product(1) is None


def test_catalog_down(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(requests, "get", fake_get)

    with pytest.raises(CatalogUnavailable):
        ProductClient(base_url="http://catalog").fetch_product(1)
    # ponawiane przez http_retry
    assert len(calls) == 3


@pytest.mark.parametrize("status, expected_calls", [(500, 3), (400, 1)])
def test_http_errors_are_unavailable(monkeypatch, status, expected_calls):
    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        return FakeResponse(status)

    monkeypatch.setattr(requests, "get", fake_get)

    with pytest.raises(CatalogUnavailable):
        ProductClient(base_url="http://catalog").fetch_product(1)
    # tylko bledy serwera sa ponawiane
    assert len(calls) == expected_calls


def test_dev_catalog_payload_matches_client():
    catalog = TestClient(product_app)

    product = normalize_product(catalog.get("/products/1").json())

    assert product["sku"] == "KB-001"
    assert product["discounted_price"] == Decimal("179.99")
    assert catalog.get("/products/999").status_code == 404
    assert normalize_product(catalog.get("/products/2").json())["discounted_price"] is None
