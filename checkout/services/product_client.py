# checkout/services/product_client.py
from decimal import Decimal
from typing import Any, Dict

import requests
from requests import RequestException

from checkout.domain.errors import CatalogUnavailable
from checkout.utils.retry import http_retry
from checkout.utils.settings import PRODUCT_SERVICE_URL
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


class ProductClient:
    """
    Klient katalogu produktow (product-service).
    404 oznacza produkt usuniety -> None.
    """

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def _get(self, url: str) -> requests.Response:
        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code != 404:
            resp.raise_for_status()
        return resp

    def fetch_product(self, product_id: int) -> Dict[str, Any] | None:
        url = f"{self.base_url}/products/{product_id}"
        logger.info(f"ProductClient GET {url}")

        try:
            resp = self._get(url)
        except RequestException as e:
            logger.error(f"Product service unavailable for product {product_id}: {e}")
            raise CatalogUnavailable("Katalog produktow jest niedostepny") from e

        if resp.status_code == 404:
            return None
        return normalize_product(resp.json())


def normalize_product(data: Dict[str, Any]) -> Dict[str, Any]:
    discounted = data.get("discounted_price")
    return {
        "id": data["id"],
        "name": data.get("name", ""),
        "sku": data.get("sku", ""),
        "is_active": bool(data.get("is_active", True)),
        "stock_quantity": int(data.get("stock_quantity", 0)),
        "price": Decimal(str(data["price"])),
        "discounted_price": Decimal(str(discounted)) if discounted is not None else None,
    }
