"""Product lookup by UPC against the Open Food Facts API."""

import logging
from dataclasses import dataclass

import httpx

from larder.config import get_settings
from larder.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

SERVICE_NAME = "Open Food Facts"
UNKNOWN_PRODUCT_NAME = "Unknown Product"


@dataclass
class ProductRecord:
    """Catalog data returned by a UPC lookup."""

    upc: str
    name: str
    brand: str | None = None
    category: str | None = None


def _first_entry(value: str | None) -> str | None:
    """Open Food Facts lists brands and categories as comma-separated strings."""
    if not value:
        return None
    first = value.split(",")[0].strip()
    return first or None


class UpcLookupClient:
    """Client for the Open Food Facts product API."""

    FIELDS = "product_name,brands,categories,generic_name"

    def __init__(self, client: httpx.Client | None = None) -> None:
        """Initialize the client.

        Args:
            client: Optional preconfigured httpx client (used by tests)
        """
        settings = get_settings()
        self.base_url = settings.openfoodfacts_url.rstrip("/")
        self.timeout = settings.openfoodfacts_timeout_seconds
        self.headers = {"User-Agent": settings.openfoodfacts_user_agent}
        self.auth = ("off", "off") if settings.openfoodfacts_use_staging else None
        self._client = client

    def _get(self, url: str, params: dict) -> httpx.Response:
        if self._client is not None:
            return self._client.get(url, params=params, headers=self.headers, auth=self.auth)
        with httpx.Client(timeout=self.timeout) as client:
            return client.get(url, params=params, headers=self.headers, auth=self.auth)

    def fetch_product_data(self, upc: str) -> ProductRecord:
        """Look up a product by UPC.

        Args:
            upc: Barcode to look up

        Returns:
            ProductRecord with the product's name, brand and category

        Raises:
            ExternalServiceError: On transport errors, error responses, or unknown UPCs
        """
        url = f"{self.base_url}/api/v2/product/{upc}"
        try:
            response = self._get(url, params={"fields": self.FIELDS})
        except httpx.HTTPError as e:
            raise ExternalServiceError(SERVICE_NAME, f"request failed: {e}") from e

        if response.status_code == 429:
            raise ExternalServiceError(SERVICE_NAME, "rate limit exceeded")
        if response.status_code >= 500:
            raise ExternalServiceError(SERVICE_NAME, f"service unavailable ({response.status_code})")
        if response.status_code == 404:
            raise ExternalServiceError(SERVICE_NAME, f"product not found for UPC {upc}")
        try:
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPStatusError, ValueError) as e:
            raise ExternalServiceError(SERVICE_NAME, f"unexpected response: {e}") from e

        if data.get("status") != 1 or not data.get("product"):
            raise ExternalServiceError(SERVICE_NAME, f"product not found for UPC {upc}")

        product = data["product"]
        name = product.get("product_name") or product.get("generic_name") or UNKNOWN_PRODUCT_NAME
        record = ProductRecord(
            upc=upc,
            name=name.strip(),
            brand=_first_entry(product.get("brands")),
            category=_first_entry(product.get("categories")),
        )
        logger.debug(f"Fetched product data for UPC {upc}: {record.name}")
        return record
