"""OpenFoodFacts product API client."""

from dataclasses import dataclass

import httpx

from fitmacro.services.barcode import ProductCatalog


@dataclass
class HttpxOpenFoodFactsClient(ProductCatalog):
    """HTTPX-backed OpenFoodFacts client."""

    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str) -> "HttpxOpenFoodFactsClient":
        """Create a client with a managed httpx session."""
        return cls(base_url=base_url, http_client=httpx.AsyncClient())

    async def get_product(self, barcode: str) -> dict[str, object] | None:
        """Fetch a product by barcode; unknown barcodes return None."""
        url = f"{self.base_url}/product/{barcode}.json"
        response = await self.http_client.get(url, timeout=15)
        if response.status_code == httpx.codes.NOT_FOUND:
            return None
        response.raise_for_status()
        payload = response.json()
        product = payload.get("product") if isinstance(payload, dict) else None
        return product if isinstance(product, dict) else None

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
