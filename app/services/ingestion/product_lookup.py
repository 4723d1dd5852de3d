"""
Product lookup via Open Food Facts API.

Open Food Facts is a free, open, crowdsourced database of food products.
Its hosts and API versions have not always answered consistently, so a
barcode is looked up through an ordered list of endpoint variants and the
first usable product record wins.
"""
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

RawProduct = Dict[str, Any]
Fetcher = Callable[[str], Optional[RawProduct]]


def clean_barcode(barcode: str) -> str:
    """Strip spaces, dashes and any other non-digit characters"""
    return re.sub(r"\D", "", barcode or "")


class OpenFoodFactsClient:
    """
    Client for Open Food Facts API.

    API Docs: https://world.openfoodfacts.org/data
    No API key required - but a descriptive User-Agent is, or requests get blocked.
    """

    PRIMARY_HOST = "https://world.openfoodfacts.org"
    MIRROR_HOST = "https://in.openfoodfacts.org"
    SEARCH_PATH = "/cgi/search.pl"

    def __init__(
        self,
        user_agent: str = "LabelLens/1.0 (Educational Project)",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize client.

        Args:
            user_agent: Descriptive user agent (required by Open Food Facts)
            timeout: Per-request timeout in seconds for product lookups
            session: Optional pre-built requests session
        """
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": user_agent,
            "Accept": "application/json"
        })

    @property
    def fetchers(self) -> List[Tuple[str, Fetcher]]:
        """Lookup strategies in the order they are tried"""
        return [
            ("primary v0", lambda code: self._fetch_product(f"{self.PRIMARY_HOST}/api/v0/product/{code}.json")),
            ("mirror v0", lambda code: self._fetch_product(f"{self.MIRROR_HOST}/api/v0/product/{code}.json")),
            ("mirror v2", lambda code: self._fetch_product(f"{self.MIRROR_HOST}/api/v2/product/{code}")),
            ("search", self._search_by_barcode),
        ]

    def lookup_product(self, barcode: str) -> Optional[RawProduct]:
        """
        Look up a raw product record by barcode.

        Args:
            barcode: Product barcode (EAN-13, UPC-A, etc.), formatting is ignored

        Returns:
            Raw Open Food Facts product dict, or None if no variant found it
        """
        code = clean_barcode(barcode)
        if not code:
            logger.info("Barcode %r has no digits, skipping lookup", barcode)
            return None

        for name, fetch in self.fetchers:
            product = fetch(code)
            if product:
                logger.info("Barcode %s found via %s", code, name)
                return product
            logger.info("Barcode %s not found via %s", code, name)

        logger.info("Barcode %s not found in any Open Food Facts variant", code)
        return None

    def search_products(self, query: str, page_size: int = 5, timeout: Optional[float] = None) -> List[RawProduct]:
        """
        Free-text product search.

        Returns:
            Matching raw product dicts (possibly empty)
        """
        params = {
            "search_terms": query,
            "search_simple": 1,
            "action": "process",
            "json": 1,
            "page_size": page_size,
        }
        data = self._get_json(f"{self.PRIMARY_HOST}{self.SEARCH_PATH}", params=params, timeout=timeout)
        if not data:
            return []

        products = data.get("products") or []
        return [p for p in products if isinstance(p, dict)]

    def _fetch_product(self, url: str) -> Optional[RawProduct]:
        """Direct product endpoint; answers with {"status": 1, "product": {...}} on a hit"""
        data = self._get_json(url)
        if not data:
            return None

        # v0 uses status 1/0, v2 may use status "success"
        if data.get("status") in (0, "failure"):
            return None

        product = data.get("product")
        if not isinstance(product, dict) or not product:
            return None
        return product

    def _search_by_barcode(self, barcode: str) -> Optional[RawProduct]:
        """Search with the barcode as query; prefer an exact code match over the first hit"""
        products = self.search_products(barcode)
        if not products:
            return None

        for product in products:
            if str(product.get("code", "")) == barcode:
                return product
        return products[0]

    def _get_json(self, url: str, params: Optional[dict] = None, timeout: Optional[float] = None) -> Optional[dict]:
        try:
            response = self.session.get(url, params=params, timeout=timeout or self.timeout)
        except requests.RequestException as e:
            # One mirror being down must not fail the whole lookup
            logger.warning("Open Food Facts request to %s failed: %s", url, e)
            return None

        if not response.ok:
            logger.info("Open Food Facts %s answered HTTP %s", url, response.status_code)
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning("Open Food Facts %s returned a non-JSON body", url)
            return None

        return data if isinstance(data, dict) else None
