"""
Attach product photos to suggested alternatives.

Each alternative name gets one free-text search against Open Food Facts.
Searches run in parallel and the batch waits for all of them.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from app.schemas.scan import Alternative
from app.services.ingestion.product_lookup import OpenFoodFactsClient


logger = logging.getLogger(__name__)


class AlternativeImageEnricher:
    """Looks up a representative image for each alternative product name"""

    def __init__(self, product_client: OpenFoodFactsClient, timeout: float = 3.0, max_workers: int = 5):
        self.product_client = product_client
        self.timeout = timeout
        self.max_workers = max_workers

    def find_image(self, name: str) -> Optional[str]:
        """Image URL of the top search hit for a name, or None"""
        try:
            products = self.product_client.search_products(name, page_size=1, timeout=self.timeout)
        except Exception as e:
            logger.warning("Image search for alternative %r failed: %s", name, e)
            return None

        if not products:
            return None

        top = products[0]
        return top.get("image_front_url") or top.get("image_url") or None

    def enrich(self, alternatives: List[Alternative]) -> List[Alternative]:
        """
        Return alternatives with images filled in where a search found one.

        Order is preserved; alternatives that already carry an image are not searched.
        """
        if not alternatives:
            return []

        pending = [alt for alt in alternatives if not alt.image]
        if not pending:
            return list(alternatives)

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(pending))) as pool:
            images = iter(list(pool.map(lambda alt: self.find_image(alt.name), pending)))

        return [
            alt if alt.image else alt.model_copy(update={"image": next(images)})
            for alt in alternatives
        ]
