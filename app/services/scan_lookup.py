"""
Scan lookup orchestration.

Barcode flow:
1. Look up the product in Open Food Facts (several endpoint variants)
2. Normalize it into a ScanResult with a Nutri-Score based risk
3. Optionally replace the risk assessment with a personalized AI one
4. Attach images to suggested alternatives

Label flow skips the product lookup: OCR text goes straight to the AI.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from app.schemas.scan import ScanResult
from app.services.analysis.ai_enrichment import (
    AIEnrichmentClient,
    HealthContext,
    ai_fallback,
    apply_assessment,
)
from app.services.analysis.alternative_images import AlternativeImageEnricher
from app.services.analysis.normalizer import has_ingredients, normalize_product
from app.services.ingestion.label_ocr import LabelOCRClient
from app.services.ingestion.product_lookup import OpenFoodFactsClient, clean_barcode


logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Product not found. Please try scanning again or search manually."
NO_TEXT_MESSAGE = "No text could be read from the image. Please retake the photo with the label in focus."
OCR_UNAVAILABLE_MESSAGE = "Label scanning is not available right now. Please scan the barcode instead."


@dataclass
class ScanOutcome:
    """Result of a scan; success=False is a normal business outcome, not an error"""
    success: bool
    scan_type: str = "barcode"
    result: Optional[ScanResult] = None
    message: Optional[str] = None
    barcode: Optional[str] = None
    status_code: int = 200


class ScanLookupService:
    """
    Orchestrates the scan flows.

    All collaborators are passed in once at startup and reused across requests.
    """

    def __init__(
        self,
        product_client: OpenFoodFactsClient,
        ai_client: AIEnrichmentClient,
        image_enricher: AlternativeImageEnricher,
        ocr_client: LabelOCRClient
    ):
        self.product_client = product_client
        self.ai_client = ai_client
        self.image_enricher = image_enricher
        self.ocr_client = ocr_client

    def lookup_barcode(self, barcode: str, health: Optional[HealthContext] = None) -> ScanOutcome:
        """
        Look up and assess a product by barcode.

        Args:
            barcode: Barcode as entered or scanned (formatting is stripped)
            health: Health profile of an authenticated user; None for anonymous scans

        Returns:
            ScanOutcome with the result, or success=False if the product is unknown
        """
        code = clean_barcode(barcode)
        logger.info("Processing barcode %s", code or barcode)

        product = self.product_client.lookup_product(barcode)
        if not product:
            return ScanOutcome(success=False, message=NOT_FOUND_MESSAGE, barcode=code)

        result = normalize_product(product)

        if health is not None and has_ingredients(result.ingredients):
            assessment = self.ai_client.assess(result.product_name, result.ingredients, health)
            if assessment is not None and not assessment.is_fallback:
                result = apply_assessment(result, assessment.data)
            else:
                logger.info("AI analysis unavailable for %s, keeping Nutri-Score rating", code)

        result = result.model_copy(update={"alternatives": self.image_enricher.enrich(result.alternatives)})

        logger.info("Barcode %s resolved to %r (%s, %d)", code, result.product_name, result.verdict, result.risk_score)
        return ScanOutcome(success=True, result=result, barcode=code)

    def scan_label(self, image_bytes: bytes, health: HealthContext) -> ScanOutcome:
        """
        Assess a product from a photo of its label.

        Args:
            image_bytes: Raw image bytes
            health: Health profile of the authenticated user

        Returns:
            ScanOutcome; success=False if OCR is not configured (503)
            or no text could be read

        Raises:
            RuntimeError: If the OCR backend fails
        """
        if not self.ocr_client.enabled:
            logger.warning("Label scan requested but OCR is not configured")
            return ScanOutcome(success=False, scan_type="image_ocr", message=OCR_UNAVAILABLE_MESSAGE, status_code=503)

        text = self.ocr_client.extract_text(image_bytes)
        if not text.strip():
            return ScanOutcome(success=False, scan_type="image_ocr", message=NO_TEXT_MESSAGE)

        result = ScanResult(ingredients=text, image=None)

        assessment = self.ai_client.assess(result.product_name, text, health, clean_ocr=True)
        data = assessment.data if assessment is not None else ai_fallback()
        result = apply_assessment(result, data, keep_raw_verdict=True)

        result = result.model_copy(update={"alternatives": self.image_enricher.enrich(result.alternatives)})

        logger.info("Label scan resolved to %r (%s, %d)", result.product_name, result.verdict, result.risk_score)
        return ScanOutcome(success=True, scan_type="image_ocr", result=result)
