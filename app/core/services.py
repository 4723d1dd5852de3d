"""
Service wiring.

Outbound clients are built once at startup and shared by all requests.
"""
from dataclasses import dataclass

from fastapi import Request

from app.core.config import Settings
from app.services.analysis.ai_enrichment import AIEnrichmentClient
from app.services.analysis.alternative_images import AlternativeImageEnricher
from app.services.ingestion.label_ocr import LabelOCRClient
from app.services.ingestion.product_lookup import OpenFoodFactsClient
from app.services.scan_lookup import ScanLookupService


@dataclass
class ScanServices:
    product_client: OpenFoodFactsClient
    ai_client: AIEnrichmentClient
    ocr_client: LabelOCRClient
    image_enricher: AlternativeImageEnricher
    scan_service: ScanLookupService


def build_services(settings: Settings) -> ScanServices:
    product_client = OpenFoodFactsClient(
        user_agent=settings.off_user_agent,
        timeout=settings.product_timeout
    )
    ai_client = AIEnrichmentClient(model=settings.ai_model, enabled=settings.ai_configured)
    ocr_client = LabelOCRClient(model=settings.ocr_model, enabled=settings.ai_configured)
    # Image searches fan out on worker threads; keep them off the lookup session
    image_search_client = OpenFoodFactsClient(
        user_agent=settings.off_user_agent,
        timeout=settings.image_timeout
    )
    image_enricher = AlternativeImageEnricher(image_search_client, timeout=settings.image_timeout)

    return ScanServices(
        product_client=product_client,
        ai_client=ai_client,
        ocr_client=ocr_client,
        image_enricher=image_enricher,
        scan_service=ScanLookupService(
            product_client=product_client,
            ai_client=ai_client,
            image_enricher=image_enricher,
            ocr_client=ocr_client
        ),
    )


def get_scan_service(request: Request) -> ScanLookupService:
    """FastAPI dependency returning the shared scan service"""
    return request.app.state.services.scan_service
