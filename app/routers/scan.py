from fastapi import APIRouter, Body, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from typing import Optional

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.responses import envelope
from app.core.security import get_current_user, get_optional_user
from app.core.services import get_scan_service
from app.models.user import User
from app.schemas.scan import BarcodeLookupRequest
from app.services.analysis.ai_enrichment import HealthContext
from app.services.history import save_scan_history
from app.services.scan_lookup import ScanLookupService


router = APIRouter(prefix="/ocr", tags=["scan"])


@router.post("/barcode-lookup")
def barcode_lookup(
    payload: Optional[BarcodeLookupRequest] = Body(None),
    db: Session = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
    scan_service: ScanLookupService = Depends(get_scan_service),
    settings: Settings = Depends(get_settings)
):
    """
    Look up a product by barcode and rate its health risk.

    Workflow:
    1. Look up the product in Open Food Facts (falls back across mirrors and search)
    2. Derive a baseline risk from the Nutri-Score grade
    3. For signed-in users, personalize the assessment with AI
    4. Attach images to suggested alternatives
    5. Save the scan to history (signed-in users only, best-effort)

    An unknown barcode is answered with 200 and success=false.
    """
    barcode = (payload.barcode if payload else None) or ""
    if not barcode.strip():
        return envelope(False, message="No barcode provided.", status_code=400)

    health = HealthContext.from_user(user) if user else None
    outcome = scan_service.lookup_barcode(barcode, health)

    if not outcome.success:
        return envelope(False, message=outcome.message)

    save_scan_history(db, user, outcome, settings.placeholder_image_url)
    return envelope(True, data=outcome.result)


@router.post("/process-scan")
async def process_scan(
    image: Optional[UploadFile] = File(None, description="Photo of the product label"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    scan_service: ScanLookupService = Depends(get_scan_service),
    settings: Settings = Depends(get_settings)
):
    """
    Read a label photo and rate the product's health risk.

    The label text is extracted by OCR, cleaned and assessed by AI.
    """
    if image is None:
        return envelope(False, message="No image provided.", status_code=400)

    # Validate file type
    if not image.content_type or not image.content_type.startswith("image/"):
        return envelope(False, message="Invalid file type. Please upload an image.", status_code=400)

    image_bytes = await image.read()
    if not image_bytes:
        return envelope(False, message="Uploaded image is empty.", status_code=400)

    outcome = await run_in_threadpool(scan_service.scan_label, image_bytes, HealthContext.from_user(user))

    if not outcome.success:
        return envelope(False, message=outcome.message, status_code=outcome.status_code)

    save_scan_history(db, user, outcome, settings.placeholder_image_url)
    return envelope(True, data=outcome.result)
