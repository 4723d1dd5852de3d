"""
Scan history persistence.

Saving history is best-effort: a failed write is logged and the scan
result is still returned to the caller.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.models.scan_history import ScanHistory
from app.models.user import User
from app.services.analysis.normalizer import canonical_verdict
from app.services.scan_lookup import ScanOutcome


logger = logging.getLogger(__name__)


def build_history_entry(user: User, outcome: ScanOutcome, placeholder_image_url: str) -> ScanHistory:
    """Snapshot a successful scan as a ScanHistory row (not yet added to a session)"""
    result = outcome.result
    return ScanHistory(
        user_id=user.id,
        scan_type=outcome.scan_type,
        product_name=result.product_name,
        barcode=outcome.barcode,
        scanned_image_url=result.image or placeholder_image_url,
        risk_score=result.risk_score,
        # History only admits the four canonical verdicts; "Unknown" is stored as neutral
        verdict=canonical_verdict(result.verdict) or "Moderate",
        analysis_summary=result.analysis_summary,
        flagged_ingredients=[f.model_dump() for f in result.flagged_ingredients],
        alternatives=[a.model_dump() for a in result.alternatives],
    )


def save_scan_history(
    db: Session,
    user: Optional[User],
    outcome: ScanOutcome,
    placeholder_image_url: str
) -> Optional[ScanHistory]:
    """
    Persist a scan for an authenticated user.

    Returns:
        The stored entry, or None if the user is anonymous, the scan failed,
        or the write failed
    """
    if user is None or not outcome.success or outcome.result is None:
        return None

    try:
        entry = build_history_entry(user, outcome, placeholder_image_url)
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry
    except Exception:
        logger.exception("Failed to save scan history for user %s", user.id)
        db.rollback()
        return None
