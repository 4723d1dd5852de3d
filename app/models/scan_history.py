from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey, JSON, Uuid
from sqlalchemy.sql import func
import uuid
from app.core.database import Base


class ScanHistory(Base):
    """
    Point-in-time snapshot of one completed scan.

    Rows are inserted once and never updated; later changes in the
    product database do not affect them.
    """
    __tablename__ = "scan_history"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    scanned_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    scan_type = Column(String, nullable=False)  # barcode, image_ocr, manual_search

    product_name = Column(String, nullable=False, default="Unknown Product")
    barcode = Column(String, nullable=True)
    scanned_image_url = Column(String, nullable=False)
    risk_score = Column(Integer, nullable=False)
    verdict = Column(String, nullable=False)  # Safe, Moderate, Risky, Hazardous
    analysis_summary = Column(Text, nullable=True)

    # Stored as JSON snapshots of the response shapes
    flagged_ingredients = Column(JSON, nullable=False, default=list)
    alternatives = Column(JSON, nullable=False, default=list)
