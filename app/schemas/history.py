from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

from app.schemas.scan import Alternative, CamelModel, FlaggedIngredient


class HistoryEntryResponse(CamelModel):
    """Schema for a stored scan snapshot"""
    id: UUID
    scanned_at: Optional[datetime] = None
    scan_type: str
    product_name: str
    barcode: Optional[str] = None
    scanned_image_url: str
    risk_score: int
    verdict: str
    analysis_summary: Optional[str] = None
    flagged_ingredients: List[FlaggedIngredient] = []
    alternatives: List[Alternative] = []

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

