from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional


class CamelModel(BaseModel):
    """Base for wire schemas: snake_case in Python, camelCase in JSON"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FlaggedIngredient(CamelModel):
    """A specific ingredient concern"""
    name: str
    risk: Optional[str] = None  # Low, Medium, High
    reason: str = ""


class Alternative(CamelModel):
    """Suggested substitute product"""
    name: str
    image: Optional[str] = None
    brand: Optional[str] = None


class ScanResult(CamelModel):
    """Canonical result of a barcode or label scan"""
    product_name: str = "Unknown Product"
    brand: str = "Unknown Brand"
    image: Optional[str] = None
    ingredients: str = "Ingredients list not available."
    risk_score: int = Field(50, ge=0, le=100)
    verdict: str = "Moderate"
    analysis_summary: str = ""
    flagged_ingredients: List[FlaggedIngredient] = Field(default_factory=list)
    alternatives: List[Alternative] = Field(default_factory=list)


class BarcodeLookupRequest(CamelModel):
    """Request payload for barcode lookup; blank barcodes are rejected by the route"""
    barcode: Optional[str] = None

    @field_validator("barcode", mode="before")
    @classmethod
    def barcode_as_text(cls, value):
        # Scanners often send the code as a JSON number
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value
