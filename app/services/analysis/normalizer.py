"""
Map raw Open Food Facts records to the canonical ScanResult.

Without AI enrichment the risk score and verdict are derived from the
product's Nutri-Score grade alone.
"""
from typing import Any, Dict, Iterable, Optional, Tuple

from app.schemas.scan import FlaggedIngredient, ScanResult


UNKNOWN_PRODUCT = "Unknown Product"
UNKNOWN_BRAND = "Unknown Brand"
NO_INGREDIENTS = "Ingredients list not available."

# grade -> (verdict, risk score)
GRADE_RISK = {
    "a": ("Safe", 15),
    "b": ("Safe", 15),
    "c": ("Moderate", 55),
    "d": ("Moderate", 55),
    "e": ("Risky", 85),
}
DEFAULT_RISK = ("Moderate", 50)

_VERDICT_ALIASES = {
    "safe": "Safe",
    "moderate": "Moderate",
    "caution": "Moderate",
    "risky": "Risky",
    "unsafe": "Risky",
    "danger": "Risky",
    "harmful": "Risky",
    "hazardous": "Hazardous",
}


def canonical_verdict(value: Any) -> Optional[str]:
    """
    Canonicalize a verdict label to Safe/Moderate/Risky/Hazardous.

    Returns:
        Canonical verdict, or None if the label is not recognized
    """
    if not isinstance(value, str):
        return None
    return _VERDICT_ALIASES.get(value.strip().lower())


def _first(product: Dict[str, Any], fields: Iterable[str]) -> Optional[str]:
    """First non-blank string value among fields"""
    for field in fields:
        value = product.get(field)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def nutriscore_grade(product: Dict[str, Any]) -> Optional[str]:
    """Lowercase a-e grade, or None when absent or unrecognized"""
    grade = _first(product, ["nutriscore_grade", "nutrition_grades"])
    if grade and grade.lower() in GRADE_RISK:
        return grade.lower()
    return None


def risk_from_grade(grade: Optional[str]) -> Tuple[str, int]:
    """Deterministic (verdict, risk score) for a Nutri-Score grade"""
    if not grade:
        return DEFAULT_RISK
    return GRADE_RISK.get(grade.lower(), DEFAULT_RISK)


def has_ingredients(text: Optional[str]) -> bool:
    """True for real ingredient text (not blank, not the placeholder)"""
    return bool(text and text.strip() and text.strip() != NO_INGREDIENTS)


def normalize_product(product: Dict[str, Any]) -> ScanResult:
    """
    Build the baseline ScanResult for a raw product record.

    Args:
        product: Raw Open Food Facts product dict

    Returns:
        ScanResult with Nutri-Score based risk, no alternatives
    """
    grade = nutriscore_grade(product)
    verdict, score = risk_from_grade(grade)

    if grade:
        summary = f"This product has a Nutri-Score of {grade.upper()}."
    else:
        summary = "No Nutri-Score is available for this product; showing a neutral rating."

    flagged = []
    if verdict == "Risky":
        flagged.append(FlaggedIngredient(
            name="High Risk Additives",
            risk="High",
            reason=f"Product flagged due to low Nutri-Score ({grade.upper()})."
        ))

    return ScanResult(
        product_name=_first(product, ["product_name", "product_name_en", "generic_name", "generic_name_en"]) or UNKNOWN_PRODUCT,
        brand=_first(product, ["brands"]) or UNKNOWN_BRAND,
        image=_first(product, ["image_front_url", "image_url"]),
        ingredients=_first(product, ["ingredients_text", "ingredients_text_en"]) or NO_INGREDIENTS,
        risk_score=score,
        verdict=verdict,
        analysis_summary=summary,
        flagged_ingredients=flagged,
        alternatives=[],
    )
