"""
AI ingredient analysis using an OpenAI chat model.

The model is asked for a JSON risk assessment personalized to the user's
health profile. Its reply is not guaranteed to be clean JSON, so parsing is
defensive and always ends in either a usable assessment or a fixed fallback.
"""
import copy
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from openai import OpenAI

from app.core.config import get_openai_api_key
from app.models.user import User
from app.schemas.scan import Alternative, FlaggedIngredient, ScanResult
from app.services.analysis.normalizer import canonical_verdict


logger = logging.getLogger(__name__)


ANALYSIS_PROMPT = """You are a food-safety analyst for LabelLens, an app that checks packaged food labels.

Assume the product is sold in the Indian packaged-food market unless the label clearly says otherwise.

PRODUCT NAME: {product_name}

INGREDIENTS (verbatim from the label):
{ingredients}

USER HEALTH CONDITIONS: {conditions}
USER ALLERGIES: {allergies}

RULES:
- Be conservative and factual; only flag ingredients with a recognised concern
- Never give medical advice or diagnoses
- Increase the risk score when an ingredient conflicts with a listed allergy or health condition
- Suggest up to 3 healthier alternative products available in India, by product name only
{cleaning_rules}
Return ONLY a JSON object with this exact structure, no other text:
{{
  "riskScore": 0-100,
  "verdict": "Safe" | "Moderate" | "Risky" | "Hazardous",
  "analysisSummary": "one sentence explanation",
  "flaggedIngredients": [{{"name": "ingredient", "risk": "Low" | "Medium" | "High", "reason": "why"}}],
  "alternatives": ["product name", "product name"]{cleaning_fields}
}}"""

OCR_CLEANING_RULES = """- The ingredient text was read by OCR and may contain noise, broken words or unrelated label text
- Reconstruct the clean ingredient list and, if visible, the product name
"""

OCR_CLEANING_FIELDS = """,
  "cleanedIngredients": "clean comma separated ingredient list",
  "productName": "product name if identifiable, else null\""""

AI_FALLBACK: Dict[str, Any] = {
    "riskScore": 50,
    "verdict": "Unknown",
    "analysisSummary": "AI Analysis failed. Showing raw ingredients.",
    "flaggedIngredients": [],
    "alternatives": [],
}


@dataclass
class HealthContext:
    """User health profile passed to the model"""
    conditions: List[str] = field(default_factory=list)
    allergies: List[str] = field(default_factory=list)

    @classmethod
    def from_user(cls, user: User) -> "HealthContext":
        return cls(
            conditions=list(user.health_conditions or []),
            allergies=list(user.allergies or []),
        )


@dataclass
class AIAssessment:
    """Parsed model output; is_fallback marks the fixed degraded result"""
    data: Dict[str, Any]
    is_fallback: bool = False


def ai_fallback() -> Dict[str, Any]:
    return copy.deepcopy(AI_FALLBACK)


def build_prompt(product_name: str, ingredients: str, health: HealthContext, clean_ocr: bool = False) -> str:
    return ANALYSIS_PROMPT.format(
        product_name=product_name or "Unknown Product",
        ingredients=ingredients,
        conditions=", ".join(health.conditions) or "None",
        allergies=", ".join(health.allergies) or "None",
        cleaning_rules=OCR_CLEANING_RULES if clean_ocr else "",
        cleaning_fields=OCR_CLEANING_FIELDS if clean_ocr else "",
    )


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Pull the JSON object out of a model reply.

    Markdown fences are removed, then everything between the first "{"
    and the last "}" is parsed.

    Raises:
        ValueError: If no JSON object can be parsed
    """
    if not text:
        raise ValueError("Empty model response")

    cleaned = re.sub(r"```(?:json)?", "", text, flags=re.IGNORECASE)
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("No JSON object in model response")

    data = json.loads(cleaned[start:end + 1])
    if not isinstance(data, dict):
        raise ValueError("Model response JSON is not an object")
    return data


def parse_ai_response(text: Optional[str]) -> AIAssessment:
    """Parse a model reply; never raises, degrades to the fixed fallback"""
    try:
        return AIAssessment(data=extract_json_object(text or ""))
    except (ValueError, RecursionError) as e:  # json.JSONDecodeError is a ValueError
        logger.warning("Could not parse AI response: %s", e)
        return AIAssessment(data=ai_fallback(), is_fallback=True)


def _coerce_score(value: Any) -> Optional[int]:
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        return None
    return max(0, min(100, score))


def _flagged(items: Any) -> List[FlaggedIngredient]:
    flagged = []
    for item in items or []:
        if isinstance(item, str) and item.strip():
            flagged.append(FlaggedIngredient(name=item.strip()))
        elif isinstance(item, dict) and item.get("name"):
            risk = item.get("risk")
            flagged.append(FlaggedIngredient(
                name=str(item["name"]),
                risk=str(risk) if risk else None,
                reason=str(item.get("reason") or "")
            ))
    return flagged


def alternative_names(items: Any) -> List[str]:
    """Alternative names from either plain strings or {"name": ...} objects"""
    names = []
    for item in items or []:
        if isinstance(item, str) and item.strip():
            names.append(item.strip())
        elif isinstance(item, dict) and item.get("name"):
            names.append(str(item["name"]).strip())
    return names


def apply_assessment(result: ScanResult, data: Dict[str, Any], keep_raw_verdict: bool = False) -> ScanResult:
    """
    Overlay an AI assessment on a result, field by field.

    Fields the model omitted (or returned unusable) keep their current value.

    Args:
        result: Baseline result
        data: Parsed model JSON
        keep_raw_verdict: Keep a non-canonical verdict such as the fallback's "Unknown"
    """
    updates: Dict[str, Any] = {}

    name = data.get("productName")
    if isinstance(name, str) and name.strip():
        updates["product_name"] = name.strip()

    cleaned = data.get("cleanedIngredients")
    if isinstance(cleaned, str) and cleaned.strip():
        updates["ingredients"] = cleaned.strip()

    score = _coerce_score(data.get("riskScore"))
    if score is not None:
        updates["risk_score"] = score

    verdict = canonical_verdict(data.get("verdict"))
    if verdict:
        updates["verdict"] = verdict
    elif keep_raw_verdict and isinstance(data.get("verdict"), str):
        updates["verdict"] = data["verdict"]

    summary = data.get("analysisSummary")
    if isinstance(summary, str) and summary.strip():
        updates["analysis_summary"] = summary.strip()

    if isinstance(data.get("flaggedIngredients"), list):
        updates["flagged_ingredients"] = _flagged(data["flaggedIngredients"])

    if isinstance(data.get("alternatives"), list):
        updates["alternatives"] = [Alternative(name=n) for n in alternative_names(data["alternatives"])]

    return result.model_copy(update=updates)


class AIEnrichmentClient:
    """
    Client for AI ingredient analysis.

    Handles prompt construction, the API call and response parsing.
    """

    def __init__(self, model: str = "gpt-4o-mini", enabled: bool = True):
        """
        Args:
            model: Chat model used for analysis
            enabled: False when no API key is configured
        """
        self.model = model
        self.enabled = enabled
        self._client: Optional[OpenAI] = None

    @property
    def client(self) -> OpenAI:
        """Lazy initialization of OpenAI client."""
        if self._client is None:
            self._client = OpenAI(api_key=get_openai_api_key())
        return self._client

    def assess(
        self,
        product_name: str,
        ingredients: str,
        health: HealthContext,
        clean_ocr: bool = False
    ) -> Optional[AIAssessment]:
        """
        Ask the model for a risk assessment.

        Args:
            product_name: Display name of the product
            ingredients: Ingredient text, passed verbatim
            health: User health profile
            clean_ocr: Also ask the model to clean noisy OCR text

        Returns:
            AIAssessment (possibly the fallback), or None when the
            backend is not configured or the call failed
        """
        if not self.enabled:
            return None

        prompt = build_prompt(product_name, ingredients, health, clean_ocr=clean_ocr)

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": "You analyse food ingredient labels. Always return valid JSON only."},
                    {"role": "user", "content": prompt}
                ],
                temperature=0.3,
                max_tokens=1000
            )
            content = response.choices[0].message.content
        except Exception as e:
            logger.warning("AI analysis call failed: %s", e)
            return None

        return parse_ai_response(content)
