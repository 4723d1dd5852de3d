"""
Label text extraction with an OpenAI vision model.

Reads the printed text off a photographed food label so the ingredient
list can be analysed like one coming from the product database.
"""
import base64
import logging
from typing import Optional

from openai import OpenAI

from app.core.config import get_openai_api_key


logger = logging.getLogger(__name__)


# Prompt for the vision model to transcribe a label
OCR_PROMPT = """Transcribe all text printed on this food package label.

Rules:
- Copy the text exactly as printed, including the ingredients list, E-numbers and INS codes
- Include the product name and brand if they are visible
- Do not summarise, translate or correct the text
- Do not add any commentary

If no text is readable, return an empty response."""


class LabelOCRClient:
    """
    Client for label OCR via a vision-capable chat model.

    Handles image encoding, API calls, and response parsing.
    """

    def __init__(self, model: str = "gpt-4o", enabled: bool = True):
        """
        Initialize the OCR client; the OpenAI client is created on first use.

        Args:
            model: Vision-capable chat model
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

    def extract_text(self, image_bytes: bytes) -> str:
        """
        Extract label text from an image.

        Args:
            image_bytes: Raw image bytes (JPEG, PNG, etc.)

        Returns:
            Extracted text, empty string if nothing was readable

        Raises:
            RuntimeError: If the API call fails
        """
        base64_image = base64.b64encode(image_bytes).decode("utf-8")
        image_type = self._detect_image_type(image_bytes)

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": OCR_PROMPT},
                            {
                                "type": "image_url",
                                "image_url": {
                                    "url": f"data:image/{image_type};base64,{base64_image}"
                                }
                            }
                        ]
                    }
                ],
                max_tokens=1500
            )
        except Exception as e:
            raise RuntimeError(f"OCR API error: {str(e)}")

        content = response.choices[0].message.content
        text = (content or "").strip()
        logger.info("OCR extracted %d characters", len(text))
        return text

    def _detect_image_type(self, image_bytes: bytes) -> str:
        """
        Detect image type from magic bytes.

        Args:
            image_bytes: Raw image bytes

        Returns:
            Image type string (jpeg, png, gif, webp)
        """
        if image_bytes[:3] == b"\xff\xd8\xff":
            return "jpeg"
        elif image_bytes[:8] == b"\x89PNG\r\n\x1a\n":
            return "png"
        elif image_bytes[:6] in (b"GIF87a", b"GIF89a"):
            return "gif"
        elif image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
            return "webp"
        else:
            # Default to jpeg
            return "jpeg"
