"""Label field extraction via an OpenAI vision model.

The model is asked to transcribe the label fields verbatim; its JSON answer is
validated against ExtractedLabelFields before anything is compared. Any failure
(service error, unparseable answer, wrong shape) surfaces as ExtractionError.
"""

import base64
import json
import logging
import re
from enum import Enum
from typing import Any, Optional

from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from ..config import Settings, get_settings
from ..models import ExtractedLabelFields

logger = logging.getLogger(__name__)

_FENCE_START_RE = re.compile(r"^```(?:json)?\s*\n?", re.MULTILINE)
_FENCE_END_RE = re.compile(r"\n?```\s*$", re.MULTILINE)

EXTRACTION_PROMPT = """You are analyzing an alcohol beverage label image. Extract the following fields exactly as they appear on the label. Do NOT correct any text - transcribe exactly what is printed.

Return a JSON object with these fields:
- brandName: The brand name (e.g., "Eagle Ridge")
- fancifulName: Any fanciful/trade name (e.g., "Napa Valley Reserve"), or null if none
- classType: The class/type of beverage (e.g., "Straight Bourbon Whiskey")
- abv: The alcohol by volume as a number only (e.g., "45" not "45%")
- netContents: The net contents (e.g., "750 mL")
- governmentWarning: The full government warning text, transcribed EXACTLY as printed - do not fix typos or spelling
- bottlerName: The bottler/producer name
- bottlerAddress: The bottler/producer address
- countryOfOrigin: Country of origin if stated (e.g., "Product of Mexico" -> "Mexico"), or null if not present
- ageStatement: Age statement if present (e.g., "4 years old"), or null if not present

All values must be strings or null. Return ONLY valid JSON, no markdown fences or extra text."""


class ExtractionErrorKind(str, Enum):
    """Why an extraction attempt produced no fields."""
    UPSTREAM = "upstream"
    MALFORMED_RESPONSE = "malformed_response"
    SCHEMA_MISMATCH = "schema_mismatch"


class ExtractionError(Exception):
    """Extraction failed; no fields are available for comparison."""

    def __init__(self, kind: ExtractionErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


def strip_markdown_fences(text: str) -> str:
    """Remove a ```json ... ``` wrapper if the model added one."""
    text = _FENCE_START_RE.sub("", text, count=1)
    text = _FENCE_END_RE.sub("", text, count=1)
    return text.strip()


def parse_extraction_response(text: str) -> ExtractedLabelFields:
    """
    Parse the model's answer into ExtractedLabelFields.

    Raises:
        ExtractionError: MALFORMED_RESPONSE if the text is not JSON,
            SCHEMA_MISMATCH if the JSON does not have the expected shape
    """
    json_text = strip_markdown_fences(text)

    try:
        raw = json.loads(json_text)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse AI response JSON: {json_text[:200]!r} ({e})")
        raise ExtractionError(
            ExtractionErrorKind.MALFORMED_RESPONSE, "Failed to parse AI response"
        ) from e

    try:
        return ExtractedLabelFields.model_validate(raw)
    except ValidationError as e:
        logger.error(f"AI response schema mismatch: {e.errors()}")
        raise ExtractionError(
            ExtractionErrorKind.SCHEMA_MISMATCH, "AI returned unexpected response shape"
        ) from e


class LabelExtractor:
    """Reads label fields from an image with an OpenAI vision model."""

    def __init__(self, settings: Optional[Settings] = None, client: Optional[Any] = None):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def is_configured(self) -> bool:
        """Whether a client is available or can be created."""
        return self._client is not None or bool(self.settings.openai_api_key)

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.settings.openai_api_key:
                raise ExtractionError(
                    ExtractionErrorKind.UPSTREAM, "AI service is not configured"
                )
            self._client = OpenAI(
                api_key=self.settings.openai_api_key,
                timeout=self.settings.extraction_timeout_s,
            )
        return self._client

    def extract(self, image_bytes: bytes, media_type: str) -> ExtractedLabelFields:
        """
        Extract label fields from image bytes.

        Args:
            image_bytes: Raw label image
            media_type: MIME type of the image, e.g. "image/png"

        Returns:
            ExtractedLabelFields with null for fields not on the label

        Raises:
            ExtractionError: On service failure or an unusable answer
        """
        client = self._get_client()
        encoded = base64.b64encode(image_bytes).decode("ascii")

        try:
            response = client.chat.completions.create(
                model=self.settings.extraction_model,
                temperature=0,
                max_tokens=self.settings.extraction_max_tokens,
                response_format={"type": "json_object"},
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image_url",
                                "image_url": {"url": f"data:{media_type};base64,{encoded}"},
                            },
                            {"type": "text", "text": EXTRACTION_PROMPT},
                        ],
                    }
                ],
            )
        except OpenAIError as e:
            logger.error(f"OpenAI API error during extraction: {e}")
            raise ExtractionError(
                ExtractionErrorKind.UPSTREAM, "AI service error - please try again"
            ) from e

        choices = getattr(response, "choices", None)
        message = getattr(choices[0], "message", None) if choices else None
        if message is None:
            logger.error("OpenAI response contained no message")
            raise ExtractionError(ExtractionErrorKind.MALFORMED_RESPONSE, "AI returned no content")

        content = message.content or ""
        fields = parse_extraction_response(content)
        logger.info(
            f"Extracted {sum(1 for v in fields.model_dump().values() if v)} "
            f"of {len(ExtractedLabelFields.model_fields)} label fields"
        )
        return fields
