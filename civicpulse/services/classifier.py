"""Gemini-backed complaint classification with a fixed fallback."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple
import base64
import json
import time

import google.generativeai as genai

from civicpulse.utils.logger import ServiceLogger

PRIORITIES = ("High", "Medium", "Low")

CATEGORIES = (
    "Sanitation",
    "Roads",
    "Water Supply",
    "Electricity",
    "Garbage",
    "Public Transport",
    "Other",
)

DEFAULT_MODEL = "gemini-1.5-flash"
DEFAULT_IMAGE_MIME = "image/jpeg"

SYSTEM_INSTRUCTION = (
    "You are an intelligent civic grievance assistant. "
    "Analyze the user's complaint (text and optional image).\n"
    f"Categorize the issue into one of: {', '.join(CATEGORIES)}.\n"
    "Assign a priority (High, Medium, Low) based on urgency and public impact.\n"
    "Provide a short 1-sentence summary.\n"
    "Suggest a short 1-sentence action for the municipal team."
)

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "category": {"type": "STRING"},
        "priority": {"type": "STRING", "format": "enum", "enum": list(PRIORITIES)},
        "summary": {"type": "STRING"},
        "suggestedAction": {"type": "STRING"},
    },
    "required": ["category", "priority", "summary", "suggestedAction"],
}


class MalformedClassification(ValueError):
    """Model output did not match the classification schema."""


@dataclass(frozen=True)
class Classification:
    category: str
    priority: str
    summary: str
    suggested_action: str
    fallback: bool = False

    @classmethod
    def from_model_output(cls, data: Any) -> "Classification":
        if not isinstance(data, dict):
            raise MalformedClassification(f"expected a JSON object, got {type(data).__name__}")
        values = {}
        for key in ("category", "priority", "summary", "suggestedAction"):
            value = data.get(key)
            if not isinstance(value, str) or not value.strip():
                raise MalformedClassification(f"missing or empty field: {key}")
            values[key] = value.strip()
        if values["priority"] not in PRIORITIES:
            raise MalformedClassification(f"unknown priority: {values['priority']}")
        return cls(
            category=values["category"],
            priority=values["priority"],
            summary=values["summary"],
            suggested_action=values["suggestedAction"],
        )

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "priority": self.priority,
            "summary": self.summary,
            "suggestedAction": self.suggested_action,
        }


FALLBACK_CLASSIFICATION = Classification(
    category="General",
    priority="Medium",
    summary="AI Analysis failed, manual review needed.",
    suggested_action="Check complaint details manually.",
    fallback=True,
)


def split_image_payload(image_base64: str) -> Tuple[str, bytes]:
    """Return (mime_type, raw bytes) for a data URL or bare base64 string."""
    mime_type = DEFAULT_IMAGE_MIME
    payload = image_base64
    if "base64," in image_base64:
        header, payload = image_base64.split("base64,", 1)
        if header.startswith("data:"):
            declared = header[len("data:"):].split(";", 1)[0]
            if declared:
                mime_type = declared
    return mime_type, base64.b64decode(payload, validate=True)


class ClassificationGateway:
    """Classifies complaint text (and an optional photo) with Gemini.

    ``classify`` never raises: when no API key is configured, or the call
    or its response fails in any way, the fixed fallback is returned and the
    error is logged.
    """

    def __init__(self, api_key: Optional[str] = None, model_name: str = DEFAULT_MODEL,
                 model: Any = None, logger: Optional[ServiceLogger] = None) -> None:
        self.logger = logger or ServiceLogger("classifier", log_dir=None)
        self.model_name = model_name
        self.model = model
        if self.model is None and api_key:
            genai.configure(api_key=api_key)
            self.model = genai.GenerativeModel(model_name, system_instruction=SYSTEM_INSTRUCTION)
            self.logger.info(f"Gemini configured with model {model_name}")
        elif self.model is None:
            self.logger.warning("No Gemini API key configured; complaints will get the fallback classification")

    @property
    def enabled(self) -> bool:
        return self.model is not None

    def build_parts(self, description: str, image_base64: Optional[str]) -> List[Any]:
        parts: List[Any] = [description]
        if image_base64:
            mime_type, data = split_image_payload(image_base64)
            parts.append({"mime_type": mime_type, "data": data})
        return parts

    def classify(self, description: str, image_base64: Optional[str] = None) -> Classification:
        if not self.enabled:
            return FALLBACK_CLASSIFICATION

        start_time = time.time()
        try:
            response = self.model.generate_content(
                self.build_parts(description, image_base64),
                generation_config=genai.GenerationConfig(
                    response_mime_type="application/json",
                    response_schema=RESPONSE_SCHEMA,
                ),
            )
            text = response.text
            if not text:
                raise MalformedClassification("empty response from model")
            result = Classification.from_model_output(json.loads(text))
        except Exception as e:
            self.logger.error(f"AI analysis failed: {e}", error=type(e).__name__)
            return FALLBACK_CLASSIFICATION

        elapsed = time.time() - start_time
        self.logger.info(
            f"Classified complaint as {result.category}/{result.priority} ({elapsed:.2f}s)",
            category=result.category, priority=result.priority, duration=elapsed,
        )
        return result
