"""
Classifier adapter backed by Gemini.

The adapter owns the provider call and nothing else: it sends the normalized
input (plus optional session context) and hands back the raw text, or raises
ClassificationError. parse_response() turns the raw text into a ParsedIntent
and rejects anything outside the intent registry.

Response schema expected from the model:
    {"intent_type": "<registry key>", "confidence": 0.0-1.0,
     "entities": {"club": ..., "yardage": ..., ...}, "user_goal": "..."}
"""

import re
import json
import time
import asyncio
import logging
from typing import Any, Dict, Optional, Protocol

import google.generativeai as genai

from navcaddy.shared.errors import ClassificationError, ErrorCategory
from .config import IntentConfig
from .models import ClassifierResponse, ExtractedEntities, IntentType, ParsedIntent
from .registry import all_schemas

logger = logging.getLogger(__name__)

_RETRYABLE_MARKERS = ("429", "503", "quota", "rate limit", "service unavailable")


class ClassifierAdapter(Protocol):
    """External LLM classifier. Raises ClassificationError on any failure."""

    async def classify(self, text: str, context: Optional[Dict[str, Any]] = None) -> ClassifierResponse: ...


def get_system_prompt() -> str:
    lines = [
        "You are the intent classifier for a golf caddy assistant.",
        "Classify the player's input into exactly one of these intents:",
        "",
    ]
    for schema in all_schemas():
        examples = "; ".join(f'"{p}"' for p in schema.example_phrases)
        lines.append(f"- {schema.intent_type.value}: {schema.description}. Examples: {examples}")
    lines += [
        "",
        "Extract any of these entities when present: club, yardage (integer yards), lie, wind,",
        "fatigue (1-10), pain, score_context, hole_number (1-18).",
        "",
        "Respond with a single JSON object and nothing else:",
        '{"intent_type": "<INTENT>", "confidence": <0.0-1.0>, "entities": {...}, "user_goal": "<short summary>"}',
    ]
    return "\n".join(lines)


def build_prompt(text: str, context: Optional[Dict[str, Any]] = None) -> str:
    context_info = f"Context: {json.dumps(context, default=str)}\n" if context else ""
    return f"{get_system_prompt()}\n\n{context_info}Player input: '{text}'"


def _strip_fences(raw: str) -> str:
    text = raw.strip()
    text = re.sub(r"^```(?:json)?\s*", "", text)
    text = re.sub(r"\s*```$", "", text)
    return text.strip()


def parse_response(raw: str) -> ParsedIntent:
    """
    Parse a classifier payload into a ParsedIntent.

    Raises:
        ClassificationError: malformed JSON, missing fields, or an intent type
            that is not in the registry
    """
    try:
        payload = json.loads(_strip_fences(raw or ""))
    except json.JSONDecodeError as e:
        raise ClassificationError(f"Malformed classifier JSON: {e}", ErrorCategory.CLASSIFICATION, e)

    if not isinstance(payload, dict):
        raise ClassificationError("Classifier payload is not a JSON object", ErrorCategory.CLASSIFICATION)

    try:
        intent_type = IntentType.parse(payload["intent_type"])
        confidence = float(payload["confidence"])
    except KeyError as e:
        raise ClassificationError(f"Classifier payload missing {e}", ErrorCategory.CLASSIFICATION, e)
    except (TypeError, ValueError) as e:
        raise ClassificationError(str(e), ErrorCategory.CLASSIFICATION, e)

    entities = payload.get("entities")
    if entities is not None and not isinstance(entities, dict):
        raise ClassificationError("Classifier entities must be an object", ErrorCategory.CLASSIFICATION)

    try:
        return ParsedIntent(
            intent_type=intent_type,
            confidence=confidence,
            entities=ExtractedEntities.from_dict(entities).sanitized(),
            user_goal=payload.get("user_goal") or None,
        )
    except ValueError as e:
        raise ClassificationError(str(e), ErrorCategory.CLASSIFICATION, e)


def _is_retryable(error: Exception) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in _RETRYABLE_MARKERS)


class GeminiClassifierAdapter:
    """
    Gemini implementation of ClassifierAdapter.

    Each attempt is bounded by config.classifier_timeout. Rate-limit (429)
    and unavailable (503) errors are retried with exponential backoff up to
    config.max_retries times; timeouts and other errors fail immediately.
    """

    def __init__(self, config: IntentConfig, model: Any = None):
        self.config = config
        self.model = model
        if self.model is None and config.gemini_api_key:
            genai.configure(api_key=config.gemini_api_key)
            self.model = genai.GenerativeModel(config.gemini_model)
            logger.info(f" Gemini classifier initialized: {config.gemini_model}")

    @property
    def model_name(self) -> str:
        return self.config.gemini_model

    async def classify(self, text: str, context: Optional[Dict[str, Any]] = None) -> ClassifierResponse:
        if self.model is None:
            raise ClassificationError("Gemini model not configured", ErrorCategory.SERVICE_UNAVAILABLE)
        if not text or not text.strip():
            raise ClassificationError("Cannot classify empty input", ErrorCategory.INVALID_INPUT)

        prompt = build_prompt(text, context)
        attempts = self.config.max_retries + 1
        start_time = time.time()

        for attempt in range(attempts):
            try:
                response = await asyncio.wait_for(
                    asyncio.to_thread(
                        self.model.generate_content,
                        prompt,
                        generation_config=genai.types.GenerationConfig(
                            temperature=0.1,
                            max_output_tokens=500,
                        ),
                    ),
                    timeout=self.config.classifier_timeout,
                )
            except asyncio.TimeoutError as e:
                raise ClassificationError(
                    f"Gemini timed out after {self.config.classifier_timeout}s", ErrorCategory.TIMEOUT, e
                )
            except Exception as e:
                if _is_retryable(e) and attempt < attempts - 1:
                    delay = self.config.retry_base_delay * (2 ** attempt)
                    logger.warning(
                        f"️ Gemini API error (attempt {attempt + 1}/{attempts}): {str(e)[:100]}... "
                        f"Retrying in {delay}s..."
                    )
                    await asyncio.sleep(delay)
                    continue
                category = ErrorCategory.SERVICE_UNAVAILABLE if _is_retryable(e) else ErrorCategory.NETWORK
                raise ClassificationError(f"Gemini API error: {str(e)[:200]}", category, e)

            latency_ms = (time.time() - start_time) * 1000
            usage = getattr(response, "usage_metadata", None)
            try:
                raw = response.text
            except ValueError as e:
                # Blocked or empty candidates
                raise ClassificationError(f"Gemini returned no text: {e}", ErrorCategory.CLASSIFICATION, e)
            return ClassifierResponse(
                raw_response=raw,
                latency_ms=latency_ms,
                model_name=self.model_name,
                token_count=getattr(usage, "total_token_count", None),
            )

        raise ClassificationError("Gemini retries exhausted", ErrorCategory.SERVICE_UNAVAILABLE)
