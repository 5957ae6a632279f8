"""
Intent classification: normalization, LLM classification and offline fallback.
"""

from .clarification import ClarificationHandler
from .config import IntentConfig
from .connectivity import ConnectivityMonitor, StaticConnectivityMonitor
from .fallback import LocalIntentSuggestions
from .gemini_client import ClassifierAdapter, GeminiClassifierAdapter, parse_response
from .intent_classifier import IntentClassifier
from .models import (
    ClarificationResponse,
    ClassificationResult,
    ClassifierResponse,
    Clarify,
    Confirm,
    ExtractedEntities,
    IntentSuggestion,
    IntentType,
    Module,
    ParsedIntent,
    Route,
    RoutingTarget,
)
from .normalizer import InputNormalizer, NormalizationResult
from .states import PipelineState, PipelineTrace

__all__ = [
    "ClarificationHandler",
    "IntentConfig",
    "ConnectivityMonitor",
    "StaticConnectivityMonitor",
    "LocalIntentSuggestions",
    "ClassifierAdapter",
    "GeminiClassifierAdapter",
    "parse_response",
    "IntentClassifier",
    "ClarificationResponse",
    "ClassificationResult",
    "ClassifierResponse",
    "Clarify",
    "Confirm",
    "ExtractedEntities",
    "IntentSuggestion",
    "IntentType",
    "Module",
    "ParsedIntent",
    "Route",
    "RoutingTarget",
    "InputNormalizer",
    "NormalizationResult",
    "PipelineState",
    "PipelineTrace",
]
