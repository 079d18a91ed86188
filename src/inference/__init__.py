"""Tiered inference pipeline.

Turns unreliable provider text into strictly typed questions and analyses.

Public API:
    - TieredInferenceClient: Ordered provider tiers with retry/backoff and fallback
    - normalize: Best-effort text-to-record recovery
    - UsageMonitor / ParseMetrics: Cost, daily budget and parse-quality accounting
    - InferenceStatus: Per-attempt progress notifications
    - Question / Analysis: Structured payloads
    - InferenceConfig: Configuration settings
"""

from src.inference.client import TieredInferenceClient
from src.inference.config import (
    InferenceConfig,
    get_inference_config,
    reset_inference_config,
)
from src.inference.models import (
    ANALYSIS_SHAPE,
    OTHER_OPTION,
    QUESTION_SHAPE,
    Analysis,
    InferenceResult,
    InferenceStatus,
    PromptKind,
    PromptSpec,
    Question,
    ResponseShape,
    StatusKind,
    TierId,
    UsageRecord,
)
from src.inference.normalizer import Normalized, normalize
from src.inference.usage import (
    BudgetAlert,
    BudgetLevel,
    CostEstimate,
    CostWarning,
    ParseMetrics,
    UsageMonitor,
)

__all__ = [
    "TieredInferenceClient",
    "InferenceConfig",
    "get_inference_config",
    "reset_inference_config",
    "ANALYSIS_SHAPE",
    "QUESTION_SHAPE",
    "OTHER_OPTION",
    "Analysis",
    "Question",
    "InferenceResult",
    "InferenceStatus",
    "StatusKind",
    "PromptKind",
    "PromptSpec",
    "ResponseShape",
    "TierId",
    "UsageRecord",
    "Normalized",
    "normalize",
    "BudgetAlert",
    "BudgetLevel",
    "CostEstimate",
    "CostWarning",
    "ParseMetrics",
    "UsageMonitor",
]
