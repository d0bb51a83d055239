"""
Brand Compliance Engine

Checks marketing copy against a brand's voice, tone, messaging and content
restrictions, and explains why it doesn't conform.

Components:
- LinguisticAnalyzer: tone, sentiment, readability, emotion, keyword
  density, brand alignment and formality features
- RuleCompiler / RuleEngine: priority-weighted must / must_not / should /
  dont guidelines, conflict detection, weighted scoring
- ComplianceService: orchestration, caching, batch fan-out, prediction
  and auto-fix
"""

__version__ = "0.1.0"

from .analyzer import FeatureBundle, LinguisticAnalyzer
from .config import Settings, get_settings
from .errors import (
    AnalysisDegraded,
    ComplianceError,
    InvalidInput,
    RuleEvaluationError,
    ServiceTimeout,
)
from .models import (
    BrandSnapshot,
    ComplianceConfig,
    Guideline,
    MessagingFramework,
    RuleType,
    VoiceAnalysis,
)
from .results import (
    AutoFixResult,
    BatchItemResult,
    ComplianceResult,
    PredictedIssue,
    Suggestion,
    Violation,
)
from .rules import RuleCompiler, RuleEngine
from .service import ComplianceService, get_service, validate

__all__ = [
    "__version__",
    # Service
    "ComplianceService",
    "get_service",
    "validate",
    # Analysis & rules
    "LinguisticAnalyzer",
    "FeatureBundle",
    "RuleCompiler",
    "RuleEngine",
    # Inputs
    "BrandSnapshot",
    "ComplianceConfig",
    "Guideline",
    "MessagingFramework",
    "RuleType",
    "VoiceAnalysis",
    # Results
    "AutoFixResult",
    "BatchItemResult",
    "ComplianceResult",
    "PredictedIssue",
    "Suggestion",
    "Violation",
    # Errors
    "AnalysisDegraded",
    "ComplianceError",
    "InvalidInput",
    "RuleEvaluationError",
    "ServiceTimeout",
    # Settings
    "Settings",
    "get_settings",
]
