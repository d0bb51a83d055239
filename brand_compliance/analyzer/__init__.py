"""
Linguistic Analysis

Deterministic feature extraction over raw marketing copy.
"""

from .features import FeatureBundle
from .linguistic import (
    ANALYZER_MODEL,
    ASPECTS,
    AnalyzerReport,
    LinguisticAnalyzer,
    neutral_result,
)

__all__ = [
    "ANALYZER_MODEL",
    "ASPECTS",
    "AnalyzerReport",
    "FeatureBundle",
    "LinguisticAnalyzer",
    "neutral_result",
]
