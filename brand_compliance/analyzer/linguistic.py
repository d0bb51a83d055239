"""
Linguistic Analyzer

Turns (brand, content) into a FeatureBundle and cross-checks the features
against the brand's declared voice, messaging and reading level.

Stateless: every call depends only on its inputs and the settings it was
built with.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..config import Settings, get_settings
from ..errors import AnalysisDegraded, InvalidInput
from ..models import BrandSnapshot, coerce_brand, coerce_config
from ..results import Severity, Suggestion, Violation
from .aspects import (
    analyze_brand_alignment,
    analyze_emotion,
    analyze_keyword_density,
    analyze_readability,
    analyze_sentiment,
    analyze_style,
    analyze_tone,
)
from .features import FeatureBundle
from .lexicons import compatible_tones

logger = logging.getLogger(__name__)


ANALYZER_MODEL = "lexicon-analyzer/1.0"

ASPECTS: Tuple[str, ...] = (
    "tone",
    "sentiment",
    "readability",
    "brand_alignment",
    "keyword_density",
    "emotion",
    "style",
)

FORMALITY_SCALE = ["formal", "moderate_formal", "moderate_informal", "informal"]

# Sentiment distance from the declared target before flagging
SENTIMENT_TOLERANCE = 0.5

# Tone confidence below which a clearer voice is suggested
TONE_CLARITY_THRESHOLD = 0.5

BRAND_VOICE_THRESHOLD = 0.7


def neutral_result(aspect: str) -> Dict[str, Any]:
    """Zero / neutral result used when an aspect cannot be computed."""
    if aspect == "tone":
        return {
            "primary_tone": "neutral",
            "confidence": 0.0,
            "all_tones": [],
            "secondary_tones": [],
            "tone_consistency": 0.0,
        }
    if aspect == "sentiment":
        return {
            "overall_score": 0.0,
            "breakdown": {"positive": 0.0, "neutral": 1.0, "negative": 0.0},
            "sentiment_flow": [],
            "emotional_words": {"positive": [], "negative": []},
        }
    if aspect == "readability":
        return {
            "flesch_reading_ease": 0.0,
            "flesch_kincaid_grade": 0.0,
            "gunning_fog_index": 0.0,
            "average_sentence_length": 0.0,
            "average_word_length": 0.0,
            "complex_word_percentage": 0.0,
            "grade_level": 0,
            "readability_grade": "N/A",
            "sentence_count": 0,
            "word_count": 0,
        }
    if aspect == "brand_alignment":
        return {
            "overall_score": 0.0,
            "voice_alignment": 0.0,
            "message_alignment": 0.0,
            "expected_tone": None,
            "incorporated_messages": [],
            "missing_key_messages": [],
            "improvement_suggestions": [],
        }
    if aspect == "keyword_density":
        return {"keyword_densities": {}, "total_keywords": 0, "content_length": 0}
    if aspect == "emotion":
        return {"primary_emotions": ["neutral"], "emotion_intensity": 0.0, "emotion_scores": {}}
    if aspect == "style":
        return {
            "formality_level": "moderate_formal",
            "sentence_variety": {"score": 0.0, "variety": "none", "sentence_count": 0},
            "transition_usage": {"count": 0, "percentage": 0.0},
            "active_passive_ratio": {"active": 0, "passive": 0},
        }
    raise InvalidInput(f"Unknown aspect: {aspect}", field="aspect")


@dataclass
class AnalyzerReport:
    """Analyzer-level findings for one piece of content."""
    violations: List[Violation] = field(default_factory=list)
    suggestions: List[Suggestion] = field(default_factory=list)
    features: Optional[FeatureBundle] = None


class LinguisticAnalyzer:
    """
    Deterministic linguistic analysis.

    Usage:
        analyzer = LinguisticAnalyzer()
        bundle = analyzer.analyze(brand, content)
        report = analyzer.validate(brand, content, config)
    """

    model_id = ANALYZER_MODEL

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    # =========================================================================
    # ASPECTS
    # =========================================================================

    def analyze_aspect(self, brand: Any, content: str, aspect: str) -> Dict[str, Any]:
        """
        Run a single aspect analysis.

        Args:
            brand: BrandSnapshot or mapping
            content: Raw content
            aspect: One of ASPECTS

        Returns:
            Aspect result dict; carries "degraded": True when the aspect fell
            back to a neutral result

        Raises:
            InvalidInput: Unknown aspect or malformed brand
        """
        if aspect not in ASPECTS:
            raise InvalidInput(f"Unknown aspect: {aspect}", field="aspect")
        brand = coerce_brand(brand)
        content = content or ""

        tone = None
        if aspect == "brand_alignment":
            tone = self._run(aspect="tone", fn=lambda: analyze_tone(content))
        return self._run_aspect(brand, content, aspect, tone)

    def _run_aspect(
        self,
        brand: BrandSnapshot,
        content: str,
        aspect: str,
        tone: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        runners: Dict[str, Callable[[], Dict[str, Any]]] = {
            "tone": lambda: analyze_tone(content),
            "sentiment": lambda: analyze_sentiment(content),
            "readability": lambda: analyze_readability(content),
            "brand_alignment": lambda: analyze_brand_alignment(
                brand,
                content,
                tone or neutral_result("tone"),
                voice_weight=self.settings.VOICE_ALIGNMENT_WEIGHT,
                message_weight=self.settings.MESSAGE_ALIGNMENT_WEIGHT,
            ),
            "keyword_density": lambda: analyze_keyword_density(brand, content),
            "emotion": lambda: analyze_emotion(content),
            "style": lambda: analyze_style(content),
        }
        return self._run(aspect, runners[aspect])

    def _run(self, aspect: str, fn: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        try:
            return fn()
        except AnalysisDegraded as e:
            logger.warning(f"Aspect '{aspect}' degraded: {e}")
            result = neutral_result(aspect)
            result["degraded"] = True
            result["degraded_reason"] = str(e)
            return result

    # =========================================================================
    # FULL ANALYSIS
    # =========================================================================

    def analyze(self, brand: Any, content: str) -> FeatureBundle:
        """Run every aspect and assemble a FeatureBundle."""
        brand = coerce_brand(brand)
        content = content or ""

        results: Dict[str, Dict[str, Any]] = {}
        results["tone"] = self._run_aspect(brand, content, "tone")
        for aspect in ASPECTS[1:]:
            results[aspect] = self._run_aspect(brand, content, aspect, tone=results["tone"])

        degraded = tuple(a for a in ASPECTS if results[a].get("degraded"))
        if degraded:
            logger.debug(f"Analysis degraded for aspects: {', '.join(degraded)}")

        return FeatureBundle.from_aspects(results, degraded_aspects=degraded)

    # =========================================================================
    # VALIDATION
    # =========================================================================

    def validate(
        self,
        brand: Any,
        content: str,
        config: Any = None,
        features: Optional[FeatureBundle] = None,
    ) -> AnalyzerReport:
        """
        Cross-check features against the brand's expectations.

        Args:
            brand: BrandSnapshot or mapping
            content: Raw content
            config: ComplianceConfig or mapping; toggles voice and messaging checks
            features: Precomputed FeatureBundle (computed when omitted)

        Returns:
            AnalyzerReport with violations, suggestions and the features used
        """
        brand = coerce_brand(brand)
        config = coerce_config(config)
        features = features or self.analyze(brand, content)
        report = AnalyzerReport(features=features)

        if not (content or "").strip():
            return report

        if config.enforce_brand_voice:
            self._check_voice(brand, features, report)

        self._check_readability(brand, features, report)
        self._check_sentence_variety(features, report)

        if config.validate_messaging:
            self._check_messaging(brand, features, report)

        return report

    def _check_voice(self, brand: BrandSnapshot, features: FeatureBundle, report: AnalyzerReport) -> None:
        expected = brand.expected_tone
        actual = features.primary_tone
        confidence = features.tone_confidence

        if expected and actual != "neutral" and actual not in compatible_tones(expected):
            report.violations.append(Violation(
                type="tone_mismatch",
                severity=Severity.HIGH if confidence > 0.8 else Severity.MEDIUM,
                message=f"Content tone '{actual}' doesn't match brand voice '{expected}'",
                suggestion=f"Adjust the tone to be more {expected}",
                context="tone",
                confidence=confidence,
                details={"expected": expected, "actual": actual},
            ))

        if expected and confidence < TONE_CLARITY_THRESHOLD:
            report.suggestions.append(Suggestion(
                type="tone_clarity",
                message=f"Tone is unclear (confidence {confidence:.0%}); add stronger {expected} cues",
                priority="low",
            ))

        expected_formality = brand.expected_formality()
        actual_formality = features.formality_level
        if expected_formality in FORMALITY_SCALE and actual_formality in FORMALITY_SCALE:
            distance = abs(FORMALITY_SCALE.index(expected_formality) - FORMALITY_SCALE.index(actual_formality))
            if distance >= 2:
                report.violations.append(Violation(
                    type="formality_mismatch",
                    severity=Severity.LOW,
                    message=f"Content reads as {actual_formality}, brand expects {expected_formality}",
                    suggestion=f"Adjust word choice towards a {expected_formality.replace('_', ' ')} register",
                    context="formality",
                    details={"expected": expected_formality, "actual": actual_formality},
                ))

        target = brand.voice_analysis.sentiment_target if brand.voice_analysis else None
        if target is not None:
            actual_sentiment = features.sentiment.get("overall_score", 0.0)
            if abs(actual_sentiment - target) > SENTIMENT_TOLERANCE:
                report.violations.append(Violation(
                    type="sentiment_misalignment",
                    severity=Severity.MEDIUM,
                    message=f"Sentiment {actual_sentiment:+.2f} is far from the brand target {target:+.2f}",
                    suggestion="Rebalance positive and negative language",
                    context="sentiment",
                    details={"expected": target, "actual": actual_sentiment},
                ))

        if expected and features.alignment_score < BRAND_VOICE_THRESHOLD:
            report.suggestions.append(Suggestion(
                type="brand_voice_enhancement",
                message=f"Strengthen alignment with the brand voice (currently {features.alignment_score:.0%})",
            ))

    def _check_readability(self, brand: BrandSnapshot, features: FeatureBundle, report: AnalyzerReport) -> None:
        target = brand.target_reading_grade()
        if target is None or "readability" in features.degraded_aspects:
            return

        grade = features.readability.get("grade_level", 0)
        tolerance = self.settings.READABILITY_TOLERANCE
        gap = grade - target
        if gap <= tolerance:
            return

        report.violations.append(Violation(
            type="readability_mismatch",
            severity=Severity.HIGH if gap > 2 * tolerance else Severity.MEDIUM,
            message=f"Reading level (grade {grade}) exceeds brand target (grade {target})",
            suggestion="Use shorter sentences and simpler words",
            context="readability",
            details={"grade_level": grade, "target_grade": target},
        ))
        report.suggestions.append(Suggestion(
            type="readability_adjustment",
            message=f"Aim for about {features.readability.get('average_sentence_length', 0):.0f} words "
                    f"per sentence or fewer and fewer three-syllable words",
        ))

    def _check_sentence_variety(self, features: FeatureBundle, report: AnalyzerReport) -> None:
        variety = features.data.get("sentence_variety", {})
        if variety.get("sentence_count", 0) >= 3 and variety.get("score", 1.0) < 0.4:
            report.suggestions.append(Suggestion(
                type="sentence_variety",
                message="Vary sentence length to improve rhythm",
                priority="low",
            ))

    def _check_messaging(self, brand: BrandSnapshot, features: FeatureBundle, report: AnalyzerReport) -> None:
        messages = brand.key_messages
        if not messages:
            return

        alignment = features.brand_alignment
        incorporated = list(alignment.get("incorporated_messages", ()))
        missing = list(alignment.get("missing_key_messages", ()))

        if not incorporated:
            report.violations.append(Violation(
                type="key_message_absence",
                severity=Severity.MEDIUM,
                message="None of the brand's key messages appear in the content",
                suggestion=f"Incorporate a key message such as '{messages[0]}'",
                context="messaging",
                details={"key_messages": list(messages)},
            ))
        elif missing:
            report.suggestions.append(Suggestion(
                type="message_incorporation",
                message=f"Consider incorporating: {', '.join(missing[:3])}",
            ))
