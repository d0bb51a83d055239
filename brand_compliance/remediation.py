"""
Remediation

Best-effort helpers around a full evaluation:
- predict_violations: fast pre-check for live-typing feedback
- auto_fix: mechanical fixes for a subset of violation types
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .analyzer import LinguisticAnalyzer
from .analyzer.lexicons import COMMON_REPLACEMENTS, compatible_tones
from .analyzer.text import find_terms, phrase_pattern, tokenize
from .config import Settings, get_settings
from .models import BrandSnapshot, ComplianceConfig
from .results import AutoFixResult, PredictedIssue, Severity, Violation
from .rules.evaluators import SubstringAbsence
from .rules.models import RuleSet, RuleSource

logger = logging.getLogger(__name__)


REPEATED_PUNCTUATION = re.compile(r"([!?])\1{2,}")


# ============================================================================
# PREDICTION
# ============================================================================

def predict_violations(
    content: str,
    brand: BrandSnapshot,
    config: ComplianceConfig,
    analyzer: LinguisticAnalyzer,
    ruleset: Optional[RuleSet] = None,
    settings: Optional[Settings] = None,
) -> List[PredictedIssue]:
    """
    Flag likely issues in a draft without a full evaluation.

    Checks restricted terms, prohibited guideline terms, tone drift,
    readability and (once the draft is long enough) key-message absence.
    """
    settings = settings or get_settings()
    content = content or ""
    issues: List[PredictedIssue] = []

    if not content.strip():
        return issues

    if config.check_restricted_terms:
        for term in find_terms(content, brand.messaging_framework.restricted_terms):
            replacement = brand.messaging_framework.replacement_for(term)
            issues.append(PredictedIssue(
                type="restricted_term",
                severity=Severity.HIGH,
                message=f"'{term}' is a restricted term",
                likelihood=0.95,
                suggestion=f"Use '{replacement}' instead" if replacement else f"Remove '{term}'",
                context=term,
            ))

        if ruleset is not None:
            issues.extend(_prohibited_guideline_terms(content, ruleset, config))

    if config.enforce_brand_voice and brand.expected_tone:
        tone = analyzer.analyze_aspect(brand, content, "tone")
        actual = tone["primary_tone"]
        if actual != "neutral" and actual not in compatible_tones(brand.expected_tone):
            issues.append(PredictedIssue(
                type="tone_drift",
                severity=Severity.MEDIUM,
                message=f"Draft is drifting towards a {actual} tone (brand voice: {brand.expected_tone})",
                likelihood=round(tone["confidence"], 2),
                suggestion=f"Steer the wording back towards a {brand.expected_tone} voice",
                context="tone",
            ))

    target = brand.target_reading_grade()
    if target is not None:
        readability = analyzer.analyze_aspect(brand, content, "readability")
        grade = readability.get("grade_level", 0)
        if not readability.get("degraded") and grade - target > settings.READABILITY_TOLERANCE:
            issues.append(PredictedIssue(
                type="readability_risk",
                severity=Severity.MEDIUM,
                message=f"Draft reads at grade {grade}, above the target of {target}",
                likelihood=0.7,
                suggestion="Shorten sentences and prefer simpler words",
                context="readability",
            ))

    word_count = len(tokenize(content))
    if config.validate_messaging and brand.key_messages and word_count >= settings.PREDICTION_MIN_WORDS:
        alignment = analyzer.analyze_aspect(brand, content, "brand_alignment")
        if not alignment.get("incorporated_messages"):
            issues.append(PredictedIssue(
                type="key_message_absence",
                severity=Severity.MEDIUM,
                message="No key message has appeared yet",
                likelihood=0.6,
                suggestion=f"Work in a key message such as '{brand.key_messages[0]}'",
                context="messaging",
            ))

    return issues


def _prohibited_guideline_terms(
    content: str,
    ruleset: RuleSet,
    config: ComplianceConfig,
) -> List[PredictedIssue]:
    context = config.to_context()
    issues = []
    for rule in ruleset.all_rules():
        if rule.source == RuleSource.MESSAGING or not isinstance(rule.evaluator, SubstringAbsence):
            continue
        if not rule.applies_to(context):
            continue
        found = find_terms(content, rule.evaluator.terms, regex=rule.evaluator.regex)
        if not found:
            continue
        issues.append(PredictedIssue(
            type="guideline_violation",
            severity=Severity.HIGH if rule.mandatory else Severity.MEDIUM,
            message=f"{rule.content}: found {', '.join(found)}",
            likelihood=0.9 if rule.mandatory else 0.7,
            suggestion=f"Remove or replace: {', '.join(found)}",
            context=rule.id,
        ))
    return issues


# ============================================================================
# AUTO-FIX
# ============================================================================

def _match_case(original: str, replacement: str) -> str:
    if original.isupper() and len(original) > 1:
        return replacement.upper()
    if original[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def replace_term(content: str, term: str, replacement: str) -> Tuple[str, int]:
    """Replace a whole-word term, preserving the case of each occurrence."""
    pattern = phrase_pattern(term)
    return pattern.subn(lambda m: _match_case(m.group(0), replacement), content)


def replacement_for(brand: BrandSnapshot, term: str) -> Optional[str]:
    """Brand-preferred replacement, falling back to the built-in map."""
    preferred = brand.messaging_framework.replacement_for(term)
    if preferred:
        return preferred
    fallback = COMMON_REPLACEMENTS.get(term.lower())
    return fallback[0] if fallback else None


def _disclaimer_for(brand: BrandSnapshot, violation: Violation) -> Optional[str]:
    disclaimers = brand.messaging_framework.disclaimers
    if violation.rule_id and violation.rule_id in disclaimers:
        return disclaimers[violation.rule_id]
    category = violation.details.get("category")
    if category and category in disclaimers:
        return disclaimers[category]
    return violation.details.get("disclaimer")


def auto_fix(
    content: str,
    violations: Iterable[Union[Violation, Dict[str, Any]]],
    brand: BrandSnapshot,
) -> AutoFixResult:
    """
    Apply mechanical fixes.

    Handles restricted-term substitution, missing disclaimers and repeated
    punctuation. Everything else is returned in unfixed.
    """
    fixed = content or ""
    applied: List[Dict[str, Any]] = []
    unfixed: List[Violation] = []

    for violation in violations:
        if isinstance(violation, dict):
            violation = Violation.from_dict(violation)

        matches = list(violation.details.get("matches") or [])
        disclaimer = _disclaimer_for(brand, violation)

        if violation.type == "restricted_term" and matches:
            remaining = []
            for term in matches:
                replacement = replacement_for(brand, term)
                count = 0
                if replacement:
                    fixed, count = replace_term(fixed, term, replacement)
                if count:
                    applied.append({
                        "type": "term_replacement",
                        "rule_id": violation.rule_id,
                        "original": term,
                        "replacement": replacement,
                        "count": count,
                    })
                else:
                    remaining.append(term)
            if remaining:
                unfixed.append(violation)

        elif disclaimer:
            if disclaimer not in fixed:
                fixed = f"{fixed.rstrip()}\n\n{disclaimer}"
                applied.append({"type": "disclaimer_added", "rule_id": violation.rule_id, "text": disclaimer})

        elif "!!!" in matches:
            fixed, count = REPEATED_PUNCTUATION.subn(r"\1", fixed)
            if count:
                applied.append({"type": "punctuation_collapsed", "rule_id": violation.rule_id, "count": count})
            if set(matches) - {"!!!"}:
                unfixed.append(violation)

        else:
            unfixed.append(violation)

    if applied:
        logger.debug(f"Applied {len(applied)} automatic fixes ({len(unfixed)} left unfixed)")

    return AutoFixResult(
        original_content=content or "",
        fixed_content=fixed,
        applied_fixes=applied,
        unfixed=unfixed,
    )
