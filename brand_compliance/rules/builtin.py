"""
Built-in Rules

Rules injected into every brand's RuleSet at compile time:
- global_rules(): profanity, unsupported claims, accessibility
- industry_rules(industry): regulatory packs for healthcare, finance and
  technology brands

Pure functions; each call returns fresh rule objects.
"""

import re
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from ..analyzer.features import FeatureBundle
from ..analyzer.text import find_terms
from ..models import RuleType
from .evaluators import Custom, SubstringAbsence, Verdict
from .models import CompiledRule, RuleSource


PROFANITY = (
    "damn", "hell", "crap", "shit", "fuck", "fucking", "bastard", "bitch",
    "ass", "asshole", "piss", "bullshit", "wtf",
)

UNSUPPORTED_CLAIMS = (
    "guaranteed", "guarantee", "100%", "risk-free", "clinically proven",
    "scientifically proven", "#1", "number one", "best in the world",
    "miracle", "instant results",
)

CLAIM_DISCLAIMER_MARKERS = (
    "*", "terms apply", "conditions apply", "see terms", "results may vary",
    "individual results", "disclaimer", "based on",
)

ACCESSIBILITY_PHRASES = ("click here", "read more", "learn more here")

HEALTH_CLAIMS = (
    "cure", "cures", "treat", "treats", "treatment", "prevent", "prevents",
    "heal", "heals", "diagnose", "remedy",
)

HEALTH_DISCLOSURE_MARKERS = (
    "consult your doctor", "talk to your doctor", "consult your healthcare provider",
    "healthcare provider", "not intended to diagnose", "not medical advice",
    "evaluated by the food and drug administration", "fda",
)

PHI_PATTERNS = (
    r"\b\d{3}-\d{2}-\d{4}\b",
    r"\b(?:MRN|medical record (?:number|no\.?))\s*[:#]?\s*\d{4,}",
    r"\b(?:DOB|date of birth)\s*[:#]?\s*\d{1,2}/\d{1,2}/\d{2,4}",
    r"\bpatient (?:id|number)\s*[:#]?\s*\d{4,}",
)

INVESTMENT_TERMS = (
    "invest", "investing", "investment", "investments", "returns", "portfolio",
    "stocks", "crypto", "trading", "yield", "dividends",
)

INVESTMENT_RISK_MARKERS = (
    "past performance", "capital at risk", "may lose", "loss of principal",
    "involves risk", "not financial advice",
)

ABSOLUTE_TECH_CLAIMS = (
    "100% secure", "completely secure", "unhackable", "never fails",
    "zero downtime", "100% uptime", "bug-free", "error-free",
)

CLAIM_DISCLAIMER = "Results may vary. Terms and conditions apply."
HEALTH_DISCLAIMER = (
    "These statements have not been evaluated by the Food and Drug Administration. "
    "This product is not intended to diagnose, treat, cure, or prevent any disease. "
    "Consult your healthcare provider."
)
INVESTMENT_DISCLAIMER = (
    "Investing involves risk, including possible loss of principal. "
    "Past performance does not guarantee future results."
)


def _builtin(
    rule_id: str,
    category: str,
    rule_type: RuleType,
    priority: int,
    content: str,
    evaluator,
    source: str,
    tags: tuple = (),
    metadata: Optional[Dict[str, Any]] = None,
) -> CompiledRule:
    return CompiledRule(
        id=rule_id,
        category=category,
        rule_type=rule_type,
        priority=priority,
        content=content,
        evaluator=evaluator,
        mandatory=rule_type in (RuleType.MUST, RuleType.MUST_NOT),
        source=source,
        tags=frozenset(tags),
        metadata=MappingProxyType(metadata or {}),
    )


def requires_disclosure(triggers, markers, label: str) -> Custom:
    """Custom check: when any trigger appears, one of the markers must too."""

    def check(content: str, features: Optional[FeatureBundle], context: Mapping[str, Any]) -> Verdict:
        found = find_terms(content, triggers)
        if not found:
            return Verdict(passed=True, detail=f"No {label} found")
        lowered = content.lower()
        if any(marker in lowered for marker in markers):
            return Verdict(passed=True, detail=f"{label.capitalize()} accompanied by a disclosure", matches=tuple(found))
        return Verdict(
            passed=False,
            detail=f"{label.capitalize()} without a disclosure: {', '.join(found)}",
            matches=tuple(found),
        )

    return Custom(fn=check, name=f"requires_disclosure:{label}")


def _accessibility_check(content: str, features: Optional[FeatureBundle], context: Mapping[str, Any]) -> Verdict:
    issues = list(find_terms(content, ACCESSIBILITY_PHRASES))
    if len(re.findall(r"\b[A-Z]{3,}\b", content)) >= 3:
        issues.append("all caps")
    if "!!!" in content:
        issues.append("!!!")
    if issues:
        return Verdict(passed=False, detail=f"Accessibility issues: {', '.join(issues)}", matches=tuple(issues))
    return Verdict(passed=True, detail="No accessibility issues")


# ============================================================================
# GLOBAL RULES
# ============================================================================

def global_rules() -> List[CompiledRule]:
    """Rules every brand receives regardless of its guidelines."""
    return [
        _builtin(
            "global-profanity",
            "content",
            RuleType.MUST_NOT,
            90,
            "Never use profanity",
            SubstringAbsence(terms=PROFANITY),
            RuleSource.GLOBAL,
            tags=("restricted_terms",),
        ),
        _builtin(
            "global-unsupported-claims",
            "legal",
            RuleType.MUST,
            70,
            "Absolute or superlative claims must carry a disclaimer",
            requires_disclosure(UNSUPPORTED_CLAIMS, CLAIM_DISCLAIMER_MARKERS, "unsupported claims"),
            RuleSource.GLOBAL,
            metadata={"disclaimer": CLAIM_DISCLAIMER},
        ),
        _builtin(
            "global-accessibility",
            "accessibility",
            RuleType.SHOULD,
            50,
            "Use descriptive link text and avoid shouting or excessive punctuation",
            Custom(fn=_accessibility_check, name="accessibility"),
            RuleSource.GLOBAL,
        ),
    ]


# ============================================================================
# INDUSTRY RULES
# ============================================================================

def _healthcare_rules() -> List[CompiledRule]:
    return [
        _builtin(
            "healthcare-phi",
            "legal",
            RuleType.MUST_NOT,
            95,
            "Never include protected health information",
            SubstringAbsence(terms=PHI_PATTERNS, regex=True),
            RuleSource.INDUSTRY,
            tags=("restricted_terms",),
        ),
        _builtin(
            "healthcare-regulatory-disclosure",
            "legal",
            RuleType.MUST,
            85,
            "Health claims must include a regulatory disclosure",
            requires_disclosure(HEALTH_CLAIMS, HEALTH_DISCLOSURE_MARKERS, "health claims"),
            RuleSource.INDUSTRY,
            metadata={"disclaimer": HEALTH_DISCLAIMER},
        ),
    ]


def _finance_rules() -> List[CompiledRule]:
    return [
        _builtin(
            "finance-investment-risk",
            "legal",
            RuleType.MUST,
            85,
            "Investment content must include a risk disclaimer",
            requires_disclosure(INVESTMENT_TERMS, INVESTMENT_RISK_MARKERS, "investment claims"),
            RuleSource.INDUSTRY,
            metadata={"disclaimer": INVESTMENT_DISCLAIMER},
        ),
    ]


def _technology_rules() -> List[CompiledRule]:
    return [
        _builtin(
            "technology-absolute-claims",
            "content",
            RuleType.DONT,
            60,
            "Avoid absolute security or reliability claims",
            SubstringAbsence(terms=ABSOLUTE_TECH_CLAIMS),
            RuleSource.INDUSTRY,
            tags=("restricted_terms",),
        ),
    ]


INDUSTRY_PACKS = {
    "healthcare": _healthcare_rules,
    "finance": _finance_rules,
    "technology": _technology_rules,
}

INDUSTRY_ALIASES = {
    "health": "healthcare",
    "medical": "healthcare",
    "pharma": "healthcare",
    "financial": "finance",
    "financial services": "finance",
    "fintech": "finance",
    "tech": "technology",
    "software": "technology",
    "saas": "technology",
}


def industry_rules(industry: Optional[str]) -> List[CompiledRule]:
    """Rules contributed by a brand's declared industry (empty when unknown)."""
    if not industry:
        return []
    key = industry.strip().lower()
    key = INDUSTRY_ALIASES.get(key, key)
    pack = INDUSTRY_PACKS.get(key)
    return pack() if pack else []
