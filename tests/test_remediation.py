"""
Tests for prediction and auto-fix.

These tests verify:
- Restricted term substitution with brand and fallback replacements
- Disclaimer insertion
- Repeated punctuation collapse
- Unfixable violations are passed through
- Live-typing predictions
"""

import pytest

from brand_compliance.models import coerce_brand, coerce_config
from brand_compliance.remediation import auto_fix, predict_violations, replace_term, replacement_for
from brand_compliance.results import Severity, Violation
from brand_compliance.rules import RuleEngine
from brand_compliance.rules.builtin import CLAIM_DISCLAIMER

from .conftest import CASUAL_CONTENT, LATINATE_CONTENT, OFF_MESSAGE_CONTENT


def restricted(term: str, rule_id: str = "messaging-restricted-terms") -> Violation:
    return Violation(
        type="restricted_term",
        severity=Severity.HIGH,
        message=f"Prohibited terms found: {term}",
        context=rule_id,
        rule_id=rule_id,
        details={"matches": [term], "category": "content"},
    )


# =============================================================================
# AUTO-FIX
# =============================================================================

class TestReplaceTerm:
    """Test case-preserving replacement."""

    def test_preserves_case(self):
        fixed, count = replace_term("Cheap deals. So cheap! CHEAP!", "cheap", "affordable")
        assert fixed == "Affordable deals. So affordable! AFFORDABLE!"
        assert count == 3

    def test_whole_words_only(self):
        fixed, count = replace_term("Cheapest prices", "cheap", "affordable")
        assert fixed == "Cheapest prices"
        assert count == 0

    def test_replacement_lookup(self, brand_data, plain_brand_data):
        assert replacement_for(coerce_brand(brand_data), "Cheap") == "affordable"
        assert replacement_for(coerce_brand(plain_brand_data), "problem") == "challenge"
        assert replacement_for(coerce_brand(plain_brand_data), "damn") is None


class TestAutoFix:
    """Test mechanical fixes."""

    def test_brand_preferred_term(self, brand_data):
        result = auto_fix("Cheap prices every day.", [restricted("cheap")], coerce_brand(brand_data))

        assert result.fixed_content == "Affordable prices every day."
        assert result.applied_fixes == [{
            "type": "term_replacement",
            "rule_id": "messaging-restricted-terms",
            "original": "cheap",
            "replacement": "affordable",
            "count": 1,
        }]
        assert result.unfixed == []

    def test_fallback_replacement(self, plain_brand_data):
        result = auto_fix("No problem at all.", [restricted("problem")], coerce_brand(plain_brand_data))
        assert result.fixed_content == "No challenge at all."

    def test_no_replacement_left_unfixed(self, plain_brand_data):
        violation = restricted("damn", rule_id="global-profanity")
        result = auto_fix("Well damn.", [violation], coerce_brand(plain_brand_data))

        assert result.changed is False
        assert result.unfixed == [violation]

    def test_disclaimer_appended(self, brand_data, compiler, analyzer):
        content = "Guaranteed results in a week."
        brand = coerce_brand(brand_data)
        engine = RuleEngine(brand, compiler=compiler, analyzer=analyzer)
        violations = engine.violations(engine.evaluate(content))

        result = auto_fix(content, violations, brand)

        assert result.fixed_content == f"{content}\n\n{CLAIM_DISCLAIMER}"
        assert "global-unsupported-claims" not in [o.rule_id for o in engine.evaluate(result.fixed_content).failed]

    def test_disclaimer_not_duplicated(self, brand_data):
        content = f"Guaranteed results.\n\n{CLAIM_DISCLAIMER}"
        violation = Violation(
            type="rule_violation",
            severity=Severity.HIGH,
            message="",
            rule_id="global-unsupported-claims",
            details={"category": "legal", "disclaimer": CLAIM_DISCLAIMER},
        )
        result = auto_fix(content, [violation], coerce_brand(brand_data))

        assert result.fixed_content == content
        assert result.applied_fixes == []

    def test_brand_disclaimer_preferred(self, brand_data):
        brand_data["messaging_framework"]["disclaimers"] = {"legal": "See acme.example/terms."}
        violation = Violation(
            type="rule_violation",
            severity=Severity.HIGH,
            message="",
            rule_id="global-unsupported-claims",
            details={"category": "legal", "disclaimer": CLAIM_DISCLAIMER},
        )
        result = auto_fix("Guaranteed results.", [violation], coerce_brand(brand_data))

        assert result.fixed_content.endswith("See acme.example/terms.")
        assert CLAIM_DISCLAIMER not in result.fixed_content

    def test_punctuation_collapsed(self, plain_brand_data):
        violation = Violation(
            type="rule_violation",
            severity=Severity.MEDIUM,
            message="",
            rule_id="global-accessibility",
            details={"matches": ["!!!"]},
        )
        result = auto_fix("Big news!!! Shop now.", [violation], coerce_brand(plain_brand_data))

        assert result.fixed_content == "Big news! Shop now."
        assert result.applied_fixes[0]["type"] == "punctuation_collapsed"
        assert result.unfixed == []

    def test_partial_accessibility_fix(self, plain_brand_data):
        violation = Violation(
            type="rule_violation",
            severity=Severity.MEDIUM,
            message="",
            rule_id="global-accessibility",
            details={"matches": ["click here", "!!!"]},
        )
        result = auto_fix("Click here!!!", [violation], coerce_brand(plain_brand_data))

        assert result.fixed_content == "Click here!"
        assert result.unfixed == [violation]

    def test_unfixable_types_pass_through(self, brand_data):
        violation = Violation(type="tone_mismatch", severity=Severity.HIGH, message="", context="tone")
        result = auto_fix("Hey guys!", [violation], coerce_brand(brand_data))

        assert result.unfixed == [violation]
        assert result.to_dict()["changed"] is False

    def test_accepts_violation_dicts(self, brand_data):
        result = auto_fix("Cheap prices.", [restricted("cheap").to_dict()], coerce_brand(brand_data))
        assert result.fixed_content == "Affordable prices."


# =============================================================================
# PREDICTION
# =============================================================================

class TestPredictViolations:
    """Test live-typing predictions."""

    def predict(self, content, brand, analyzer, compiler=None, config=None):
        brand = coerce_brand(brand)
        ruleset = compiler.compile(brand) if compiler else None
        return predict_violations(content, brand, coerce_config(config), analyzer=analyzer, ruleset=ruleset)

    def test_empty_draft(self, brand_data, analyzer):
        assert self.predict("   ", brand_data, analyzer) == []

    def test_restricted_term(self, brand_data, analyzer):
        issues = self.predict("So cheap!", brand_data, analyzer)

        assert issues[0].type == "restricted_term"
        assert issues[0].likelihood == 0.95
        assert issues[0].context == "cheap"

    def test_restricted_terms_toggle(self, brand_data, analyzer, compiler):
        issues = self.predict("So cheap, damn.", brand_data, analyzer, compiler, {"check_restricted_terms": False})
        assert [i.type for i in issues if i.type in ("restricted_term", "guideline_violation")] == []

    def test_guideline_terms(self, brand_data, analyzer, compiler):
        issues = self.predict("We leverage synergy.", brand_data, analyzer, compiler)
        jargon = next(i for i in issues if i.context == "no-jargon")

        assert jargon.type == "guideline_violation"
        assert jargon.severity == Severity.MEDIUM
        assert "leverage" in jargon.message

    def test_tone_drift(self, brand_data, analyzer):
        brand_data["voice_analysis"] = {"primary_tone": "professional"}
        issues = self.predict(CASUAL_CONTENT, brand_data, analyzer)
        assert "tone_drift" in [i.type for i in issues]

    def test_readability_risk(self, plain_brand_data, analyzer):
        plain_brand_data["target_grade"] = 6
        issues = self.predict(LATINATE_CONTENT, plain_brand_data, analyzer)
        assert [i.type for i in issues] == ["readability_risk"]

    @pytest.mark.parametrize("repeat,expected", [(1, False), (6, True)])
    def test_key_message_absence_waits_for_length(self, brand_data, analyzer, repeat, expected):
        draft = " ".join([OFF_MESSAGE_CONTENT] * repeat)
        issues = self.predict(draft, brand_data, analyzer)
        assert ("key_message_absence" in [i.type for i in issues]) is expected
