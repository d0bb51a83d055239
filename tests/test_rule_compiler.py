"""
Tests for rule compilation.

These tests verify:
- Priority ordering within categories
- RuleSet caching per brand version
- Conflict detection and resolution
- Global and industry rule injection
- Evaluator resolution from guideline records
- Dynamic rule compilation
"""

import pytest

from brand_compliance.errors import InvalidInput
from brand_compliance.models import Guideline, RuleType, coerce_brand
from brand_compliance.rules import (
    Custom,
    FeatureThreshold,
    RuleCompiler,
    RuleSource,
    SubstringAbsence,
    SubstringPresence,
    evaluator_from_dict,
    global_rules,
    industry_rules,
)


def make_guideline(**overrides) -> Guideline:
    data = {
        "id": "g1",
        "category": "content",
        "rule_type": "must",
        "priority": 50,
        "content": "Mention the loyalty program",
    }
    data.update(overrides)
    return Guideline.model_validate(data)


# =============================================================================
# ORDERING
# =============================================================================

class TestOrdering:
    """Test category grouping and priority ordering."""

    def test_categories_sorted_by_priority(self, compiler, brand_data):
        ruleset = compiler.compile(brand_data)

        for category in ruleset.categories:
            priorities = [r.priority for r in ruleset.rules_for(category)]
            assert priorities == sorted(priorities, reverse=True)

    def test_expected_layout(self, compiler, brand_data):
        ruleset = compiler.compile(brand_data)

        assert list(ruleset.categories) == ["accessibility", "content", "legal", "messaging", "style"]
        assert [r.id for r in ruleset.rules_for("style")] == ["no-jargon", "warm-words"]
        assert [r.id for r in ruleset.rules_for("content")] == ["global-profanity", "messaging-restricted-terms"]
        assert len(ruleset) == 7

    def test_ties_broken_by_id(self, compiler, plain_brand_data):
        plain_brand_data["guidelines"] = [
            {"id": "b-rule", "category": "cta", "rule_type": "should", "priority": 40, "content": "Use action verbs"},
            {"id": "a-rule", "category": "cta", "rule_type": "should", "priority": 40, "content": "Name the offer"},
        ]
        ruleset = compiler.compile(plain_brand_data)
        assert [r.id for r in ruleset.rules_for("cta")] == ["a-rule", "b-rule"]

    def test_unknown_category_is_empty(self, compiler, brand_data):
        ruleset = compiler.compile(brand_data)
        assert ruleset.rules_for("nonexistent") == ()


# =============================================================================
# CACHING
# =============================================================================

class TestCaching:
    """Test RuleSet caching."""

    def test_cache_hit_returns_same_object(self, compiler, brand_data):
        first = compiler.compile(brand_data)
        second = compiler.compile(brand_data)
        assert first is second

    def test_rebuild_is_identical(self, compiler, brand_data):
        cached = compiler.compile(brand_data)
        rebuilt = compiler.build(coerce_brand(brand_data))
        assert rebuilt is not cached
        assert rebuilt.to_dict() == cached.to_dict()

    def test_guideline_change_invalidates(self, compiler, brand_data):
        first = compiler.compile(brand_data)
        brand_data["guidelines"][0]["priority"] = 10
        second = compiler.compile(brand_data)

        assert first is not second
        assert first.version != second.version
        assert second.get_rule("mention-shipping").priority == 10

    def test_explicit_version_used_as_key(self, compiler, brand_data):
        brand_data["version"] = "v7"
        ruleset = compiler.compile(brand_data)
        assert ruleset.version == "v7"
        assert compiler.cache.get("ruleset:acme:v7") is ruleset


# =============================================================================
# CONFLICTS
# =============================================================================

class TestConflicts:
    """Test must vs must_not conflict detection."""

    def test_no_conflicts_for_consistent_brand(self, compiler, brand_data):
        assert compiler.compile(brand_data).conflicts == ()

    def test_equal_priority_positive_wins(self, compiler, conflicting_brand_data):
        ruleset = compiler.compile(conflicting_brand_data)

        assert len(ruleset.conflicts) == 1
        conflict = ruleset.conflicts[0]
        assert conflict.rule1 == "mention-free-shipping"
        assert conflict.rule2 == "never-free-shipping"
        assert conflict.winner == "mention-free-shipping"
        assert conflict.loser == "never-free-shipping"
        assert conflict.requires_review is False
        assert conflict.subject == ("free", "shipping")

    def test_higher_priority_wins(self, compiler, conflicting_brand_data):
        conflicting_brand_data["guidelines"][1]["priority"] = 80
        conflict = compiler.compile(conflicting_brand_data).conflicts[0]

        assert conflict.winner == "never-free-shipping"
        assert conflict.loser == "mention-free-shipping"
        assert "80 > 60" in conflict.resolution

    def test_tie_left_for_review(self, settings, conflicting_brand_data):
        compiler = RuleCompiler(settings=settings.model_copy(update={"AUTO_RESOLVE_TIES": False}))
        conflict = compiler.compile(conflicting_brand_data).conflicts[0]

        assert conflict.winner is None
        assert conflict.loser is None
        assert conflict.requires_review is True

    def test_different_categories_do_not_conflict(self, compiler, conflicting_brand_data):
        conflicting_brand_data["guidelines"][1]["category"] = "social"
        assert compiler.compile(conflicting_brand_data).conflicts == ()

    def test_unrelated_subjects_do_not_conflict(self, compiler, conflicting_brand_data):
        conflicting_brand_data["guidelines"][1]["content"] = "Never promise overnight delivery"
        assert compiler.compile(conflicting_brand_data).conflicts == ()

    def test_shared_instruction_verb_is_not_a_conflict(self, compiler, conflicting_brand_data):
        conflicting_brand_data["guidelines"][0]["content"] = "Always mention our organic ingredients"
        conflicting_brand_data["guidelines"][1]["content"] = "Never mention competitor brands"
        assert compiler.compile(conflicting_brand_data).conflicts == ()

    def test_single_incidental_word_is_not_a_conflict(self, compiler, conflicting_brand_data):
        conflicting_brand_data["guidelines"][0]["content"] = "Always mention free returns within thirty days"
        conflicting_brand_data["guidelines"][1]["content"] = "Never promise free upgrades"
        assert compiler.compile(conflicting_brand_data).conflicts == ()

    def test_majority_overlap_is_a_conflict(self, compiler, conflicting_brand_data):
        conflicting_brand_data["guidelines"][1]["content"] = "Never advertise free express shipping"
        conflict = compiler.compile(conflicting_brand_data).conflicts[0]
        assert conflict.subject == ("free", "shipping")


# =============================================================================
# BUILT-IN RULES
# =============================================================================

class TestBuiltinRules:
    """Test global and industry rule injection."""

    def test_global_rules_injected(self, compiler, plain_brand_data):
        ruleset = compiler.compile(plain_brand_data)
        for rule in global_rules():
            compiled = ruleset.get_rule(rule.id)
            assert compiled is not None
            assert compiled.source == RuleSource.GLOBAL

    def test_healthcare_rules_injected(self, compiler, healthcare_brand_data):
        ruleset = compiler.compile(healthcare_brand_data)
        assert ruleset.get_rule("healthcare-phi").source == RuleSource.INDUSTRY
        assert ruleset.get_rule("healthcare-regulatory-disclosure").mandatory is True
        assert [r.id for r in ruleset.rules_for("legal")] == [
            "healthcare-phi",
            "healthcare-regulatory-disclosure",
            "global-unsupported-claims",
        ]

    def test_industry_aliases(self):
        assert [r.id for r in industry_rules("Medical")] == [r.id for r in industry_rules("healthcare")]
        assert [r.id for r in industry_rules("fintech")] == ["finance-investment-risk"]
        assert [r.id for r in industry_rules("SaaS")] == ["technology-absolute-claims"]

    def test_unknown_industry(self):
        assert industry_rules("retail") == []
        assert industry_rules(None) == []

    def test_restricted_terms_rule(self, compiler, brand_data):
        rule = compiler.compile(brand_data).get_rule("messaging-restricted-terms")
        assert isinstance(rule.evaluator, SubstringAbsence)
        assert rule.evaluator.terms == ("cheap",)
        assert "restricted_terms" in rule.tags

    def test_no_restricted_terms_rule_without_terms(self, compiler, plain_brand_data):
        assert compiler.compile(plain_brand_data).get_rule("messaging-restricted-terms") is None

    def test_brand_guideline_overrides_builtin(self, compiler, plain_brand_data):
        plain_brand_data["guidelines"] = [{
            "id": "global-profanity",
            "category": "content",
            "rule_type": "must_not",
            "priority": 20,
            "content": "Keep it clean",
            "metadata": {"terms": ["darn"]},
        }]
        rule = compiler.compile(plain_brand_data).get_rule("global-profanity")
        assert rule.source == RuleSource.BRAND
        assert rule.priority == 20
        assert rule.evaluator.terms == ("darn",)

    def test_inactive_guidelines_skipped(self, compiler, brand_data):
        brand_data["guidelines"][1]["active"] = False
        assert compiler.compile(brand_data).get_rule("no-jargon") is None


# =============================================================================
# EVALUATOR RESOLUTION
# =============================================================================

class TestEvaluatorResolution:
    """Test evaluator selection from guideline records."""

    def test_must_with_terms(self, compiler):
        evaluator = compiler.resolve_evaluator(make_guideline(metadata={"terms": ["loyalty"]}))
        assert evaluator == SubstringPresence(terms=("loyalty",))

    def test_prohibitions_use_absence(self, compiler):
        for rule_type in ("must_not", "dont"):
            evaluator = compiler.resolve_evaluator(make_guideline(rule_type=rule_type, metadata={"terms": ["x"]}))
            assert isinstance(evaluator, SubstringAbsence)

    def test_should_uses_match_ratio(self, compiler, settings):
        evaluator = compiler.resolve_evaluator(make_guideline(rule_type="should", metadata={"terms": ["a", "b"]}))
        assert evaluator.min_ratio == settings.SUGGESTION_MATCH_RATIO

    def test_terms_fall_back_to_content_keywords(self, compiler):
        evaluator = compiler.resolve_evaluator(make_guideline(content="Always mention the loyalty program"))
        assert evaluator.terms == ("mention", "loyalty", "program")

    def test_patterns_are_regex(self, compiler):
        evaluator = compiler.resolve_evaluator(make_guideline(rule_type="must_not", metadata={"patterns": [r"\d{16}"]}))
        assert evaluator.regex is True

    def test_feature_metadata(self, compiler):
        evaluator = compiler.resolve_evaluator(make_guideline(
            metadata={"feature": "sentiment.overall_score", "operator": ">", "value": 0}
        ))
        assert evaluator == FeatureThreshold(feature_path="sentiment.overall_score", operator=">", value=0)

    def test_readability_target(self, compiler, settings):
        evaluator = compiler.resolve_evaluator(make_guideline(category="readability", metadata={"target_grade": 8}))
        assert evaluator == FeatureThreshold(
            feature_path="readability.grade_level",
            operator="<=",
            value=8 + settings.READABILITY_TOLERANCE,
        )

    def test_tone_guideline_accepts_neutral(self, compiler):
        evaluator = compiler.resolve_evaluator(make_guideline(category="tone", metadata={"tone": "Professional"}))
        assert evaluator.operator == "in"
        assert "professional" in evaluator.value
        assert "neutral" in evaluator.value

    def test_legacy_rule_type_aliases(self):
        assert make_guideline(rule_type="avoid").rule_type == RuleType.DONT
        assert make_guideline(rule_type="Must-Not").rule_type == RuleType.MUST_NOT
        assert make_guideline(rule_type="avoid").is_mandatory is False
        assert make_guideline(rule_type="should", mandatory=True).is_mandatory is True

    def test_tags(self, compiler, brand_data):
        ruleset = compiler.compile(brand_data)
        assert "voice" in ruleset.get_rule("warm-words").tags
        assert "messaging" in ruleset.get_rule("mention-shipping").tags
        assert "restricted_terms" in ruleset.get_rule("global-profanity").tags

    def test_serializable_evaluators_rebuild(self):
        for evaluator in (
            SubstringPresence(terms=("a", "b"), min_ratio=0.5),
            SubstringAbsence(terms=("x",), regex=True),
            FeatureThreshold(feature_path="primary_tone", operator="in", value=("friendly", "neutral")),
        ):
            assert evaluator_from_dict(evaluator.to_dict()) == evaluator

    def test_declared_evaluator(self, compiler):
        declared = {"kind": "substring_absence", "terms": [r"\bno\.?\s*1\b"], "regex": True}
        evaluator = compiler.resolve_evaluator(make_guideline(rule_type="must_not", metadata={"evaluator": declared}))
        assert evaluator == SubstringAbsence(terms=(r"\bno\.?\s*1\b",), regex=True)

    def test_declared_evaluator_wins_over_feature_metadata(self, compiler):
        declared = FeatureThreshold(feature_path="emotion.intensity", operator="<=", value=0.5)
        evaluator = compiler.resolve_evaluator(make_guideline(
            metadata={"evaluator": declared.to_dict(), "feature": "sentiment.overall_score", "value": 0}
        ))
        assert evaluator == declared

    @pytest.mark.parametrize("declared", [
        {"kind": "custom", "name": "x"},
        {"kind": "feature_threshold", "operator": ">"},
    ])
    def test_malformed_declared_evaluator(self, compiler, declared):
        with pytest.raises(InvalidInput) as exc:
            compiler.resolve_evaluator(make_guideline(metadata={"evaluator": declared}))
        assert exc.value.field == "evaluator"


# =============================================================================
# DYNAMIC RULES
# =============================================================================

class TestDynamicRules:
    """Test runtime rule compilation."""

    def test_callable_evaluator(self, compiler):
        rule = compiler.compile_dynamic({
            "id": "has-cta",
            "category": "cta",
            "rule_type": "must",
            "priority": 70,
            "content": "Include a call to action",
            "evaluator": lambda content, features, context: "shop" in content.lower(),
        })
        assert isinstance(rule.evaluator, Custom)
        assert rule.source == RuleSource.DYNAMIC
        assert rule.evaluator("Shop now", None, {}).passed is True

    def test_id_generated_when_missing(self, compiler):
        rule = compiler.compile_dynamic({"rule_type": "should", "content": "Mention the newsletter"})
        assert rule.id.startswith("dynamic-")

    def test_guideline_definition(self, compiler):
        rule = compiler.compile_dynamic(make_guideline(metadata={"terms": ["loyalty"]}))
        assert isinstance(rule.evaluator, SubstringPresence)

    @pytest.mark.parametrize("definition", [
        "not a rule",
        {"category": "cta"},
        {"rule_type": "must", "priority": 500},
        {"rule_type": "must", "evaluator": 42},
    ])
    def test_malformed_definitions(self, compiler, definition):
        with pytest.raises(InvalidInput):
            compiler.compile_dynamic(definition)

    def test_with_rule_copies(self, compiler, brand_data):
        ruleset = compiler.compile(brand_data)
        rule = compiler.compile_dynamic({
            "id": "extra-style",
            "category": "style",
            "rule_type": "must",
            "priority": 99,
            "content": "Write in second person",
        })

        extended = compiler.with_rule(ruleset, rule)

        assert extended is not ruleset
        assert ruleset.get_rule("extra-style") is None
        assert extended.rules_for("style")[0].id == "extra-style"
        assert extended.rules_for("content") is ruleset.rules_for("content")
        assert len(extended) == len(ruleset) + 1
