"""
Rule Engine

Evaluates a brand's compiled RuleSet against content and its FeatureBundle.

Per rule:
1. Context filtering (content type, channel, config toggles)
2. Evaluator call, isolated: a raising rule is recorded in errors and
   excluded from scoring
3. Conflict resolution: a loser whose failure only contradicts a winner
   that ran and passed is moved to overridden and excluded from scoring
4. Bucketing: failed mandatory -> failed, failed advisory -> warnings

Score = sum(priority * passed) / sum(priority) over evaluated rules.
"""

import logging
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from ..analyzer import FeatureBundle, LinguisticAnalyzer
from ..analyzer.text import clamp
from ..config import Settings, get_settings
from ..errors import RuleEvaluationError
from ..models import coerce_brand
from ..results import Violation, severity_for_priority
from .compiler import RuleCompiler
from .models import CompiledRule, RuleEvaluation, RuleOutcome, RuleSet

logger = logging.getLogger(__name__)


# Config toggle -> rule tag it disables
TOGGLE_TAGS: Dict[str, str] = {
    "enforce_brand_voice": "voice",
    "check_restricted_terms": "restricted_terms",
    "validate_messaging": "messaging",
}


def weighted_score(evaluation: RuleEvaluation) -> float:
    """Priority-weighted pass ratio, clamped to [0, 1]."""
    evaluated = evaluation.passed + evaluation.failed + evaluation.warnings
    if not evaluated:
        return 1.0

    total = sum(o.priority for o in evaluated)
    if total == 0:
        return 1.0 if not (evaluation.failed or evaluation.warnings) else 0.0

    earned = sum(o.priority for o in evaluation.passed)
    return round(clamp(earned / total), 4)


def outcome_to_violation(outcome: RuleOutcome) -> Violation:
    """Express a failed rule outcome as a violation."""
    if outcome.violation_type == "restricted_term":
        suggestion = f"Remove or replace: {', '.join(outcome.matches)}"
    elif outcome.violation_type == "missing_required_element":
        suggestion = f"Follow the guideline: {outcome.content}"
    else:
        suggestion = f"Review the guideline: {outcome.content}"

    details: Dict[str, Any] = {
        "category": outcome.category,
        "rule_type": outcome.rule_type,
        "priority": outcome.priority,
        "mandatory": outcome.mandatory,
        "matches": list(outcome.matches),
    }
    if outcome.metadata.get("disclaimer"):
        details["disclaimer"] = outcome.metadata["disclaimer"]

    return Violation(
        type=outcome.violation_type,
        severity=severity_for_priority(outcome.priority, outcome.mandatory),
        message=f"{outcome.content} ({outcome.detail})" if outcome.detail else outcome.content,
        suggestion=suggestion,
        context=outcome.rule_id,
        confidence=1.0 if outcome.mandatory else 0.8,
        source="rule_engine",
        rule_id=outcome.rule_id,
        details=details,
    )


class RuleEngine:
    """
    Evaluates one brand's rules.

    Usage:
        engine = RuleEngine(brand)
        evaluation = engine.evaluate(content, {"content_type": "email"})
        if not evaluation.is_compliant:
            print(evaluation.failed)
    """

    def __init__(
        self,
        brand: Any,
        compiler: Optional[RuleCompiler] = None,
        analyzer: Optional[LinguisticAnalyzer] = None,
        settings: Optional[Settings] = None,
    ):
        self.brand = coerce_brand(brand)
        self.settings = settings or (compiler.settings if compiler else get_settings())
        self.compiler = compiler or RuleCompiler(settings=self.settings)
        self.analyzer = analyzer or LinguisticAnalyzer(settings=self.settings)
        self._ruleset = self.compiler.compile(self.brand)

    @property
    def ruleset(self) -> RuleSet:
        return self._ruleset

    def get_rules_for_category(self, category: str) -> List[CompiledRule]:
        return list(self._ruleset.rules_for(category))

    def add_dynamic_rule(self, definition: Any) -> CompiledRule:
        """
        Inject a rule for this engine's lifetime.

        The shared cached RuleSet is untouched; this engine switches to a copy
        with only the rule's category rebuilt.

        Args:
            definition: Mapping of guideline fields with an optional "evaluator"
                  callable, a Guideline, or an already compiled rule
        """
        rule = definition if isinstance(definition, CompiledRule) else self.compiler.compile_dynamic(definition)
        self._ruleset = self.compiler.with_rule(self._ruleset, rule)
        logger.info(f"Added dynamic rule {rule.id} to category '{rule.category}' for {self.brand.id}")
        return rule

    # =========================================================================
    # EVALUATION
    # =========================================================================

    def evaluate(
        self,
        content: str,
        context: Optional[Mapping[str, Any]] = None,
        features: Optional[FeatureBundle] = None,
    ) -> RuleEvaluation:
        """
        Evaluate every applicable rule.

        Args:
            content: Raw content
            context: Request hints (content_type, channel, config toggles)
            features: Precomputed FeatureBundle (computed when omitted)

        Returns:
            RuleEvaluation with passed / failed / warnings / errors, the
            weighted score and the RuleSet's conflicts
        """
        content = content or ""
        context = MappingProxyType(dict(context or {}))
        if features is None:
            features = self.analyzer.analyze(self.brand, content)

        ruleset = self._ruleset
        evaluation = RuleEvaluation(rule_conflicts=list(ruleset.conflicts))
        outcomes: Dict[str, RuleOutcome] = {}

        for rule in ruleset.all_rules():
            if not self._is_enabled(rule, context):
                evaluation.skipped.append(rule.id)
                continue

            try:
                verdict = rule.evaluator(content, features, context)
            except Exception as e:
                error = e if isinstance(e, RuleEvaluationError) else RuleEvaluationError(str(e), rule_id=rule.id)
                logger.error(f"Rule {rule.id} evaluation failed: {type(e).__name__}: {error}")
                evaluation.errors.append({
                    "rule_id": rule.id,
                    "error": str(error),
                    "error_type": type(e).__name__,
                })
                continue

            outcomes[rule.id] = RuleOutcome(
                rule_id=rule.id,
                category=rule.category,
                rule_type=rule.rule_type.value,
                priority=rule.priority,
                mandatory=rule.mandatory,
                passed=verdict.passed,
                detail=verdict.detail,
                matches=list(verdict.matches),
                source=rule.source,
                violation_type=rule.violation_type,
                content=rule.content,
                metadata=dict(rule.metadata),
            )

        self._apply_resolutions(ruleset, outcomes)

        for outcome in outcomes.values():
            if outcome.passed:
                evaluation.passed.append(outcome)
            elif outcome.overridden_by:
                evaluation.overridden.append(outcome)
            elif outcome.mandatory:
                evaluation.failed.append(outcome)
            else:
                evaluation.warnings.append(outcome)

        evaluation.score = weighted_score(evaluation)

        if evaluation.errors:
            logger.warning(f"{len(evaluation.errors)} rule(s) failed to evaluate for {self.brand.id}")

        return evaluation

    @staticmethod
    def _apply_resolutions(ruleset: RuleSet, outcomes: Dict[str, RuleOutcome]) -> None:
        """
        Excuse a conflict loser's failure when it only contradicts the winner.

        Both rules must have run, the winner must have passed, and everything
        the loser objects to must lie inside the conflict's subject. Any other
        failure of the loser stands.
        """
        for conflict in ruleset.conflicts:
            if conflict.winner is None:
                continue
            winner = outcomes.get(conflict.winner)
            loser = outcomes.get(conflict.loser)
            if winner is None or loser is None or not winner.passed or loser.passed:
                continue

            rule = ruleset.get_rule(conflict.loser)
            subject = set(conflict.subject)
            if rule.is_prohibition:
                contradicts = bool(loser.matches) and {m.lower() for m in loser.matches} <= subject
            else:
                contradicts = rule.subject_terms <= subject
            if not contradicts:
                continue

            loser.overridden_by = conflict.winner
            loser.resolution = conflict.resolution
            logger.debug(f"Rule {loser.rule_id} overridden by {conflict.winner} on {', '.join(conflict.subject)}")

    @staticmethod
    def _is_enabled(rule: CompiledRule, context: Mapping[str, Any]) -> bool:
        for toggle, tag in TOGGLE_TAGS.items():
            if context.get(toggle, True) is False and tag in rule.tags:
                return False
        return rule.applies_to(context)

    def violations(self, evaluation: RuleEvaluation) -> List[Violation]:
        """Violations for failed and warning outcomes, failed first."""
        return [outcome_to_violation(o) for o in evaluation.failed + evaluation.warnings]
