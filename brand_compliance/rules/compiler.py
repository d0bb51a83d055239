"""
Rule Compiler

Turns a brand's guideline records plus built-in global and industry rules
into an ordered, categorized, conflict-checked RuleSet.

Compiled sets are cached per (brand id, rules version). RuleSets hold
closures, so they always live in an in-process cache.
"""

import logging
import uuid
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Set

from pydantic import ValidationError

from ..analyzer.lexicons import compatible_tones
from ..analyzer.text import extract_keywords
from ..cache import CacheBackend, MemoryCache
from ..config import Settings, get_settings
from ..errors import InvalidInput
from ..models import BrandSnapshot, Guideline, RuleType, coerce_brand
from .builtin import global_rules, industry_rules
from .conflicts import detect_conflicts, group_by_category, sort_rules
from .evaluators import (
    Custom,
    Evaluator,
    FeatureThreshold,
    SubstringAbsence,
    SubstringPresence,
    evaluator_from_dict,
)
from .models import CompiledRule, RuleSet, RuleSource

logger = logging.getLogger(__name__)


VOICE_CATEGORIES = {"tone", "voice", "style", "formality", "sentiment"}
MESSAGING_CATEGORIES = {"messaging", "key_messages", "messages"}
EVALUATOR_TYPES = (SubstringPresence, SubstringAbsence, FeatureThreshold, Custom)


def _freeze_value(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(value)
    return value


class RuleCompiler:
    """
    Compiles brand guidelines into RuleSets.

    Usage:
        compiler = RuleCompiler()
        ruleset = compiler.compile(brand)
        rules = ruleset.rules_for("tone")
    """

    def __init__(self, settings: Optional[Settings] = None, cache: Optional[CacheBackend] = None):
        self.settings = settings or get_settings()
        self.cache = cache if cache is not None else MemoryCache(max_entries=256)

    @staticmethod
    def cache_key(brand: BrandSnapshot) -> str:
        return f"ruleset:{brand.id}:{brand.rules_version}"

    # =========================================================================
    # COMPILATION
    # =========================================================================

    def compile(self, brand: Any) -> RuleSet:
        """
        Compile (or fetch from cache) the RuleSet for a brand.

        A cache hit returns the identical RuleSet object.
        """
        brand = coerce_brand(brand)
        key = self.cache_key(brand)

        cached = self.cache.get(key)
        if isinstance(cached, RuleSet):
            logger.debug(f"RuleSet cache hit for {brand.id} ({brand.rules_version})")
            return cached

        ruleset = self.build(brand)
        self.cache.put(key, ruleset, ttl=self.settings.RULES_CACHE_TTL)
        logger.debug(
            f"Compiled {len(ruleset)} rules in {len(ruleset.categories)} categories "
            f"for {brand.id} ({len(ruleset.conflicts)} conflicts)"
        )
        return ruleset

    def build(self, brand: BrandSnapshot) -> RuleSet:
        """Compile without touching the cache."""
        rules: List[CompiledRule] = []
        seen: Set[str] = set()

        for guideline in brand.active_guidelines:
            try:
                rule = self.compile_guideline(guideline)
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping guideline {guideline.id}: {e}")
                continue
            rules.append(rule)
            seen.add(rule.id)

        builtin = global_rules() + industry_rules(brand.industry)
        messaging = self._restricted_terms_rule(brand)
        if messaging:
            builtin.append(messaging)

        for rule in builtin:
            if rule.id in seen:
                logger.debug(f"Brand guideline overrides built-in rule {rule.id}")
                continue
            rules.append(rule)
            seen.add(rule.id)

        categories = group_by_category(rules)
        conflicts = []
        for category, category_rules in categories.items():
            conflicts.extend(detect_conflicts(category, category_rules, self.settings.AUTO_RESOLVE_TIES))

        return RuleSet(
            brand_id=brand.id,
            version=brand.rules_version,
            categories=MappingProxyType(categories),
            conflicts=tuple(conflicts),
        )

    def _restricted_terms_rule(self, brand: BrandSnapshot) -> Optional[CompiledRule]:
        terms = brand.messaging_framework.restricted_terms
        if not terms:
            return None
        return CompiledRule(
            id="messaging-restricted-terms",
            category="content",
            rule_type=RuleType.MUST_NOT,
            priority=80,
            content=f"Never use restricted terms: {', '.join(terms)}",
            evaluator=SubstringAbsence(terms=tuple(terms)),
            mandatory=True,
            source=RuleSource.MESSAGING,
            tags=frozenset({"restricted_terms"}),
        )

    # =========================================================================
    # GUIDELINES
    # =========================================================================

    def compile_guideline(
        self,
        guideline: Guideline,
        source: str = RuleSource.BRAND,
        evaluator: Optional[Evaluator] = None,
    ) -> CompiledRule:
        """Attach an evaluator and tags to a guideline."""
        evaluator = evaluator or self.resolve_evaluator(guideline)
        return CompiledRule(
            id=guideline.id,
            category=guideline.category,
            rule_type=guideline.rule_type,
            priority=guideline.priority,
            content=guideline.content,
            evaluator=evaluator,
            mandatory=guideline.is_mandatory,
            source=source,
            tags=self._tags_for(guideline, evaluator),
            metadata=MappingProxyType(dict(guideline.metadata)),
        )

    def resolve_evaluator(self, guideline: Guideline) -> Evaluator:
        """
        Pick an evaluator kind from metadata, category and rule type.

        Order: a declared evaluator, explicit feature metadata, readability
        target grade, tone metadata, then substring presence/absence over the
        guideline's terms.
        """
        meta = guideline.metadata
        prohibition = guideline.rule_type in (RuleType.MUST_NOT, RuleType.DONT)

        if isinstance(meta.get("evaluator"), Mapping):
            return self.evaluator_from_data(meta["evaluator"])

        if meta.get("feature"):
            return FeatureThreshold(
                feature_path=str(meta["feature"]),
                operator=str(meta.get("operator", ">=")),
                value=_freeze_value(meta.get("value")),
            )

        if guideline.category == "readability" and meta.get("target_grade") is not None:
            limit = int(meta["target_grade"]) + self.settings.READABILITY_TOLERANCE
            return FeatureThreshold(feature_path="readability.grade_level", operator="<=", value=limit)

        if guideline.category == "tone" and meta.get("tone"):
            tone = str(meta["tone"]).lower()
            if prohibition:
                return FeatureThreshold(feature_path="primary_tone", operator="not_in", value=(tone,))
            accepted = tuple(compatible_tones(tone)) + ("neutral",)
            return FeatureThreshold(feature_path="primary_tone", operator="in", value=accepted)

        terms, regex = self._terms_for(guideline)
        if prohibition:
            return SubstringAbsence(terms=terms, regex=regex)
        if guideline.rule_type == RuleType.SHOULD:
            return SubstringPresence(terms=terms, regex=regex, min_ratio=self.settings.SUGGESTION_MATCH_RATIO)
        return SubstringPresence(terms=terms, regex=regex)

    @staticmethod
    def evaluator_from_data(data: Mapping[str, Any]) -> Evaluator:
        """Rebuild a serialized evaluator (the shape produced by to_dict())."""
        try:
            return evaluator_from_dict(data)
        except (KeyError, ValueError) as e:
            raise InvalidInput(f"Malformed evaluator definition: {e}", field="evaluator") from e

    @staticmethod
    def _terms_for(guideline: Guideline):
        meta = guideline.metadata
        if meta.get("terms"):
            terms = meta["terms"]
            regex = bool(meta.get("regex", False))
        elif meta.get("patterns"):
            terms = meta["patterns"]
            regex = bool(meta.get("regex", True))
        else:
            return tuple(extract_keywords(guideline.content)), False

        if isinstance(terms, str):
            terms = [terms]
        return tuple(str(t) for t in terms if t), regex

    @staticmethod
    def _tags_for(guideline: Guideline, evaluator: Evaluator) -> frozenset:
        tags = {str(t) for t in guideline.metadata.get("tags", ())}
        if guideline.category in VOICE_CATEGORIES:
            tags.add("voice")
        if guideline.category in MESSAGING_CATEGORIES:
            tags.add("messaging")
        if (
            isinstance(evaluator, SubstringAbsence)
            and guideline.category not in VOICE_CATEGORIES
            and guideline.category not in MESSAGING_CATEGORIES
        ):
            tags.add("restricted_terms")
        return frozenset(tags)

    # =========================================================================
    # DYNAMIC RULES
    # =========================================================================

    def compile_dynamic(self, definition: Any) -> CompiledRule:
        """
        Compile a runtime-injected rule.

        Args:
            definition: Guideline, or mapping of guideline fields with an optional
                  "evaluator" (callable, evaluator instance or serialized evaluator)

        Raises:
            InvalidInput: definition is malformed
        """
        evaluator = None
        if isinstance(definition, Guideline):
            guideline = definition
        elif isinstance(definition, Mapping):
            fields: Dict[str, Any] = dict(definition)
            raw_evaluator = fields.pop("evaluator", None)
            fields.setdefault("id", f"dynamic-{uuid.uuid4().hex[:8]}")
            try:
                guideline = Guideline.model_validate(fields)
            except ValidationError as e:
                raise InvalidInput(f"Malformed dynamic rule: {e}", field="rule") from e

            if isinstance(raw_evaluator, EVALUATOR_TYPES):
                evaluator = raw_evaluator
            elif isinstance(raw_evaluator, Mapping):
                evaluator = self.evaluator_from_data(raw_evaluator)
            elif callable(raw_evaluator):
                evaluator = Custom(fn=raw_evaluator, name=guideline.id)
            elif raw_evaluator is not None:
                raise InvalidInput(
                    f"Dynamic rule evaluator must be callable, got {type(raw_evaluator).__name__}",
                    field="evaluator",
                )
        else:
            raise InvalidInput(
                f"Dynamic rule must be a mapping or Guideline, got {type(definition).__name__}",
                field="rule",
            )

        return self.compile_guideline(guideline, source=RuleSource.DYNAMIC, evaluator=evaluator)

    def with_rule(self, ruleset: RuleSet, rule: CompiledRule) -> RuleSet:
        """Copy of ruleset with one rule added; only its category is rebuilt."""
        existing = [r for r in ruleset.rules_for(rule.category) if r.id != rule.id]
        ordered = sort_rules(existing + [rule])
        conflicts = detect_conflicts(rule.category, ordered, self.settings.AUTO_RESOLVE_TIES)
        return ruleset.with_category(rule.category, list(ordered), conflicts)
