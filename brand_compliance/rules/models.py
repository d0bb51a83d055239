"""
Rule Models

Compiled, evaluable rules and the immutable collections built from them.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterator, List, Mapping, Optional, Tuple

from ..analyzer.text import extract_keywords
from ..models import RuleType
from .evaluators import Evaluator, FeatureThreshold, SubstringAbsence, SubstringPresence


class RuleSource:
    BRAND = "brand_guideline"
    GLOBAL = "global"
    INDUSTRY = "industry"
    MESSAGING = "messaging_framework"
    DYNAMIC = "dynamic"


# Violation type reported for a failed rule, by evaluator kind
VIOLATION_TYPES: Dict[str, str] = {
    SubstringAbsence.kind: "restricted_term",
    SubstringPresence.kind: "missing_required_element",
    FeatureThreshold.kind: "feature_threshold",
    "custom": "rule_violation",
}

# Instruction verbs; they say how a rule applies, not what it is about
RULE_VERBS = frozenset("""
    mention mentions mentioning state say says reference refer cite include
    includes use uses using add display show feature highlight emphasize
    promote discuss describe write keep make ensure remember claim avoid
    omit
""".split())


@dataclass(frozen=True)
class CompiledRule:
    """A guideline with a resolved evaluator."""
    id: str
    category: str
    rule_type: RuleType
    priority: int
    content: str
    evaluator: Evaluator
    mandatory: bool
    source: str = RuleSource.BRAND
    tags: FrozenSet[str] = frozenset()
    metadata: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def is_prohibition(self) -> bool:
        return self.rule_type in (RuleType.MUST_NOT, RuleType.DONT)

    @property
    def subject_terms(self) -> FrozenSet[str]:
        """Terms describing what the rule is about, used for conflict detection."""
        terms = getattr(self.evaluator, "terms", None)
        if terms:
            return frozenset(t.lower() for t in terms) - RULE_VERBS
        if isinstance(self.evaluator, FeatureThreshold):
            return frozenset([self.evaluator.feature_path])
        return frozenset(extract_keywords(self.content)) - RULE_VERBS

    @property
    def violation_type(self) -> str:
        return VIOLATION_TYPES.get(self.evaluator.kind, "rule_violation")

    def applies_to(self, context: Mapping[str, Any]) -> bool:
        """Check content_types / channels scoping against the evaluation context."""
        for meta_key, context_key in (("content_types", "content_type"), ("channels", "channel")):
            allowed = self.metadata.get(meta_key)
            if not allowed:
                continue
            if isinstance(allowed, str):
                allowed = (allowed,)
            value = context.get(context_key)
            if value is None or str(value).lower() not in {str(a).lower() for a in allowed}:
                return False
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "rule_type": self.rule_type.value,
            "priority": self.priority,
            "content": self.content,
            "mandatory": self.mandatory,
            "source": self.source,
            "tags": sorted(self.tags),
            "evaluator": self.evaluator.to_dict(),
        }


@dataclass(frozen=True)
class RuleConflict:
    """Two same-subject rules with contradictory obligations."""
    rule1: str
    rule2: str
    category: str
    subject: Tuple[str, ...]
    winner: Optional[str]
    resolution: str
    requires_review: bool = False
    type: str = "contradiction"

    @property
    def loser(self) -> Optional[str]:
        if self.winner is None:
            return None
        return self.rule2 if self.winner == self.rule1 else self.rule1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule1": self.rule1,
            "rule2": self.rule2,
            "category": self.category,
            "subject": list(self.subject),
            "type": self.type,
            "winner": self.winner,
            "resolution": self.resolution,
            "requires_review": self.requires_review,
        }


@dataclass(frozen=True)
class RuleSet:
    """
    Compiled rules for one brand version.

    Categories map to tuples sorted by priority descending (ties by id).
    Never mutated; with_category() returns a modified copy.
    """
    brand_id: str
    version: str
    categories: Mapping[str, Tuple[CompiledRule, ...]]
    conflicts: Tuple[RuleConflict, ...] = ()

    def rules_for(self, category: str) -> Tuple[CompiledRule, ...]:
        return self.categories.get(category.lower(), ())

    def all_rules(self) -> Iterator[CompiledRule]:
        for category in self.categories:
            yield from self.categories[category]

    def get_rule(self, rule_id: str) -> Optional[CompiledRule]:
        for rule in self.all_rules():
            if rule.id == rule_id:
                return rule
        return None

    def with_category(
        self,
        category: str,
        rules: List[CompiledRule],
        conflicts: Tuple[RuleConflict, ...],
    ) -> "RuleSet":
        """Copy with one category replaced; other categories are shared."""
        categories = dict(self.categories)
        categories[category] = tuple(rules)
        kept = tuple(c for c in self.conflicts if c.category != category)
        return RuleSet(
            brand_id=self.brand_id,
            version=self.version,
            categories=MappingProxyType(dict(sorted(categories.items()))),
            conflicts=kept + tuple(conflicts),
        )

    def __len__(self) -> int:
        return sum(len(rules) for rules in self.categories.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "brand_id": self.brand_id,
            "version": self.version,
            "categories": {
                category: [r.to_dict() for r in rules]
                for category, rules in self.categories.items()
            },
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


@dataclass
class RuleOutcome:
    """Result of evaluating one rule."""
    rule_id: str
    category: str
    rule_type: str
    priority: int
    mandatory: bool
    passed: bool
    detail: str = ""
    matches: List[str] = field(default_factory=list)
    source: str = RuleSource.BRAND
    violation_type: str = "rule_violation"
    content: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    overridden_by: Optional[str] = None
    resolution: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "category": self.category,
            "rule_type": self.rule_type,
            "priority": self.priority,
            "mandatory": self.mandatory,
            "passed": self.passed,
            "detail": self.detail,
            "matches": list(self.matches),
            "source": self.source,
            "violation_type": self.violation_type,
            "content": self.content,
            "overridden_by": self.overridden_by,
            "resolution": self.resolution,
        }


@dataclass
class RuleEvaluation:
    """Bucketed outcome of evaluating a RuleSet against one piece of content."""
    passed: List[RuleOutcome] = field(default_factory=list)
    failed: List[RuleOutcome] = field(default_factory=list)
    warnings: List[RuleOutcome] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    overridden: List[RuleOutcome] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    score: float = 1.0
    rule_conflicts: List[RuleConflict] = field(default_factory=list)

    @property
    def is_compliant(self) -> bool:
        return not self.failed

    @property
    def rules_evaluated(self) -> int:
        return len(self.passed) + len(self.failed) + len(self.warnings) + len(self.overridden)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "passed": [o.to_dict() for o in self.passed],
            "failed": [o.to_dict() for o in self.failed],
            "warnings": [o.to_dict() for o in self.warnings],
            "overridden": [o.to_dict() for o in self.overridden],
            "errors": list(self.errors),
            "skipped": list(self.skipped),
            "score": self.score,
            "rule_conflicts": [c.to_dict() for c in self.rule_conflicts],
        }
