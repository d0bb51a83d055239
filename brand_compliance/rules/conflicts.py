"""
Rule Ordering and Conflict Detection

Pure functions over lists of compiled rules; used at compile time and when a
dynamic rule rebuilds a single category.
"""

import logging
from typing import Dict, FrozenSet, Iterable, List, Tuple

from ..models import RuleType
from .models import CompiledRule, RuleConflict

logger = logging.getLogger(__name__)


def sort_rules(rules: Iterable[CompiledRule]) -> Tuple[CompiledRule, ...]:
    """Priority descending, ties broken by rule id."""
    return tuple(sorted(rules, key=lambda r: (-r.priority, r.id)))


def group_by_category(rules: Iterable[CompiledRule]) -> Dict[str, Tuple[CompiledRule, ...]]:
    """Group rules by category (alphabetical) and sort each group."""
    grouped: Dict[str, List[CompiledRule]] = {}
    for rule in rules:
        grouped.setdefault(rule.category, []).append(rule)
    return {category: sort_rules(grouped[category]) for category in sorted(grouped)}


def resolve_conflict(
    positive: CompiledRule,
    negative: CompiledRule,
    subject: Tuple[str, ...],
    auto_resolve_ties: bool = True,
) -> RuleConflict:
    """
    Decide which of a must / must_not pair is authoritative.

    Higher priority wins. At equal priority the positive obligation wins,
    unless tie resolution is disabled, in which case the pair is left for
    human review.
    """
    if positive.priority != negative.priority:
        winner, loser = (
            (positive, negative) if positive.priority > negative.priority else (negative, positive)
        )
        return RuleConflict(
            rule1=positive.id,
            rule2=negative.id,
            category=positive.category,
            subject=subject,
            winner=winner.id,
            resolution=(
                f"'{winner.id}' takes precedence over '{loser.id}' "
                f"(priority {winner.priority} > {loser.priority})"
            ),
        )

    if auto_resolve_ties:
        return RuleConflict(
            rule1=positive.id,
            rule2=negative.id,
            category=positive.category,
            subject=subject,
            winner=positive.id,
            resolution=(
                f"Equal priority ({positive.priority}); the positive obligation "
                f"'{positive.id}' takes precedence over '{negative.id}'"
            ),
        )

    return RuleConflict(
        rule1=positive.id,
        rule2=negative.id,
        category=positive.category,
        subject=subject,
        winner=None,
        resolution=f"Equal priority ({positive.priority}); requires human review",
        requires_review=True,
    )


def shares_subject(positive: CompiledRule, negative: CompiledRule) -> FrozenSet[str]:
    """
    Subject terms two rules are both about, or an empty set.

    The overlap must cover at least half of the smaller rule's subject; one
    incidental shared word is not a contradiction.
    """
    a, b = positive.subject_terms, negative.subject_terms
    if not a or not b:
        return frozenset()
    shared = a & b
    if len(shared) * 2 < min(len(a), len(b)):
        return frozenset()
    return shared


def detect_conflicts(
    category: str,
    rules: Iterable[CompiledRule],
    auto_resolve_ties: bool = True,
) -> Tuple[RuleConflict, ...]:
    """Find must vs must_not/dont pairs in one category that are about the same subject."""
    rules = list(rules)
    positives = [r for r in rules if r.rule_type == RuleType.MUST]
    negatives = [r for r in rules if r.is_prohibition]

    conflicts = []
    for positive in positives:
        for negative in negatives:
            shared = shares_subject(positive, negative)
            if not shared:
                continue
            conflict = resolve_conflict(positive, negative, tuple(sorted(shared)), auto_resolve_ties)
            logger.debug(
                f"Conflict in '{category}': {positive.id} vs {negative.id} "
                f"on {', '.join(conflict.subject)} -> {conflict.winner or 'review'}"
            )
            conflicts.append(conflict)

    return tuple(conflicts)
