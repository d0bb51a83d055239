"""
Rules

Compilation and evaluation of priority-weighted brand guidelines.

Components:
- RuleCompiler: guidelines + built-in rules -> cached RuleSet
- RuleEngine: RuleSet x content -> RuleEvaluation
- Evaluators: SubstringPresence, SubstringAbsence, FeatureThreshold, Custom
"""

from .builtin import global_rules, industry_rules
from .compiler import RuleCompiler
from .conflicts import detect_conflicts, sort_rules
from .engine import RuleEngine, outcome_to_violation, weighted_score
from .evaluators import (
    Custom,
    FeatureThreshold,
    SubstringAbsence,
    SubstringPresence,
    Verdict,
    evaluator_from_dict,
)
from .models import (
    CompiledRule,
    RuleConflict,
    RuleEvaluation,
    RuleOutcome,
    RuleSet,
    RuleSource,
)

__all__ = [
    # Compilation
    "RuleCompiler",
    "global_rules",
    "industry_rules",
    "detect_conflicts",
    "sort_rules",
    # Evaluation
    "RuleEngine",
    "outcome_to_violation",
    "weighted_score",
    # Evaluators
    "Custom",
    "FeatureThreshold",
    "SubstringAbsence",
    "SubstringPresence",
    "Verdict",
    "evaluator_from_dict",
    # Models
    "CompiledRule",
    "RuleConflict",
    "RuleEvaluation",
    "RuleOutcome",
    "RuleSet",
    "RuleSource",
]
