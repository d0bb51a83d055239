"""
Rule Evaluators

A small, closed set of evaluator kinds attached to compiled rules:

- SubstringPresence: passes when required terms appear
- SubstringAbsence: passes when none of the prohibited terms appear
- FeatureThreshold: compares a FeatureBundle value against a constant
- Custom: wraps a callable (dynamic rules, built-in legal checks)

Every evaluator is called as evaluator(content, features, context) and
returns a Verdict. All kinds except Custom serialize with to_dict().
"""

import operator
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, Mapping, Optional, Tuple, Union

from ..analyzer.features import FeatureBundle
from ..analyzer.text import find_terms
from ..errors import RuleEvaluationError


@dataclass(frozen=True)
class Verdict:
    """Outcome of a single evaluator call."""
    passed: bool
    detail: str = ""
    matches: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"passed": self.passed, "detail": self.detail, "matches": list(self.matches)}


def as_verdict(value: Any) -> Verdict:
    """
    Normalize a custom evaluator's return value.

    Accepts a Verdict, a bool, or a mapping with a "passed" key (plus
    optional "detail" / "matches", or the legacy "status" of pass/fail).
    """
    if isinstance(value, Verdict):
        return value
    if isinstance(value, bool):
        return Verdict(passed=value)
    if isinstance(value, Mapping):
        if "passed" in value:
            passed = bool(value["passed"])
        elif value.get("status") in ("pass", "fail", "warning"):
            passed = value["status"] == "pass"
        else:
            raise RuleEvaluationError(f"Evaluator returned a mapping without a verdict: {dict(value)}")
        return Verdict(
            passed=passed,
            detail=str(value.get("detail", "")),
            matches=tuple(value.get("matches") or ()),
        )
    raise RuleEvaluationError(f"Evaluator returned unusable verdict of type {type(value).__name__}")


# ============================================================================
# SUBSTRING EVALUATORS
# ============================================================================

@dataclass(frozen=True)
class SubstringPresence:
    """
    Passes when any term is present.

    With min_ratio, passes only when at least that share of the terms is
    present (advisory "should" rules built from keyword lists).
    """
    terms: Tuple[str, ...]
    regex: bool = False
    min_ratio: Optional[float] = None

    kind: ClassVar[str] = "substring_presence"

    def __call__(self, content: str, features: Optional[FeatureBundle], context: Mapping[str, Any]) -> Verdict:
        if not self.terms:
            return Verdict(passed=True, detail="No terms to check")

        found = find_terms(content, self.terms, regex=self.regex)
        missing = [t for t in self.terms if t not in found]

        if self.min_ratio is None:
            passed = bool(found)
        else:
            passed = len(found) / len(self.terms) >= self.min_ratio

        if passed:
            detail = f"Found {len(found)}/{len(self.terms)} required terms"
        else:
            detail = f"Required element missing: {', '.join(missing[:5])}"
        return Verdict(passed=passed, detail=detail, matches=tuple(found))

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "terms": list(self.terms), "regex": self.regex, "min_ratio": self.min_ratio}


@dataclass(frozen=True)
class SubstringAbsence:
    """Passes when none of the terms are present; reports what was found."""
    terms: Tuple[str, ...]
    regex: bool = False

    kind: ClassVar[str] = "substring_absence"

    def __call__(self, content: str, features: Optional[FeatureBundle], context: Mapping[str, Any]) -> Verdict:
        found = find_terms(content, self.terms, regex=self.regex)
        if found:
            return Verdict(passed=False, detail=f"Prohibited terms found: {', '.join(found)}", matches=tuple(found))
        return Verdict(passed=True, detail="No prohibited terms found")

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "terms": list(self.terms), "regex": self.regex}


# ============================================================================
# FEATURE THRESHOLD
# ============================================================================

OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "==": operator.eq,
    "!=": operator.ne,
    "in": lambda actual, expected: actual in expected,
    "not_in": lambda actual, expected: actual not in expected,
}


@dataclass(frozen=True)
class FeatureThreshold:
    """Compare a dotted FeatureBundle path against a constant."""
    feature_path: str
    operator: str
    value: Any

    kind: ClassVar[str] = "feature_threshold"

    def __call__(self, content: str, features: Optional[FeatureBundle], context: Mapping[str, Any]) -> Verdict:
        compare = OPERATORS.get(self.operator)
        if compare is None:
            raise RuleEvaluationError(f"Unknown operator '{self.operator}'")
        if features is None or not features.has(self.feature_path):
            raise RuleEvaluationError(f"Feature '{self.feature_path}' is not available")

        actual = features.get(self.feature_path)
        passed = bool(compare(actual, self.value))
        return Verdict(
            passed=passed,
            detail=f"{self.feature_path} = {actual!r} (required {self.operator} {self.value!r})",
        )

    def to_dict(self) -> Dict[str, Any]:
        value = list(self.value) if isinstance(self.value, tuple) else self.value
        return {"kind": self.kind, "feature_path": self.feature_path, "operator": self.operator, "value": value}


# ============================================================================
# CUSTOM
# ============================================================================

CustomFn = Callable[[str, Optional[FeatureBundle], Mapping[str, Any]], Any]


@dataclass(frozen=True)
class Custom:
    """Wrap a callable returning a bool, mapping or Verdict."""
    fn: CustomFn = field(compare=False)
    name: str = "custom"

    kind: ClassVar[str] = "custom"

    def __call__(self, content: str, features: Optional[FeatureBundle], context: Mapping[str, Any]) -> Verdict:
        return as_verdict(self.fn(content, features, context))

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "name": self.name}


Evaluator = Union[SubstringPresence, SubstringAbsence, FeatureThreshold, Custom]


def evaluator_from_dict(data: Mapping[str, Any]) -> Evaluator:
    """Rebuild a serializable evaluator."""
    kind = data.get("kind")
    if kind == SubstringPresence.kind:
        return SubstringPresence(
            terms=tuple(data.get("terms", ())),
            regex=bool(data.get("regex", False)),
            min_ratio=data.get("min_ratio"),
        )
    if kind == SubstringAbsence.kind:
        return SubstringAbsence(terms=tuple(data.get("terms", ())), regex=bool(data.get("regex", False)))
    if kind == FeatureThreshold.kind:
        value = data.get("value")
        return FeatureThreshold(
            feature_path=data["feature_path"],
            operator=data["operator"],
            value=tuple(value) if isinstance(value, list) else value,
        )
    raise ValueError(f"Evaluator kind '{kind}' cannot be rebuilt from data")
