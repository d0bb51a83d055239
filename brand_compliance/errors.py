"""
Compliance Errors

Exception taxonomy for the compliance engine:
- InvalidInput: rejected before analysis begins (surfaced to caller)
- ServiceTimeout: per-request timeout elapsed (surfaced to caller)
- RuleEvaluationError: a single rule failed, isolated by the rule engine
- AnalysisDegraded: an aspect could not be computed, converted into a
  neutral result with a degraded marker
"""

from typing import Optional


class ComplianceError(Exception):
    """Base class for all compliance engine errors."""


class InvalidInput(ComplianceError):
    """Brand snapshot, config or content failed validation."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ServiceTimeout(ComplianceError):
    """The bounded per-request timeout elapsed."""

    def __init__(self, message: str, timeout: Optional[float] = None):
        super().__init__(message)
        self.timeout = timeout


class RuleEvaluationError(ComplianceError):
    """A rule evaluator raised or returned an unusable verdict."""

    def __init__(self, message: str, rule_id: Optional[str] = None):
        super().__init__(message)
        self.rule_id = rule_id


class AnalysisDegraded(ComplianceError):
    """An aspect analyzer could not compute a feature."""

    def __init__(self, message: str, aspect: Optional[str] = None):
        super().__init__(message)
        self.aspect = aspect
