"""
Compliance Result Models

Dataclasses produced by the engine:
- Violation / Suggestion: individual findings
- ComplianceResult: merged outcome of one evaluation
- BatchItemResult: per-item outcome of a batch
- PredictedIssue / AutoFixResult: live-typing prediction and remediation
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class Severity:
    """Violation severity levels."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def severity_for_priority(priority: int, mandatory: bool) -> str:
    """Map a rule's priority and obligation onto a violation severity."""
    if mandatory and priority >= 90:
        return Severity.CRITICAL
    if mandatory or priority >= 75:
        return Severity.HIGH
    if priority >= 40:
        return Severity.MEDIUM
    return Severity.LOW


@dataclass
class Violation:
    """A single compliance finding."""
    type: str
    severity: str
    message: str
    suggestion: str = ""
    context: str = ""
    confidence: float = 1.0
    source: str = "analyzer"
    rule_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> tuple:
        """De-duplication key."""
        return (self.type, self.context)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity,
            "message": self.message,
            "suggestion": self.suggestion,
            "context": self.context,
            "confidence": self.confidence,
            "source": self.source,
            "rule_id": self.rule_id,
            "details": dict(self.details),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Violation":
        return cls(
            type=data["type"],
            severity=data.get("severity", Severity.MEDIUM),
            message=data.get("message", ""),
            suggestion=data.get("suggestion", ""),
            context=data.get("context", ""),
            confidence=data.get("confidence", 1.0),
            source=data.get("source", "analyzer"),
            rule_id=data.get("rule_id"),
            details=dict(data.get("details") or {}),
        )


@dataclass
class Suggestion:
    """An improvement hint not tied to a violation."""
    type: str
    message: str
    priority: str = "medium"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "message": self.message, "priority": self.priority}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Suggestion":
        return cls(
            type=data["type"],
            message=data.get("message", ""),
            priority=data.get("priority", "medium"),
        )


@dataclass
class ComplianceResult:
    """
    Merged outcome of analyzer checks and rule evaluation.

    score is 0.0-1.0; use score_percent at presentation boundaries.
    """
    is_compliant: bool
    score: float
    brand_alignment_score: float
    violations: List[Violation] = field(default_factory=list)
    suggestions: List[Suggestion] = field(default_factory=list)
    rule_conflicts: List[Dict[str, Any]] = field(default_factory=list)
    passed: List[Dict[str, Any]] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[Dict[str, Any]] = field(default_factory=list)
    overridden: List[Dict[str, Any]] = field(default_factory=list)
    features: Dict[str, Any] = field(default_factory=dict)
    processing: Dict[str, Any] = field(default_factory=dict)

    @property
    def score_percent(self) -> float:
        return round(self.score * 100, 1)

    @property
    def violation_types(self) -> List[str]:
        return [v.type for v in self.violations]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_compliant": self.is_compliant,
            "score": self.score,
            "score_percent": self.score_percent,
            "brand_alignment_score": self.brand_alignment_score,
            "violations": [v.to_dict() for v in self.violations],
            "suggestions": [s.to_dict() for s in self.suggestions],
            "rule_conflicts": [dict(c) for c in self.rule_conflicts],
            "passed": [dict(o) for o in self.passed],
            "failed": [dict(o) for o in self.failed],
            "warnings": [dict(o) for o in self.warnings],
            "overridden": [dict(o) for o in self.overridden],
            "features": self.features,
            "processing": dict(self.processing),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComplianceResult":
        return cls(
            is_compliant=data["is_compliant"],
            score=data["score"],
            brand_alignment_score=data.get("brand_alignment_score", 0.0),
            violations=[Violation.from_dict(v) for v in data.get("violations", [])],
            suggestions=[Suggestion.from_dict(s) for s in data.get("suggestions", [])],
            rule_conflicts=list(data.get("rule_conflicts", [])),
            passed=list(data.get("passed", [])),
            failed=list(data.get("failed", [])),
            warnings=list(data.get("warnings", [])),
            overridden=list(data.get("overridden", [])),
            features=dict(data.get("features", {})),
            processing=dict(data.get("processing", {})),
        )


@dataclass
class BatchItemResult:
    """Outcome of one batch item: either a result or an error."""
    id: str
    result: Optional[ComplianceResult] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"id": self.id}
        if self.result is not None:
            payload["result"] = self.result.to_dict()
        if self.error is not None:
            payload["error"] = self.error
            payload["error_type"] = self.error_type
        return payload


@dataclass
class PredictedIssue:
    """A likely issue flagged while content is still being written."""
    type: str
    severity: str
    message: str
    likelihood: float
    suggestion: str = ""
    context: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity,
            "message": self.message,
            "likelihood": self.likelihood,
            "suggestion": self.suggestion,
            "context": self.context,
        }


@dataclass
class AutoFixResult:
    """Best-effort remediation output."""
    original_content: str
    fixed_content: str
    applied_fixes: List[Dict[str, Any]] = field(default_factory=list)
    unfixed: List[Violation] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.fixed_content != self.original_content

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_content": self.original_content,
            "fixed_content": self.fixed_content,
            "applied_fixes": [dict(f) for f in self.applied_fixes],
            "unfixed": [v.to_dict() for v in self.unfixed],
            "changed": self.changed,
        }
