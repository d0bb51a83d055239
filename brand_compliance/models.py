"""
Brand Snapshot Models

Read-only inputs supplied by the brand configuration repository and the
request-handling layer:
- Guideline: one brand-authored policy statement
- MessagingFramework / VoiceAnalysis: messaging and voice expectations
- BrandSnapshot: everything the engine needs for one evaluation
- ComplianceConfig: per-request options
"""

import hashlib
import json
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import InvalidInput


class RuleType(str, Enum):
    """Obligation carried by a guideline."""
    MUST = "must"
    MUST_NOT = "must_not"
    SHOULD = "should"
    DONT = "dont"


# Rule types accepted from legacy guideline records
RULE_TYPE_ALIASES: Dict[str, str] = {
    "do": "must",
    "avoid": "dont",
    "prefer": "should",
    "mustnot": "must_not",
    "must-not": "must_not",
    "don't": "dont",
}

MANDATORY_RULE_TYPES = {RuleType.MUST, RuleType.MUST_NOT}


def _flatten_messages(value: Any) -> List[str]:
    """Accept a list of messages or a {group: [messages]} mapping."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, dict):
        flattened = []
        for group in value.values():
            flattened.extend(_flatten_messages(group))
        return flattened
    messages = []
    for item in value:
        messages.extend(_flatten_messages(item))
    return messages


class Guideline(BaseModel):
    """A single brand policy statement."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    category: str = "general"
    rule_type: RuleType
    priority: int = Field(50, ge=0, le=100)
    content: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    mandatory: Optional[bool] = None
    active: bool = True

    @field_validator("rule_type", mode="before")
    @classmethod
    def _normalize_rule_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            key = value.strip().lower()
            return RULE_TYPE_ALIASES.get(key, key)
        return value

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value: Any) -> Any:
        if value is None:
            return "general"
        return str(value).strip().lower() or "general"

    @property
    def is_mandatory(self) -> bool:
        if self.mandatory is not None:
            return self.mandatory
        return self.rule_type in MANDATORY_RULE_TYPES


class MessagingFramework(BaseModel):
    """Key messages, restricted vocabulary and preferred replacements."""

    model_config = ConfigDict(frozen=True)

    key_messages: List[str] = Field(default_factory=list)
    value_propositions: List[str] = Field(default_factory=list)
    restricted_terms: List[str] = Field(default_factory=list)
    preferred_terms: Dict[str, Union[str, List[str]]] = Field(default_factory=dict)
    disclaimers: Dict[str, str] = Field(default_factory=dict)

    @field_validator("key_messages", "value_propositions", mode="before")
    @classmethod
    def _flatten(cls, value: Any) -> List[str]:
        return [m.strip() for m in _flatten_messages(value) if m and m.strip()]

    def replacement_for(self, term: str) -> Optional[str]:
        """Preferred replacement for a restricted term, if the brand declares one."""
        for key, replacement in self.preferred_terms.items():
            if key.lower() == term.lower():
                if isinstance(replacement, list):
                    return replacement[0] if replacement else None
                return replacement
        return None


class VoiceAnalysis(BaseModel):
    """Most recent voice analysis recorded for the brand."""

    model_config = ConfigDict(frozen=True)

    primary_tone: Optional[str] = None
    secondary_tones: List[str] = Field(default_factory=list)
    formality_level: Optional[str] = None
    sentiment_target: Optional[float] = Field(None, ge=-1.0, le=1.0)
    emotional_targets: List[str] = Field(default_factory=list)


class BrandSnapshot(BaseModel):
    """Read-only view of a brand for one evaluation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    industry: Optional[str] = None
    guidelines: List[Guideline] = Field(default_factory=list)
    messaging_framework: MessagingFramework = Field(default_factory=MessagingFramework)
    voice_analysis: Optional[VoiceAnalysis] = None
    keywords: List[str] = Field(default_factory=list)
    target_grade: Optional[int] = Field(None, ge=1, le=20)
    version: Optional[str] = None

    @field_validator("industry", mode="before")
    @classmethod
    def _normalize_industry(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() or None
        return value

    @property
    def rules_version(self) -> str:
        """Version key for compiled rules."""
        if self.version:
            return self.version
        payload = {
            "guidelines": [g.model_dump(mode="json") for g in self.guidelines],
            "industry": self.industry,
            "restricted_terms": self.messaging_framework.restricted_terms,
        }
        return _digest(payload)

    @property
    def snapshot_version(self) -> str:
        """Version key for everything derived from the snapshot."""
        if self.version:
            return self.version
        return _digest(self.model_dump(mode="json"))

    @property
    def active_guidelines(self) -> List[Guideline]:
        return [g for g in self.guidelines if g.active]

    @property
    def key_messages(self) -> List[str]:
        return list(self.messaging_framework.key_messages)

    @property
    def expected_tone(self) -> Optional[str]:
        if self.voice_analysis and self.voice_analysis.primary_tone:
            return self.voice_analysis.primary_tone.lower()
        return None

    def target_reading_grade(self) -> Optional[int]:
        """Target grade from a readability guideline, falling back to the brand default."""
        for guideline in self.active_guidelines:
            if guideline.category == "readability" and "target_grade" in guideline.metadata:
                try:
                    return int(guideline.metadata["target_grade"])
                except (TypeError, ValueError):
                    continue
        return self.target_grade

    def expected_formality(self) -> Optional[str]:
        """Formality level declared by a style guideline or the voice analysis."""
        for guideline in self.active_guidelines:
            level = guideline.metadata.get("formality_level")
            if level:
                return str(level).lower()
        if self.voice_analysis and self.voice_analysis.formality_level:
            return self.voice_analysis.formality_level.lower()
        return None

    def tracked_keywords(self) -> List[str]:
        """Keywords tracked for density analysis, de-duplicated in order."""
        seen = set()
        keywords = []
        for keyword in (
            self.messaging_framework.key_messages
            + self.messaging_framework.value_propositions
            + self.keywords
        ):
            normalized = keyword.strip().lower()
            if normalized and normalized not in seen:
                seen.add(normalized)
                keywords.append(normalized)
        return keywords


class ComplianceConfig(BaseModel):
    """Per-request compliance options."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enforce_brand_voice: bool = True
    check_restricted_terms: bool = True
    validate_messaging: bool = True
    target_audience: Optional[str] = None
    content_type: Optional[str] = None
    channel: Optional[str] = None
    use_cache: bool = True
    timeout: Optional[float] = Field(None, gt=0)

    def to_context(self) -> Dict[str, Any]:
        """Evaluation context passed to the rule engine."""
        return {
            "content_type": self.content_type,
            "channel": self.channel,
            "target_audience": self.target_audience,
            "enforce_brand_voice": self.enforce_brand_voice,
            "check_restricted_terms": self.check_restricted_terms,
            "validate_messaging": self.validate_messaging,
        }

    def context_hash(self) -> str:
        return _digest(self.to_context())


def _digest(payload: Any) -> str:
    raw = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(raw.encode()).hexdigest()[:32]


def content_hash(content: str) -> str:
    """Stable hash of a piece of content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:32]


def coerce_brand(brand: Any) -> BrandSnapshot:
    """Validate a brand snapshot supplied as a model or a mapping."""
    if isinstance(brand, BrandSnapshot):
        return brand
    if not brand:
        raise InvalidInput("Brand snapshot is required", field="brand")
    if not isinstance(brand, dict):
        raise InvalidInput(
            f"Brand snapshot must be a mapping, got {type(brand).__name__}",
            field="brand",
        )
    try:
        return BrandSnapshot.model_validate(brand)
    except ValidationError as e:
        raise InvalidInput(f"Malformed brand snapshot: {e}", field="brand") from e


def coerce_config(config: Any) -> ComplianceConfig:
    """Validate a compliance config supplied as a model, a mapping or None."""
    if config is None:
        return ComplianceConfig()
    if isinstance(config, ComplianceConfig):
        return config
    if not isinstance(config, dict):
        raise InvalidInput(
            f"Compliance config must be a mapping, got {type(config).__name__}",
            field="config",
        )
    try:
        return ComplianceConfig.model_validate(config)
    except ValidationError as e:
        raise InvalidInput(f"Malformed compliance config: {e}", field="config") from e
