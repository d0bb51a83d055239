"""
Feature Bundle

Immutable container for the output of linguistic analysis over one piece of
content. Nested values are frozen (mappings become read-only proxies, lists
become tuples) so a cached bundle can be shared across evaluations.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple


_MISSING = object()


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


@dataclass(frozen=True, eq=False)
class FeatureBundle:
    """Structured, read-only result of analyzing one piece of content."""

    data: Mapping[str, Any]
    degraded_aspects: Tuple[str, ...] = ()

    @classmethod
    def from_aspects(
        cls,
        aspects: Dict[str, Dict[str, Any]],
        degraded_aspects: Tuple[str, ...] = (),
    ) -> "FeatureBundle":
        """Flatten per-aspect results into the bundle layout."""
        tone = aspects.get("tone", {})
        density = aspects.get("keyword_density", {})
        style = aspects.get("style", {})

        data = {
            "primary_tone": tone.get("primary_tone", "neutral"),
            "tone_confidence": tone.get("confidence", 0.0),
            "all_tones": tone.get("all_tones", []),
            "secondary_tones": tone.get("secondary_tones", []),
            "tone_consistency": tone.get("tone_consistency", 0.0),
            "sentiment": aspects.get("sentiment", {}),
            "readability": aspects.get("readability", {}),
            "brand_alignment": aspects.get("brand_alignment", {}),
            "keyword_densities": density.get("keyword_densities", {}),
            "total_keywords": density.get("total_keywords", 0),
            "content_length": density.get("content_length", 0),
            "emotion": aspects.get("emotion", {}),
            "formality_level": style.get("formality_level", "moderate_formal"),
            "sentence_variety": style.get("sentence_variety", {}),
            "style": style,
        }
        return cls(data=_freeze(data), degraded_aspects=tuple(degraded_aspects))

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "FeatureBundle":
        data = {k: v for k, v in payload.items() if k != "degraded_aspects"}
        return cls(data=_freeze(data), degraded_aspects=tuple(payload.get("degraded_aspects", ())))

    def to_dict(self) -> Dict[str, Any]:
        """Deep, mutable copy of the bundle."""
        payload = _thaw(self.data)
        payload["degraded_aspects"] = list(self.degraded_aspects)
        return payload

    def get(self, path: str, default: Any = None) -> Any:
        """
        Look up a dotted feature path.

        Example:
            bundle.get("readability.grade_level")
            bundle.get("keyword_densities.fast shipping.density")
        """
        if path in self.data:
            return self.data[path]

        node: Any = self.data
        parts = path.split(".")
        i = 0
        while i < len(parts):
            if not isinstance(node, Mapping):
                return default
            # Keyword keys may contain dots; longest key wins
            for j in range(len(parts), i, -1):
                key = ".".join(parts[i:j])
                if key in node:
                    node = node[key]
                    i = j
                    break
            else:
                return default
        return node

    def has(self, path: str) -> bool:
        return self.get(path, _MISSING) is not _MISSING

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FeatureBundle):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    # Convenience accessors

    @property
    def primary_tone(self) -> str:
        return self.data["primary_tone"]

    @property
    def tone_confidence(self) -> float:
        return self.data["tone_confidence"]

    @property
    def sentiment(self) -> Mapping[str, Any]:
        return self.data["sentiment"]

    @property
    def readability(self) -> Mapping[str, Any]:
        return self.data["readability"]

    @property
    def brand_alignment(self) -> Mapping[str, Any]:
        return self.data["brand_alignment"]

    @property
    def emotion(self) -> Mapping[str, Any]:
        return self.data["emotion"]

    @property
    def formality_level(self) -> str:
        return self.data["formality_level"]

    @property
    def keyword_densities(self) -> Mapping[str, Any]:
        return self.data["keyword_densities"]

    @property
    def alignment_score(self) -> float:
        return float(self.brand_alignment.get("overall_score", 0.0))

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded_aspects)

