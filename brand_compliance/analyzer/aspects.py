"""
Aspect Analyzers

Deterministic, lexicon and rule based analyzers, one per aspect:

1. Tone - taxonomy classification from word-choice and structural cues
2. Sentiment - polarity with negation, intensifiers and exclamation
3. Readability - Flesch, Flesch-Kincaid grade, Gunning Fog
4. Brand Alignment - key message coverage blended with voice match
5. Keyword Density - per tracked keyword occurrence density
6. Emotion - discrete emotions from lexical markers
7. Style - formality level, sentence variety, transitions, passive voice

Each analyzer takes raw content (plus the brand where needed) and returns a
plain dict. Analyzers raise AnalysisDegraded when the content gives them
nothing to work with; LinguisticAnalyzer converts that into a neutral result.
"""

import math
import re
import statistics
from typing import Any, Dict, FrozenSet, List, Optional, Sequence

from ..errors import AnalysisDegraded
from ..models import BrandSnapshot
from .lexicons import (
    EMOTION_MARKERS,
    FORMAL_INDICATORS,
    HEDGE_WORDS,
    INFORMAL_INDICATORS,
    INTENSIFIERS,
    NEGATIVE_WORDS,
    NEGATORS,
    POSITIVE_WORDS,
    TONE_MARKERS,
    TONE_TAXONOMY,
    TRANSITION_WORDS,
    compatible_tones,
)
from .text import (
    clamp,
    content_words,
    count_phrase,
    count_syllables,
    raw_sentences,
    split_sentences,
    tokenize,
    words,
)


EMOTIONS: List[str] = ["joy", "excitement", "trust", "anger", "fear", "sadness"]

# Readability formulas are unreliable below this many words
MIN_READABILITY_WORDS = 5

# Share of a key message's content words that must appear for a partial match
MESSAGE_COVERAGE_THRESHOLD = 0.6

# VADER-style normalisation constant for sentiment sums
SENTIMENT_ALPHA = 15.0

CONTRACTION = re.compile(r"\b\w+'(?:ll|ve|re|d|t|m)\b", re.IGNORECASE)
PASSIVE = re.compile(r"\b(?:was|were|been|being|is|are|am)\s+\w+ed\b", re.IGNORECASE)
EMOJI = re.compile("[\U0001F300-\U0001FAFF☀-➿]|:\\)|;\\)|:D")
SHOUTING = re.compile(r"\b[A-Z]{3,}\b")


def _count_markers(tokens: Sequence[str], lowered: str, markers: FrozenSet[str]) -> int:
    """Count marker hits; single words by token, phrases by substring."""
    hits = sum(1 for t in tokens if t in markers)
    for marker in markers:
        if " " in marker:
            hits += lowered.count(marker)
    return hits


# ============================================================================
# 1. TONE
# ============================================================================

def _tone_scores(text: str) -> Dict[str, float]:
    tokens = words(text)
    lowered = text.lower()
    scores = {tone: float(_count_markers(tokens, lowered, TONE_MARKERS[tone])) for tone in TONE_TAXONOMY}

    exclamations = text.count("!")
    if exclamations:
        scores["playful"] += 0.5 * exclamations
        scores["urgent"] += 0.5 * exclamations
        scores["friendly"] += 0.25 * exclamations

    scores["casual"] += 0.5 * len(CONTRACTION.findall(text))
    scores["urgent"] += len(SHOUTING.findall(text))
    scores["playful"] += len(EMOJI.findall(text))
    scores["friendly"] += 0.25 * text.count("?")

    sentences = split_sentences(text)
    if sentences:
        avg_length = len(tokens) / len(sentences)
        if avg_length >= 20:
            scores["professional"] += 1.0
            scores["authoritative"] += 0.5

    return scores


def _dominant(scores: Dict[str, float]) -> Optional[str]:
    if not any(scores.values()):
        return None
    return max(TONE_TAXONOMY, key=lambda tone: (scores[tone], -TONE_TAXONOMY.index(tone)))


def analyze_tone(content: str) -> Dict[str, Any]:
    """
    Classify content into the tone taxonomy.

    Returns:
        Dict with primary_tone, confidence, all_tones (ranked), secondary_tones
        and tone_consistency (agreement of per-sentence dominant tones)
    """
    sentences = raw_sentences(content)
    if not sentences:
        raise AnalysisDegraded("No sentences to classify", aspect="tone")

    scores = _tone_scores(content)
    total = sum(scores.values())

    if total == 0:
        return {
            "primary_tone": "neutral",
            "confidence": 0.0,
            "all_tones": [],
            "secondary_tones": [],
            "tone_consistency": 1.0,
        }

    ranked = sorted(
        ((tone, score / total) for tone, score in scores.items() if score > 0),
        key=lambda item: (-item[1], TONE_TAXONOMY.index(item[0])),
    )
    primary_tone = ranked[0][0]

    # Per-sentence dominant tones; sentences without cues don't vote
    sentence_tones = [_dominant(_tone_scores(s)) for s in sentences]
    voting = [t for t in sentence_tones if t]
    if len(voting) < 2:
        consistency = 1.0
    else:
        consistency = sum(1 for t in voting if t == primary_tone) / len(voting)

    return {
        "primary_tone": primary_tone,
        "confidence": round(ranked[0][1], 2),
        "all_tones": [{"tone": tone, "score": round(score, 3)} for tone, score in ranked],
        "secondary_tones": [tone for tone, _ in ranked[1:3]],
        "tone_consistency": round(consistency, 2),
    }


# ============================================================================
# 2. SENTIMENT
# ============================================================================

def _sentence_polarity(sentence: str) -> float:
    tokens = words(sentence)
    score = 0.0

    for i, token in enumerate(tokens):
        if token in POSITIVE_WORDS:
            value = 1.0
        elif token in NEGATIVE_WORDS:
            value = -1.0
        else:
            continue

        window = tokens[max(0, i - 3):i]
        if any(w in NEGATORS for w in window):
            value *= -0.75
        if i > 0 and tokens[i - 1] in INTENSIFIERS:
            value *= INTENSIFIERS[tokens[i - 1]]
        score += value

    if score:
        score *= 1 + 0.1 * min(sentence.count("!"), 3)

    return score


def analyze_sentiment(content: str) -> Dict[str, Any]:
    """
    Lexicon-based polarity scoring.

    Returns:
        Dict with overall_score in (-1, 1), breakdown (share of positive,
        neutral and negative sentences), sentiment_flow and matched words
    """
    sentences = raw_sentences(content)
    if not sentences:
        raise AnalysisDegraded("No sentences to score", aspect="sentiment")

    polarities = [_sentence_polarity(s) for s in sentences]
    total = sum(polarities)
    overall = total / math.sqrt(total * total + SENTIMENT_ALPHA)

    positive = sum(1 for p in polarities if p > 0.05)
    negative = sum(1 for p in polarities if p < -0.05)
    neutral = len(polarities) - positive - negative
    count = len(polarities)

    tokens = set(words(content))

    return {
        "overall_score": round(overall, 3),
        "breakdown": {
            "positive": round(positive / count, 3),
            "neutral": round(neutral / count, 3),
            "negative": round(negative / count, 3),
        },
        "sentiment_flow": [round(p, 2) for p in polarities],
        "emotional_words": {
            "positive": sorted(tokens & POSITIVE_WORDS),
            "negative": sorted(tokens & NEGATIVE_WORDS),
        },
    }


# ============================================================================
# 3. READABILITY
# ============================================================================

def grade_for_flesch(score: float) -> int:
    """Map Flesch reading ease to an approximate US school grade."""
    if score >= 90:
        return 5
    if score >= 80:
        return 6
    if score >= 70:
        return 7
    if score >= 60:
        return 8
    if score >= 50:
        return 10
    if score >= 30:
        return 13
    return 16


def letter_for_flesch(score: float) -> str:
    """Letter-grade bucket for Flesch reading ease (A = easiest)."""
    if score >= 80:
        return "A"
    if score >= 60:
        return "B"
    if score >= 50:
        return "C"
    if score >= 30:
        return "D"
    return "F"


def analyze_readability(content: str) -> Dict[str, Any]:
    """
    Compute readability metrics from syllable, word and sentence counts.

    Returns:
        Dict with flesch_reading_ease, flesch_kincaid_grade, gunning_fog_index,
        average_sentence_length, average_word_length, complex_word_percentage,
        grade_level and readability_grade
    """
    sentences = split_sentences(content)
    tokens = tokenize(content)

    if not sentences or not tokens:
        raise AnalysisDegraded("Content too short for readability formulas", aspect="readability")

    syllables = [count_syllables(w) for w in tokens]
    word_count = len(tokens)
    words_per_sentence = word_count / len(sentences)
    syllables_per_word = sum(syllables) / word_count
    complex_words = sum(1 for s in syllables if s >= 3)

    flesch = 206.835 - 1.015 * words_per_sentence - 84.6 * syllables_per_word
    kincaid = 0.39 * words_per_sentence + 11.8 * syllables_per_word - 15.59
    fog = 0.4 * (words_per_sentence + 100 * complex_words / word_count)

    result = {
        "flesch_reading_ease": round(flesch, 1),
        "flesch_kincaid_grade": round(max(kincaid, 0.0), 1),
        "gunning_fog_index": round(fog, 1),
        "average_sentence_length": round(words_per_sentence, 1),
        "average_word_length": round(sum(len(w) for w in tokens) / word_count, 1),
        "complex_word_percentage": round(complex_words / word_count * 100, 1),
        "grade_level": grade_for_flesch(flesch),
        "readability_grade": letter_for_flesch(flesch),
        "sentence_count": len(sentences),
        "word_count": word_count,
    }

    if word_count < MIN_READABILITY_WORDS:
        result["degraded"] = True
        result["degraded_reason"] = f"Only {word_count} words; scores are unreliable"

    return result


# ============================================================================
# 4. BRAND ALIGNMENT
# ============================================================================

def message_present(message: str, content: str) -> bool:
    """
    Check whether a key message is carried by the content.

    A message counts when its normalized text appears literally, or when most
    of its content words appear anywhere in the content.
    """
    message_tokens = tokenize(message)
    if not message_tokens:
        return False

    normalized_content = f" {' '.join(tokenize(content))} "
    if f" {' '.join(message_tokens)} " in normalized_content:
        return True

    key_words = set(content_words(message))
    if not key_words:
        return False
    present = key_words & set(content_words(content))
    return len(present) / len(key_words) >= MESSAGE_COVERAGE_THRESHOLD


def analyze_brand_alignment(
    brand: BrandSnapshot,
    content: str,
    tone: Dict[str, Any],
    voice_weight: float = 0.4,
    message_weight: float = 0.6,
) -> Dict[str, Any]:
    """
    Compare content with the brand's key messages and expected tone.

    Args:
        brand: Brand snapshot
        content: Raw content
        tone: Result of analyze_tone for the same content
        voice_weight: Blend weight for voice alignment
        message_weight: Blend weight for message alignment

    Returns:
        Dict with overall_score, voice_alignment, message_alignment and the
        incorporated / missing key messages
    """
    if not tokenize(content):
        raise AnalysisDegraded("No words to compare with brand messaging", aspect="brand_alignment")

    messages = brand.key_messages
    incorporated = [m for m in messages if message_present(m, content)]
    missing = [m for m in messages if m not in incorporated]

    message_alignment = len(incorporated) / len(messages) if messages else None

    expected = brand.expected_tone
    if expected is None:
        voice_alignment = None
    elif tone.get("primary_tone") in (None, "neutral"):
        voice_alignment = 0.5
    else:
        accepted = set(compatible_tones(expected))
        voice_alignment = sum(t["score"] for t in tone.get("all_tones", []) if t["tone"] in accepted)

    parts = []
    if voice_alignment is not None:
        parts.append((voice_alignment, voice_weight))
    if message_alignment is not None:
        parts.append((message_alignment, message_weight))

    total_weight = sum(w for _, w in parts)
    if parts and total_weight > 0:
        overall = sum(v * w for v, w in parts) / total_weight
    else:
        overall = 0.5

    suggestions = []
    if missing:
        suggestions.append(f"Work in key messages: {', '.join(missing[:3])}")
    if voice_alignment is not None and voice_alignment < 0.5:
        suggestions.append(f"Lean further into the brand's {expected} voice")

    return {
        "overall_score": round(clamp(overall), 3),
        "voice_alignment": round(voice_alignment, 3) if voice_alignment is not None else 0.5,
        "message_alignment": round(message_alignment, 3) if message_alignment is not None else 0.5,
        "expected_tone": expected,
        "incorporated_messages": incorporated,
        "missing_key_messages": missing,
        "improvement_suggestions": suggestions,
    }


# ============================================================================
# 5. KEYWORD DENSITY
# ============================================================================

def analyze_keyword_density(brand: BrandSnapshot, content: str) -> Dict[str, Any]:
    """
    Per-keyword occurrence density, normalized by content length.

    Returns:
        Dict with keyword_densities ({keyword: {count, density, optimal_range,
        status}}), total_keywords and content_length
    """
    tokens = tokenize(content)
    if not tokens:
        raise AnalysisDegraded("No words to measure keyword density", aspect="keyword_density")

    keywords = brand.tracked_keywords()
    key_messages = {m.lower() for m in brand.key_messages}

    densities = {}
    for keyword in keywords:
        count = count_phrase(tokens, tokenize(keyword))
        density = round(count / len(tokens) * 100, 2)

        if keyword in key_messages:
            optimal = {"min": 1.0, "max": 3.0}
        else:
            optimal = {"min": 0.5, "max": 2.0}

        if density < optimal["min"]:
            status = "under"
        elif density > optimal["max"]:
            status = "over"
        else:
            status = "optimal"

        densities[keyword] = {
            "count": count,
            "density": density,
            "optimal_range": optimal,
            "status": status,
        }

    return {
        "keyword_densities": densities,
        "total_keywords": len(keywords),
        "content_length": len(tokens),
    }


# ============================================================================
# 6. EMOTION
# ============================================================================

def analyze_emotion(content: str) -> Dict[str, Any]:
    """
    Detect discrete emotions from lexical markers.

    Returns:
        Dict with primary_emotions (ranked, at most three), emotion_intensity
        (0-1) and emotion_scores (share per emotion)
    """
    tokens = words(content)
    if not tokens:
        raise AnalysisDegraded("No words to analyze", aspect="emotion")

    lowered = content.lower()
    raw = {emotion: float(_count_markers(tokens, lowered, EMOTION_MARKERS[emotion])) for emotion in EMOTIONS}
    raw["excitement"] += min(content.count("!"), 3)

    total = sum(raw.values())
    if total == 0:
        return {
            "primary_emotions": ["neutral"],
            "emotion_intensity": 0.0,
            "emotion_scores": {},
        }

    ranked = sorted(
        (e for e in EMOTIONS if raw[e] > 0),
        key=lambda e: (-raw[e], EMOTIONS.index(e)),
    )

    return {
        "primary_emotions": ranked[:3],
        "emotion_intensity": round(clamp(total / len(tokens) * 2), 2),
        "emotion_scores": {e: round(raw[e] / total, 3) for e in ranked},
    }


# ============================================================================
# 7. STYLE
# ============================================================================

def detect_formality(content: str) -> str:
    """
    Bucket content into formal / moderate_formal / moderate_informal / informal.

    Ties (including content with no markers) are settled by average sentence
    length.
    """
    tokens = words(content)
    lowered = content.lower()

    formal = _count_markers(tokens, lowered, FORMAL_INDICATORS)
    formal += 0.5 * _count_markers(tokens, lowered, HEDGE_WORDS)
    informal = _count_markers(tokens, lowered, INFORMAL_INDICATORS)
    informal += len(CONTRACTION.findall(content))
    informal += content.count("!!")

    if formal > informal * 2:
        return "formal"
    if informal > formal * 2:
        return "informal"
    if formal > informal:
        return "moderate_formal"
    if informal > formal:
        return "moderate_informal"

    sentences = split_sentences(content)
    avg_length = len(tokens) / len(sentences) if sentences else 0
    return "moderate_formal" if avg_length >= 15 else "moderate_informal"


def analyze_sentence_variety(content: str) -> Dict[str, Any]:
    sentences = split_sentences(content)
    if not sentences:
        return {"score": 0.0, "variety": "none", "sentence_count": 0}

    lengths = [len(s.split()) for s in sentences]
    avg = statistics.mean(lengths)
    deviation = statistics.pstdev(lengths)
    score = min(deviation / avg, 1.0) if avg else 0.0

    if score < 0.2:
        label = "very_low"
    elif score < 0.4:
        label = "low"
    elif score < 0.6:
        label = "moderate"
    elif score < 0.8:
        label = "good"
    else:
        label = "excellent"

    return {
        "score": round(score, 2),
        "variety": label,
        "sentence_count": len(sentences),
        "stats": {
            "mean_length": round(avg, 1),
            "std_deviation": round(deviation, 1),
            "min_length": min(lengths),
            "max_length": max(lengths),
        },
    }


def analyze_style(content: str) -> Dict[str, Any]:
    """Formality, sentence variety, transition usage and passive voice."""
    sentences = split_sentences(content)
    if not sentences:
        raise AnalysisDegraded("No sentences to analyze", aspect="style")

    transitions = sum(1 for s in sentences if set(words(s)) & TRANSITION_WORDS)
    passive = sum(1 for s in sentences if PASSIVE.search(s))

    return {
        "formality_level": detect_formality(content),
        "sentence_variety": analyze_sentence_variety(content),
        "transition_usage": {
            "count": transitions,
            "percentage": round(transitions / len(sentences) * 100, 1),
        },
        "active_passive_ratio": {
            "active": len(sentences) - passive,
            "passive": passive,
        },
    }
