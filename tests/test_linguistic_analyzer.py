"""
Tests for the linguistic analyzer.

These tests verify:
- Tone, sentiment, readability, emotion and formality behaviour
- Brand alignment and keyword density against a brand snapshot
- Determinism and FeatureBundle immutability
- Graceful degradation on empty content
- Analyzer-level violations and suggestions
"""

import pytest

from brand_compliance.analyzer import ASPECTS, FeatureBundle, LinguisticAnalyzer
from brand_compliance.analyzer.aspects import (
    analyze_emotion,
    analyze_readability,
    analyze_sentence_variety,
    analyze_sentiment,
    analyze_tone,
    detect_formality,
    message_present,
)
from brand_compliance.analyzer.text import count_syllables, find_terms, split_sentences, tokenize
from brand_compliance.errors import AnalysisDegraded, InvalidInput
from brand_compliance.models import BrandSnapshot

from .conftest import (
    ALIGNED_CONTENT,
    CASUAL_CONTENT,
    LATINATE_CONTENT,
    OFF_MESSAGE_CONTENT,
    POSITIVE_CONTENT,
    SIMPLE_CONTENT,
)


# =============================================================================
# TEXT HELPERS
# =============================================================================

class TestTextHelpers:
    """Test tokenization and matching helpers."""

    def test_split_sentences(self):
        assert split_sentences("One. Two! Three?") == ["One", "Two", "Three"]
        assert split_sentences("") == []

    def test_tokenize_drops_punctuation_and_single_letters(self):
        assert tokenize("A well-known brand, really!") == ["well", "known", "brand", "really"]

    def test_count_syllables(self):
        assert count_syllables("the") == 1
        assert count_syllables("implementation") == 5
        assert count_syllables("comprehensive") == 4

    def test_find_terms_is_word_bounded(self):
        assert find_terms("Hello there", ["hell"]) == []
        assert find_terms("Go to hell", ["hell"]) == ["hell"]
        assert find_terms("Fast  Shipping today", ["fast shipping"]) == ["fast shipping"]


# =============================================================================
# ASPECTS
# =============================================================================

class TestTone:
    """Test tone classification."""

    def test_friendly_content(self):
        result = analyze_tone(POSITIVE_CONTENT)
        assert result["primary_tone"] == "friendly"
        assert 0.0 < result["confidence"] <= 1.0

    def test_casual_content(self):
        result = analyze_tone(CASUAL_CONTENT)
        assert result["primary_tone"] == "casual"

    def test_ranked_distribution(self):
        result = analyze_tone(CASUAL_CONTENT)
        scores = [t["score"] for t in result["all_tones"]]
        assert scores == sorted(scores, reverse=True)
        assert result["all_tones"][0]["tone"] == result["primary_tone"]

    def test_no_cues_is_neutral(self):
        result = analyze_tone("The box is blue.")
        assert result["primary_tone"] == "neutral"
        assert result["confidence"] == 0.0

    def test_deterministic(self):
        assert analyze_tone(CASUAL_CONTENT) == analyze_tone(CASUAL_CONTENT)

    def test_empty_content_degrades(self):
        with pytest.raises(AnalysisDegraded):
            analyze_tone("   ")


class TestSentiment:
    """Test sentiment scoring."""

    def test_positive_exclamatory_content(self):
        result = analyze_sentiment(POSITIVE_CONTENT)
        assert result["breakdown"]["positive"] > result["breakdown"]["negative"]
        assert 0 < result["overall_score"] < 1

    def test_negative_content(self):
        result = analyze_sentiment("This is a terrible, awful problem.")
        assert result["overall_score"] < 0
        assert result["breakdown"]["negative"] == 1.0

    def test_negation_flips_polarity(self):
        plain = analyze_sentiment("This is great.")
        negated = analyze_sentiment("This is not great.")
        assert plain["overall_score"] > 0
        assert negated["overall_score"] < 0


class TestReadability:
    """Test readability metrics."""

    def test_latinate_sentence_reads_harder(self):
        hard = analyze_readability(LATINATE_CONTENT)
        easy = analyze_readability(SIMPLE_CONTENT)

        assert hard["flesch_kincaid_grade"] > easy["flesch_kincaid_grade"]
        assert hard["gunning_fog_index"] > easy["gunning_fog_index"]
        assert hard["flesch_reading_ease"] < easy["flesch_reading_ease"]
        assert hard["grade_level"] > easy["grade_level"]

    def test_letter_buckets(self):
        assert analyze_readability(SIMPLE_CONTENT)["readability_grade"] == "A"
        assert analyze_readability(LATINATE_CONTENT)["readability_grade"] == "F"

    def test_short_content_flagged(self):
        result = analyze_readability("Buy now.")
        assert result["degraded"] is True
        assert result["word_count"] == 2


class TestEmotion:
    """Test emotion detection."""

    def test_enthusiastic_content_surfaces_joy_or_excitement(self):
        result = analyze_emotion(POSITIVE_CONTENT)
        assert {"joy", "excitement"} & set(result["primary_emotions"])
        assert 0 < result["emotion_intensity"] <= 1

    def test_no_markers_is_neutral(self):
        result = analyze_emotion("The box is blue.")
        assert result["primary_emotions"] == ["neutral"]
        assert result["emotion_intensity"] == 0.0

    def test_at_most_three_primary_emotions(self):
        result = analyze_emotion("We love this amazing, trusted product but fear the risk and feel sad!")
        assert len(result["primary_emotions"]) <= 3


class TestFormality:
    """Test formality bucketing."""

    def test_formal(self):
        assert detect_formality("Therefore, the committee shall proceed accordingly.") == "formal"

    def test_informal(self):
        assert detect_formality("Hey, we're gonna grab some cool stuff, y'all!") == "informal"

    def test_tie_resolved_by_sentence_length(self):
        assert detect_formality("The box is blue.") == "moderate_informal"
        long_sentence = " ".join(["word"] * 20) + "."
        assert detect_formality(long_sentence) == "moderate_formal"

    def test_sentence_variety_stats(self):
        result = analyze_sentence_variety("One two. One two three four.")

        assert result["stats"]["mean_length"] == 3
        assert result["stats"]["std_deviation"] == 1.0
        assert result["score"] == 0.33
        assert result["variety"] == "low"

    def test_uniform_sentences_have_no_variety(self):
        result = analyze_sentence_variety("Buy it now. Ship it fast. Love it more.")
        assert result["score"] == 0.0
        assert result["variety"] == "very_low"


# =============================================================================
# BRAND-AWARE ASPECTS
# =============================================================================

class TestBrandAlignment:
    """Test key message and voice alignment."""

    def test_all_key_messages_present(self, analyzer, brand_data):
        result = analyzer.analyze_aspect(brand_data, ALIGNED_CONTENT, "brand_alignment")
        assert result["message_alignment"] == 1.0
        assert result["overall_score"] > 0.5
        assert result["missing_key_messages"] == []

    def test_no_key_messages_present(self, analyzer, brand_data):
        result = analyzer.analyze_aspect(brand_data, OFF_MESSAGE_CONTENT, "brand_alignment")
        assert result["message_alignment"] == 0.0
        assert result["incorporated_messages"] == []

    def test_partial_message_coverage(self):
        assert message_present("customer-first support", "Our support team puts every customer first.")
        assert not message_present("fast shipping", "We ship slowly.")

    def test_blend_weights_are_tunable(self, brand_data, settings):
        message_only = LinguisticAnalyzer(settings=settings.model_copy(update={
            "VOICE_ALIGNMENT_WEIGHT": 0.0,
            "MESSAGE_ALIGNMENT_WEIGHT": 1.0,
        }))
        result = message_only.analyze_aspect(brand_data, ALIGNED_CONTENT, "brand_alignment")
        assert result["overall_score"] == 1.0


class TestKeywordDensity:
    """Test keyword density."""

    def test_tracked_keywords(self, analyzer, brand_data):
        result = analyzer.analyze_aspect(brand_data, ALIGNED_CONTENT, "keyword_density")
        densities = result["keyword_densities"]

        assert set(densities) == {"fast shipping", "customer-first support", "free returns"}
        assert densities["fast shipping"]["count"] == 1
        assert densities["free returns"]["count"] == 0
        assert densities["free returns"]["status"] == "under"
        assert result["total_keywords"] == 3
        assert result["content_length"] == len(tokenize(ALIGNED_CONTENT))


# =============================================================================
# ANALYZER
# =============================================================================

class TestLinguisticAnalyzer:
    """Test the analyzer facade."""

    def test_unknown_aspect(self, analyzer, brand_data):
        with pytest.raises(InvalidInput):
            analyzer.analyze_aspect(brand_data, POSITIVE_CONTENT, "humour")

    def test_invalid_brand(self, analyzer):
        with pytest.raises(InvalidInput):
            analyzer.analyze({}, POSITIVE_CONTENT)

    def test_analyze_is_deterministic(self, analyzer, brand_data):
        first = analyzer.analyze(brand_data, POSITIVE_CONTENT)
        second = analyzer.analyze(brand_data, POSITIVE_CONTENT)
        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_analyze_aspect_is_deterministic(self, analyzer, brand_data):
        for aspect in ASPECTS:
            assert analyzer.analyze_aspect(brand_data, POSITIVE_CONTENT, aspect) == \
                analyzer.analyze_aspect(brand_data, POSITIVE_CONTENT, aspect)

    def test_empty_content_gives_neutral_results(self, analyzer, brand_data):
        for aspect in ASPECTS:
            result = analyzer.analyze_aspect(brand_data, "   ", aspect)
            assert result["degraded"] is True

        bundle = analyzer.analyze(brand_data, "")
        assert set(bundle.degraded_aspects) == set(ASPECTS)
        assert bundle.primary_tone == "neutral"
        assert bundle.sentiment["overall_score"] == 0.0

    def test_validate_empty_content_reports_nothing(self, analyzer, brand_data):
        report = analyzer.validate(brand_data, "")
        assert report.violations == []

    def test_bundle_is_immutable(self, analyzer, brand_data):
        bundle = analyzer.analyze(brand_data, POSITIVE_CONTENT)

        with pytest.raises(TypeError):
            bundle.readability["grade_level"] = 1

        copy = bundle.to_dict()
        copy["readability"]["grade_level"] = 99
        assert bundle.readability["grade_level"] != 99

    def test_bundle_paths(self, analyzer, brand_data):
        bundle = analyzer.analyze(brand_data, ALIGNED_CONTENT)
        assert bundle.get("readability.grade_level") == bundle.readability["grade_level"]
        assert bundle.get("keyword_densities.fast shipping.count") == 1
        assert bundle.get("readability.missing") is None
        assert not bundle.has("sentiment.nope")

    def test_bundle_round_trip(self, analyzer, brand_data):
        bundle = analyzer.analyze(brand_data, ALIGNED_CONTENT)
        assert FeatureBundle.from_dict(bundle.to_dict()) == bundle


class TestAnalyzerValidation:
    """Test analyzer-level violations and suggestions."""

    def test_key_message_absence(self, analyzer, brand_data):
        report = analyzer.validate(brand_data, OFF_MESSAGE_CONTENT)
        assert "key_message_absence" in [v.type for v in report.violations]

    def test_key_messages_present(self, analyzer, brand_data):
        report = analyzer.validate(brand_data, ALIGNED_CONTENT)
        assert "key_message_absence" not in [v.type for v in report.violations]
        assert report.features.alignment_score > 0.5

    def test_no_key_message_check_without_key_messages(self, analyzer, plain_brand_data):
        report = analyzer.validate(plain_brand_data, OFF_MESSAGE_CONTENT)
        assert "key_message_absence" not in [v.type for v in report.violations]

    def test_messaging_toggle(self, analyzer, brand_data):
        report = analyzer.validate(brand_data, OFF_MESSAGE_CONTENT, {"validate_messaging": False})
        assert "key_message_absence" not in [v.type for v in report.violations]

    def test_tone_mismatch(self, analyzer, brand_data):
        brand_data["voice_analysis"] = {"primary_tone": "professional"}
        report = analyzer.validate(brand_data, CASUAL_CONTENT)
        mismatch = [v for v in report.violations if v.type == "tone_mismatch"]
        assert len(mismatch) == 1
        assert mismatch[0].details["actual"] == "casual"

    def test_tone_mismatch_respects_voice_toggle(self, analyzer, brand_data):
        brand_data["voice_analysis"] = {"primary_tone": "professional"}
        report = analyzer.validate(brand_data, CASUAL_CONTENT, {"enforce_brand_voice": False})
        assert "tone_mismatch" not in [v.type for v in report.violations]

    def test_readability_mismatch(self, analyzer, plain_brand_data):
        plain_brand_data["target_grade"] = 6
        report = analyzer.validate(plain_brand_data, LATINATE_CONTENT)
        mismatch = [v for v in report.violations if v.type == "readability_mismatch"]
        assert len(mismatch) == 1
        assert mismatch[0].severity == "high"
        assert "readability_adjustment" in [s.type for s in report.suggestions]

    def test_readability_within_tolerance(self, analyzer, plain_brand_data):
        plain_brand_data["target_grade"] = 6
        report = analyzer.validate(plain_brand_data, "We will check the plan today with you.")
        assert "readability_mismatch" not in [v.type for v in report.violations]

    def test_sentence_variety_suggestion(self, analyzer, plain_brand_data):
        report = analyzer.validate(plain_brand_data, "We ship fast. We ship far. We ship free.")
        assert "sentence_variety" in [s.type for s in report.suggestions]

    def test_sentiment_misalignment(self, analyzer, plain_brand_data):
        plain_brand_data["voice_analysis"] = {"sentiment_target": 0.8}
        report = analyzer.validate(plain_brand_data, "This is a terrible, awful problem.")
        assert "sentiment_misalignment" in [v.type for v in report.violations]

    def test_formality_mismatch(self, analyzer, plain_brand_data):
        plain_brand_data["voice_analysis"] = {"formality_level": "formal"}
        report = analyzer.validate(plain_brand_data, "Hey, we're gonna grab some cool stuff, y'all!")
        mismatch = [v for v in report.violations if v.type == "formality_mismatch"]
        assert len(mismatch) == 1
        assert mismatch[0].severity == "low"

    def test_accepts_snapshot_model(self, analyzer, brand_data):
        brand = BrandSnapshot.model_validate(brand_data)
        report = analyzer.validate(brand, ALIGNED_CONTENT)
        assert report.features is not None
