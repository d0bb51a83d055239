"""
Pytest Configuration and Shared Fixtures

Provides brand snapshots, settings and engine components shared by all
test modules.
"""

import pytest
from typing import Dict, Any

from brand_compliance.analyzer import LinguisticAnalyzer
from brand_compliance.cache import MemoryCache
from brand_compliance.config import Settings
from brand_compliance.rules import RuleCompiler
from brand_compliance.service import ComplianceService


# ============================================================================
# Sample Content
# ============================================================================

POSITIVE_CONTENT = "We love helping our amazing customers succeed!"

LATINATE_CONTENT = (
    "The aforementioned implementation necessitates comprehensive "
    "evaluation of multifaceted parameters."
)

SIMPLE_CONTENT = "We will check the plan."

ALIGNED_CONTENT = "Enjoy fast shipping and customer-first support on every order."

OFF_MESSAGE_CONTENT = "Our new collection arrives this spring."

CASUAL_CONTENT = "Hey guys, this stuff is super cool and totally awesome!"


# ============================================================================
# Settings
# ============================================================================

@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the local environment and .env file."""
    return Settings(
        _env_file=None,
        REDIS_URL=None,
        RESULT_CACHE_ENABLED=True,
        AUTO_RESOLVE_TIES=True,
        READABILITY_TOLERANCE=2,
        MAX_CONCURRENCY=3,
        REQUEST_TIMEOUT=10.0,
    )


# ============================================================================
# Brand Fixtures
# ============================================================================

@pytest.fixture
def brand_data() -> Dict[str, Any]:
    """A friendly retail brand with messaging and a few guidelines."""
    return {
        "id": "acme",
        "name": "Acme Outfitters",
        "industry": "retail",
        "guidelines": [
            {
                "id": "mention-shipping",
                "category": "messaging",
                "rule_type": "must",
                "priority": 90,
                "content": "Always mention free shipping",
                "metadata": {"terms": ["free shipping", "fast shipping"]},
            },
            {
                "id": "no-jargon",
                "category": "style",
                "rule_type": "dont",
                "priority": 30,
                "content": "Avoid corporate jargon",
                "metadata": {"terms": ["synergy", "leverage", "paradigm"]},
            },
            {
                "id": "warm-words",
                "category": "style",
                "rule_type": "should",
                "priority": 20,
                "content": "Use warm words like welcome, together and community",
                "metadata": {"terms": ["welcome", "together", "community"]},
            },
        ],
        "messaging_framework": {
            "key_messages": ["fast shipping", "customer-first support"],
            "value_propositions": ["free returns"],
            "restricted_terms": ["cheap"],
            "preferred_terms": {"cheap": "affordable"},
        },
        "voice_analysis": {"primary_tone": "friendly"},
    }


@pytest.fixture
def plain_brand_data() -> Dict[str, Any]:
    """A brand with no messaging framework and no voice analysis."""
    return {
        "id": "plain",
        "name": "Plain Co",
        "guidelines": [],
    }


@pytest.fixture
def healthcare_brand_data() -> Dict[str, Any]:
    """A healthcare brand that authored no guidelines of its own."""
    return {
        "id": "wellness",
        "name": "Wellness Labs",
        "industry": "healthcare",
        "guidelines": [],
    }


@pytest.fixture
def conflicting_brand_data() -> Dict[str, Any]:
    """Two equal-priority guidelines with contradictory obligations."""
    return {
        "id": "conflicted",
        "name": "Conflicted Inc",
        "guidelines": [
            {
                "id": "mention-free-shipping",
                "category": "content",
                "rule_type": "must",
                "priority": 60,
                "content": "Always mention free shipping",
            },
            {
                "id": "never-free-shipping",
                "category": "content",
                "rule_type": "must_not",
                "priority": 60,
                "content": "Never mention free shipping",
            },
        ],
    }


# ============================================================================
# Components
# ============================================================================

@pytest.fixture
def analyzer(settings) -> LinguisticAnalyzer:
    return LinguisticAnalyzer(settings=settings)


@pytest.fixture
def compiler(settings) -> RuleCompiler:
    return RuleCompiler(settings=settings, cache=MemoryCache())


@pytest.fixture
def service(settings) -> ComplianceService:
    return ComplianceService(
        settings=settings,
        result_cache=MemoryCache(),
        feature_cache=MemoryCache(),
    )
