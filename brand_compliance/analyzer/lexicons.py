"""
Lexicons for Linguistic Analysis

Word lists and structural weights behind the tone, sentiment, emotion and
formality analyzers. All matching is done on lowercase tokens; entries with
a space are matched as phrases.
"""

from typing import Dict, FrozenSet, List


def _words(raw: str) -> FrozenSet[str]:
    return frozenset(w.strip() for w in raw.split(",") if w.strip())


# ============================================================================
# TONE
# ============================================================================

TONE_TAXONOMY: List[str] = [
    "professional",
    "authoritative",
    "friendly",
    "casual",
    "playful",
    "urgent",
]

TONE_MARKERS: Dict[str, FrozenSet[str]] = {
    "professional": _words("""
        solution, solutions, deliver, delivers, expertise, efficient, efficiency,
        performance, strategy, strategic, implementation, evaluation, ensure,
        ensures, provide, provides, comprehensive, reliable, quality, service,
        services, enterprise, organization, organizations, clients, client,
        optimize, professional, results, infrastructure, compliance, objectives,
        stakeholders, requirements, framework, necessitates, parameters,
        aforementioned, process, processes, operational, capabilities
    """),
    "authoritative": _words("""
        proven, leading, leader, industry-leading, research, evidence, data,
        expert, experts, certified, trusted, established, demonstrated,
        recognized, definitive, standard, guarantee, decades, authority,
        must, essential, critical, rigorous, benchmark
    """),
    "friendly": _words("""
        you, your, we, our, us, together, help, helping, happy, glad, welcome,
        thanks, thank, love, care, community, friends, family, enjoy, share,
        support, warm, hello, hi
    """),
    "casual": _words("""
        hey, cool, stuff, pretty, gonna, wanna, gotta, kinda, sorta, yeah, yep,
        nope, okay, ok, guys, folks, totally, basically, awesome, chill, super,
        grab, check, vibe, vibes
    """),
    "playful": _words("""
        fun, wow, yay, woohoo, haha, lol, oops, magic, magical, party, adventure,
        delight, delightful, sparkle, silly, giggle, surprise, playful, whimsical,
        yum, boom
    """),
    "urgent": _words("""
        now, today, hurry, immediately, urgent, limited, deadline, ends, ending,
        last, quick, quickly, fast, act, asap, expires, expiring, final, rush,
        tonight, instantly, before, miss, only
    """),
}

# Tones considered compatible with a brand's expected tone
COMPATIBLE_TONES: Dict[str, List[str]] = {
    "professional": ["professional", "formal", "authoritative"],
    "formal": ["formal", "professional", "authoritative"],
    "authoritative": ["authoritative", "professional", "formal", "expert"],
    "casual": ["casual", "conversational", "friendly", "playful"],
    "conversational": ["conversational", "casual", "friendly"],
    "friendly": ["friendly", "casual", "conversational", "warm", "playful"],
    "warm": ["warm", "friendly", "casual"],
    "playful": ["playful", "casual", "friendly"],
    "urgent": ["urgent", "authoritative"],
}


def compatible_tones(expected: str) -> List[str]:
    """Tones accepted for an expected brand tone."""
    expected = (expected or "").lower()
    return COMPATIBLE_TONES.get(expected, [expected])


# ============================================================================
# SENTIMENT
# ============================================================================

POSITIVE_WORDS: FrozenSet[str] = _words("""
    love, loves, loved, amazing, great, excellent, wonderful, fantastic, best,
    happy, happier, delighted, delight, succeed, success, successful, thrive,
    win, winning, brilliant, outstanding, superb, awesome, perfect, beautiful,
    easy, effortless, enjoy, enjoyable, exciting, excited, incredible, helpful,
    helping, help, benefit, benefits, improve, improved, grow, growth, trusted,
    reliable, proud, thank, thanks, glad, favorite, impressive, innovative,
    empower, empowering, inspiring, joy, smile, celebrate, remarkable, valuable,
    powerful, seamless, free, save, savings, secure, safe, confident
""")

NEGATIVE_WORDS: FrozenSet[str] = _words("""
    bad, terrible, awful, horrible, worst, hate, hated, poor, fail, failure,
    failed, problem, problems, issue, issues, difficult, hard, slow, broken,
    expensive, cheap, disappointing, disappointed, angry, sad, unfortunately,
    risk, risky, danger, dangerous, lose, losing, loss, worry, worried, fear,
    afraid, pain, painful, frustrating, frustrated, annoying, confusing, waste,
    wasted, complaint, complaints, mistake, mistakes, error, errors, threat,
    crisis, damage, harmful, ugly, useless, weak
""")

NEGATORS: FrozenSet[str] = _words("""
    not, no, never, none, nothing, neither, nor, without, don't, doesn't,
    didn't, isn't, aren't, wasn't, weren't, won't, can't, cannot, shouldn't,
    wouldn't, couldn't
""")

INTENSIFIERS: Dict[str, float] = {
    "very": 1.5,
    "really": 1.4,
    "extremely": 1.8,
    "incredibly": 1.7,
    "so": 1.3,
    "truly": 1.4,
    "absolutely": 1.6,
    "highly": 1.4,
    "totally": 1.3,
}


# ============================================================================
# EMOTION
# ============================================================================

EMOTION_MARKERS: Dict[str, FrozenSet[str]] = {
    "joy": _words("""
        love, happy, happiness, joy, joyful, delighted, delight, smile, glad,
        enjoy, wonderful, pleased, cheerful, celebrate, succeed, success, proud,
        grateful, thank, thanks, fun, amazing, beautiful
    """),
    "excitement": _words("""
        amazing, exciting, excited, thrilled, incredible, wow, awesome, launch,
        new, discover, unleash, fantastic, breakthrough, ready, can't wait,
        spectacular, epic, boost, revolutionary, finally
    """),
    "trust": _words("""
        trusted, trust, reliable, proven, secure, safe, guarantee, certified,
        honest, transparent, dependable, expert, experts, confidence, confident,
        protect, protected, quality, established
    """),
    "anger": _words("""
        angry, furious, outraged, hate, rage, annoyed, annoying, unacceptable,
        ridiculous, frustrated, frustrating, mad, infuriating, disgusted
    """),
    "fear": _words("""
        afraid, fear, scared, worry, worried, risk, danger, dangerous, threat,
        panic, anxious, anxiety, alarming, vulnerable, miss out, lose, losing
    """),
    "sadness": _words("""
        sad, sorry, unfortunately, lonely, loss, miss, regret, disappointed,
        disappointing, heartbroken, grief, unhappy, tragic, tears
    """),
}


# ============================================================================
# FORMALITY
# ============================================================================

FORMAL_INDICATORS: FrozenSet[str] = _words("""
    therefore, furthermore, consequently, thus, hence, moreover, accordingly,
    nevertheless, nonetheless, whereas, herein, pursuant, regarding, hereby,
    additionally, subsequently, notwithstanding, aforementioned, shall,
    respectively, approximately, sincerely, kindly, please note
""")

HEDGE_WORDS: FrozenSet[str] = _words("""
    perhaps, arguably, presumably, apparently, generally, typically, likely,
    potentially, possibly, relatively, somewhat
""")

INFORMAL_INDICATORS: FrozenSet[str] = _words("""
    gonna, wanna, gotta, kinda, sorta, yeah, yep, nope, hey, cool, stuff, guys,
    lol, omg, btw, awesome, dude, ya, y'all, ain't, totally, super
""")

TRANSITION_WORDS: FrozenSet[str] = _words("""
    however, therefore, furthermore, moreover, consequently, additionally,
    nevertheless, nonetheless, meanwhile, alternatively, subsequently, thus,
    hence, accordingly
""")


# ============================================================================
# REMEDIATION
# ============================================================================

# Fallback replacements when a brand declares no preferred term
COMMON_REPLACEMENTS: Dict[str, List[str]] = {
    "cheap": ["affordable", "value-priced", "economical"],
    "expensive": ["premium", "high-value"],
    "problem": ["challenge", "situation"],
    "problems": ["challenges", "situations"],
    "failure": ["setback", "area for improvement"],
    "guarantee": ["commitment"],
    "guaranteed": ["designed"],
    "best": ["leading"],
    "cure": ["support"],
    "cures": ["supports"],
}
