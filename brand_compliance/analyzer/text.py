"""
Text Helper Functions

Sentence splitting, tokenization, syllable counting and phrase matching
shared by every aspect analyzer.
"""

import re
from typing import Iterable, List, Sequence


SENTENCE_SPLIT = re.compile(r"[.!?]+")
WORD_PATTERN = re.compile(r"[a-z0-9]+(?:'[a-z]+)?")
NON_WORD = re.compile(r"[^\w\s]")

STOP_WORDS = frozenset("""
    the a an and or but in on at to for of with as by that which who whom whose
    when where why how is are was were be been being it its this these those our
    your their we you they i he she them his her my me us do does did so if than
    then there here from into about all any can will would should must not no
    never always use avoid include content our
""".split())


# ============================================================================
# SENTENCES & WORDS
# ============================================================================

def split_sentences(text: str) -> List[str]:
    """Split text into non-blank sentences on terminal punctuation."""
    if not text:
        return []
    return [s.strip() for s in SENTENCE_SPLIT.split(text) if s.strip()]


def raw_sentences(text: str) -> List[str]:
    """Split text into sentences keeping their terminal punctuation."""
    if not text or not text.strip():
        return []
    parts = re.findall(r"[^.!?]+[.!?]*", text)
    return [p.strip() for p in parts if p.strip() and re.search(r"\w", p)]


def tokenize(text: str) -> List[str]:
    """
    Tokenize for readability and density metrics.

    Lowercases, replaces punctuation with spaces and drops one-letter tokens.
    """
    if not text:
        return []
    return [w for w in NON_WORD.sub(" ", text.lower()).split() if len(w) >= 2]


def words(text: str) -> List[str]:
    """Lowercase words keeping contractions intact ("don't", "we're")."""
    if not text:
        return []
    return WORD_PATTERN.findall(text.lower().replace("’", "'"))


def content_words(text: str) -> List[str]:
    """Words with stop words and short tokens removed."""
    return [w for w in tokenize(text) if w not in STOP_WORDS and len(w) >= 3]


def extract_keywords(text: str) -> List[str]:
    """Distinct content words of a statement, in first-seen order."""
    seen = set()
    keywords = []
    for word in content_words(text):
        if word not in seen:
            seen.add(word)
            keywords.append(word)
    return keywords


# ============================================================================
# SYLLABLES
# ============================================================================

def count_syllables(word: str) -> int:
    """
    Estimate syllables by counting vowel groups.

    Words of three letters or fewer count as one syllable; a trailing silent
    "e" is discounted.
    """
    if len(word) <= 3:
        return 1

    word = word.lower()
    vowels = "aeiouy"
    count = 0
    previous_was_vowel = False

    for char in word:
        is_vowel = char in vowels
        if is_vowel and not previous_was_vowel:
            count += 1
        previous_was_vowel = is_vowel

    if word.endswith("e") and count > 1:
        count -= 1

    return max(count, 1)


# ============================================================================
# MATCHING
# ============================================================================

def phrase_pattern(phrase: str) -> re.Pattern:
    """Case-insensitive, word-bounded pattern for a literal phrase."""
    escaped = r"\s+".join(re.escape(part) for part in phrase.split())
    return re.compile(rf"(?<!\w){escaped}(?!\w)", re.IGNORECASE)


def find_terms(text: str, terms: Iterable[str], regex: bool = False) -> List[str]:
    """Return the terms found in text, in the order given."""
    found = []
    for term in terms:
        if not term:
            continue
        pattern = re.compile(term, re.IGNORECASE) if regex else phrase_pattern(term)
        if pattern.search(text or ""):
            found.append(term)
    return found


def count_phrase(tokens: Sequence[str], phrase_tokens: Sequence[str]) -> int:
    """Count non-overlapping occurrences of a token sequence."""
    size = len(phrase_tokens)
    if size == 0 or size > len(tokens):
        return 0

    count = 0
    i = 0
    while i <= len(tokens) - size:
        if list(tokens[i:i + size]) == list(phrase_tokens):
            count += 1
            i += size
        else:
            i += 1
    return count


# ============================================================================
# NUMERIC
# ============================================================================

def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))
