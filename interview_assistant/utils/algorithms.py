"""
String and text similarity algorithms.

Jaro-Winkler drives the fuzzy candidate search; the combined text similarity is
used by the local rubric scorer to compare an answer with a reference answer.
"""
import math
import re
from collections import Counter

MAX_PREFIX = 4
PREFIX_SCALE = 0.1
BOOST_THRESHOLD = 0.7


def jaro_similarity(s1: str, s2: str) -> float:
    """Jaro similarity between two strings, in [0, 1]."""
    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    match_window = max(len(s1), len(s2)) // 2 - 1
    s1_matches = [False] * len(s1)
    s2_matches = [False] * len(s2)

    matches = 0
    for i, char in enumerate(s1):
        start = max(0, i - match_window)
        end = min(i + match_window + 1, len(s2))
        for j in range(start, end):
            if s2_matches[j] or char != s2[j]:
                continue
            s1_matches[i] = True
            s2_matches[j] = True
            matches += 1
            break

    if matches == 0:
        return 0.0

    transpositions = 0
    k = 0
    for i, char in enumerate(s1):
        if not s1_matches[i]:
            continue
        while not s2_matches[k]:
            k += 1
        if char != s2[k]:
            transpositions += 1
        k += 1

    return (
        matches / len(s1)
        + matches / len(s2)
        + (matches - transpositions / 2) / matches
    ) / 3.0


def common_prefix_length(s1: str, s2: str, limit: int = MAX_PREFIX) -> int:
    prefix = 0
    for a, b in zip(s1[:limit], s2[:limit]):
        if a != b:
            break
        prefix += 1
    return prefix


def jaro_winkler_similarity(s1: str, s2: str) -> float:
    """
    Jaro-Winkler similarity between two strings.

    The common-prefix bonus (up to four characters) is only applied when the
    Jaro similarity already exceeds 0.7.

    Args:
        s1: First string
        s2: Second string

    Returns:
        Similarity in [0, 1]; 1.0 for identical strings, 0.0 when either is empty
    """
    jaro = jaro_similarity(s1, s2)
    if jaro < BOOST_THRESHOLD:
        return jaro
    prefix = common_prefix_length(s1, s2)
    return jaro + PREFIX_SCALE * prefix * (1 - jaro)


def levenshtein_distance(s1: str, s2: str) -> int:
    """Edit distance between two strings."""
    previous = list(range(len(s1) + 1))
    for j in range(1, len(s2) + 1):
        current = [j] + [0] * len(s1)
        for i in range(1, len(s1) + 1):
            cost = 0 if s1[i - 1] == s2[j - 1] else 1
            current[i] = min(
                current[i - 1] + 1,
                previous[i] + 1,
                previous[i - 1] + cost,
            )
        previous = current
    return previous[len(s1)]


def cosine_similarity(text1: str, text2: str) -> float:
    """Cosine similarity of the word-count vectors of two texts."""
    words1 = Counter(re.split(r"\s+", text1.lower().strip())) if text1.strip() else Counter()
    words2 = Counter(re.split(r"\s+", text2.lower().strip())) if text2.strip() else Counter()

    dot_product = sum(count * words2[word] for word, count in words1.items())
    magnitude1 = math.sqrt(sum(count * count for count in words1.values()))
    magnitude2 = math.sqrt(sum(count * count for count in words2.values()))

    if magnitude1 == 0 or magnitude2 == 0:
        return 0.0
    return dot_product / (magnitude1 * magnitude2)


def calculate_text_similarity(text1: str, text2: str) -> float:
    """Blend of Jaro-Winkler, cosine and normalised Levenshtein similarity."""
    longest = max(len(text1), len(text2))
    if longest == 0:
        return 1.0
    jaro = jaro_winkler_similarity(text1, text2)
    cosine = cosine_similarity(text1, text2)
    levenshtein = 1 - levenshtein_distance(text1, text2) / longest
    return jaro * 0.4 + cosine * 0.4 + levenshtein * 0.2
