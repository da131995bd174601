"""
Similarity scoring between a normalized track string and a filename.

Algorithm:
    1. Split both strings on whitespace, drop tokens shorter than 2 chars
    2. If either side has no tokens, the score is 0
    3. Each track token counts as matched when some filename token is a
       "word match" (see is_word_match). Filename tokens can be reused.
    4. Base score = matched track tokens / track tokens
    5. Bonus: +0.3 if both strings are identical, otherwise +0.2 if one
       contains the other. The result is capped at 1.0.

Word Match:
    - identical tokens, or
    - both at least 3 chars and one contains the other, or
    - lengths differ by at most 2 and 1 - distance/max_len >= 0.8

The edit distance is an exact Levenshtein distance (rapidfuzz, unit
costs): the 0.8 threshold is a hard pass/fail gate.
"""

from rapidfuzz.distance import Levenshtein


# Tokens shorter than this are ignored ("a", "&" leftovers, single digits)
MIN_TOKEN_LENGTH = 2

# Minimum length of both tokens for a containment match
SUBSTRING_MIN_LENGTH = 3

# Edit distance is only tried when token lengths are this close
MAX_LENGTH_DELTA = 2

# Minimum 1 - distance/max_len for two tokens to count as the same word
WORD_SIMILARITY_THRESHOLD = 0.8

# Bonuses on top of the token ratio
EXACT_MATCH_BONUS = 0.3
SUBSTRING_BONUS = 0.2


def levenshtein_distance(a: str, b: str) -> int:
    """
    Exact edit distance (insert/delete/substitute cost 1 each).

    Example:
        levenshtein_distance("kitten", "sitting")  # 3
    """
    return Levenshtein.distance(a, b)


def tokenize(text: str) -> list[str]:
    """Split on whitespace, keeping tokens of at least MIN_TOKEN_LENGTH chars."""
    return [token for token in text.split() if len(token) >= MIN_TOKEN_LENGTH]


def is_word_match(word1: str, word2: str) -> bool:
    """
    Check whether two tokens should be considered the same word.

    Args:
        word1: Token from the track string.
        word2: Token from the filename.

    Returns:
        True on equality, containment (both >= 3 chars), or an edit
        similarity of at least WORD_SIMILARITY_THRESHOLD.

    Examples:
        is_word_match("song", "song")        # True
        is_word_match("love", "lovers")      # True (containment)
        is_word_match("colour", "color")     # True (1 edit over 6 chars)
        is_word_match("rock", "roll")        # False
    """
    if word1 == word2:
        return True

    if len(word1) >= SUBSTRING_MIN_LENGTH and len(word2) >= SUBSTRING_MIN_LENGTH:
        if word1 in word2 or word2 in word1:
            return True

    if abs(len(word1) - len(word2)) <= MAX_LENGTH_DELTA:
        max_length = max(len(word1), len(word2))
        similarity = 1 - levenshtein_distance(word1, word2) / max_length
        return similarity >= WORD_SIMILARITY_THRESHOLD

    return False


def score(normalized_track: str, normalized_filename: str) -> float:
    """
    Score how well a filename matches a track, in [0, 1].

    Args:
        normalized_track: Output of normalize_track_info().
        normalized_filename: Output of normalize_filename().

    Returns:
        Similarity score. 1.0 for identical non-trivial strings.

    Example:
        score("artist1 song1", "artist1 song1")       # 1.0
        score("artistx unrelated", "completely different")  # 0.0
    """
    track_words = tokenize(normalized_track)
    file_words = tokenize(normalized_filename)

    if not track_words or not file_words:
        return 0.0

    matched_words = sum(
        1 for track_word in track_words
        if any(is_word_match(track_word, file_word) for file_word in file_words)
    )
    result = matched_words / len(track_words)

    if normalized_track == normalized_filename:
        return min(1.0, result + EXACT_MATCH_BONUS)

    if normalized_track in normalized_filename or normalized_filename in normalized_track:
        return min(1.0, result + SUBSTRING_BONUS)

    return result
