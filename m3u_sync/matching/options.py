"""
Matching options shared by the normalizer and the track matcher.

A deployment picks exactly one matching strategy in config.yaml and every
matching pass uses it; the two strategies are never mixed.
"""

from dataclasses import dataclass
from enum import Enum


class Strategy(Enum):
    """
    How a remote track is paired with a local file.

    BEST_SCORE:
        Score every local file and keep the highest one, provided it
        reaches MIN_MATCH_SCORE. Used by the regular sync path.

    EXACT_OR_SUBSTRING:
        Take the first file whose normalized name equals the track string,
        otherwise the first one where either string contains the other.
    """
    BEST_SCORE = "best_score"
    EXACT_OR_SUBSTRING = "exact_or_substring"

    @classmethod
    def from_name(cls, name: str) -> "Strategy":
        """
        Resolve a strategy from its config name.

        Accepts the enum value ("best_score") or member name ("BEST_SCORE"),
        with '-' treated like '_'.

        Raises:
            ValueError: If the name is not a known strategy.
        """
        key = name.strip().lower().replace("-", "_")
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown matching strategy: {name!r}")


@dataclass(frozen=True)
class MatchingOptions:
    """
    Normalization toggles plus the matching strategy.

    Attributes:
        case_sensitive: Keep letter case. Default False (lower-case).
        remove_special_chars: Drop every character that is not a letter,
                              digit or whitespace. Default True.
        normalize_whitespace: Collapse whitespace runs to one space and
                              trim both ends. Default True.
        strategy: Matching strategy for this deployment.
    """
    case_sensitive: bool = False
    remove_special_chars: bool = True
    normalize_whitespace: bool = True
    strategy: Strategy = Strategy.BEST_SCORE


DEFAULT_OPTIONS = MatchingOptions()
