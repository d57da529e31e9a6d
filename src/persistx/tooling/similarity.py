"""Key similarity scoring used to rank rename candidates."""

from __future__ import annotations

import re

_SEPARATORS_RE = re.compile(r"[\s_\-]+")
_NON_KEY_RE = re.compile(r"[^a-z0-9.]")
_CAMEL_BOUNDARY_RE = re.compile(r"([a-z0-9])([A-Z])")
_TOKEN_SPLIT_RE = re.compile(r"[^a-zA-Z0-9]+")

GENERIC_KEYS = frozenset({"id", "uid", "type", "name", "key", "value"})

EDIT_WEIGHT = 0.62
TOKEN_WEIGHT = 0.32
CONTAINS_BONUS = 0.08
PREFIX_BONUS = 0.06
SHORT_TARGET_LENGTH = 3
SHORT_TARGET_PENALTY = 0.14
SHORT_TARGET_OVERLAP_PENALTY = 0.04
MAX_PENALTY = 0.18


def normalize_key(key: str) -> str:
    """Lowercase a key and strip separators and punctuation, keeping dots."""
    lowered = _SEPARATORS_RE.sub("", key.strip().lower())
    return _NON_KEY_RE.sub("", lowered)


def tokenize(key: str) -> set[str]:
    """Split a key into lowercase word tokens on camelCase and separator boundaries.

    Args:
        key (str): Field key such as `phoneNumber` or `pet_type`.

    Returns:
        set[str]: Distinct tokens.
    """
    spaced = _CAMEL_BOUNDARY_RE.sub(r"\1 \2", key.strip())
    return {part.lower() for part in _TOKEN_SPLIT_RE.split(spaced) if part}


def levenshtein(left: str, right: str) -> int:
    """Return the edit distance between two strings."""
    if left == right:
        return 0
    if not left:
        return len(right)
    if not right:
        return len(left)

    previous = list(range(len(right) + 1))
    for i, left_char in enumerate(left, start=1):
        current = [i]
        for j, right_char in enumerate(right, start=1):
            cost = 0 if left_char == right_char else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def jaccard(left: set[str], right: set[str]) -> float:
    """Return the Jaccard index of two token sets; two empty sets score 1."""
    if not left and not right:
        return 1.0
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)


def is_generic_key(key: str) -> bool:
    """Return whether a key is one of the generic names rename targets should avoid."""
    return key.lower() in GENERIC_KEYS


def short_key_penalty(added_norm: str, removed_tokens: set[str], added_tokens: set[str]) -> float:
    """Return the penalty applied when the candidate target is short or generic.

    Args:
        added_norm (str): Normalized candidate key.
        removed_tokens (set[str]): Tokens of the removed key.
        added_tokens (set[str]): Tokens of the candidate key.

    Returns:
        float: Penalty in `[0, MAX_PENALTY]`.
    """
    if added_norm not in GENERIC_KEYS and len(added_norm) > SHORT_TARGET_LENGTH:
        return 0.0
    penalty = SHORT_TARGET_OVERLAP_PENALTY if removed_tokens & added_tokens else SHORT_TARGET_PENALTY
    return min(MAX_PENALTY, penalty)


def similarity(removed: str, added: str) -> float:
    """Score how likely `added` is the new name of `removed`.

    The score blends normalized edit similarity and token overlap, adds small
    bonuses when one normalized key contains or prefixes the other, and
    subtracts a penalty for short or generic targets.

    Args:
        removed (str): Key present only in the older version.
        added (str): Key present only in the newer version.

    Returns:
        float: Score clamped to `[0, 1]`.
    """
    removed_norm = normalize_key(removed)
    added_norm = normalize_key(added)
    if removed_norm == added_norm:
        return 1.0

    max_len = max(len(removed_norm), len(added_norm)) or 1
    edit = 1 - levenshtein(removed_norm, added_norm) / max_len

    removed_tokens = tokenize(removed)
    added_tokens = tokenize(added)
    token = jaccard(removed_tokens, added_tokens)

    contains = CONTAINS_BONUS if removed_norm in added_norm or added_norm in removed_norm else 0.0
    prefix = (
        PREFIX_BONUS if removed_norm.startswith(added_norm) or added_norm.startswith(removed_norm) else 0.0
    )
    penalty = short_key_penalty(added_norm, removed_tokens, added_tokens)

    score = EDIT_WEIGHT * edit + TOKEN_WEIGHT * token + contains + prefix - penalty
    return max(0.0, min(1.0, score))
