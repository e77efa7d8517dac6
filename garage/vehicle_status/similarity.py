"""
Edit-distance similarity between vehicle names.
"""

from .normalize import normalize_name


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance with unit cost insert/delete/substitute."""
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    # Two-row dynamic programming over the shorter string
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(
                current[j - 1] + 1,       # insertion
                previous[j] + 1,          # deletion
                previous[j - 1] + cost,   # substitution
            ))
        previous = current
    return previous[-1]


def distance(a, b) -> int:
    """Edit distance between two names after normalization."""
    return levenshtein(normalize_name(a), normalize_name(b))


def similarity(a, b) -> float:
    """
    Normalized similarity of two names.

    1 - distance / longer length; 1.0 when the normalized names are equal
    (two empty names included). Returns a 0-1 score.
    """
    na = normalize_name(a)
    nb = normalize_name(b)
    if na == nb:
        return 1.0
    longest = max(len(na), len(nb))
    return 1.0 - levenshtein(na, nb) / longest
