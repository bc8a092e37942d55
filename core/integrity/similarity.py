"""
Similarity Utilities

String-distance and numeric-deviation primitives used by fraud checks.
"""

from __future__ import annotations


def edit_distance(a: str, b: str) -> int:
    """
    Classic Levenshtein distance: unit-cost insert, delete and substitute.

    Dynamic programming over two rows.
    """
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(
                    previous[j - 1],  # substitute
                    previous[j],      # delete
                    current[j - 1],   # insert
                ))
        previous = current

    return previous[-1]


def title_similarity(a: str, b: str) -> float:
    """
    Case-insensitive normalized similarity in [0, 1].

    1 - distance / max(len(a), len(b)); two empty strings are identical.
    """
    a = (a or "").lower()
    b = (b or "").lower()
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - edit_distance(a, b) / longest


def relative_deviation(value: float, reference: float) -> float:
    """|value - reference| / reference. Reference must be non-zero."""
    if reference == 0:
        raise ZeroDivisionError("reference must be non-zero")
    return abs((value - reference) / reference)
