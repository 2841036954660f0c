"""Name comparison rules shared by the platform probes."""

from __future__ import annotations


def normalize_name(value: str) -> str:
    return value.strip().casefold()


def names_overlap(candidate: str, existing: str) -> bool:
    """Case-insensitive bidirectional substring test.

    True when either normalised name contains the other. Blank names never
    match: an empty string is a substring of everything.
    """

    left = normalize_name(candidate)
    right = normalize_name(existing)
    if not left or not right:
        return False
    return left in right or right in left


def names_equal(candidate: str, existing: str) -> bool:
    left = normalize_name(candidate)
    return bool(left) and left == normalize_name(existing)
