from __future__ import annotations

import pytest

from kickoff.domain.matching import names_equal, names_overlap, normalize_name


def test_normalize_name_strips_and_casefolds() -> None:
    assert normalize_name("  Water QUALITY  ") == "water quality"


@pytest.mark.parametrize(
    ("candidate", "existing"),
    [
        ("Water Quality", "Water Quality Dashboard"),
        ("Water Quality Dashboard", "water quality"),
        ("WATER quality dashboard", "Water Quality Dashboard"),
    ],
)
def test_names_overlap_in_either_direction(candidate: str, existing: str) -> None:
    assert names_overlap(candidate, existing)


def test_names_overlap_rejects_unrelated_names() -> None:
    assert not names_overlap("Water Quality", "Air Monitoring")


def test_blank_names_never_overlap() -> None:
    assert not names_overlap("", "Water Quality")
    assert not names_overlap("Water Quality", "   ")


def test_names_equal_is_exact_after_normalisation() -> None:
    assert names_equal("Water Quality Dashboard", " water quality dashboard ")
    assert not names_equal("Water Quality", "Water Quality Dashboard")
    assert not names_equal("", "")
