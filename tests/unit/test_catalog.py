"""Unit tests for catalog building and identifier normalization."""

import pytest

from helpers import P1, P2, P3, P4
from lineuplab.errors import ValidationError
from lineuplab.features.catalog import build_catalog, normalize_identifier


def test_catalog_is_union_of_roster_and_available():
    catalog = build_catalog([P1, P2], [P2, P3])
    assert catalog.player_ids == (P1, P2, P3)
    assert set(catalog) == {P1, P2} | {P2, P3}


def test_available_none_and_empty_are_equivalent():
    assert build_catalog([P2, P1], None) == build_catalog([P2, P1], [])
    assert build_catalog([P2, P1]).player_ids == (P1, P2)


def test_available_only_players_are_eligible():
    catalog = build_catalog([], [P4, P3])
    assert catalog.player_ids == (P3, P4)
    assert P4 in catalog
    assert P1 not in catalog


def test_catalog_order_does_not_depend_on_input_order():
    assert build_catalog([P3, P1, P2]) == build_catalog([P2, P3, P1])


def test_roster_duplicates_are_collapsed():
    catalog = build_catalog([P1, P1, P2])
    assert len(catalog) == 2


def test_ids_are_normalized_before_merge():
    catalog = build_catalog([P1.upper()], [f"  {P1}  "])
    assert catalog.player_ids == (P1,)


def test_duplicate_available_id_is_rejected():
    with pytest.raises(ValidationError, match="duplicates"):
        build_catalog([P1], [P2, P2.upper()])


def test_malformed_ids_are_rejected():
    with pytest.raises(ValidationError):
        build_catalog(["not-a-uuid"])
    with pytest.raises(ValidationError):
        build_catalog([P1], [42])


def test_string_inputs_are_rejected():
    with pytest.raises(ValidationError):
        build_catalog(P1)
    with pytest.raises(ValidationError):
        build_catalog([P1], P2)


def test_normalize_identifier():
    assert normalize_identifier(f" {P1.upper()} ") == P1
    with pytest.raises(ValidationError, match="team_id"):
        normalize_identifier("abc", "team_id")
    with pytest.raises(ValidationError):
        normalize_identifier(None)
