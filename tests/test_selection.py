"""Tests for the cumulative country selection."""

from dataclasses import replace

from conftest import make_country
from mirro.selection import SelectionSet


def test_toggle_selects_every_mirror_of_country():
    gamma = make_country("GA", "Gamma", 5)
    selection = SelectionSet().toggle(gamma)
    assert len(selection) == 5
    assert {entry.country_code for entry in selection} == {"GA"}
    assert [entry.url for entry in selection] == [m.url for m in gamma.mirrors]


def test_toggle_twice_restores():
    gamma = make_country("GA", "Gamma", 5)
    alpha = make_country("AL", "Alpha", 2)
    before = SelectionSet().toggle(alpha)
    after = before.toggle(gamma).toggle(gamma)
    assert after == before


def test_deselect_keeps_other_countries():
    alpha = make_country("AL", "Alpha", 2)
    gamma = make_country("GA", "Gamma", 5)
    selection = SelectionSet().toggle(alpha).toggle(gamma).toggle(alpha)
    assert selection.countries() == ["GA"]
    assert len(selection) == 5


def test_countries_in_selection_order():
    selection = SelectionSet()
    for code in ("FR", "DE", "AU"):
        selection = selection.toggle(make_country(code, code, 1))
    assert selection.countries() == ["FR", "DE", "AU"]


def test_empty_country_selects_nothing():
    selection = SelectionSet().toggle(make_country("BE", "Beta", 0))
    assert not selection
    assert not selection.contains("BE")


def test_snapshot_is_decoupled_from_live_data():
    gamma = make_country("GA", "Gamma", 2)
    selection = SelectionSet().toggle(gamma)
    refreshed = replace(gamma, mirrors=gamma.mirrors[:1])
    assert len(selection) == 2
    # Deselecting only needs the code, so a refreshed country still removes it.
    assert len(selection.toggle(refreshed)) == 0
