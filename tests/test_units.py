from __future__ import annotations

import pytest

from octo_adapter.core.errors import InvalidRequestError
from octo_adapter.core.schemas import Occupancy, Unit, UnitQuantity
from octo_adapter.core.units import resolve_units, select_units, to_unit_items, to_unit_quantities


def _unit(unit_id: str, min_age=None, max_age=None, pax_count=None) -> Unit:
    return Unit.model_validate(
        {"id": unit_id, "restrictions": {"minAge": min_age, "maxAge": max_age, "paxCount": pax_count}}
    )


UNITS = [
    _unit("adult", 18, 64, 1),
    _unit("child", 3, 17, 1),
    _unit("senior", 65, None, 1),
    _unit("family", 0, 99, 4),
]


def _ages(*ages: int) -> list[Occupancy]:
    return [Occupancy(age=a) for a in ages]


def _ids(units) -> list:
    return [u.id if u else None for u in units]


def test_single_adult_gets_adult_unit():
    assert _ids(select_units(UNITS, _ages(40))) == ["adult"]


def test_each_traveller_gets_first_admitting_unit():
    assert _ids(select_units(UNITS, _ages(40, 10, 70))) == ["adult", "child", "senior"]


def test_group_unit_covers_whole_party_when_pax_count_matches():
    assert _ids(select_units(UNITS, _ages(70, 32, 32, 14))) == ["family"]


def test_group_unit_skipped_when_party_size_differs():
    assert _ids(select_units(UNITS, _ages(40, 40, 10))) == ["adult", "adult", "child"]


def test_group_unit_skipped_when_an_age_is_out_of_bounds():
    units = [_unit("adult", 18, None, 1), _unit("duo", 18, 99, 2)]
    assert _ids(select_units(units, _ages(40, 120))) == ["adult", "adult"]


def test_single_traveller_never_gets_group_unit():
    units = [_unit("family", 0, 99, 4)]
    assert select_units(units, _ages(30)) == [None]


def test_unmatched_age_leaves_a_hole_in_position():
    assert _ids(select_units(UNITS, _ages(40, 1, 10))) == ["adult", None, "child"]


def test_unit_without_restrictions_admits_everybody():
    units = [Unit(id="general")]
    assert _ids(select_units(units, _ages(0, 99))) == ["general", "general"]


def test_resolve_units_raises_for_unmatched_occupancy():
    with pytest.raises(InvalidRequestError) as exc:
        resolve_units(UNITS, _ages(40, 1))
    assert exc.value.details == {"unmatched_occupancies": [1]}
    assert "1" in exc.value.message


def test_resolve_units_requires_occupancies():
    with pytest.raises(InvalidRequestError):
        resolve_units(UNITS, [])


def test_to_unit_quantities_keeps_first_appearance_order():
    units = resolve_units(UNITS, _ages(10, 40, 10))
    quantities = to_unit_quantities(units)
    assert [(q.unit_id, q.quantity) for q in quantities] == [("child", 2), ("adult", 1)]


def test_to_unit_items_expands_quantities():
    items = to_unit_items([UnitQuantity(unit_id="adult", quantity=2), UnitQuantity(unit_id="child")])
    assert [i.unit_id for i in items] == ["adult", "adult", "child"]
