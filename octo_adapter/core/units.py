"""
Unit Selector: assigns travellers (occupancies) to purchasable units of one option.

Policy is first match, not cheapest match:
1. More than one traveller: the first group unit whose pax count equals the number of
   travellers and whose age bounds admit all of them covers the whole party.
2. Otherwise each traveller gets the first individual unit admitting their age.
"""

from __future__ import annotations

from collections.abc import Sequence

from octo_adapter.core.errors import InvalidRequestError
from octo_adapter.core.schemas import Occupancy, Unit, UnitItem, UnitQuantity


def select_units(units: Sequence[Unit], occupancies: Sequence[Occupancy]) -> list[Unit | None]:
    """
    Match occupancies to units.

    Returns:
        ``[group_unit]`` when a group unit covers everybody, otherwise one entry per
        occupancy (same order) holding the matched unit or ``None`` when no
        individual unit admits that age.
    """
    if len(occupancies) > 1:
        for unit in units:
            if unit.restrictions is None or unit.pax_count != len(occupancies):
                continue
            if all(unit.admits(o.age) for o in occupancies):
                return [unit]

    individual = [u for u in units if not u.is_group]
    return [next((u for u in individual if u.admits(o.age)), None) for o in occupancies]


def resolve_units(units: Sequence[Unit], occupancies: Sequence[Occupancy]) -> list[Unit]:
    """Like select_units, but an unmatched occupancy is an error instead of a hole."""
    if not occupancies:
        raise InvalidRequestError("at least one occupancy is required")

    selected = select_units(units, occupancies)
    missing = [ix for ix, unit in enumerate(selected) if unit is None]
    if missing:
        ages = ", ".join(str(occupancies[ix].age) for ix in missing)
        raise InvalidRequestError(
            f"no unit available for occupancy age(s): {ages}",
            details={"unmatched_occupancies": missing},
        )
    return [u for u in selected if u is not None]


def to_unit_quantities(units: Sequence[Unit]) -> list[UnitQuantity]:
    """Collapse an assignment into per-unit quantities, keeping first-appearance order."""
    counts: dict[str, int] = {}
    for unit in units:
        counts[unit.id] = counts.get(unit.id, 0) + 1
    return [UnitQuantity(unit_id=unit_id, quantity=qty) for unit_id, qty in counts.items()]


def to_unit_items(quantities: Sequence[UnitQuantity]) -> list[UnitItem]:
    """One unit item per ticket."""
    return [UnitItem(unit_id=q.unit_id) for q in quantities for _ in range(q.quantity)]
