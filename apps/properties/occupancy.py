"""
Building occupancy aggregation.

Turns a building's units and their tenancy histories into the occupancy,
vacancy and revenue figures shown on the building overview and vacancy
chart. Everything here works on already-loaded objects and a given day;
nothing is queried and nothing raises for inconsistent data.
"""

import logging
from datetime import timedelta

from django.conf import settings

from apps.core.dashboard_utils import ZERO, occupancy_grade, percent, to_decimal
from apps.leases import lifecycle

logger = logging.getLogger(__name__)

OCCUPIED = "occupied"
UPCOMING = "upcoming"
MAINTENANCE = "maintenance"
AVAILABLE = "available"


def _long_term_threshold():
    return settings.BILLING.get("LONG_TERM_VACANCY_DAYS", 45)


def _pick_current(unit, current, integrity_warnings):
    if len(current) == 1:
        return current[0]
    chosen = max(current, key=lambda t: t.start_date)
    logger.warning(
        "Unit %s has %d current tenancies; reporting tenancy %s",
        unit.pk, len(current), chosen.pk,
    )
    integrity_warnings.append({
        "unit_id": unit.pk,
        "unit_number": unit.unit_number,
        "tenancy_ids": [t.pk for t in current],
        "issue": "multiple_current_tenancies",
    })
    return chosen


def _last_vacated(past, today):
    ended = [t for t in past if t.end_date is not None and t.end_date < today]
    if not ended:
        return None
    return max(ended, key=lambda t: t.end_date)


def classify_unit(unit, tenancies, today, horizon_days=30, integrity_warnings=None):
    """
    Occupancy entry for one unit.

    Maintenance status wins over anything the tenancies say. Otherwise the
    unit is occupied by a current tenancy, upcoming when a future tenancy
    starts within the horizon, and available when neither applies.
    """
    if integrity_warnings is None:
        integrity_warnings = []

    for tenancy in tenancies:
        issue = lifecycle.integrity_issue(tenancy)
        if issue is not None:
            lifecycle.log_integrity_violation(tenancy)
            integrity_warnings.append({
                "unit_id": unit.pk,
                "unit_number": unit.unit_number,
                "tenancy_ids": [tenancy.pk],
                "issue": issue,
            })

    groups = lifecycle.partition_by_state(tenancies, today, warn=False)
    horizon_end = today + timedelta(days=horizon_days)
    entry = {
        "unit_id": unit.pk,
        "unit_number": unit.unit_number,
        "floor": unit.floor,
        "rent_amount": to_decimal(unit.rent_amount),
        "status": AVAILABLE,
        "current_tenancy": None,
        "upcoming_tenancy": None,
        "vacant_since": None,
        "vacancy_days": None,
        "long_term_vacant": False,
    }

    current = groups[lifecycle.CURRENT]
    if current:
        entry["current_tenancy"] = _pick_current(unit, current, integrity_warnings)

    upcoming = [t for t in groups[lifecycle.FUTURE] if t.start_date <= horizon_end]
    if upcoming:
        entry["upcoming_tenancy"] = min(upcoming, key=lambda t: t.start_date)

    if unit.is_under_maintenance:
        entry["status"] = MAINTENANCE
    elif entry["current_tenancy"] is not None:
        entry["status"] = OCCUPIED
    elif entry["upcoming_tenancy"] is not None:
        entry["status"] = UPCOMING
    else:
        last = _last_vacated(groups[lifecycle.PAST], today)
        if last is not None:
            entry["vacant_since"] = last.end_date
            entry["vacancy_days"] = (today - last.end_date).days
            entry["long_term_vacant"] = entry["vacancy_days"] > _long_term_threshold()
    return entry


def _change(entry, tenancy, change_date, today):
    return {
        "tenancy_id": tenancy.pk,
        "unit_id": entry["unit_id"],
        "unit_number": entry["unit_number"],
        "tenant_id": tenancy.tenant_id,
        "change_date": change_date,
        "days_until_change": max(0, (change_date - today).days),
        "rent_amount": to_decimal(tenancy.rent_amount),
    }


def _floor_key(floor):
    return (floor is None, floor if floor is not None else 0)


def _summarize_floors(entries):
    floors = {}
    for entry in entries:
        row = floors.setdefault(entry["floor"], {
            "floor": entry["floor"],
            "total_units": 0,
            OCCUPIED: 0,
            UPCOMING: 0,
            MAINTENANCE: 0,
            AVAILABLE: 0,
        })
        row["total_units"] += 1
        row[entry["status"]] += 1

    result = []
    for floor in sorted(floors, key=_floor_key):
        row = floors[floor]
        row["occupancy_rate"] = percent(row[OCCUPIED], row["total_units"])
        result.append(row)
    return result


def aggregate(building, units_with_tenancies, today, horizon_days=30):
    """
    Build the occupancy report for one building.

    ``units_with_tenancies`` is an iterable of ``(unit, tenancies)`` pairs.
    Every unit lands in exactly one of the occupied, upcoming, maintenance
    and available counts. Rates are percentages rounded to 2 places and are
    0 for a building with no units.
    """
    integrity_warnings = []
    entries = [
        classify_unit(unit, list(tenancies), today, horizon_days, integrity_warnings)
        for unit, tenancies in units_with_tenancies
    ]

    counts = {OCCUPIED: 0, UPCOMING: 0, MAINTENANCE: 0, AVAILABLE: 0}
    potential_revenue = ZERO
    current_revenue = ZERO
    upcoming_revenue = ZERO
    move_ins, move_outs = [], []
    horizon_end = today + timedelta(days=horizon_days)

    for entry in entries:
        counts[entry["status"]] += 1
        potential_revenue += entry["rent_amount"]
        current = entry["current_tenancy"]
        upcoming = entry["upcoming_tenancy"]

        if current is not None:
            current_revenue += to_decimal(current.rent_amount)
        if entry["status"] == UPCOMING:
            upcoming_revenue += to_decimal(upcoming.rent_amount)

        if current is not None and today < current.end_date <= horizon_end:
            move_outs.append(_change(entry, current, current.end_date, today))
        if upcoming is not None and upcoming.start_date > today:
            move_ins.append(_change(entry, upcoming, upcoming.start_date, today))

    total_units = len(entries)
    available = [e for e in entries if e["status"] == AVAILABLE]
    with_vacancy = [e for e in available if e["vacancy_days"] is not None]
    long_term_vacant = sum(1 for e in available if e["long_term_vacant"])
    longest = max(with_vacancy, key=lambda e: e["vacancy_days"], default=None)
    occupancy_rate = percent(counts[OCCUPIED], total_units)

    move_ins.sort(key=lambda c: c["change_date"])
    move_outs.sort(key=lambda c: c["change_date"])

    report = {
        "building_id": getattr(building, "pk", None),
        "building_name": getattr(building, "name", ""),
        "as_of": today,
        "horizon_days": horizon_days,
        "total_units": total_units,
        "occupied": counts[OCCUPIED],
        "upcoming": counts[UPCOMING],
        "maintenance": counts[MAINTENANCE],
        "available": counts[AVAILABLE],
        "occupancy_rate": occupancy_rate,
        "utilization_rate": percent(counts[OCCUPIED] + counts[UPCOMING], total_units),
        "potential_revenue": potential_revenue,
        "current_revenue": current_revenue,
        "upcoming_revenue": upcoming_revenue,
        "revenue_utilization": percent(current_revenue, potential_revenue),
        "long_term_vacant": long_term_vacant,
        "average_vacancy_days": (
            round(sum(e["vacancy_days"] for e in with_vacancy) / len(with_vacancy))
            if with_vacancy else 0
        ),
        "longest_vacant_unit": (
            {
                "unit_id": longest["unit_id"],
                "unit_number": longest["unit_number"],
                "vacant_since": longest["vacant_since"],
                "vacancy_days": longest["vacancy_days"],
            }
            if longest else None
        ),
        "expiring_leases": len(move_outs),
        "upcoming_changes": {
            "move_ins": move_ins,
            "move_outs": move_outs,
            "total_changes": len(move_ins) + len(move_outs),
        },
        "by_floor": _summarize_floors(entries),
        "occupancy_grade": occupancy_grade(occupancy_rate),
        "integrity_warnings": integrity_warnings,
        "units": [_unit_row(e) for e in entries],
    }
    report["alerts"] = {
        "low_occupancy": total_units > 0 and occupancy_rate < 70,
        "maintenance_backlog": counts[MAINTENANCE] > 3,
        "high_priority": long_term_vacant > 2 or report["expiring_leases"] > 0,
    }
    return report


def _unit_row(entry):
    current = entry["current_tenancy"]
    upcoming = entry["upcoming_tenancy"]
    return {
        "unit_id": entry["unit_id"],
        "unit_number": entry["unit_number"],
        "floor": entry["floor"],
        "status": entry["status"],
        "rent_amount": entry["rent_amount"],
        "current_tenancy_id": current.pk if current is not None else None,
        "upcoming_tenancy_id": upcoming.pk if upcoming is not None else None,
        "vacant_since": entry["vacant_since"],
        "vacancy_days": entry["vacancy_days"],
        "long_term_vacant": entry["long_term_vacant"],
    }


def vacancy_chart(report):
    """Available units ordered by how long they have been empty, longest first."""
    rows = [u for u in report["units"] if u["status"] == AVAILABLE]
    return sorted(
        rows,
        key=lambda u: (u["vacancy_days"] is None, -(u["vacancy_days"] or 0)),
    )
