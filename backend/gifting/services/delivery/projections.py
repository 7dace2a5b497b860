# backend/gifting/services/delivery/projections.py
"""
Response shapes built from a single DayAvailability.

Both storefront endpoints read the same resolver output, so they cannot
disagree about a (city, date).
"""

from .resolver import REASON_PREPARATION_TIME, DayAvailability, ResolvedSlot, format_amount


def availability_payload(day: DayAvailability) -> dict:
    """Shape of GET /api/delivery/availability."""
    if day.fully_blocked:
        return {
            "slots": [],
            "fullyBlocked": True,
            "reason": day.holiday_reason,
            "date": day.date.isoformat(),
        }

    surcharge = None
    if day.surcharge is not None:
        surcharge = {
            "surchargeActive": True,
            "surchargeAmount": format_amount(day.surcharge.amount),
            "surchargeAppliesTo": day.surcharge.applies_to,
            "surchargeName": day.surcharge.name,
        }

    return {
        "slots": [_slot_payload(slot) for slot in day.slots],
        "fullyBlocked": False,
        "surcharge": surcharge,
        "date": day.date.isoformat(),
    }


def _slot_payload(slot: ResolvedSlot) -> dict:
    payload = {
        "id": slot.slot_id,
        "name": slot.name,
        "slug": slot.slug,
        "startTime": slot.start_time,
        "endTime": slot.end_time,
        "isAvailable": slot.is_available,
        "isFull": slot.is_full,
        "price": format_amount(slot.price),
        "priceLabel": slot.price_label,
        "reason": slot.reason,
    }
    if slot.windows is not None:
        payload["windows"] = [
            {
                "label": w.label,
                "startHour": w.start_hour,
                "endHour": w.end_hour,
                "isFull": w.is_full,
                "isAvailable": w.is_available,
            }
            for w in slot.windows
        ]
    return payload


def slots_summary_payload(day: DayAvailability, max_preparation_time: int) -> dict:
    """Shape of GET /api/delivery/slots, one entry per slot group."""
    if day.fully_blocked:
        return {
            "standard": {"available": False, "charge": 0},
            "fixedWindows": [],
            "earlyMorning": {"available": False, "charge": 0, "cutoffPassed": True},
            "express": {"available": False, "charge": 0},
            "midnight": {"available": False, "charge": 0, "cutoffPassed": True},
            "surcharge": None,
            "fullyBlocked": True,
            "holidayReason": day.holiday_reason,
            "maxPreparationTime": max_preparation_time,
        }

    by_group: dict[str, ResolvedSlot] = {}
    for slot in day.slots:
        by_group.setdefault(slot.group, slot)

    fixed = by_group.get("fixed")
    fixed_windows = []
    if fixed is not None:
        fixed_windows = [
            {
                "label": w.label,
                "start": w.start,
                "end": w.end,
                "charge": format_amount(fixed.charge),
                "available": w.is_available,
            }
            for w in fixed.windows or ()
            if w.is_available
        ]

    surcharge = None
    if day.surcharge is not None:
        surcharge = {"name": day.surcharge.name, "amount": format_amount(day.surcharge.amount)}

    return {
        "standard": _group_summary(by_group.get("standard")),
        "fixedWindows": fixed_windows,
        "earlyMorning": _group_summary(by_group.get("early-morning"), with_cutoff=True),
        "express": _group_summary(by_group.get("express")),
        "midnight": _group_summary(by_group.get("midnight"), with_cutoff=True),
        "surcharge": surcharge,
        "fullyBlocked": False,
        "holidayReason": day.holiday_reason,
        "maxPreparationTime": max_preparation_time,
    }


def _group_summary(slot: ResolvedSlot | None, with_cutoff: bool = False) -> dict:
    if slot is None:
        summary = {"available": False, "charge": 0}
        if with_cutoff:
            summary["cutoffPassed"] = True
        return summary

    summary = {"available": slot.is_available, "charge": format_amount(slot.charge)}
    if with_cutoff:
        summary["cutoffPassed"] = slot.reason == REASON_PREPARATION_TIME
    return summary
