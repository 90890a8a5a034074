"""Weekly availability grids shared by resources, groups and courses.

A timetable maps each of the seven weekday names to the ordered list of
occupied slots for that day. Slots are half-open ``[start, end)`` intervals and
must sit inside the owner's working-hours window without overlapping.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import OutOfWindowSlotError, OverlappingSlotsError, ValidationError
from app.models.mixins import WEEKDAYS, empty_timetable
from app.schemas.timetable import AvailabilityGap, TimeSlot, WorkingWindow, to_minutes


def window_of(entity: Any) -> WorkingWindow:
    return WorkingWindow(
        start_hour=entity.start_hour,
        start_minute=entity.start_minute,
        end_hour=entity.end_hour,
        end_minute=entity.end_minute,
    )


def _coerce_window(window: WorkingWindow | Mapping[str, int]) -> WorkingWindow:
    if isinstance(window, WorkingWindow):
        return window
    try:
        return WorkingWindow.model_validate(dict(window))
    except PydanticValidationError as exc:
        raise ValidationError("Invalid working-hours window", details={"errors": _errors(exc)}) from exc


def _parse_day(day: str, raw_slots: Any) -> list[TimeSlot]:
    if raw_slots is None:
        return []
    if not isinstance(raw_slots, list):
        raise ValidationError(f"Schedule for {day} must be a list of slots", details={"day": day})
    slots: list[TimeSlot] = []
    for index, raw in enumerate(raw_slots):
        if isinstance(raw, TimeSlot):
            slots.append(raw)
            continue
        try:
            slots.append(TimeSlot.model_validate(raw))
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Slot {index + 1} on {day} is malformed",
                details={"day": day, "index": index, "errors": _errors(exc)},
            ) from exc
    return slots


def validate_timetable(
    timetable: Mapping[str, Any] | None,
    window: WorkingWindow | Mapping[str, int],
) -> dict[str, list[dict]]:
    """Check ``timetable`` against ``window`` and return its normalised form.

    Missing days are filled with empty lists and each day is sorted by start
    time. Raises ``OutOfWindowSlotError`` for a slot outside the window and
    ``OverlappingSlotsError`` when two slots on one day intersect.
    """
    bounds = _coerce_window(window)
    source = dict(timetable or {})
    unknown = sorted(set(source) - set(WEEKDAYS))
    if unknown:
        raise ValidationError(f"Unknown day(s): {', '.join(unknown)}", details={"days": unknown})

    normalized = empty_timetable()
    for day in WEEKDAYS:
        slots = _parse_day(day, source.get(day))
        for index, slot in enumerate(slots):
            if slot.start < bounds.start or slot.end > bounds.end:
                raise OutOfWindowSlotError(day, index, _dump(slot), bounds.model_dump())

        ordered = sorted(slots, key=lambda item: (item.start, item.end))
        for previous, current in zip(ordered, ordered[1:]):
            if current.start < previous.end and previous.start < current.end:
                raise OverlappingSlotsError(day, _dump(previous), _dump(current))
        normalized[day] = [_dump(slot) for slot in ordered]
    return normalized


def replace_timetable(entity: Any, timetable: Mapping[str, Any] | None) -> dict[str, list[dict]]:
    """Validate against the entity's own window and swap the whole grid in one assignment."""
    normalized = validate_timetable(timetable, window_of(entity))
    entity.timetable = normalized
    return normalized


WINDOW_FIELDS = ("start_hour", "start_minute", "end_hour", "end_minute")


def apply_working_hours(entity: Any, data: dict[str, Any]) -> None:
    """Apply window/timetable keys from a partial update, consuming them from ``data``.

    A narrowed window is checked against the stored timetable, so an update can
    never leave slots outside the owner's working hours.
    """
    window_changes = {key: data.pop(key) for key in WINDOW_FIELDS if key in data}
    window_changes = {key: value for key, value in window_changes.items() if value is not None}
    new_timetable = data.pop("timetable", None)
    if not window_changes and new_timetable is None:
        return

    merged = _coerce_window({**entity.window, **window_changes})
    normalized = validate_timetable(
        new_timetable if new_timetable is not None else entity.timetable,
        merged,
    )
    for key, value in window_changes.items():
        setattr(entity, key, value)
    entity.timetable = normalized


def find_available_gaps(
    timetable: Mapping[str, Any] | None,
    window: WorkingWindow | Mapping[str, int],
    required_minutes: int,
) -> list[AvailabilityGap]:
    bounds = _coerce_window(window)
    if required_minutes < 1:
        raise ValidationError("Required duration must be at least one minute")
    source = dict(timetable or {})
    gaps: list[AvailabilityGap] = []
    for day in WEEKDAYS:
        slots = sorted(_parse_day(day, source.get(day)), key=lambda item: item.start)
        cursor = bounds.start
        for slot in slots:
            if slot.start - cursor >= required_minutes:
                gaps.append(_gap(day, cursor, slot.start - cursor))
            cursor = max(cursor, slot.end)
        if bounds.end - cursor >= required_minutes:
            gaps.append(_gap(day, cursor, bounds.end - cursor))
    return gaps


def is_time_available(
    timetable: Mapping[str, Any] | None,
    day: str,
    start_hour: int,
    start_minute: int,
    duration: int,
) -> bool:
    if day not in WEEKDAYS:
        raise ValidationError(f"Unknown day: {day}", details={"days": [day]})
    requested_start = to_minutes(start_hour, start_minute)
    requested_end = requested_start + duration
    for slot in _parse_day(day, dict(timetable or {}).get(day)):
        if requested_start < slot.end and slot.start < requested_end:
            return False
    return True


def _gap(day: str, start: int, duration: int) -> AvailabilityGap:
    return AvailabilityGap(day=day, start_hour=start // 60, start_minute=start % 60, duration=duration)


def _dump(slot: TimeSlot) -> dict:
    return slot.model_dump(mode="json", exclude_none=True)


def _errors(exc: PydanticValidationError) -> list[dict]:
    return exc.errors(include_url=False, include_context=False, include_input=False)
