from __future__ import annotations

from timegrid.schemas.timetable import (
    UNASSIGNED_LABEL,
    AssignedSlotOut,
    ClassGridOut,
    GridCellOut,
    GridDayOut,
    StaffGridOut,
    TimetableMeta,
    TimetablePayload,
)
from timegrid.services.schedule_types import period_time_range


def _grid_days(meta: TimetableMeta, schedule: list[list[AssignedSlotOut]], *, staff_view: bool) -> list[GridDayOut]:
    days: list[GridDayOut] = []
    for day_index, day in enumerate(meta.days):
        day_slots = schedule[day_index] if day_index < len(schedule) else []
        by_period = {slot.period: slot for slot in day_slots}
        reserved = set(meta.reserved_periods.get(day, []))
        cells: list[GridCellOut] = []
        for period in range(1, meta.periods_per_day + 1):
            time_range = period_time_range(meta.period_times, period)
            slot = by_period.get(period)
            if slot is not None:
                cells.append(
                    GridCellOut(
                        period=period,
                        time_range=slot.time_range or time_range,
                        kind="class",
                        subject=slot.subject,
                        subject_code=slot.subject_code or None,
                        staff=None if staff_view else (slot.staff or UNASSIGNED_LABEL),
                        class_name=slot.class_name,
                        is_lab=slot.is_lab,
                        unassigned=slot.unassigned,
                    )
                )
            elif period in reserved:
                cells.append(GridCellOut(period=period, time_range=time_range, kind="break"))
            else:
                cells.append(GridCellOut(period=period, time_range=time_range, kind="free"))
        days.append(GridDayOut(day=day, cells=cells))
    return days


def build_class_grids(payload: TimetablePayload) -> list[ClassGridOut]:
    return [
        ClassGridOut(
            class_name=item.class_name,
            department=item.department,
            year=item.year,
            section=item.section,
            days=_grid_days(payload.meta, item.schedule, staff_view=False),
        )
        for item in payload.classes
    ]


def build_staff_grids(payload: TimetablePayload) -> list[StaffGridOut]:
    grids: list[StaffGridOut] = []
    for member in payload.staff:
        days = _grid_days(payload.meta, member.schedule, staff_view=True)
        total = sum(1 for day in days for cell in day.cells if cell.kind == "class")
        grids.append(StaffGridOut(staff_name=member.staff_name, total_periods=total, days=days))
    return grids
