from __future__ import annotations

from collections.abc import Sequence

from timegrid.services.schedule_types import (
    ClassUnit,
    GenerationResult,
    Schedule,
    UnassignedSlot,
    UnplacedLab,
)
from timegrid.services.staff_ledger import StaffLedger


def sort_schedule(schedule: Schedule) -> Schedule:
    for day_slots in schedule:
        day_slots.sort(key=lambda slot: slot.period)
    return schedule


def assemble(
    classes: Sequence[ClassUnit],
    ledger: StaffLedger,
    *,
    unassigned_slots: Sequence[UnassignedSlot] = (),
    unplaced_labs: Sequence[UnplacedLab] = (),
    warnings: Sequence[str] = (),
) -> GenerationResult:
    for class_unit in classes:
        sort_schedule(class_unit.schedule)
    staff = list(ledger.members.values())
    for member in staff:
        sort_schedule(member.schedule)
    return GenerationResult(
        classes=list(classes),
        staff=staff,
        unassigned_slots=list(unassigned_slots),
        unplaced_labs=list(unplaced_labs),
        warnings=list(warnings),
    )
