from __future__ import annotations

import math
import random
from collections import defaultdict
from collections.abc import Sequence

from timegrid.schemas.generator import SubjectSpec
from timegrid.services.schedule_types import (
    UNASSIGNED,
    AssignedSlot,
    ClassUnit,
    UnassignedSlot,
    period_time_range,
)
from timegrid.services.slot_catalog import SlotCatalog
from timegrid.services.staff_ledger import StaffLedger


def daily_subject_cap(periods_per_day: int) -> int:
    return math.ceil(periods_per_day / 3)


class RegularFillPlanner:
    def __init__(
        self,
        *,
        ledger: StaffLedger,
        periods_per_day: int,
        day_names: Sequence[str],
        rng: random.Random,
        time_ranges: Sequence[str] | None = None,
    ) -> None:
        self.ledger = ledger
        self.periods_per_day = periods_per_day
        self.day_names = list(day_names)
        self.rng = rng
        self.time_ranges = list(time_ranges or [])
        self.cap = daily_subject_cap(periods_per_day)

    def fill(
        self,
        class_unit: ClassUnit,
        subjects: Sequence[SubjectSpec],
        catalog: SlotCatalog,
        pool: Sequence[str],
    ) -> list[UnassignedSlot]:
        if not subjects or not pool:
            return []

        by_name = {}
        for subject in subjects:
            by_name.setdefault(subject.name, subject)
        day_counts: dict[str, list[int]] = defaultdict(lambda: [0] * len(self.day_names))

        slots = catalog.remaining()
        self.rng.shuffle(slots)

        unassigned: list[UnassignedSlot] = []
        for index, slot in enumerate(slots):
            subject = by_name[pool[index % len(pool)]]
            if day_counts[subject.name][slot.day] >= self.cap:
                subject = self._alternative(subjects, slot.day, day_counts) or subject

            staff = self.ledger.least_loaded(subject.candidate_staff, slot.day, [slot.period])
            day_name = self.day_names[slot.day]
            time_range = period_time_range(self.time_ranges, slot.period)
            class_unit.schedule[slot.day].append(
                AssignedSlot(
                    day=slot.day,
                    day_name=day_name,
                    period=slot.period,
                    subject=subject.name,
                    subject_code=subject.code,
                    staff=staff if staff is not None else UNASSIGNED,
                    class_name=class_unit.name,
                    time_range=time_range,
                )
            )
            if staff is None:
                unassigned.append(
                    UnassignedSlot(
                        class_name=class_unit.name,
                        day=slot.day,
                        period=slot.period,
                        subject=subject.name,
                    )
                )
            else:
                self.ledger.book(
                    staff,
                    AssignedSlot(
                        day=slot.day,
                        day_name=day_name,
                        period=slot.period,
                        subject=f"{subject.name} ({class_unit.name})",
                        subject_code=subject.code,
                        staff=staff,
                        class_name=class_unit.name,
                        time_range=time_range,
                    ),
                )
            day_counts[subject.name][slot.day] += 1
            catalog.remove(slot)
        return unassigned

    def _alternative(
        self,
        subjects: Sequence[SubjectSpec],
        day: int,
        day_counts: dict[str, list[int]],
    ) -> SubjectSpec | None:
        for subject in subjects:
            if day_counts[subject.name][day] < self.cap:
                return subject
        return None
