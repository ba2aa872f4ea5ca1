from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from timegrid.services.schedule_types import AssignedSlot, StaffMember, empty_schedule


@dataclass
class StaffLoad:
    daily: list[int]
    total: int = 0


@dataclass
class StaffLedger:
    """Staff schedules and booking counts shared by every class in one run.

    Both planners receive the same ledger and must consult it before every
    booking; classes are processed one after another, so no locking is done.
    """

    days_per_week: int
    members: dict[str, StaffMember] = field(default_factory=dict)
    loads: dict[str, StaffLoad] = field(default_factory=dict)

    @classmethod
    def for_staff(cls, staff_names: Iterable[str], days_per_week: int) -> "StaffLedger":
        ledger = cls(days_per_week=days_per_week)
        for name in staff_names:
            ledger.register(name)
        return ledger

    def register(self, name: str) -> None:
        if name in self.members:
            return
        self.members[name] = StaffMember(name=name, schedule=empty_schedule(self.days_per_week))
        self.loads[name] = StaffLoad(daily=[0] * self.days_per_week)

    def is_free(self, staff: str, day: int, period: int) -> bool:
        member = self.members.get(staff)
        if member is None:
            return False
        return not any(slot.period == period for slot in member.schedule[day])

    def is_free_for(self, staff: str, day: int, periods: Iterable[int]) -> bool:
        return all(self.is_free(staff, day, period) for period in periods)

    def day_load(self, staff: str, day: int) -> int:
        return self.loads[staff].daily[day]

    def total_load(self, staff: str) -> int:
        return self.loads[staff].total

    def record_booking(self, staff: str, day: int) -> None:
        load = self.loads[staff]
        load.daily[day] += 1
        load.total += 1

    def book(self, staff: str, entry: AssignedSlot) -> None:
        if not self.is_free(staff, entry.day, entry.period):
            raise ValueError(
                f"{staff} is already booked on day {entry.day} period {entry.period}"
            )
        self.members[staff].schedule[entry.day].append(entry)
        self.record_booking(staff, entry.day)

    def least_loaded(self, candidates: Sequence[str], day: int, periods: Iterable[int]) -> str | None:
        periods = list(periods)
        best: str | None = None
        for staff in candidates:
            if not self.is_free_for(staff, day, periods):
                continue
            if best is None or (self.day_load(staff, day), self.total_load(staff)) < (
                self.day_load(best, day),
                self.total_load(best),
            ):
                best = staff
        return best
