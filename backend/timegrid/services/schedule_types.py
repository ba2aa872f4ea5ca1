from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Slot:
    day: int
    period: int


class Unassigned:
    """Marker for a slot that holds a subject but no staff member."""

    _instance: "Unassigned | None" = None

    def __new__(cls) -> "Unassigned":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNASSIGNED"

    def __bool__(self) -> bool:
        return False


UNASSIGNED = Unassigned()

StaffRef = str | Unassigned


@dataclass
class AssignedSlot:
    day: int
    day_name: str
    period: int
    subject: str
    subject_code: str
    staff: StaffRef
    class_name: str
    time_range: str | None = None
    is_lab: bool = False

    @property
    def is_unassigned(self) -> bool:
        return isinstance(self.staff, Unassigned)


Schedule = list[list[AssignedSlot]]


def empty_schedule(days_per_week: int) -> Schedule:
    return [[] for _ in range(days_per_week)]


def period_time_range(time_ranges: Sequence[str], period: int) -> str | None:
    if 1 <= period <= len(time_ranges):
        return time_ranges[period - 1]
    return None


@dataclass
class ClassUnit:
    name: str
    schedule: Schedule
    department: str | None = None
    year: int | None = None
    section: str | None = None


@dataclass
class StaffMember:
    name: str
    schedule: Schedule


@dataclass(frozen=True)
class UnassignedSlot:
    class_name: str
    day: int
    period: int
    subject: str


@dataclass(frozen=True)
class UnplacedLab:
    class_name: str
    subject: str


@dataclass
class GenerationResult:
    classes: list[ClassUnit]
    staff: list[StaffMember]
    unassigned_slots: list[UnassignedSlot] = field(default_factory=list)
    unplaced_labs: list[UnplacedLab] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
