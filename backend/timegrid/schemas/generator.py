from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator, model_validator

from timegrid.schemas.timetable import TimetablePayload

DAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

DAY_SHORT_MAP = {
    "Mon": "Monday",
    "Tue": "Tuesday",
    "Wed": "Wednesday",
    "Thu": "Thursday",
    "Fri": "Friday",
    "Sat": "Saturday",
    "Sun": "Sunday",
}

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

MAX_PERIODS_PER_DAY = 12


def normalize_day(value: str) -> str:
    day = value.strip().title()
    return DAY_SHORT_MAP.get(day, day)


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class SubjectSpec(BaseModel):
    """One subject offered to every class.

    Subjects with an empty name or no non-empty staff entry are accepted here
    and dropped by the generator; the generator fails only when none is left.
    """

    id: str = Field(default="", max_length=64)
    name: str = Field(default="", max_length=200)
    code: str = Field(default="", max_length=50)
    staff: list[str] = Field(default_factory=list, max_length=50)
    is_lab: bool = Field(default=False, alias="isLab")
    duration: int = Field(default=1, ge=1, le=MAX_PERIODS_PER_DAY)

    model_config = {
        "populate_by_name": True,
        "frozen": True,
    }

    @field_validator("name", "code")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()

    @field_validator("staff")
    @classmethod
    def strip_staff(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value]

    @property
    def candidate_staff(self) -> list[str]:
        seen: set[str] = set()
        ordered: list[str] = []
        for item in self.staff:
            if item and item not in seen:
                seen.add(item)
                ordered.append(item)
        return ordered

    @property
    def is_usable(self) -> bool:
        return bool(self.name) and bool(self.candidate_staff)


class GeneratorInput(BaseModel):
    num_classes: int | None = Field(default=None, alias="numClasses", ge=1, le=200)
    departments: list[str] = Field(default_factory=list, max_length=50)
    years_per_department: int = Field(default=1, alias="yearsPerDepartment", ge=1, le=8)
    sections_per_year: int = Field(default=1, alias="sectionsPerYear", ge=1, le=26)
    subjects: list[SubjectSpec] = Field(default_factory=list, max_length=200)
    days_per_week: int = Field(default=5, alias="daysPerWeek", ge=1, le=len(DAY_NAMES))
    periods_per_day: int = Field(default=8, alias="periodsPerDay", ge=1, le=MAX_PERIODS_PER_DAY)
    reserved_periods: dict[str, list[int]] = Field(default_factory=dict, alias="reservedPeriods")
    day_start_time: str = Field(default="09:00", alias="dayStartTime")
    period_minutes: int = Field(default=60, alias="periodMinutes", ge=5, le=180)
    random_seed: int | None = Field(default=None, alias="randomSeed", ge=0, le=2_000_000_000)
    institution_name: str | None = Field(default=None, alias="institutionName", max_length=200)
    academic_year: str | None = Field(default=None, alias="academicYear", max_length=20)

    model_config = {
        "populate_by_name": True,
    }

    @field_validator("departments")
    @classmethod
    def clean_departments(cls, value: list[str]) -> list[str]:
        cleaned: list[str] = []
        for item in value:
            trimmed = item.strip()
            if trimmed and trimmed not in cleaned:
                cleaned.append(trimmed)
        return cleaned

    @field_validator("day_start_time")
    @classmethod
    def validate_day_start_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @field_validator("reserved_periods", mode="before")
    @classmethod
    def normalize_reserved_days(cls, value: object) -> object:
        if value is None:
            return {}
        # Malformed shapes are left for the field type check to reject.
        if not isinstance(value, dict):
            return value
        if any(periods is not None and not isinstance(periods, (list, tuple)) for periods in value.values()):
            return value
        normalized: dict[str, list] = {}
        for day, periods in value.items():
            key = normalize_day(str(day))
            normalized.setdefault(key, []).extend(periods or [])
        return normalized

    @model_validator(mode="after")
    def validate_layout(self) -> "GeneratorInput":
        by_count = self.num_classes is not None
        by_departments = bool(self.departments)
        if by_count == by_departments:
            raise ValueError("Provide either numClasses or departments, not both")

        week = set(self.day_names)
        for day, periods in self.reserved_periods.items():
            if day not in DAY_NAMES:
                raise ValueError(f"Invalid reserved day: {day}")
            if day not in week:
                raise ValueError(f"Reserved day {day} is outside the {self.days_per_week}-day week")
            invalid = sorted({p for p in periods if p < 1 or p > self.periods_per_day})
            if invalid:
                raise ValueError(
                    f"Reserved period(s) {', '.join(str(p) for p in invalid)} on {day} "
                    f"outside 1..{self.periods_per_day}"
                )
            self.reserved_periods[day] = sorted(set(periods))

        names = [subject.name for subject in self.subjects if subject.name]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate subject name(s): {', '.join(duplicates)}")

        day_end = parse_time_to_minutes(self.day_start_time) + self.periods_per_day * self.period_minutes
        if day_end > 24 * 60:
            raise ValueError("Teaching day must end before midnight")
        return self

    @property
    def day_names(self) -> list[str]:
        return list(DAY_NAMES[: self.days_per_week])

    def reserved_by_day_index(self) -> dict[int, set[int]]:
        names = self.day_names
        return {
            names.index(day): set(periods)
            for day, periods in self.reserved_periods.items()
            if periods
        }


class GenerateTimetableRequest(BaseModel):
    config: GeneratorInput
    persist: bool = True


class GenerateTimetableResponse(BaseModel):
    timetable: TimetablePayload
    persisted: bool = False
    snapshot_key: str | None = None
    runtime_ms: int = 0
