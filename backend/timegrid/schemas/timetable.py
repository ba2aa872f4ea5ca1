from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

UNASSIGNED_LABEL = "Unassigned"


class AssignedSlotOut(BaseModel):
    day: str
    period: int = Field(ge=1)
    time_range: str | None = Field(default=None, alias="timeRange")
    subject: str
    subject_code: str = Field(default="", alias="subjectCode")
    staff: str | None = None
    unassigned: bool = False
    class_name: str = Field(alias="className")
    is_lab: bool = Field(default=False, alias="isLab")

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }

    @model_validator(mode="after")
    def validate_staff_marker(self) -> "AssignedSlotOut":
        if self.unassigned and self.staff is not None:
            raise ValueError("Unassigned slots cannot name a staff member")
        if not self.unassigned and not self.staff:
            raise ValueError("Assigned slots require a staff member")
        return self

    @property
    def staff_display(self) -> str:
        return UNASSIGNED_LABEL if self.unassigned else self.staff


class ClassTimetableOut(BaseModel):
    class_name: str = Field(alias="className")
    department: str | None = None
    year: int | None = None
    section: str | None = None
    schedule: list[list[AssignedSlotOut]] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class StaffTimetableOut(BaseModel):
    staff_name: str = Field(alias="staffName")
    schedule: list[list[AssignedSlotOut]] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class UnassignedSlotOut(BaseModel):
    class_name: str = Field(alias="className")
    day: str
    period: int
    subject: str

    model_config = {"populate_by_name": True}


class UnplacedLabOut(BaseModel):
    class_name: str = Field(alias="className")
    subject: str

    model_config = {"populate_by_name": True}


class TimetableMeta(BaseModel):
    days: list[str]
    periods_per_day: int = Field(alias="periodsPerDay", ge=1)
    reserved_periods: dict[str, list[int]] = Field(default_factory=dict, alias="reservedPeriods")
    period_times: list[str] = Field(default_factory=list, alias="periodTimes")
    institution_name: str | None = Field(default=None, alias="institutionName")
    academic_year: str | None = Field(default=None, alias="academicYear")
    random_seed: int | None = Field(default=None, alias="randomSeed")
    generated_at: datetime = Field(alias="generatedAt")

    model_config = {"populate_by_name": True}


class TimetablePayload(BaseModel):
    meta: TimetableMeta
    classes: list[ClassTimetableOut] = Field(default_factory=list)
    staff: list[StaffTimetableOut] = Field(default_factory=list)
    unassigned_slots: list[UnassignedSlotOut] = Field(default_factory=list, alias="unassignedSlots")
    unplaced_labs: list[UnplacedLabOut] = Field(default_factory=list, alias="unplacedLabs")
    warnings: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


GridCellKind = Literal["class", "break", "free"]


class GridCellOut(BaseModel):
    period: int
    time_range: str | None = Field(default=None, alias="timeRange")
    kind: GridCellKind
    subject: str | None = None
    subject_code: str | None = Field(default=None, alias="subjectCode")
    staff: str | None = None
    class_name: str | None = Field(default=None, alias="className")
    is_lab: bool = Field(default=False, alias="isLab")
    unassigned: bool = False

    model_config = {"populate_by_name": True}

    @property
    def label(self) -> str:
        if self.kind == "break":
            return "Break"
        if self.kind == "free":
            return "Free"
        return self.subject or ""


class GridDayOut(BaseModel):
    day: str
    cells: list[GridCellOut] = Field(default_factory=list)


class ClassGridOut(BaseModel):
    class_name: str = Field(alias="className")
    department: str | None = None
    year: int | None = None
    section: str | None = None
    days: list[GridDayOut] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class StaffGridOut(BaseModel):
    staff_name: str = Field(alias="staffName")
    total_periods: int = Field(default=0, alias="totalPeriods", ge=0)
    days: list[GridDayOut] = Field(default_factory=list)

    model_config = {"populate_by_name": True}
