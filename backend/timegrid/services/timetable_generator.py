from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from time import perf_counter

from timegrid.core.exceptions import ValidationError
from timegrid.schemas.generator import GeneratorInput, SubjectSpec, parse_time_to_minutes
from timegrid.schemas.timetable import (
    AssignedSlotOut,
    ClassTimetableOut,
    StaffTimetableOut,
    TimetableMeta,
    TimetablePayload,
    UnassignedSlotOut,
    UnplacedLabOut,
)
from timegrid.services.assembler import assemble
from timegrid.services.demand_pool import build_demand_pool
from timegrid.services.lab_planner import LabPlacementPlanner
from timegrid.services.regular_planner import RegularFillPlanner
from timegrid.services.schedule_types import (
    AssignedSlot,
    ClassUnit,
    GenerationResult,
    Schedule,
    UnassignedSlot,
    UnplacedLab,
    empty_schedule,
)
from timegrid.services.slot_catalog import SlotCatalog
from timegrid.services.staff_ledger import StaffLedger

logger = logging.getLogger(__name__)


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


def period_time_ranges(day_start_time: str, period_minutes: int, periods_per_day: int) -> list[str]:
    start = parse_time_to_minutes(day_start_time)
    ranges: list[str] = []
    for index in range(periods_per_day):
        begin = start + index * period_minutes
        ranges.append(f"{minutes_to_time(begin)} - {minutes_to_time(begin + period_minutes)}")
    return ranges


def section_letters(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA, spreadsheet style."""
    letters = ""
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


def build_class_units(config: GeneratorInput) -> list[ClassUnit]:
    days = config.days_per_week
    if config.num_classes is not None:
        return [
            ClassUnit(name=f"Class {section_letters(index)}", schedule=empty_schedule(days))
            for index in range(config.num_classes)
        ]
    units: list[ClassUnit] = []
    for department in config.departments:
        for year in range(1, config.years_per_department + 1):
            for section_index in range(config.sections_per_year):
                section = section_letters(section_index)
                units.append(
                    ClassUnit(
                        name=f"{department} - Year {year} - Section {section}",
                        schedule=empty_schedule(days),
                        department=department,
                        year=year,
                        section=section,
                    )
                )
    return units


def usable_subjects(subjects: list[SubjectSpec]) -> list[SubjectSpec]:
    return [subject for subject in subjects if subject.is_usable]


class TimetableGenerator:
    """One generation run: labs then regular subjects for each class, in input order.

    All classes share a single StaffLedger, so a staff member booked for one
    class is unavailable to every later class at the same (day, period).
    """

    def __init__(self, config: GeneratorInput, rng: random.Random | None = None) -> None:
        self.config = config
        self.random = rng if rng is not None else random.Random(config.random_seed)

        self.subjects = usable_subjects(config.subjects)
        if not self.subjects:
            raise ValidationError(
                message="No valid subjects provided",
                details={"subjects": len(config.subjects)},
            )
        self.lab_subjects = [subject for subject in self.subjects if subject.is_lab]
        self.regular_subjects = [subject for subject in self.subjects if not subject.is_lab]

        self.day_names = config.day_names
        self.reserved = config.reserved_by_day_index()
        self.time_ranges = period_time_ranges(
            config.day_start_time,
            config.period_minutes,
            config.periods_per_day,
        )
        self.classes = build_class_units(config)

        staff_names: list[str] = []
        for subject in self.subjects:
            for name in subject.candidate_staff:
                if name not in staff_names:
                    staff_names.append(name)
        self.ledger = StaffLedger.for_staff(staff_names, config.days_per_week)

        self.lab_planner = LabPlacementPlanner(
            ledger=self.ledger,
            days_per_week=config.days_per_week,
            periods_per_day=config.periods_per_day,
            day_names=self.day_names,
            reserved_periods=self.reserved,
            time_ranges=self.time_ranges,
        )
        self.regular_planner = RegularFillPlanner(
            ledger=self.ledger,
            periods_per_day=config.periods_per_day,
            day_names=self.day_names,
            rng=self.random,
            time_ranges=self.time_ranges,
        )

    def run(self) -> GenerationResult:
        logger.info(
            "Timetable run classes=%s subjects=%s labs=%s staff=%s days=%s periods=%s",
            len(self.classes),
            len(self.subjects),
            len(self.lab_subjects),
            len(self.ledger.members),
            self.config.days_per_week,
            self.config.periods_per_day,
        )
        unassigned: list[UnassignedSlot] = []
        unplaced: list[UnplacedLab] = []
        warnings: list[str] = []

        for class_unit in self.classes:
            catalog = SlotCatalog.build(
                self.config.days_per_week,
                self.config.periods_per_day,
                self.reserved,
            )
            class_unplaced = self.lab_planner.place(class_unit, self.lab_subjects, catalog)
            unplaced.extend(class_unplaced)
            for item in class_unplaced:
                warnings.append(f"Could not place lab subject {item.subject} for {item.class_name}")

            if not self.regular_subjects:
                if len(catalog):
                    warnings.append(
                        f"{class_unit.name} has {len(catalog)} free period(s): no regular subjects to fill them"
                    )
                continue
            pool = build_demand_pool(self.regular_subjects, len(catalog), self.random)
            unassigned.extend(self.regular_planner.fill(class_unit, self.regular_subjects, catalog, pool))

        if unassigned:
            logger.warning(
                "Unassigned slots detected count=%s classes=%s",
                len(unassigned),
                len({item.class_name for item in unassigned}),
            )
            warnings.append(f"{len(unassigned)} slot(s) have no free staff member")

        return assemble(
            self.classes,
            self.ledger,
            unassigned_slots=unassigned,
            unplaced_labs=unplaced,
            warnings=warnings,
        )


def generate(config: GeneratorInput, rng: random.Random | None = None) -> GenerationResult:
    return TimetableGenerator(config, rng=rng).run()


def _slot_out(slot: AssignedSlot) -> AssignedSlotOut:
    return AssignedSlotOut(
        day=slot.day_name,
        period=slot.period,
        time_range=slot.time_range,
        subject=slot.subject,
        subject_code=slot.subject_code,
        staff=None if slot.is_unassigned else slot.staff,
        unassigned=slot.is_unassigned,
        class_name=slot.class_name,
        is_lab=slot.is_lab,
    )


def _schedule_out(schedule: Schedule) -> list[list[AssignedSlotOut]]:
    return [[_slot_out(slot) for slot in day_slots] for day_slots in schedule]


def to_payload(config: GeneratorInput, result: GenerationResult) -> TimetablePayload:
    day_names = config.day_names
    return TimetablePayload(
        meta=TimetableMeta(
            days=day_names,
            periods_per_day=config.periods_per_day,
            reserved_periods={day: periods for day, periods in config.reserved_periods.items() if periods},
            period_times=period_time_ranges(config.day_start_time, config.period_minutes, config.periods_per_day),
            institution_name=config.institution_name,
            academic_year=config.academic_year,
            random_seed=config.random_seed,
            generated_at=datetime.now(timezone.utc),
        ),
        classes=[
            ClassTimetableOut(
                class_name=item.name,
                department=item.department,
                year=item.year,
                section=item.section,
                schedule=_schedule_out(item.schedule),
            )
            for item in result.classes
        ],
        staff=[
            StaffTimetableOut(staff_name=member.name, schedule=_schedule_out(member.schedule))
            for member in result.staff
        ],
        unassigned_slots=[
            UnassignedSlotOut(
                class_name=item.class_name,
                day=day_names[item.day],
                period=item.period,
                subject=item.subject,
            )
            for item in result.unassigned_slots
        ],
        unplaced_labs=[
            UnplacedLabOut(class_name=item.class_name, subject=item.subject)
            for item in result.unplaced_labs
        ],
        warnings=list(result.warnings),
    )


def generate_payload(config: GeneratorInput, rng: random.Random | None = None) -> tuple[TimetablePayload, int]:
    started = perf_counter()
    result = generate(config, rng=rng)
    runtime_ms = int((perf_counter() - started) * 1000)
    return to_payload(config, result), runtime_ms
