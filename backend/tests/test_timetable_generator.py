import random
from collections import Counter

import pytest

from timegrid.core.exceptions import ValidationError
from timegrid.schemas.generator import GeneratorInput
from timegrid.services.schedule_types import period_time_range
from timegrid.services.timetable_generator import (
    build_class_units,
    generate,
    generate_payload,
    period_time_ranges,
    section_letters,
)


def _config(**overrides) -> GeneratorInput:
    data = {
        "numClasses": 3,
        "subjects": [
            {"name": "Mathematics", "code": "MA101", "staff": ["Dr. Rao", "Dr. Menon"]},
            {"name": "Physics", "code": "PH101", "staff": ["Dr. Iyer"]},
            {"name": "English", "code": "EN101", "staff": ["Ms. Paul", "Mr. Das"]},
            {"name": "Physics Lab", "code": "PH191", "staff": ["Dr. Iyer", "Dr. Bose"], "isLab": True, "duration": 2},
            {"name": "Workshop", "code": "WS101", "staff": ["Mr. Khan"], "isLab": True, "duration": 3},
        ],
        "reservedPeriods": {"Monday": [4], "Wed": [5]},
        "randomSeed": 2024,
    }
    data.update(overrides)
    return GeneratorInput.model_validate(data)


def _all_class_slots(result):
    return [slot for unit in result.classes for day in unit.schedule for slot in day]


def test_section_letters():
    assert section_letters(0) == "A"
    assert section_letters(25) == "Z"
    assert section_letters(26) == "AA"
    assert section_letters(27) == "AB"


def test_period_time_ranges():
    assert period_time_ranges("09:30", 45, 3) == [
        "09:30 - 10:15",
        "10:15 - 11:00",
        "11:00 - 11:45",
    ]


def test_class_units_from_departments():
    config = _config(numClasses=None, departments=["CSE", "ECE"], yearsPerDepartment=2, sectionsPerYear=2)
    units = build_class_units(config)

    assert len(units) == 8
    assert units[0].name == "CSE - Year 1 - Section A"
    assert units[3].name == "CSE - Year 2 - Section B"
    assert (units[4].department, units[4].year, units[4].section) == ("ECE", 1, "A")


def test_no_staff_double_booking_across_classes():
    result = generate(_config(numClasses=4))

    bookings = Counter(
        (slot.staff, slot.day, slot.period) for slot in _all_class_slots(result) if not slot.is_unassigned
    )
    assert bookings
    assert max(bookings.values()) == 1

    for member in result.staff:
        for day in member.schedule:
            periods = [slot.period for slot in day]
            assert len(periods) == len(set(periods))


def test_every_period_is_covered_exactly_once():
    config = _config()
    result = generate(config)
    reserved = config.reserved_by_day_index()

    for unit in result.classes:
        for day_index, day in enumerate(unit.schedule):
            periods = [slot.period for slot in day] + sorted(reserved.get(day_index, set()))
            assert sorted(periods) == list(range(1, config.periods_per_day + 1))


def test_labs_are_contiguous_and_avoid_reserved_periods():
    config = _config()
    result = generate(config)
    reserved = config.reserved_by_day_index()
    durations = {"Physics Lab": 2, "Workshop": 3}

    for unit in result.classes:
        unplaced = {item.subject for item in result.unplaced_labs if item.class_name == unit.name}
        for subject, duration in durations.items():
            if subject in unplaced:
                continue
            lab_slots = [slot for day in unit.schedule for slot in day if slot.subject == subject]
            assert len(lab_slots) == duration
            assert len({slot.day for slot in lab_slots}) == 1
            periods = [slot.period for slot in lab_slots]
            assert periods == list(range(periods[0], periods[0] + duration))
            assert not set(periods) & reserved.get(lab_slots[0].day, set())
            assert all(slot.is_lab for slot in lab_slots)


def test_staff_schedule_mirrors_class_bookings():
    result = generate(_config())

    booked = Counter(slot.staff for slot in _all_class_slots(result) if not slot.is_unassigned)
    for member in result.staff:
        mirrored = [slot for day in member.schedule for slot in day]
        assert len(mirrored) == booked[member.name]
        assert all(slot.subject.endswith(f"({slot.class_name})") for slot in mirrored)


def test_schedules_are_sorted_by_period():
    result = generate(_config())
    for unit in result.classes:
        for day in unit.schedule:
            periods = [slot.period for slot in day]
            assert periods == sorted(periods)


def test_single_class_two_subjects_fills_forty_slots():
    config = GeneratorInput(
        num_classes=1,
        subjects=[
            {"name": "Mathematics", "staff": ["Dr. Rao"]},
            {"name": "English", "staff": ["Ms. Paul"]},
        ],
        days_per_week=5,
        periods_per_day=8,
    )

    result = generate(config, rng=random.Random(5))
    slots = _all_class_slots(result)

    assert len(slots) == 40
    assert all(not slot.is_unassigned for slot in slots)
    counts = Counter(slot.subject for slot in slots)
    assert counts["Mathematics"] + counts["English"] == 40
    assert result.unassigned_slots == []


def test_single_lab_does_not_overlap_other_bookings_of_its_staff():
    config = GeneratorInput(
        num_classes=1,
        subjects=[
            {"name": "Chemistry Lab", "staff": ["Dr. Bose"], "isLab": True, "duration": 2},
            {"name": "Chemistry", "staff": ["Dr. Bose"]},
        ],
    )

    result = generate(config, rng=random.Random(9))
    unit = result.classes[0]
    lab_slots = [slot for day in unit.schedule for slot in day if slot.subject == "Chemistry Lab"]

    assert len(lab_slots) == 2
    assert lab_slots[0].day == lab_slots[1].day
    assert lab_slots[1].period == lab_slots[0].period + 1

    bose = [slot for day in result.staff[0].schedule for slot in day]
    positions = Counter((slot.day, slot.period) for slot in bose)
    assert max(positions.values()) == 1
    assert len(bose) == 40


def test_no_usable_subjects_raises_validation_error():
    config = GeneratorInput(
        num_classes=2,
        subjects=[
            {"name": "", "staff": ["Dr. Rao"]},
            {"name": "Physics", "staff": []},
            {"name": "English", "staff": ["  ", ""]},
        ],
    )

    with pytest.raises(ValidationError) as exc_info:
        generate(config)

    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "No valid subjects provided"
    assert exc_info.value.details == {"subjects": 3}


def test_unusable_subjects_are_skipped():
    config = GeneratorInput(
        num_classes=1,
        subjects=[
            {"name": "Mathematics", "staff": ["Dr. Rao"]},
            {"name": "History", "staff": []},
        ],
    )

    result = generate(config, rng=random.Random(1))

    assert {slot.subject for slot in _all_class_slots(result)} == {"Mathematics"}
    assert [member.name for member in result.staff] == ["Dr. Rao"]


def test_same_seed_gives_same_timetable():
    def grid(result):
        return [
            [[(slot.period, slot.subject, str(slot.staff)) for slot in day] for day in unit.schedule]
            for unit in result.classes
        ]

    assert grid(generate(_config())) == grid(generate(_config()))


def test_lab_only_config_reports_free_periods():
    config = GeneratorInput(
        num_classes=1,
        subjects=[{"name": "Robotics Lab", "staff": ["Mr. Khan"], "isLab": True, "duration": 3}],
        periods_per_day=4,
        days_per_week=2,
    )

    result = generate(config)

    assert len(_all_class_slots(result)) == 3
    assert result.warnings == ["Class A has 5 free period(s): no regular subjects to fill them"]


def test_unplaceable_lab_is_reported_not_raised():
    config = GeneratorInput(
        num_classes=1,
        subjects=[
            {"name": "Capstone Lab", "staff": ["Dr. Rao"], "isLab": True, "duration": 5},
            {"name": "Mathematics", "staff": ["Dr. Rao"]},
        ],
        periods_per_day=4,
    )

    result = generate(config, rng=random.Random(2))

    assert [(item.class_name, item.subject) for item in result.unplaced_labs] == [("Class A", "Capstone Lab")]
    assert "Could not place lab subject Capstone Lab for Class A" in result.warnings
    assert len(_all_class_slots(result)) == 20


def test_shortage_of_staff_is_reported_as_unassigned():
    config = GeneratorInput(num_classes=2, subjects=[{"name": "Mathematics", "staff": ["Dr. Rao"]}])

    result = generate(config, rng=random.Random(3))

    assert len(result.unassigned_slots) == 40
    assert {item.class_name for item in result.unassigned_slots} == {"Class B"}
    assert "40 slot(s) have no free staff member" in result.warnings


def test_payload_marks_unassigned_slots():
    config = GeneratorInput(
        num_classes=2,
        subjects=[{"name": "Mathematics", "code": "MA101", "staff": ["Dr. Rao"]}],
        periods_per_day=2,
        days_per_week=1,
        institution_name="Riverside College",
    )

    payload, runtime_ms = generate_payload(config, rng=random.Random(4))

    assert runtime_ms >= 0
    assert payload.meta.days == ["Monday"]
    assert payload.meta.period_times == ["09:00 - 10:00", "10:00 - 11:00"]
    assert payload.meta.institution_name == "Riverside College"
    class_b = payload.classes[1].schedule[0]
    assert all(slot.unassigned and slot.staff is None for slot in class_b)
    assert [slot.time_range for slot in class_b] == ["09:00 - 10:00", "10:00 - 11:00"]
    assert [(item.class_name, item.day) for item in payload.unassigned_slots] == [
        ("Class B", "Monday"),
        ("Class B", "Monday"),
    ]
    assert payload.staff[0].staff_name == "Dr. Rao"
    assert len(payload.staff[0].schedule[0]) == 2


def test_period_time_range_lookup():
    ranges = period_time_ranges("08:00", 50, 2)

    assert period_time_range(ranges, 1) == "08:00 - 08:50"
    assert period_time_range(ranges, 2) == "08:50 - 09:40"
    assert period_time_range(ranges, 3) is None
    assert period_time_range(ranges, 0) is None
    assert period_time_range([], 1) is None
