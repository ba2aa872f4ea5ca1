from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from timegrid.schemas.generator import SubjectSpec
from timegrid.services.schedule_types import AssignedSlot, ClassUnit, UnplacedLab, period_time_range
from timegrid.services.slot_catalog import SlotCatalog
from timegrid.services.staff_ledger import StaffLedger

logger = logging.getLogger(__name__)

# Lab blocks starting inside this band of periods score higher than edge starts.
PREFERRED_START_BAND = (3, 6)
PREFERRED_START_SCORE = 10
EDGE_START_SCORE = 5
LOAD_BALANCE_CEILING = 10


@dataclass(frozen=True)
class LabBlock:
    day: int
    start: int
    duration: int

    @property
    def periods(self) -> range:
        return range(self.start, self.start + self.duration)


@dataclass(frozen=True)
class LabCandidate:
    block: LabBlock
    staff: str
    score: int
    total_load: int


def time_preference(start: int) -> int:
    low, high = PREFERRED_START_BAND
    return PREFERRED_START_SCORE if low <= start <= high else EDGE_START_SCORE


def load_balance(day_load: int) -> int:
    return max(0, LOAD_BALANCE_CEILING - day_load)


class LabPlacementPlanner:
    def __init__(
        self,
        *,
        ledger: StaffLedger,
        days_per_week: int,
        periods_per_day: int,
        day_names: Sequence[str],
        reserved_periods: Mapping[int, set[int]] | None = None,
        time_ranges: Sequence[str] | None = None,
    ) -> None:
        self.ledger = ledger
        self.days_per_week = days_per_week
        self.periods_per_day = periods_per_day
        self.day_names = list(day_names)
        self.reserved_periods = reserved_periods or {}
        self.time_ranges = list(time_ranges or [])

    def place(
        self,
        class_unit: ClassUnit,
        lab_subjects: Sequence[SubjectSpec],
        catalog: SlotCatalog,
    ) -> list[UnplacedLab]:
        """Commit the best-scoring block for each lab in order; later labs see a smaller catalog."""
        unplaced: list[UnplacedLab] = []
        for subject in lab_subjects:
            best = self.best_candidate(subject, catalog)
            if best is None:
                logger.warning(
                    "Could not place lab subject %s for %s (duration=%s)",
                    subject.name,
                    class_unit.name,
                    subject.duration,
                )
                unplaced.append(UnplacedLab(class_name=class_unit.name, subject=subject.name))
                continue
            self._commit(class_unit, subject, best, catalog)
        return unplaced

    def feasible_blocks(self, subject: SubjectSpec, catalog: SlotCatalog) -> list[LabBlock]:
        blocks: list[LabBlock] = []
        last_start = self.periods_per_day - subject.duration + 1
        for day in range(self.days_per_week):
            reserved = self.reserved_periods.get(day, set())
            for start in range(1, last_start + 1):
                block = LabBlock(day=day, start=start, duration=subject.duration)
                if any(period in reserved for period in block.periods):
                    continue
                if not catalog.contains_block(day, block.periods):
                    continue
                blocks.append(block)
        return blocks

    def candidates(self, subject: SubjectSpec, catalog: SlotCatalog) -> list[LabCandidate]:
        scored: list[LabCandidate] = []
        for block in self.feasible_blocks(subject, catalog):
            for staff in subject.candidate_staff:
                if not self.ledger.is_free_for(staff, block.day, block.periods):
                    continue
                score = time_preference(block.start) + load_balance(self.ledger.day_load(staff, block.day))
                scored.append(
                    LabCandidate(
                        block=block,
                        staff=staff,
                        score=score,
                        total_load=self.ledger.total_load(staff),
                    )
                )
        return scored

    def best_candidate(self, subject: SubjectSpec, catalog: SlotCatalog) -> LabCandidate | None:
        best: LabCandidate | None = None
        for candidate in self.candidates(subject, catalog):
            if best is None or (candidate.score, -candidate.total_load) > (best.score, -best.total_load):
                best = candidate
        return best

    def _commit(
        self,
        class_unit: ClassUnit,
        subject: SubjectSpec,
        candidate: LabCandidate,
        catalog: SlotCatalog,
    ) -> None:
        block = candidate.block
        day_name = self.day_names[block.day]
        for period in block.periods:
            time_range = period_time_range(self.time_ranges, period)
            class_unit.schedule[block.day].append(
                AssignedSlot(
                    day=block.day,
                    day_name=day_name,
                    period=period,
                    subject=subject.name,
                    subject_code=subject.code,
                    staff=candidate.staff,
                    class_name=class_unit.name,
                    time_range=time_range,
                    is_lab=True,
                )
            )
            self.ledger.book(
                candidate.staff,
                AssignedSlot(
                    day=block.day,
                    day_name=day_name,
                    period=period,
                    subject=f"{subject.name} ({class_unit.name})",
                    subject_code=subject.code,
                    staff=candidate.staff,
                    class_name=class_unit.name,
                    time_range=time_range,
                    is_lab=True,
                ),
            )
        catalog.remove_block(block.day, block.periods)
        logger.debug(
            "Placed lab %s for %s on %s periods %s-%s with %s (score=%s)",
            subject.name,
            class_unit.name,
            day_name,
            block.start,
            block.start + block.duration - 1,
            candidate.staff,
            candidate.score,
        )
