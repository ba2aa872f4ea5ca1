from __future__ import annotations

from collections.abc import Iterable, Mapping

from timegrid.services.schedule_types import Slot


class SlotCatalog:
    """Ordered set of the (day, period) cells a class can still be taught in.

    Days are 0-based, periods 1-based. Reserved periods never enter the
    catalog; cells consumed by lab placement are removed as labs commit.
    """

    def __init__(self, slots: Iterable[Slot]) -> None:
        self._slots: list[Slot] = []
        self._members: set[Slot] = set()
        for slot in slots:
            if slot not in self._members:
                self._members.add(slot)
                self._slots.append(slot)

    @classmethod
    def build(
        cls,
        days_per_week: int,
        periods_per_day: int,
        reserved_periods: Mapping[int, Iterable[int]] | None = None,
    ) -> "SlotCatalog":
        reserved = {day: set(periods) for day, periods in (reserved_periods or {}).items()}
        return cls(
            Slot(day=day, period=period)
            for day in range(days_per_week)
            for period in range(1, periods_per_day + 1)
            if period not in reserved.get(day, ())
        )

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self):
        return iter(list(self._slots))

    def __contains__(self, slot: object) -> bool:
        return slot in self._members

    def contains_block(self, day: int, periods: Iterable[int]) -> bool:
        return all(Slot(day, period) in self._members for period in periods)

    def remove(self, slot: Slot) -> None:
        if slot not in self._members:
            return
        self._members.discard(slot)
        self._slots.remove(slot)

    def remove_block(self, day: int, periods: Iterable[int]) -> None:
        for period in periods:
            self.remove(Slot(day, period))

    def remaining(self) -> list[Slot]:
        return list(self._slots)
