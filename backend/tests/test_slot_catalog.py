from timegrid.services.schedule_types import Slot
from timegrid.services.slot_catalog import SlotCatalog


def test_build_skips_reserved_periods():
    catalog = SlotCatalog.build(2, 4, {0: [2]})

    assert len(catalog) == 7
    assert Slot(0, 2) not in catalog
    assert Slot(1, 2) in catalog
    assert catalog.remaining()[:3] == [Slot(0, 1), Slot(0, 3), Slot(0, 4)]


def test_build_without_reserved_covers_whole_week():
    catalog = SlotCatalog.build(5, 8)
    assert len(catalog) == 40
    assert catalog.remaining()[0] == Slot(0, 1)
    assert catalog.remaining()[-1] == Slot(4, 8)


def test_duplicate_slots_are_kept_once():
    catalog = SlotCatalog([Slot(0, 1), Slot(0, 1), Slot(0, 2)])
    assert len(catalog) == 2


def test_remove_block_and_contains_block():
    catalog = SlotCatalog.build(1, 6)

    assert catalog.contains_block(0, range(2, 5))
    catalog.remove_block(0, range(3, 5))

    assert not catalog.contains_block(0, range(2, 5))
    assert catalog.contains_block(0, [1, 2])
    assert [slot.period for slot in catalog] == [1, 2, 5, 6]


def test_remove_missing_slot_is_noop():
    catalog = SlotCatalog.build(1, 2)
    catalog.remove(Slot(3, 9))
    assert len(catalog) == 2


def test_remaining_returns_a_copy():
    catalog = SlotCatalog.build(1, 3)
    remaining = catalog.remaining()
    remaining.clear()
    assert len(catalog) == 3
