from __future__ import annotations

import random
from collections.abc import Sequence

from timegrid.schemas.generator import SubjectSpec


def subject_quotas(subjects: Sequence[SubjectSpec], target: int) -> list[tuple[SubjectSpec, int]]:
    if not subjects or target <= 0:
        return []
    base, remainder = divmod(target, len(subjects))
    return [(subject, base + (1 if index < remainder else 0)) for index, subject in enumerate(subjects)]


def build_demand_pool(
    subjects: Sequence[SubjectSpec],
    target: int,
    rng: random.Random,
) -> list[str]:
    """Return `target` subject names in shuffled order, split as evenly as possible.

    Earlier subjects absorb the remainder, one extra period each.
    """
    pool: list[str] = []
    for subject, quota in subject_quotas(subjects, target):
        pool.extend([subject.name] * quota)
    rng.shuffle(pool)
    return pool
