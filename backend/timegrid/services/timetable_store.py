from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from timegrid.core.config import get_settings
from timegrid.models.timetable import TimetableSnapshot
from timegrid.schemas.timetable import TimetablePayload

logger = logging.getLogger(__name__)


def _snapshot_key(key: str | None) -> str:
    return key or get_settings().latest_snapshot_key


def save_latest(db: Session, payload: TimetablePayload, *, key: str | None = None) -> str:
    """Store the payload under the well-known key, replacing any earlier timetable."""
    resolved_key = _snapshot_key(key)
    data = payload.model_dump(mode="json", by_alias=True)
    record = db.get(TimetableSnapshot, resolved_key)
    if record is None:
        record = TimetableSnapshot(key=resolved_key, payload=data)
        db.add(record)
    else:
        record.payload = data
    db.commit()
    logger.info(
        "Stored timetable snapshot key=%s classes=%s staff=%s",
        resolved_key,
        len(payload.classes),
        len(payload.staff),
    )
    return resolved_key


def load_latest(db: Session, *, key: str | None = None) -> TimetablePayload | None:
    record = db.get(TimetableSnapshot, _snapshot_key(key))
    if record is None:
        return None
    return TimetablePayload.model_validate(record.payload)
