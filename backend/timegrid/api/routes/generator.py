import logging
from time import perf_counter

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from timegrid.api.deps import get_db
from timegrid.schemas.generator import GenerateTimetableRequest, GenerateTimetableResponse
from timegrid.services.timetable_generator import generate_payload
from timegrid.services.timetable_store import save_latest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/timetable/generate", response_model=GenerateTimetableResponse)
def generate_timetable(
    payload: GenerateTimetableRequest,
    db: Session = Depends(get_db),
) -> GenerateTimetableResponse:
    config = payload.config
    started = perf_counter()
    logger.info(
        "TIMETABLE GENERATION START | classes=%s | departments=%s | subjects=%s | days=%s | periods=%s | seed=%s | persist=%s",
        config.num_classes,
        ",".join(config.departments) or "-",
        len(config.subjects),
        config.days_per_week,
        config.periods_per_day,
        config.random_seed,
        payload.persist,
    )
    try:
        timetable, runtime_ms = generate_payload(config)
        result = GenerateTimetableResponse(timetable=timetable, runtime_ms=runtime_ms)

        if payload.persist:
            result.snapshot_key = save_latest(db, timetable)
            result.persisted = True

        elapsed_ms = int((perf_counter() - started) * 1000)
        logger.info(
            "TIMETABLE GENERATION COMPLETE | classes=%s | staff=%s | unassigned=%s | unplaced_labs=%s | runtime_ms=%s | wall_ms=%s",
            len(timetable.classes),
            len(timetable.staff),
            len(timetable.unassigned_slots),
            len(timetable.unplaced_labs),
            runtime_ms,
            elapsed_ms,
        )
        return result
    except Exception:
        elapsed_ms = int((perf_counter() - started) * 1000)
        logger.exception(
            "TIMETABLE GENERATION FAILED | subjects=%s | wall_ms=%s",
            len(config.subjects),
            elapsed_ms,
        )
        raise
