from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from timegrid.api.deps import get_db
from timegrid.core.config import get_settings
from timegrid.core.exceptions import ResourceNotFoundError
from timegrid.schemas.timetable import ClassGridOut, StaffGridOut, TimetablePayload
from timegrid.services.timetable_export import XLSX_MEDIA_TYPE, export_workbook
from timegrid.services.timetable_store import load_latest
from timegrid.services.timetable_views import build_class_grids, build_staff_grids

router = APIRouter()


def _load_latest_or_404(db: Session) -> TimetablePayload:
    payload = load_latest(db)
    if payload is None:
        raise ResourceNotFoundError("Timetable", get_settings().latest_snapshot_key)
    return payload


@router.get("/latest", response_model=TimetablePayload)
def get_latest_timetable(db: Session = Depends(get_db)) -> TimetablePayload:
    return _load_latest_or_404(db)


@router.get("/latest/classes", response_model=list[ClassGridOut])
def get_class_timetables(db: Session = Depends(get_db)) -> list[ClassGridOut]:
    return build_class_grids(_load_latest_or_404(db))


@router.get("/latest/staff", response_model=list[StaffGridOut])
def get_staff_timetables(db: Session = Depends(get_db)) -> list[StaffGridOut]:
    return build_staff_grids(_load_latest_or_404(db))


@router.get("/latest/export")
def export_latest_timetable(db: Session = Depends(get_db)) -> Response:
    content = export_workbook(_load_latest_or_404(db))
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="timetables.xlsx"'},
    )
