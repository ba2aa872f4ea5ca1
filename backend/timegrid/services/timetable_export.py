"""Printable Excel export of the class and staff grids."""
from __future__ import annotations

import re
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from timegrid.schemas.timetable import GridDayOut, TimetablePayload
from timegrid.services.timetable_views import build_class_grids, build_staff_grids

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# Pastel palette, readable with black text.
PALETTE = [
    "FFCDD2", "F8BBD0", "E1BEE7", "D1C4E9", "C5CAE9", "BBDEFB", "B3E5FC", "B2EBF2",
    "B2DFDB", "C8E6C9", "DCEDC8", "F0F4C3", "FFF9C4", "FFECB3", "FFE0B2", "FFCCBC",
    "D7CCC8", "CFD8DC",
]
BREAK_FILL = "BDBDBD"
HEADER_FILL = "E0E0E0"
UNASSIGNED_FONT_COLOR = "C62828"

MAX_SHEET_TITLE = 31
_INVALID_TITLE_CHARS = re.compile(r"[\[\]:*?/\\]")
_STAFF_LABEL = re.compile(r"^(?P<subject>.*) \((?P<class_name>[^()]*)\)$")

_thin = Side(style="thin", color="9E9E9E")
_BORDER = Border(left=_thin, right=_thin, top=_thin, bottom=_thin)


def sheet_title(name: str, used: set[str]) -> str:
    base = _INVALID_TITLE_CHARS.sub("-", name).strip("'") or "Sheet"
    title = base[:MAX_SHEET_TITLE]
    counter = 2
    while title.lower() in used:
        suffix = f" ({counter})"
        title = base[: MAX_SHEET_TITLE - len(suffix)] + suffix
        counter += 1
    used.add(title.lower())
    return title


class TimetableWorkbookExporter:
    def __init__(self, payload: TimetablePayload) -> None:
        self.payload = payload
        self._subject_colors: dict[str, str] = {}
        self._used_titles: set[str] = set()

    def _color_for_subject(self, subject: str) -> str:
        if subject not in self._subject_colors:
            self._subject_colors[subject] = PALETTE[len(self._subject_colors) % len(PALETTE)]
        return self._subject_colors[subject]

    def _title_rows(self, sheet: Worksheet, heading: str) -> int:
        meta = self.payload.meta
        parts = [part for part in (meta.institution_name, meta.academic_year) if part]
        sheet.cell(row=1, column=1, value=heading).font = Font(bold=True, size=14)
        if parts:
            sheet.cell(row=2, column=1, value=" | ".join(parts)).font = Font(italic=True)
            return 4
        return 3

    def _write_grid(self, sheet: Worksheet, days: list[GridDayOut], start_row: int, *, staff_view: bool) -> None:
        meta = self.payload.meta
        header = sheet.cell(row=start_row, column=1, value="Day / Period")
        header.font = Font(bold=True)
        header.fill = PatternFill(fill_type="solid", fgColor=HEADER_FILL)
        header.border = _BORDER
        for period in range(1, meta.periods_per_day + 1):
            time_range = meta.period_times[period - 1] if period <= len(meta.period_times) else ""
            cell = sheet.cell(row=start_row, column=period + 1, value=f"Period {period}\n{time_range}".strip())
            cell.font = Font(bold=True)
            cell.fill = PatternFill(fill_type="solid", fgColor=HEADER_FILL)
            cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
            cell.border = _BORDER

        for offset, day in enumerate(days, start=1):
            row = start_row + offset
            day_cell = sheet.cell(row=row, column=1, value=day.day)
            day_cell.font = Font(bold=True)
            day_cell.border = _BORDER
            for grid_cell in day.cells:
                cell = sheet.cell(row=row, column=grid_cell.period + 1)
                cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
                cell.border = _BORDER
                if grid_cell.kind == "break":
                    cell.value = "BREAK"
                    cell.fill = PatternFill(fill_type="solid", fgColor=BREAK_FILL)
                    continue
                if grid_cell.kind == "free":
                    cell.value = "Free" if staff_view else ""
                    continue
                subject = grid_cell.subject or ""
                if staff_view:
                    match = _STAFF_LABEL.match(subject)
                    color_key = match.group("subject") if match else subject
                    cell.value = subject
                else:
                    color_key = subject
                    lines = [subject]
                    if grid_cell.subject_code:
                        lines[0] = f"{subject} ({grid_cell.subject_code})"
                    lines.append(grid_cell.staff or "")
                    cell.value = "\n".join(line for line in lines if line)
                cell.fill = PatternFill(fill_type="solid", fgColor=self._color_for_subject(color_key))

        sheet.column_dimensions["A"].width = 14
        for period in range(1, meta.periods_per_day + 1):
            sheet.column_dimensions[get_column_letter(period + 1)].width = 22
        for offset in range(1, len(days) + 1):
            sheet.row_dimensions[start_row + offset].height = 36

    def build(self) -> Workbook:
        workbook = Workbook()
        summary = workbook.active
        summary.title = sheet_title("Summary", self._used_titles)
        self._write_summary(summary)

        for grid in build_class_grids(self.payload):
            sheet = workbook.create_sheet(sheet_title(grid.class_name, self._used_titles))
            start_row = self._title_rows(sheet, grid.class_name)
            self._write_grid(sheet, grid.days, start_row, staff_view=False)
            self._mark_unassigned(sheet, grid.days, start_row)

        for grid in build_staff_grids(self.payload):
            sheet = workbook.create_sheet(sheet_title(f"Staff - {grid.staff_name}", self._used_titles))
            start_row = self._title_rows(sheet, f"{grid.staff_name} ({grid.total_periods} periods/week)")
            self._write_grid(sheet, grid.days, start_row, staff_view=True)
        return workbook

    def _mark_unassigned(self, sheet: Worksheet, days: list[GridDayOut], start_row: int) -> None:
        for offset, day in enumerate(days, start=1):
            for grid_cell in day.cells:
                if grid_cell.kind == "class" and grid_cell.unassigned:
                    cell = sheet.cell(row=start_row + offset, column=grid_cell.period + 1)
                    cell.font = Font(color=UNASSIGNED_FONT_COLOR, bold=True)

    def _write_summary(self, sheet: Worksheet) -> None:
        meta = self.payload.meta
        rows = [
            ("Institution", meta.institution_name or ""),
            ("Academic year", meta.academic_year or ""),
            ("Generated at", meta.generated_at.isoformat()),
            ("Days", ", ".join(meta.days)),
            ("Periods per day", meta.periods_per_day),
            ("Classes", len(self.payload.classes)),
            ("Staff", len(self.payload.staff)),
            ("Unassigned slots", len(self.payload.unassigned_slots)),
            ("Unplaced labs", len(self.payload.unplaced_labs)),
        ]
        sheet.cell(row=1, column=1, value="Timetable summary").font = Font(bold=True, size=14)
        for index, (label, value) in enumerate(rows, start=3):
            sheet.cell(row=index, column=1, value=label).font = Font(bold=True)
            sheet.cell(row=index, column=2, value=value)
        row = len(rows) + 4
        if self.payload.warnings:
            sheet.cell(row=row, column=1, value="Warnings").font = Font(bold=True)
            for offset, warning in enumerate(self.payload.warnings, start=1):
                sheet.cell(row=row + offset, column=1, value=warning)
        sheet.column_dimensions["A"].width = 20
        sheet.column_dimensions["B"].width = 40


def export_workbook(payload: TimetablePayload) -> bytes:
    buffer = BytesIO()
    TimetableWorkbookExporter(payload).build().save(buffer)
    return buffer.getvalue()
