from timegrid.models.timetable import TimetableSnapshot  # noqa: F401
