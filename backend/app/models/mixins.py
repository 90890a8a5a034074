from sqlalchemy import Integer, JSON
from sqlalchemy.orm import Mapped, mapped_column

WEEKDAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def empty_timetable() -> dict[str, list[dict]]:
    return {day: [] for day in WEEKDAYS}


class WorkingHoursMixin:
    """Working-hours window plus the weekly occupancy grid stored beside it."""

    start_hour: Mapped[int] = mapped_column(Integer, nullable=False, default=8)
    start_minute: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    end_hour: Mapped[int] = mapped_column(Integer, nullable=False, default=15)
    end_minute: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    timetable: Mapped[dict[str, list[dict]]] = mapped_column(JSON, nullable=False, default=empty_timetable)

    @property
    def window(self) -> dict[str, int]:
        return {
            "start_hour": self.start_hour,
            "start_minute": self.start_minute,
            "end_hour": self.end_hour,
            "end_minute": self.end_minute,
        }
