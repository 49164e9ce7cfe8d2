"""
Biweekly ("quincena") reporting periods.

Each calendar month is split in two halves: index 1 covers the 1st to the
15th, index 2 covers the 16th to the last day of the month.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

MONTH_NAMES = {
    "es": [
        "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
        "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
    ],
    "en": [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ],
}

FIRST_HALF_LAST_DAY = 15


@dataclass(frozen=True, order=True)
class BiweeklyPeriod:
    year: int
    month: int
    index: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValueError(f"Invalid month: {self.month}")
        if self.index not in (1, 2):
            raise ValueError(f"Invalid period index: {self.index} (expected 1 or 2)")
        if self.year < 1:
            raise ValueError(f"Invalid year: {self.year}")

    @classmethod
    def for_date(cls, value: date) -> "BiweeklyPeriod":
        if isinstance(value, datetime):
            value = value.date()
        return cls(value.year, value.month, 1 if value.day <= FIRST_HALF_LAST_DAY else 2)

    @classmethod
    def current(cls) -> "BiweeklyPeriod":
        return cls.for_date(date.today())

    @classmethod
    def from_query(cls, year: Optional[int], month: Optional[int], index: Optional[int]) -> "BiweeklyPeriod":
        """Period from optional query parameters; none given means the current period"""
        if year is None and month is None and index is None:
            return cls.current()
        if year is None or month is None or index is None:
            raise ValueError("year, month and period must be given together")
        return cls(year, month, index)

    @property
    def start_date(self) -> date:
        return date(self.year, self.month, 1 if self.index == 1 else FIRST_HALF_LAST_DAY + 1)

    @property
    def end_date(self) -> date:
        """Last day included in the period"""
        if self.index == 1:
            return date(self.year, self.month, FIRST_HALF_LAST_DAY)
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    @property
    def start_datetime(self) -> datetime:
        return datetime.combine(self.start_date, time.min)

    @property
    def end_datetime_exclusive(self) -> datetime:
        """Midnight after the last day; use with `<` in range filters"""
        return datetime.combine(self.end_date + timedelta(days=1), time.min)

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def contains(self, value: date) -> bool:
        if isinstance(value, datetime):
            value = value.date()
        return self.start_date <= value <= self.end_date

    def previous(self) -> "BiweeklyPeriod":
        if self.index == 2:
            return BiweeklyPeriod(self.year, self.month, 1)
        prior = date(self.year, self.month, 1) - relativedelta(months=1)
        return BiweeklyPeriod(prior.year, prior.month, 2)

    def next(self) -> "BiweeklyPeriod":
        if self.index == 1:
            return BiweeklyPeriod(self.year, self.month, 2)
        following = date(self.year, self.month, 1) + relativedelta(months=1)
        return BiweeklyPeriod(following.year, following.month, 1)

    def label(self, language: str = "es") -> str:
        names = MONTH_NAMES.get(language, MONTH_NAMES["es"])
        month_name = names[self.month - 1]
        if language == "en":
            half = "1st" if self.index == 1 else "2nd"
            return f"{half} Half of {month_name} {self.year}"
        half = "1ra" if self.index == 1 else "2da"
        return f"{half} Quincena de {month_name} {self.year}"

    def to_dict(self, language: str = "es") -> dict:
        return {
            "year": self.year,
            "month": self.month,
            "period": self.index,
            "label": self.label(language),
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
        }
