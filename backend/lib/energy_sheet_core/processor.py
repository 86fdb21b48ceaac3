from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple
from .models import EnergyRecord, SheetSnapshot

CONSOLIDATO = "consolidato"
FORECAST = "forecast"
PERIODS = (CONSOLIDATO, FORECAST)


class FilterError(ValueError):
    pass


def parse_sheet_date(text: str) -> date:
    """'15/03/2024' -> date(2024, 3, 15)"""
    try:
        return datetime.strptime(text.strip(), "%d/%m/%Y").date()
    except (AttributeError, ValueError) as e:
        raise FilterError(f"Invalid date {text!r}, expected DD/MM/YYYY") from e


def is_consolidato(record_date: date, today: Optional[date] = None) -> bool:
    """
    Consolidated data is anything before the first day of the current month,
    the rest of the sheet is forecast.
    """
    today = today or date.today()
    return record_date < today.replace(day=1)


@dataclass(frozen=True)
class FilterOptions:
    period: Tuple[str, ...] = PERIODS
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @classmethod
    def from_params(cls, period: Optional[Iterable[str]] = None,
                    start_date: Optional[str] = None,
                    end_date: Optional[str] = None) -> "FilterOptions":
        periods = tuple(period) if period else PERIODS
        unknown = [p for p in periods if p not in PERIODS]
        if unknown:
            raise FilterError(f"period must be one of {PERIODS}, got {unknown}")
        start = parse_sheet_date(start_date) if start_date else None
        end = parse_sheet_date(end_date) if end_date else None
        return cls(period=periods, start_date=start, end_date=end)


class EnergyAnalyzer:
    def __init__(self, snapshot: SheetSnapshot):
        # sheet order is kept in the snapshot, sorting happens here
        self.snapshot = snapshot

    def non_zero(self) -> List[EnergyRecord]:
        """Records that carry data: rows with both gas and power at 0 are padding."""
        return [r for r in self.snapshot.data if not (r.gas == 0 and r.power == 0)]

    def _dated(self) -> List[Tuple[date, EnergyRecord]]:
        dated = []
        for r in self.non_zero():
            try:
                dated.append((parse_sheet_date(r.date), r))
            except FilterError:
                continue  # offset mode lets odd dates through
        return dated

    def filter(self, options: Optional[FilterOptions] = None, today: Optional[date] = None) -> List[EnergyRecord]:
        """
        Apply the dashboard filters: drop empty rows, keep the selected
        periods and the inclusive [start_date, end_date] range.
        Result is sorted by date; rows with the same date keep sheet order.
        """
        options = options or FilterOptions()
        today = today or date.today()
        selected = []
        for day, r in self._dated():
            period = CONSOLIDATO if is_consolidato(day, today) else FORECAST
            if period not in options.period:
                continue
            if options.start_date and day < options.start_date:
                continue
            if options.end_date and day > options.end_date:
                continue
            selected.append((day, r))
        selected.sort(key=lambda item: item[0])
        return [r for _, r in selected]

    def filtered_snapshot(self, options: Optional[FilterOptions] = None, today: Optional[date] = None) -> SheetSnapshot:
        return SheetSnapshot(file_date=self.snapshot.file_date, data=tuple(self.filter(options, today)))

    def available_dates(self) -> List[str]:
        """Unique dates with data, oldest first."""
        first_seen = {}
        for day, r in self._dated():
            first_seen.setdefault(r.date, day)
        return sorted(first_seen, key=first_seen.get)

    def available_months(self) -> List[str]:
        """Unique 'MM/YYYY' months with data, oldest first."""
        months = {(day.year, day.month) for day, _ in self._dated()}
        return [f"{month:02d}/{year}" for year, month in sorted(months)]
