# backend/lib/energy_sheet_core/exporter.py
import csv
from datetime import date
from io import StringIO
from typing import Iterable, Optional, Sequence
from .models import EnergyRecord
from .processor import FilterError, parse_sheet_date

COMMODITIES = ("gas", "power")


def format_italian_number(value: Optional[float]) -> str:
    """12.5 -> '12,5', 5.0 -> '5'; missing values export as an empty cell."""
    if value is None:
        return ""
    if float(value).is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(float(value)).replace(".", ",", 1)


class CsvExporter:
    def __init__(self, commodities: Sequence[str] = COMMODITIES):
        """
        commodities: which value columns to write, any of 'gas' and 'power'.
        Columns always come out as Data;Gas;Power regardless of input order.
        """
        commodities = tuple(commodities)
        unknown = [c for c in commodities if c not in COMMODITIES]
        if unknown or not commodities:
            raise FilterError(f"commodity must be one or more of {COMMODITIES}, got {list(commodities)}")
        self.commodities = tuple(c for c in COMMODITIES if c in commodities)

    def select(self, records: Iterable[EnergyRecord], start: date, end: date):
        """Non-empty records inside the inclusive [start, end] range, in the given order."""
        selected = []
        for r in records:
            if r.gas == 0 and r.power == 0:
                continue
            try:
                day = parse_sheet_date(r.date)
            except FilterError:
                continue
            if start <= day <= end:
                selected.append(r)
        return selected

    def export(self, records: Iterable[EnergyRecord], start: date, end: date) -> str:
        """
        Semicolon separated, decimal comma, one row per record:
            Data;Gas;Power
            01/01/2024;5;10,5
        """
        buf = StringIO()
        writer = csv.writer(buf, delimiter=";", lineterminator="\n")
        writer.writerow(["Data"] + [c.capitalize() for c in self.commodities])
        for r in self.select(records, start, end):
            writer.writerow([r.date] + [format_italian_number(getattr(r, c)) for c in self.commodities])
        return buf.getvalue().rstrip("\n")

    def filename(self, start: date, end: date) -> str:
        label = "all" if len(self.commodities) == 2 else self.commodities[0]
        return f"energy_data_{label}_{start:%d-%m-%Y}_{end:%d-%m-%Y}.csv"
