# backend/lib/energy_sheet_core/models.py
from dataclasses import dataclass, field
from typing import Optional, Tuple

@dataclass(frozen=True)
class EnergyRecord:
    date: str  # DD/MM/YYYY, kept exactly as it appears in the sheet
    gas: Optional[float]
    power: Optional[float]

    def to_dict(self) -> dict:
        return {"date": self.date, "gas": self.gas, "power": self.power}

@dataclass(frozen=True)
class SheetSnapshot:
    file_date: str
    data: Tuple[EnergyRecord, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        """JSON shape served to the dashboard: {fileDate, data: [...]}"""
        return {
            "fileDate": self.file_date,
            "data": [r.to_dict() for r in self.data],
        }
