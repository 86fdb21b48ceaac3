# backend/lib/energy_sheet_core/validate.py
from typing import Any, Union
from .models import EnergyRecord, SheetSnapshot


class StructuralValidationError(ValueError):
    """The parsed sheet does not have the {fileDate, data[]} shape."""


ValidationError = StructuralValidationError


def _is_number(value: Any) -> bool:
    # bool is an int subclass but not a quantity
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_quantity(value: Any, path: str, allow_missing: bool) -> None:
    if value is None and allow_missing:
        return
    if not _is_number(value):
        raise StructuralValidationError(f"{path} must be a number, got {type(value).__name__}")


def validate_snapshot(snapshot: Union[SheetSnapshot, dict], allow_missing: bool = False) -> SheetSnapshot:
    """
    Check that a snapshot (or its JSON dict form) has a string fileDate and
    records with a string date and numeric gas/power.

    allow_missing lets gas/power be None (the mark-missing parse policy).
    Returns the snapshot as a SheetSnapshot.
    """
    if isinstance(snapshot, SheetSnapshot):
        snapshot = snapshot.to_dict()
    if not isinstance(snapshot, dict):
        raise StructuralValidationError(f"snapshot must be an object, got {type(snapshot).__name__}")

    file_date = snapshot.get("fileDate")
    if not isinstance(file_date, str):
        raise StructuralValidationError(f"fileDate must be a string, got {type(file_date).__name__}")

    data = snapshot.get("data")
    if not isinstance(data, (list, tuple)):
        raise StructuralValidationError(f"data must be an array, got {type(data).__name__}")

    records = []
    for i, item in enumerate(data):
        if isinstance(item, EnergyRecord):
            item = item.to_dict()
        if not isinstance(item, dict):
            raise StructuralValidationError(f"data[{i}] must be an object, got {type(item).__name__}")
        if not isinstance(item.get("date"), str):
            raise StructuralValidationError(f"data[{i}].date must be a string")
        _check_quantity(item.get("gas"), f"data[{i}].gas", allow_missing)
        _check_quantity(item.get("power"), f"data[{i}].power", allow_missing)
        gas, power = item.get("gas"), item.get("power")
        records.append(EnergyRecord(
            date=item["date"],
            gas=None if gas is None else float(gas),
            power=None if power is None else float(power),
        ))

    return SheetSnapshot(file_date=file_date, data=tuple(records))
