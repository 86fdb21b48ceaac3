# tests/test_validate.py
import pytest

from backend.lib.energy_sheet_core.models import EnergyRecord, SheetSnapshot
from backend.lib.energy_sheet_core.validate import StructuralValidationError, ValidationError, validate_snapshot


def test_valid_snapshot_passes_through():
    snapshot = SheetSnapshot("15/03/2024", (EnergyRecord("01/01/2024", 5.0, 10.0),))
    assert validate_snapshot(snapshot) == snapshot


def test_dict_form_is_accepted_and_ints_become_floats():
    result = validate_snapshot({"fileDate": "15/03/2024", "data": [{"date": "01/01/2024", "gas": 5, "power": 1.5}]})
    assert result == SheetSnapshot("15/03/2024", (EnergyRecord("01/01/2024", 5.0, 1.5),))


@pytest.mark.parametrize("payload, message", [
    ({"fileDate": 20240315, "data": []}, "fileDate"),
    ({"fileDate": "15/03/2024", "data": None}, "data must be an array"),
    ({"fileDate": "15/03/2024", "data": ["01/01/2024"]}, "data[0]"),
    ({"fileDate": "15/03/2024", "data": [{"date": None, "gas": 1, "power": 2}]}, "data[0].date"),
    ({"fileDate": "15/03/2024", "data": [{"date": "01/01/2024", "gas": "1", "power": 2}]}, "data[0].gas"),
    ({"fileDate": "15/03/2024", "data": [{"date": "01/01/2024", "gas": 1, "power": True}]}, "data[0].power"),
])
def test_wrong_shapes_raise(payload, message):
    with pytest.raises(StructuralValidationError) as exc:
        validate_snapshot(payload)
    assert message in str(exc.value)


def test_missing_values_need_allow_missing():
    snapshot = SheetSnapshot("15/03/2024", (EnergyRecord("01/01/2024", None, 10.0),))
    with pytest.raises(ValidationError):
        validate_snapshot(snapshot)
    assert validate_snapshot(snapshot, allow_missing=True).data[0].gas is None


def test_validation_error_is_a_value_error():
    assert issubclass(ValidationError, ValueError)
    with pytest.raises(ValueError):
        validate_snapshot([])
