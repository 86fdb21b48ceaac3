# tests/test_io.py
import json
from datetime import date

import pytest

from backend.lib.energy_sheet_core.io import (
    ParserConfig,
    assemble_records,
    extract_file_date,
    parse_italian_number,
    parse_sheet_csv,
    tokenize_csv_line,
)
from backend.lib.energy_sheet_core.models import EnergyRecord

TODAY = date(2024, 5, 7)


def test_tokenize_keeps_commas_inside_quotes():
    assert tokenize_csv_line('a,"b,c",d') == ["a", "b,c", "d"]


def test_tokenize_edge_cases():
    assert tokenize_csv_line("") == [""]
    assert tokenize_csv_line("a,b,") == ["a", "b", ""]
    assert tokenize_csv_line('"12,50"') == ["12,50"]


def test_tokenize_drops_escaped_quotes():
    # "" is two toggles, not an escaped quote
    assert tokenize_csv_line('"say ""hi""",x') == ["say hi", "x"]


def test_tokenize_custom_delimiter():
    assert tokenize_csv_line('a;"b;c"', delimiter=";") == ["a", "b;c"]


def test_parse_italian_number():
    assert parse_italian_number("12,50") == 12.5
    assert parse_italian_number(" 1 234 ") == 1234.0
    assert parse_italian_number('"-3,5"') == -3.5
    # only the first comma becomes a period, the numeric prefix is kept
    assert parse_italian_number("1.234,56") == 1.234


@pytest.mark.parametrize("text", ["", "   ", "abc", None, "nan", "1e999"])
def test_parse_italian_number_degrades_to_zero(text):
    assert parse_italian_number(text) == 0.0


def test_parse_italian_number_other_policies():
    assert parse_italian_number("abc", "reject") is None
    assert parse_italian_number("abc", "mark-missing") is None
    # blank is still zero, whatever the policy
    assert parse_italian_number("", "reject") == 0.0


def test_extract_file_date_from_e5(sample_text):
    lines = sample_text.splitlines()
    assert extract_file_date(lines, today=TODAY) == "15/03/2024"


def test_extract_file_date_accepts_short_day_and_month():
    lines = ["", "", "", "", ',,,," 5/3/2024 "']
    assert extract_file_date(lines, today=TODAY) == "5/3/2024"


def test_extract_file_date_falls_back_to_data_oggi():
    lines = ["Data,Prod,Cons,Data Oggi", "01/01/2024,1,2,16/03/2024", "", "", ",,,,not a date"]
    assert extract_file_date(lines, fallback="data-oggi", today=TODAY) == "16/03/2024"


def test_extract_file_date_falls_back_to_today():
    lines = ["Data,Prod,Cons,Data Oggi", "01/01/2024,1,2,16/03/2024", "", "", ",,,,2024-03-15"]
    assert extract_file_date(lines, fallback="today", today=TODAY) == "07/05/2024"
    assert extract_file_date(["only one line"], today=TODAY) == "07/05/2024"


def test_rows_are_dropped_not_raised():
    lines = [
        ' "" ,1,2',
        "02/01/2024,1",
        "",
        "   ",
        "01/01/2024,1,2",
    ]
    records = assemble_records(lines)
    assert records == [EnergyRecord(date="01/01/2024", gas=2.0, power=1.0)]


def test_strict_mode_checks_every_row_date():
    lines = ["Data,Produzione,Consumo", "1/1/2024,1,2", "totale,3,4", "02/01/2024,1,2"]
    records = assemble_records(lines)
    assert [r.date for r in records] == ["02/01/2024"]


def test_offset_mode_skips_header_rows_only():
    lines = ["h1,1,1", "h2,1,1", "totale,3,4", " 1/1/2024 ,1,2,9"]
    records = assemble_records(lines, ParserConfig(row_mode="offset", data_start_row=2))
    assert [r.date for r in records] == ["totale", "1/1/2024"]


def test_first_quantity_label_is_configurable():
    lines = ["01/01/2024,10,5"]
    gas_first = assemble_records(lines, ParserConfig(first_quantity="gas"))
    assert gas_first == [EnergyRecord(date="01/01/2024", gas=10.0, power=5.0)]
    power_first = assemble_records(lines, ParserConfig(first_quantity="power"))
    assert power_first == [EnergyRecord(date="01/01/2024", gas=5.0, power=10.0)]


def test_parse_failure_policies_in_rows():
    lines = ["01/01/2024,abc,5", "02/01/2024,1,2"]
    rejected = assemble_records(lines, ParserConfig(on_parse_failure="reject"))
    assert [r.date for r in rejected] == ["02/01/2024"]
    missing = assemble_records(lines, ParserConfig(on_parse_failure="mark-missing"))
    assert missing[0] == EnergyRecord(date="01/01/2024", gas=5.0, power=None)


def test_invalid_config_values():
    with pytest.raises(ValueError):
        ParserConfig(first_quantity="heat")
    with pytest.raises(ValueError):
        ParserConfig(row_mode="loose")
    with pytest.raises(ValueError):
        ParserConfig(on_parse_failure="ignore")


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("ROW_MODE", "offset")
    monkeypatch.setenv("DATA_START_ROW", "3")
    monkeypatch.setenv("FILE_DATE_FALLBACK", "today")
    monkeypatch.setenv("FIRST_QUANTITY", "gas")
    monkeypatch.setenv("ON_PARSE_FAILURE", "reject")
    cfg = ParserConfig.from_env()
    assert cfg.row_mode == "offset"
    assert cfg.data_start_row == 3
    assert cfg.file_date_fallback == "today"
    assert cfg.first_quantity == "gas"
    assert cfg.on_parse_failure == "reject"


def test_parse_sample_csv(sample_text):
    snapshot = parse_sheet_csv(sample_text, today=TODAY)
    assert snapshot.file_date == "15/03/2024"
    assert [r.date for r in snapshot.data] == ["01/01/2024", "02/01/2024", "03/01/2024", "04/01/2024"]
    assert snapshot.data[0] == EnergyRecord(date="01/01/2024", gas=5.25, power=10.5)
    assert snapshot.data[1].gas == 6.0
    assert snapshot.data[2].gas == 0.0 and snapshot.data[2].power == 0.0
    # "n/d" in the production column
    assert snapshot.data[3].power == 0.0
    assert snapshot.data[3].gas == 7.1


def test_end_to_end_scenario():
    text = "\n".join([
        "Report,,,,,,",
        "Energia,,,,,,",
        ",,,,,,",
        ",,,,,,",
        ',,,,"15/03/2024",,',
        "Data,Produzione,Consumo,Rete,,,",
        "01/01/2024,10,5",
        ",,,",
    ])
    snapshot = parse_sheet_csv(text, today=TODAY)
    assert snapshot.to_dict() == {
        "fileDate": "15/03/2024",
        "data": [{"date": "01/01/2024", "gas": 5, "power": 10}],
    }


def test_windows_line_endings(sample_text):
    snapshot = parse_sheet_csv(sample_text.replace("\n", "\r\n"), today=TODAY)
    assert snapshot.file_date == "15/03/2024"
    assert len(snapshot.data) == 4


def test_json_round_trip_keeps_order_and_dates():
    text = "x\nx\nx\nx\n,,,,01/02/2024\n31/12/2023,1,2\n01/01/2023,3,4\n15/06/2023,5,6"
    snapshot = parse_sheet_csv(text, today=TODAY)
    decoded = json.loads(json.dumps(snapshot.to_dict()))
    assert [d["date"] for d in decoded["data"]] == ["31/12/2023", "01/01/2023", "15/06/2023"]
    assert decoded["fileDate"] == "01/02/2024"
