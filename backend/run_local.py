# backend/run_local.py
from backend.lib.energy_sheet_core.io import ParserConfig, parse_sheet_csv
import sys
from pathlib import Path

def main(csv_path):
    text = Path(csv_path).read_text(encoding="utf-8")
    snapshot = parse_sheet_csv(text, ParserConfig.from_env())
    print(f"Sheet dated {snapshot.file_date}, parsed {len(snapshot.data)} records:")
    for r in snapshot.data:
        print(f" - {r.date} : gas {r.gas} / power {r.power}")

if __name__ == "__main__":
    csv = sys.argv[1] if len(sys.argv) > 1 else "tests/sample.csv"
    main(csv)
