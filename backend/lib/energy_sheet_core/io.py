# backend/lib/energy_sheet_core/io.py
"""
Parsing of the published energy sheet (CSV export of a Google Sheet).

The sheet is not a clean table: a few metadata rows sit on top, the
publication date lives in cell E5, numbers use the Italian decimal comma
and data rows are mixed with blank or partial rows. Everything here degrades
quietly (zero, fallback date, dropped row) instead of raising.
"""
import logging
import math
import os
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional, Sequence

from .models import EnergyRecord, SheetSnapshot

logger = logging.getLogger(__name__)

# d/m/yyyy or dd/mm/yyyy, used for the metadata cells
FILE_DATE_PATTERN = re.compile(r"\d{1,2}/\d{1,2}/\d{4}")
# data rows must use the zero padded form
ROW_DATE_PATTERN = re.compile(r"\d{2}/\d{2}/\d{4}")
NUMBER_PREFIX_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
QUOTES_AND_SPACES = re.compile(r'["\s]')
EDGE_QUOTES = re.compile(r'^"|"$')
LINE_BREAK = re.compile(r"\r?\n")

# Zero-based cell positions
FILE_DATE_ROW, FILE_DATE_COLUMN = 4, 4  # E5
DATA_OGGI_ROW, DATA_OGGI_COLUMN = 1, 3  # "Data Oggi" on the first data row

MIN_FIELDS = 3  # date, first quantity, second quantity
DISPLAY_DATE_FORMAT = "%d/%m/%Y"


class FileDateFallback(str, Enum):
    TODAY = "today"
    DATA_OGGI = "data-oggi"


class RowMode(str, Enum):
    STRICT = "strict"  # keep any row whose first cell is a dd/mm/yyyy date
    OFFSET = "offset"  # skip a fixed number of header rows


class ParseFailurePolicy(str, Enum):
    ZERO = "zero"
    REJECT = "reject"
    MARK_MISSING = "mark-missing"


QUANTITY_LABELS = ("gas", "power")


@dataclass(frozen=True)
class ParserConfig:
    delimiter: str = ","
    row_mode: RowMode = RowMode.STRICT
    data_start_row: int = 6
    file_date_fallback: FileDateFallback = FileDateFallback.DATA_OGGI
    first_quantity: str = "power"
    on_parse_failure: ParseFailurePolicy = ParseFailurePolicy.ZERO

    def __post_init__(self):
        # accept plain strings coming from env vars or callers
        object.__setattr__(self, "row_mode", RowMode(self.row_mode))
        object.__setattr__(self, "file_date_fallback", FileDateFallback(self.file_date_fallback))
        object.__setattr__(self, "on_parse_failure", ParseFailurePolicy(self.on_parse_failure))
        if self.first_quantity not in QUANTITY_LABELS:
            raise ValueError(f"first_quantity must be one of {QUANTITY_LABELS}, got {self.first_quantity!r}")
        if self.data_start_row < 0:
            raise ValueError("data_start_row must be >= 0")
        if len(self.delimiter) != 1 or self.delimiter == '"':
            raise ValueError(f"Invalid delimiter: {self.delimiter!r}")

    @classmethod
    def from_env(cls) -> "ParserConfig":
        return cls(
            row_mode=os.getenv("ROW_MODE", RowMode.STRICT.value),
            data_start_row=int(os.getenv("DATA_START_ROW", "6")),
            file_date_fallback=os.getenv("FILE_DATE_FALLBACK", FileDateFallback.DATA_OGGI.value),
            first_quantity=os.getenv("FIRST_QUANTITY", "power"),
            on_parse_failure=os.getenv("ON_PARSE_FAILURE", ParseFailurePolicy.ZERO.value),
        )


def tokenize_csv_line(line: str, delimiter: str = ",") -> List[str]:
    """
    Split one CSV line, honouring double quotes around fields.

    Quote characters only toggle the quoted state and are dropped, so an
    escaped quote ("") is not supported: it never survives as a literal ".
    An empty line yields [""], a trailing delimiter yields a trailing "".
    """
    fields = []
    current = []
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
    fields.append("".join(current))
    return [EDGE_QUOTES.sub("", f) for f in fields]


def parse_italian_number(text: Optional[str],
                         on_failure: ParseFailurePolicy = ParseFailurePolicy.ZERO) -> Optional[float]:
    """
    Parse a number written with a decimal comma, e.g. "12,50" -> 12.5.

    Only the first comma is turned into a period and the longest numeric
    prefix is read, so "1.234,56" gives 1.234 (no thousands separators).
    Blank cells are 0.0. Unparseable cells are 0.0 under the "zero" policy
    and None otherwise.
    """
    cleaned = QUOTES_AND_SPACES.sub("", text or "")
    if not cleaned:
        return 0.0
    normalized = cleaned.replace(",", ".", 1)
    match = NUMBER_PREFIX_PATTERN.match(normalized)
    if match:
        value = float(match.group(0))
        if math.isfinite(value):
            return value
    logger.debug("Unparseable number %r", text)
    if ParseFailurePolicy(on_failure) is ParseFailurePolicy.ZERO:
        return 0.0
    return None


def format_sheet_date(day: Optional[date] = None) -> str:
    return (day or date.today()).strftime(DISPLAY_DATE_FORMAT)


def _date_from_cell(lines: Sequence[str], row: int, column: int, delimiter: str) -> Optional[str]:
    if len(lines) <= row:
        return None
    fields = tokenize_csv_line(lines[row], delimiter)
    if len(fields) <= column:
        return None
    value = QUOTES_AND_SPACES.sub("", fields[column])
    if FILE_DATE_PATTERN.fullmatch(value):
        return value
    return None


def extract_file_date(lines: Sequence[str],
                      fallback: FileDateFallback = FileDateFallback.DATA_OGGI,
                      today: Optional[date] = None,
                      delimiter: str = ",") -> str:
    """
    Publication date of the sheet: cell E5, else (data-oggi strategy) the
    "Data Oggi" column of the first data row, else today's date.
    """
    file_date = _date_from_cell(lines, FILE_DATE_ROW, FILE_DATE_COLUMN, delimiter)
    if file_date:
        logger.debug("Using E5 date: %s", file_date)
        return file_date

    if FileDateFallback(fallback) is FileDateFallback.DATA_OGGI:
        file_date = _date_from_cell(lines, DATA_OGGI_ROW, DATA_OGGI_COLUMN, delimiter)
        if file_date:
            logger.info("E5 date missing, using Data Oggi date: %s", file_date)
            return file_date

    file_date = format_sheet_date(today)
    logger.warning("No publication date found in sheet, falling back to %s", file_date)
    return file_date


def assemble_records(lines: Sequence[str], config: Optional[ParserConfig] = None) -> List[EnergyRecord]:
    config = config or ParserConfig()
    start = config.data_start_row if config.row_mode is RowMode.OFFSET else 0
    records = []

    for line_no, line in enumerate(lines[start:], start=start + 1):
        if not line.strip():
            continue
        fields = tokenize_csv_line(line, config.delimiter)
        if len(fields) < MIN_FIELDS:
            continue
        date_str = fields[0].strip()
        if not date_str:
            continue
        if config.row_mode is RowMode.STRICT and not ROW_DATE_PATTERN.fullmatch(date_str):
            continue

        first = parse_italian_number(fields[1], config.on_parse_failure)
        second = parse_italian_number(fields[2], config.on_parse_failure)
        if config.on_parse_failure is ParseFailurePolicy.REJECT and (first is None or second is None):
            logger.debug("Dropping line %d: unparseable quantity", line_no)
            continue

        if config.first_quantity == "power":
            power, gas = first, second
        else:
            gas, power = first, second
        records.append(EnergyRecord(date=date_str, gas=gas, power=power))

    return records


def parse_sheet_csv(csv_text: str, config: Optional[ParserConfig] = None,
                    today: Optional[date] = None) -> SheetSnapshot:
    """
    Parse the full CSV export into a SheetSnapshot.
    Rows keep their order in the sheet.
    """
    config = config or ParserConfig()
    lines = LINE_BREAK.split(csv_text.strip())
    file_date = extract_file_date(lines, config.file_date_fallback, today, config.delimiter)
    records = assemble_records(lines, config)
    logger.info("Parsed sheet dated %s: %d records from %d lines", file_date, len(records), len(lines))
    return SheetSnapshot(file_date=file_date, data=tuple(records))
