"""
=============================================================================
SHEET SERVICE - Published Google Sheet Integration
=============================================================================

What is the published sheet?
----------------------------
The energy team keeps the gas and power figures in a Google Sheet that is
"published to the web" as CSV. Anyone with the link can download it, so no
credentials are needed.

In this application, one call to the service:
1. Downloads the CSV text (SheetFetcher)
2. Parses it into a SheetSnapshot (parse_sheet_csv)
3. Checks the structure before it is sent to a client (validate_snapshot)

Nothing is cached or stored: every request re-downloads the sheet, so the
dashboard always shows what is currently published.

Example:
    URL: https://docs.google.com/spreadsheets/d/e/<id>/pub?output=csv
    Result: {"fileDate": "15/03/2024", "data": [{"date": "01/01/2024", ...}]}
=============================================================================
"""

# logging - Standard Python logging (configured by the Flask app)
import logging

# os - For reading environment variables
import os

# datetime - For injecting "today" in tests
from datetime import date

# typing - For type hints (makes code more readable)
from typing import Optional

# requests - HTTP client used by the fetcher
import requests

from backend.lib.energy_sheet_core.fetcher import DEFAULT_SHEET_URL, FetchConfig, SheetFetcher
from backend.lib.energy_sheet_core.io import ParserConfig, ParseFailurePolicy, parse_sheet_csv
from backend.lib.energy_sheet_core.models import SheetSnapshot
from backend.lib.energy_sheet_core.validate import validate_snapshot

logger = logging.getLogger(__name__)


class SheetService:
    """
    A service class for loading the energy sheet.

    Usage:
        service = SheetService()
        snapshot = service.load_snapshot()
        print(snapshot.file_date, len(snapshot.data))
    """

    def __init__(self, url: str = None, timeout_sec: float = None,
                 parser_config: ParserConfig = None, session: requests.Session = None):
        """
        Initialize the sheet service.

        Settings are loaded from these environment variables:
        - ENERGY_SHEET_URL: The published CSV link
        - ENERGY_SHEET_TIMEOUT: Seconds to wait for Google before giving up
        - ROW_MODE, DATA_START_ROW, FILE_DATE_FALLBACK, FIRST_QUANTITY,
          ON_PARSE_FAILURE: Parser behaviour (see ParserConfig.from_env)

        Args:
            url: Optional sheet URL, overrides ENERGY_SHEET_URL
            timeout_sec: Optional timeout, overrides ENERGY_SHEET_TIMEOUT
            parser_config: Optional parser settings, overrides the env vars
            session: Optional requests session (tests pass a fake one)
        """
        # Get the sheet URL from parameter, environment variable, or use default
        self.url = url or os.getenv('ENERGY_SHEET_URL', DEFAULT_SHEET_URL)

        # The sheet has no timeout of its own, so we always set one
        self.timeout_sec = timeout_sec or float(os.getenv('ENERGY_SHEET_TIMEOUT', '30'))

        self.parser_config = parser_config or ParserConfig.from_env()

        self.fetcher = SheetFetcher(FetchConfig(url=self.url, timeout_sec=self.timeout_sec), session=session)

    def load_snapshot(self, today: Optional[date] = None) -> SheetSnapshot:
        """
        Fetch, parse and validate the sheet.

        Raises:
            TransportError: The download failed or returned a non-2xx status
            StructuralValidationError: The parsed data has the wrong shape

        Bad cells never raise: they become 0 (or are dropped / left empty,
        depending on ON_PARSE_FAILURE), and a missing publication date falls
        back to today's date.
        """
        csv_text = self.fetcher.fetch_csv()
        snapshot = parse_sheet_csv(csv_text, self.parser_config, today=today)
        allow_missing = self.parser_config.on_parse_failure is ParseFailurePolicy.MARK_MISSING
        validated = validate_snapshot(snapshot, allow_missing=allow_missing)
        logger.info("Loaded snapshot: fileDate=%s, %d records", validated.file_date, len(validated.data))
        return validated
