# backend/lib/energy_sheet_core/fetcher.py
import logging
from dataclasses import dataclass
from typing import Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_SHEET_URL = (
    "https://docs.google.com/spreadsheets/d/e/"
    "2PACX-1vSBi2FZwSCEfR_5v8LArpuIzcAo3jOmHPBYFEdJ6RXUv2kVNrbQ8YlLaR86M4XkjshaV-7IzZsChh2E"
    "/pub?output=csv"
)


class TransportError(RuntimeError):
    """Fetching the sheet failed or the server answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class FetchConfig:
    url: str = DEFAULT_SHEET_URL
    timeout_sec: float = 30.0
    headers: Optional[Dict[str, str]] = None


class SheetFetcher:
    """
    Downloads the published sheet as CSV text.

    One attempt per call, no retries: a failure is raised straight away as
    TransportError. The session is only reused for connection pooling.
    """

    def __init__(self, cfg: Optional[FetchConfig] = None, session: Optional[requests.Session] = None):
        self.cfg = cfg or FetchConfig()
        self.session = session or requests.Session()

    def fetch_csv(self) -> str:
        logger.info("Fetching data from: %s", self.cfg.url)
        try:
            response = self.session.get(self.cfg.url, headers=self.cfg.headers, timeout=self.cfg.timeout_sec)
        except requests.RequestException as e:
            raise TransportError(f"Failed to fetch sheet: {e}") from e

        logger.info("Response status: %s", response.status_code)
        if not 200 <= response.status_code < 300:
            raise TransportError(
                f"Failed to fetch sheet: {response.status_code} {response.reason}",
                status_code=response.status_code,
            )

        # Google serves the export without a charset, which requests would read as latin-1
        response.encoding = "utf-8"
        text = response.text
        logger.debug("CSV text length: %d", len(text))
        return text
