import pathlib

import pytest

SAMPLE_CSV = pathlib.Path(__file__).parent / "sample.csv"


class FakeResponse:
    def __init__(self, text="", status_code=200, reason="OK"):
        self.text = text
        self.status_code = status_code
        self.reason = reason
        self.encoding = None


class FakeSession:
    """Stands in for requests.Session: records calls, returns a canned response or raises."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def sample_text():
    return SAMPLE_CSV.read_text(encoding="utf-8")
