"""Shared pytest fixtures for Order of Merit tests."""

import threading
import time

import pytest

from oom.exceptions import FetchError

BASE_URL = "http://golf.example.com"

STANDARD_PAGE = """<html><head><title>Competition Results</title></head><body>
<p><a href="player.php">Members</a></p>
<table>
<tr><th>Name</th><th>Score</th><th></th></tr>
<tr><td><a href="player.php?playerid=1">Alice</a>(12)</td>
<td><a href="viewround.php?roundid=11" title="Countback results: Back 9 - 18">72</a></td>
<td></td>
</tr>
<tr><td><a href="player.php?playerid=2">Bob</a>(18)</td>
<td><a href="viewround.php?roundid=12">75</a></td>
<td></td>
</tr>
<tr><td><a href="player.php?playerid=3">Carol</a></td>
<td><a href="viewround.php?roundid=13">DQ</a></td>
<td></td>
</tr>
</table></body></html>
"""

CHAMPIONSHIP_PAGE = """<html><body><h1>Club Championship</h1>
<table>
<tr><td class="namecol">Ann Other (12)</td><td>80</td><td><span>158</span></td></tr>
<tr><td class="namecol">Ben Hogan</td><td>82</td><td>160</td></tr>
<tr><td class="namecol">Cat Green (20)</td><td>90</td><td>&nbsp;</td></tr>
</table></body></html>
"""


def listing_page(entries: list[tuple[str, str, str]]) -> str:
    """Builds an "all competitions" page from (id, name, date) entries."""
    rows = "\n".join(
        f'<tr><td><a href="competition.php?compid={comp_id}">{name}</a></td>'
        f"<td>{date}</td><td>Stableford</td></tr>"
        for comp_id, name, date in entries
    )
    return f"<html><body><table>\n<tr><th>Competition</th><th>Date</th></tr>\n{rows}\n</table></body></html>"


class FakeFetcher:
    """Serves canned pages by URL and records every call."""

    def __init__(self, pages: dict[str, str | bytes] | None = None, delay: float = 0.0):
        self.pages = pages or {}
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def __call__(self, url: str) -> bytes:
        with self._lock:
            self.calls.append(url)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if url not in self.pages:
                raise FetchError(f"Server returned status 404 for {url}", url=url, status_code=404)
            page = self.pages[url]
            return page.encode("utf-8") if isinstance(page, str) else page
        finally:
            with self._lock:
                self.in_flight -= 1


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def standard_page() -> str:
    return STANDARD_PAGE


@pytest.fixture
def championship_page() -> str:
    return CHAMPIONSHIP_PAGE


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()
