"""Parsing of the club website's results pages and competition listing.

The pages are not parsed as HTML. Results are cut into one fragment per
player at a row marker, and the listing is scanned for ``?compid=`` links;
see ``oom.extract`` for the row formats.
"""

from collections.abc import Iterator

import structlog

from .extract import Layout, extract_player
from .models import CompetitionDescriptor

logger = structlog.get_logger(__name__)

STANDARD_ROW_MARKER = "?playerid="
CHAMPIONSHIP_ROW_MARKER = 'class="namecol">'
COMP_ID_MARKER = "?compid="

ROW_MARKERS = {
    Layout.STANDARD: STANDARD_ROW_MARKER,
    Layout.CHAMPIONSHIP: CHAMPIONSHIP_ROW_MARKER,
}


def detect_layout(page: str) -> Layout:
    """Picks the layout of a results page.

    Any player profile link means the standard layout; pages without one are
    the championship layout.
    """
    if STANDARD_ROW_MARKER in page:
        return Layout.STANDARD
    return Layout.CHAMPIONSHIP


def split_fragments(page: str, layout: Layout) -> Iterator[str]:
    """Yields one fragment per player row, in page order.

    Each fragment starts at a row marker and runs up to the next one (the
    last runs to the end of the page). Everything before the first marker is
    page furniture and is skipped.
    """
    marker = ROW_MARKERS[layout]
    start = page.find(marker)
    while start != -1:
        end = page.find(marker, start + len(marker))
        if end == -1:
            yield page[start:]
            return
        yield page[start:end]
        start = end


def parse_results_page(page: str) -> list[tuple[str, str]]:
    """Returns (player_name, raw_result) pairs in finishing order.

    Raises:
        ParseError: A row did not match the detected layout.
    """
    layout = detect_layout(page)
    entries = [extract_player(fragment, layout) for fragment in split_fragments(page, layout)]
    logger.debug("results_page_parsed", layout=layout.value, players=len(entries))
    return entries


def _digits_at(text: str, start: int) -> str:
    end = start
    while end < len(text) and text[end] in "0123456789":
        end += 1
    return text[start:end]


def parse_comp_key(text: str) -> str | None:
    """Returns the competition id from the first ``?compid=`` in text.

    Args:
        text: Any text, e.g. a full competition URL or a configuration line.

    Returns:
        The run of digits after the marker, or None if there is none.
    """
    i = text.find(COMP_ID_MARKER)
    if i == -1:
        return None
    return _digits_at(text, i + len(COMP_ID_MARKER)) or None


def competition_url(base_url: str, comp_id: str) -> str:
    return f"{base_url.rstrip('/')}/competition.php?compid={comp_id}"


def parse_listing(page: str, base_url: str) -> dict[str, CompetitionDescriptor]:
    """Parses the "all competitions" page for one year.

    Each entry is a ``?compid=<digits>`` link whose anchor text is the
    competition name, followed by a ``<td>`` cell holding the date. A
    trailing entry missing any of these ends the listing.

    Args:
        page: The listing page text.
        base_url: Club website root used to build each competition's URL.

    Returns:
        A dictionary mapping competition id to its descriptor.
    """
    listing: dict[str, CompetitionDescriptor] = {}
    pos = 0
    while True:
        i = page.find(COMP_ID_MARKER, pos)
        if i == -1:
            break
        id_start = i + len(COMP_ID_MARKER)
        comp_id = _digits_at(page, id_start)

        name_start = page.find('">', id_start)
        if name_start == -1:
            break
        name_start += 2
        name_end = page.find("</a>", name_start)
        if name_end == -1:
            break

        date_start = page.find("<td>", name_end)
        if date_start == -1:
            break
        date_start += 4
        date_end = page.find("</td>", date_start)
        if date_end == -1:
            break
        pos = date_end

        if not comp_id:
            logger.debug("listing_entry_without_id", offset=i)
            continue
        listing[comp_id] = CompetitionDescriptor(
            id=comp_id,
            name=page[name_start:name_end].strip(),
            date=page[date_start:date_end].strip(),
            source_url=competition_url(base_url, comp_id),
        )

    logger.debug("listing_parsed", competitions=len(listing))
    return listing


def decode_page(data: bytes) -> str:
    """Decodes fetched page bytes; undecodable bytes become U+FFFD."""
    return data.decode("utf-8", errors="replace")
