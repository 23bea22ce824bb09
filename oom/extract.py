"""Extraction of a player's name and result from one results-table row.

The club website renders competition results in one of two layouts:

``standard``
    Most competitions. Each row links the player's profile::

        ?playerid=76041">Jo Mager</a>(16)</td>
        <td><a href="viewround.php?roundid=16413" title="Countback...">24</a></td>

``championship``
    Multi-round club championships. The name sits in a ``namecol`` cell,
    possibly followed by a handicap in parentheses, and the final cell of
    the row holds the total::

        class="namecol">Ann Other (12)</td><td>80</td><td><span>158</span></td></tr>

Only the tokens at these anchors are extracted; anything else on the page
is ignored.
"""

from enum import Enum

from .exceptions import ParseError

NAME_END = "</a>"
STANDARD_RESULT_END = "</a></td>"
CHAMPIONSHIP_ROW_END = "</td></tr>"
SPAN_END = "</span>"
NO_SCORE_DISPLAY = "&nbsp;"
NO_SCORE = "NS"


class Layout(str, Enum):
    STANDARD = "standard"
    CHAMPIONSHIP = "championship"


def _find(fragment: str, anchor: str, layout: Layout, start: int = 0) -> int:
    i = fragment.find(anchor, start)
    if i == -1:
        raise ParseError(
            f"Result row has no '{anchor}' ({layout.value} layout)",
            layout=layout.value,
            anchor=anchor,
            html_snippet=fragment,
        )
    return i


def extract_standard(fragment: str) -> tuple[str, str]:
    """Extracts (name, result) from a ``standard`` layout row."""
    layout = Layout.STANDARD
    name_start = _find(fragment, ">", layout) + 1
    name_end = _find(fragment, NAME_END, layout, name_start)
    name = fragment[name_start:name_end].strip()

    rest_start = name_end + len(NAME_END)
    result_end = _find(fragment, STANDARD_RESULT_END, layout, rest_start)
    cell = fragment[rest_start:result_end]
    result = cell[cell.rfind(">") + 1 :].strip()
    return name, result


def extract_championship(fragment: str) -> tuple[str, str]:
    """Extracts (name, result) from a ``championship`` layout row.

    The handicap annotation after the name is dropped and a blank score
    cell is reported as ``NS``.
    """
    layout = Layout.CHAMPIONSHIP
    name_start = _find(fragment, ">", layout) + 1
    name_end = _find(fragment, "<", layout, name_start)
    handicap = fragment.find("(", name_start, name_end)
    if handicap != -1:
        name_end = handicap
    name = fragment[name_start:name_end].strip()

    row_end = _find(fragment, CHAMPIONSHIP_ROW_END, layout, name_end)
    cell = fragment[name_end:row_end]
    if cell.endswith(SPAN_END):
        cell = cell[: -len(SPAN_END)]
    result = cell[cell.rfind(">") + 1 :]
    if result == NO_SCORE_DISPLAY:
        result = NO_SCORE
    return name, result


def extract_player(fragment: str, layout: Layout) -> tuple[str, str]:
    """Returns (player_name, raw_result) for one results-table row.

    Args:
        fragment: The page text for exactly one player's row.
        layout: Which of the two known page layouts the row comes from.

    Raises:
        ParseError: The row lacks an anchor the layout requires.
    """
    if layout is Layout.STANDARD:
        return extract_standard(fragment)
    return extract_championship(fragment)
