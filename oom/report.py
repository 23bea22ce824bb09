import csv
from pathlib import Path

import structlog

from .exceptions import ConfigError
from .models import OrderOfMerit, PlayerResult

logger = structlog.get_logger(__name__)

# Columns before the per-competition columns: rank, name, oomPts, #Comp
LEADING_COLUMNS = 4


def ordinal(n: int) -> str:
    """Returns n with its English ordinal suffix, e.g. 1st, 12th, 23rd."""
    if 10 <= n % 100 <= 19:
        return f"{n}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def format_player_result(result: PlayerResult, detail: bool = False) -> str:
    if not detail:
        return str(result.points)
    return f"{result.points} ({ordinal(result.rank)} {result.raw_result})"


def report_rows(oom: OrderOfMerit, detail: bool = False) -> list[list[str]]:
    """Builds the report table: three heading rows, a header, one row per player."""
    blanks = [""] * LEADING_COLUMNS
    competitions = oom.competitions
    rows = [
        [f"Year {oom.year}"],
        blanks + [c.id for c in competitions],
        blanks + [c.descriptor.date for c in competitions],
        ["rank", "name", "oomPts", "#Comp"] + [c.descriptor.name for c in competitions],
    ]
    for standing in oom.standings:
        row = [
            str(standing.rank),
            standing.name,
            str(standing.points),
            str(standing.competitions_played),
        ]
        for competition in competitions:
            result = standing.by_competition.get(competition.id)
            row.append(format_player_result(result, detail) if result else "")
        rows.append(row)
    return rows


def write_report(oom: OrderOfMerit, path: str | Path, detail: bool = False) -> None:
    """Writes the Order of Merit as CSV.

    Args:
        oom: The ranked Order of Merit.
        path: Output file path.
        detail: Show each player's rank and result next to their points.

    Raises:
        ConfigError: The output file cannot be written.
    """
    path = Path(path)
    rows = report_rows(oom, detail)
    try:
        with open(path, "w", encoding="utf-8", newline="") as f:
            csv.writer(f).writerows(rows)
    except OSError as e:
        raise ConfigError(
            f"Cannot write report: {e}",
            path=str(path),
            suggestion="Check that the output directory exists and is writable.",
        ) from e
    logger.info("report_written", path=str(path), players=len(oom.standings))
