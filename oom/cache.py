from pathlib import Path

import structlog

from .exceptions import ConfigError
from .models import Competition, CompetitionDescriptor, PlayerResult

logger = structlog.get_logger(__name__)

FIELD_LABELS = ("key", "name", "date", "url", "number of players")
RESULTS_HEADER = "oom_points, rank_in_comp, result, name"
EOL = "\r\n"


class CompetitionCache:
    """Human-editable per-competition result records.

    Files are stored at: {base_dir}/{comp_id}.txt. A record is written after
    every competition fetched from the website and is trusted as complete on
    later runs, so results can be corrected by hand (e.g. to reflect a
    match-play final played after the qualifying stroke play).
    """

    def __init__(self, base_dir: str | Path = ".") -> None:
        """Initialize the competition cache.

        Args:
            base_dir: Directory holding the cache records (default: ".").
        """
        self.base_dir = Path(base_dir)

    def cache_path(self, comp_id: str) -> Path:
        return self.base_dir / f"{comp_id}.txt"

    def exists(self, comp_id: str) -> bool:
        return self.cache_path(comp_id).exists()

    def get(self, comp_id: str) -> Competition | None:
        """Reads a cached competition.

        Args:
            comp_id: Competition id.

        Returns:
            The cached Competition, or None if there is no record.

        Raises:
            ConfigError: The record exists but cannot be read or parsed.
        """
        path = self.cache_path(comp_id)
        if not path.exists():
            return None

        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(
                f"Cannot read cached competition: {e}", path=str(path)
            ) from e

        competition = parse_record(text, str(path))
        if competition.id != comp_id:
            raise ConfigError(
                f"Cache record holds competition {competition.id}, expected {comp_id}",
                path=str(path),
            )
        logger.debug("cache_hit", comp_id=comp_id, path=str(path))
        return competition

    def put(self, competition: Competition) -> None:
        """Writes a competition record, replacing any existing one.

        Args:
            competition: A fully populated competition.

        Raises:
            ConfigError: A value cannot be stored in the record format.
        """
        path = self.cache_path(competition.id)
        text = format_record(competition)
        path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(path, "w", encoding="utf-8", newline=EOL) as f:
                f.write(text)
            logger.info("competition_cached", comp_id=competition.id, path=str(path))
        except OSError as e:
            logger.warning("cache_write_failed", path=str(path), error=str(e))


def _check_value(comp_id: str, field: str, value: str, allow_comma: bool = True) -> None:
    if "\n" in value or "\r" in value or (not allow_comma and "," in value):
        raise ConfigError(
            f"Competition {comp_id}: {field} {value!r} cannot be stored in a cache record",
            suggestion="Line breaks are never allowed; results may not contain commas.",
        )


def format_record(competition: Competition) -> str:
    """Renders a competition as cache record text with "\\n" line ends.

    Raises:
        ConfigError: A value holds a line break, or a result holds a comma.
            Either would read back as a different record.
    """
    d = competition.descriptor
    values = (d.id, d.name, d.date, d.source_url, str(competition.player_count))
    for label, value in zip(FIELD_LABELS, values):
        _check_value(d.id, label, value)
    lines = [f"{label}, {value}" for label, value in zip(FIELD_LABELS, values)]
    lines.append(RESULTS_HEADER)
    for r in competition.ranked_results():
        _check_value(d.id, "result", r.raw_result, allow_comma=False)
        _check_value(d.id, "name", r.player_name)
        lines.append(f"{r.points:>10}, {r.rank:>12}, {r.raw_result:>6}, {r.player_name}")
    return "\n".join(lines) + "\n"


def _parse_int(value: str, path: str, line_number: int) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigError(
            f"Expected a number, found '{value}'", path=path, line_number=line_number
        ) from None


def parse_record(text: str, path: str = "<record>") -> Competition:
    """Parses cache record text.

    Comment lines starting with "#" may precede the key line. Values are
    whitespace-trimmed; the player name is everything after the third comma.

    Args:
        text: Record text, with either "\\r\\n" or "\\n" line ends.
        path: Where the text came from, for error messages.

    Raises:
        ConfigError: A field is missing, mislabelled or malformed.
    """
    lines = text.splitlines()
    n = 0
    while n < len(lines) and lines[n].startswith("#"):
        n += 1

    values = []
    for label in FIELD_LABELS:
        if n >= len(lines):
            raise ConfigError(f"Missing '{label}' line", path=path, line_number=n + 1)
        found, _, value = lines[n].partition(",")
        if found.strip().lower() != label:
            raise ConfigError(
                f"Expected '{label}' line, found '{lines[n]}'", path=path, line_number=n + 1
            )
        values.append(value.strip())
        n += 1

    comp_id, name, date, url, count = values
    descriptor = CompetitionDescriptor(id=comp_id, name=name, date=date, source_url=url)
    competition = Competition(
        descriptor=descriptor, player_count=_parse_int(count, path, n)
    )

    # skip the results header
    n += 1
    for line_number, line in enumerate(lines[n:], start=n + 1):
        if not line.strip():
            continue
        fields = line.split(",", 3)
        if len(fields) != 4:
            raise ConfigError(
                f"Expected 'points, rank, result, name', found '{line}'",
                path=path,
                line_number=line_number,
            )
        points, rank, raw_result, player_name = (f.strip() for f in fields)
        competition.results[player_name] = PlayerResult(
            player_name=player_name,
            points=_parse_int(points, path, line_number),
            rank=_parse_int(rank, path, line_number),
            raw_result=raw_result,
        )
    return competition


class ListingCache:
    """Raw copies of the yearly "all competitions" page.

    Files are stored at: {base_dir}/all_comps_{year}.dat. There is no expiry;
    a cached listing that lacks a requested competition is refreshed by the
    resolver.
    """

    def __init__(self, base_dir: str | Path = ".") -> None:
        self.base_dir = Path(base_dir)

    def cache_path(self, year: int) -> Path:
        return self.base_dir / f"all_comps_{year}.dat"

    def get(self, year: int) -> bytes | None:
        """Returns the cached listing page, or None if not cached."""
        path = self.cache_path(year)
        if not path.exists():
            return None

        try:
            return path.read_bytes()
        except OSError as e:
            logger.warning("cache_read_failed", path=str(path), error=str(e))
            return None

    def put(self, year: int, data: bytes) -> None:
        path = self.cache_path(year)
        path.parent.mkdir(parents=True, exist_ok=True)

        try:
            path.write_bytes(data)
            logger.debug("listing_cached", year=year, path=str(path))
        except OSError as e:
            logger.warning("cache_write_failed", path=str(path), error=str(e))
