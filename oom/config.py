"""Configuration files and settings.

The competitions making up the Order of Merit are listed in a plain text
file (``oom.conf`` by default), one per line, as copied from the club
website::

    Spring Medal, ?compid=1239
    Club Championship, http://www.colchestergolfclub.com/competition.php?compid=1301&sort=0

Only the digits after ``?compid=`` are required. When the text after the
first comma is a full http(s) URL it is used as-is to fetch the results,
which allows choosing e.g. gross rather than net ranking for a competition.
Lines without a competition id are ignored.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

import structlog

from .exceptions import ConfigError
from .models import CompetitionDescriptor
from .parsers import parse_comp_key
from .scraper import Credentials

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://www.colchestergolfclub.com"
DEFAULT_CONFIG_FILE = "oom.conf"
DEFAULT_CREDENTIALS_FILE = "creds.conf"
DEFAULT_OUTPUT_FILE = "out.csv"
DEFAULT_CACHE_DIR = "."


@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    cache_dir: str = DEFAULT_CACHE_DIR

    @classmethod
    def from_env(cls, cache_dir: str | None = None) -> "Settings":
        """Builds settings from OOM_BASE_URL and OOM_CACHE_DIR.

        An explicit cache_dir takes precedence over the environment.
        """
        base_url = os.getenv("OOM_BASE_URL", DEFAULT_BASE_URL).strip()
        env_cache_dir = os.getenv("OOM_CACHE_DIR", DEFAULT_CACHE_DIR).strip()
        return cls(base_url=base_url, cache_dir=cache_dir or env_cache_dir)


def _explicit_url(line: str) -> str:
    _, _, rest = line.partition(",")
    candidate = rest.strip()
    parsed = urlparse(candidate)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return candidate
    return ""


def parse_requested_competitions(text: str) -> list[CompetitionDescriptor]:
    """Parses configuration text into descriptors holding id and optional URL."""
    requested = []
    for line in text.splitlines():
        comp_id = parse_comp_key(line)
        if comp_id is None:
            continue
        requested.append(CompetitionDescriptor(id=comp_id, source_url=_explicit_url(line)))
    return requested


def read_requested_competitions(path: str | Path) -> list[CompetitionDescriptor]:
    """Reads the competitions making up the Order of Merit.

    Args:
        path: Configuration file path.

    Returns:
        Descriptors in file order, with only id and (optionally) source_url set.

    Raises:
        ConfigError: The file cannot be read or names the same id twice.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read competition list: {e}", path=str(path)) from e

    requested = parse_requested_competitions(text)
    seen: set[str] = set()
    for descriptor in requested:
        if descriptor.id in seen:
            raise ConfigError(
                f"Competition id {descriptor.id} is listed more than once",
                path=str(path),
            )
        seen.add(descriptor.id)

    logger.info("competition_list_read", path=str(path), count=len(requested))
    return requested


def read_credentials(path: str | Path) -> Credentials | None:
    """Reads login credentials: email on the first line, PIN on the second.

    Returns:
        The credentials, or None if the file does not exist.

    Raises:
        ConfigError: The file exists but lacks either value.
    """
    path = Path(path)
    if not path.exists():
        return None

    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        raise ConfigError(f"Cannot read credentials: {e}", path=str(path)) from e

    if len(lines) < 2 or not lines[0].strip() or not lines[1].strip():
        raise ConfigError(
            "Credentials file needs the email on line 1 and the PIN on line 2",
            path=str(path),
        )
    return Credentials(email=lines[0].strip(), pin=lines[1].strip())
