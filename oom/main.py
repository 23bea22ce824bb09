import logging
import sys
from datetime import date

import click
import structlog

from .cache import CompetitionCache, ListingCache
from .config import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_CREDENTIALS_FILE,
    DEFAULT_OUTPUT_FILE,
    Settings,
    read_credentials,
    read_requested_competitions,
)
from .exceptions import OomError
from .loader import CompetitionLoader
from .ranking import build_order_of_merit
from .report import write_report
from .resolver import DescriptorResolver
from .scraper import ClubSession, Credentials

logger = structlog.get_logger(__name__)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler("oom.log"),
        ],
    )
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def credentials_from(path: str):
    """Returns a provider reading credentials from path, or prompting if absent."""

    def provide() -> Credentials:
        credentials = read_credentials(path)
        if credentials is None:
            email = click.prompt("Enter email")
            pin = click.prompt("Enter PIN", hide_input=True)
            credentials = Credentials(email=email.strip(), pin=pin.strip())
        return credentials

    return provide


@click.command()
@click.option("--year", type=int, default=None, help="Season year (default: current year)")
@click.option("--all", "all_comps", is_flag=True, help="Include every competition of the year")
@click.option("--detail", is_flag=True, help="Show rank and result next to the points")
@click.option("--config", "config_file", default=DEFAULT_CONFIG_FILE, help="Competition list")
@click.option(
    "--credentials",
    "credentials_file",
    default=DEFAULT_CREDENTIALS_FILE,
    help="File with login email and PIN (prompted for if missing)",
)
@click.option("--cache-dir", default=None, help="Directory for cached pages and results")
@click.option("--output", default=DEFAULT_OUTPUT_FILE, help="Output CSV file")
@click.option("--verbose", is_flag=True, help="Log debug output")
def main(year, all_comps, detail, config_file, credentials_file, cache_dir, output, verbose):
    """Golf club Order of Merit builder"""
    setup_logging(verbose)
    year = year or date.today().year
    settings = Settings.from_env(cache_dir)
    logger.info("building_order_of_merit", year=year, base_url=settings.base_url)

    session = ClubSession(settings.base_url, credentials_from(credentials_file))
    resolver = DescriptorResolver(
        session.fetch, ListingCache(settings.cache_dir), settings.base_url
    )
    loader = CompetitionLoader(session.fetch, CompetitionCache(settings.cache_dir))

    try:
        if all_comps:
            descriptors = resolver.all_descriptors(year)
        else:
            requested = read_requested_competitions(config_file)
            descriptors = resolver.resolve(year, requested)
        competitions = loader.load_all(descriptors)
        oom = build_order_of_merit(year, competitions)
        write_report(oom, output, detail=detail)
    except OomError as e:
        logger.error("run_failed", **e.to_dict())
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    logger.info(
        "order_of_merit_complete",
        competitions=len(competitions),
        players=len(oom.standings),
    )


if __name__ == "__main__":
    main()
