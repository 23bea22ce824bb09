import threading
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, wait

import structlog

from .cache import CompetitionCache
from .exceptions import ConfigError
from .models import Competition, CompetitionDescriptor
from .parsers import decode_page, parse_results_page
from .scoring import score_results
from .scraper import Fetcher

logger = structlog.get_logger(__name__)

# Most page fetches allowed in flight at once.
MAX_IN_FLIGHT = 10


class CompetitionLoader:
    """Populates competitions from the cache or the club website.

    Each competition is loaded by its own worker; page fetches pass through
    a fixed-size admission gate so at most ``max_in_flight`` are in flight.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        cache: CompetitionCache,
        max_in_flight: int = MAX_IN_FLIGHT,
    ):
        """Initializes the CompetitionLoader.

        Args:
            fetcher: Callable returning the page bytes for a URL.
            cache: Store for per-competition records.
            max_in_flight: Size of the admission gate for page fetches.
        """
        self.fetcher = fetcher
        self.cache = cache
        self.max_in_flight = max_in_flight
        self._gate = threading.BoundedSemaphore(max_in_flight)
        self._lock = threading.Lock()
        self.in_flight = 0
        self.peak_in_flight = 0

    def _fetch(self, url: str) -> bytes:
        with self._gate:
            with self._lock:
                self.in_flight += 1
                self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
            try:
                return self.fetcher(url)
            finally:
                with self._lock:
                    self.in_flight -= 1

    def load(self, descriptor: CompetitionDescriptor) -> Competition:
        """Loads one competition, from its cache record if there is one.

        A competition fetched from the website is scored and written to the
        cache before it is returned.

        Raises:
            ConfigError: The descriptor has no id, or no URL and no cache record,
                or a fetched value cannot be stored in the cache record.
            FetchError: The results page could not be fetched.
            ParseError: The results page matched neither known layout.
        """
        if not descriptor.id:
            raise ConfigError("Competition descriptor has no id")

        cached = self.cache.get(descriptor.id)
        if cached is not None:
            return cached

        if not descriptor.source_url:
            raise ConfigError(
                f"Competition {descriptor.id} is not cached and has no URL",
                suggestion="Resolve descriptors against the competition listing first.",
            )

        page = decode_page(self._fetch(descriptor.source_url))
        competition = Competition(descriptor=descriptor)
        for result in score_results(parse_results_page(page)):
            if result.player_name in competition.results:
                logger.warning(
                    "duplicate_player",
                    comp_id=descriptor.id,
                    player=result.player_name,
                    rank=result.rank,
                )
            competition.results[result.player_name] = result
            competition.player_count += 1

        logger.info(
            "competition_fetched",
            comp_id=descriptor.id,
            name=descriptor.name,
            players=competition.player_count,
        )
        self.cache.put(competition)
        return competition

    def load_all(self, descriptors: Sequence[CompetitionDescriptor]) -> list[Competition]:
        """Loads every competition concurrently and waits for all of them.

        Args:
            descriptors: Competitions to load; ids must be unique.

        Returns:
            The populated competitions, in the order of descriptors.

        Raises:
            OomError: The first failure in descriptor order, raised once
                every worker has finished. No partial result is returned.
        """
        if not descriptors:
            return []

        logger.info(
            "loading_competitions",
            count=len(descriptors),
            max_in_flight=self.max_in_flight,
        )
        with ThreadPoolExecutor(max_workers=len(descriptors)) as executor:
            futures = [executor.submit(self.load, d) for d in descriptors]
            wait(futures)

        competitions = []
        for descriptor, future in zip(descriptors, futures):
            error = future.exception()
            if error is not None:
                logger.error(
                    "competition_load_failed",
                    comp_id=descriptor.id,
                    error_type=type(error).__name__,
                )
                raise error
            competitions.append(future.result())

        logger.info(
            "competitions_loaded",
            count=len(competitions),
            peak_in_flight=self.peak_in_flight,
        )
        return competitions
