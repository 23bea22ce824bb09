from collections.abc import Sequence
from enum import Enum

import structlog

from .cache import ListingCache
from .exceptions import ResolutionError
from .models import CompetitionDescriptor
from .parsers import decode_page, parse_listing
from .scraper import Fetcher

logger = structlog.get_logger(__name__)

# Asks the website to rank competitions on net rather than gross scores.
NET_RANKING_SUFFIX = "&sort=1"


class ResolverState(Enum):
    INITIAL = "initial"
    RECONCILED = "reconciled"
    FAILED = "failed"


def first_missing_id(
    requested: Sequence[CompetitionDescriptor],
    listing: dict[str, CompetitionDescriptor],
) -> str | None:
    """Returns the first requested id that is not in the listing."""
    for descriptor in requested:
        if descriptor.id not in listing:
            return descriptor.id
    return None


class DescriptorResolver:
    """Completes requested competitions from the year's listing page.

    The listing is read cache-first. A cached listing may predate the latest
    competition, so a requested id missing from it triggers exactly one live
    refetch before the id is declared unknown.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        listing_cache: ListingCache,
        base_url: str,
        url_suffix: str = NET_RANKING_SUFFIX,
    ):
        """Initializes the DescriptorResolver.

        Args:
            fetcher: Callable returning the page bytes for a URL.
            listing_cache: Store for the raw listing pages.
            base_url: Root URL of the club website.
            url_suffix: Appended to listing URLs to pick the ranking mode.
        """
        self.fetcher = fetcher
        self.listing_cache = listing_cache
        self.base_url = base_url.rstrip("/")
        self.url_suffix = url_suffix
        self.state = ResolverState.INITIAL
        self.refetch_count = 0

    def listing_url(self, year: int) -> str:
        return f"{self.base_url}/competition.php?showall=1&time=&show=&year={year}"

    def fetch_listing_page(self, year: int, use_cache: bool = True) -> tuple[bytes, bool]:
        """Returns the listing page for year and whether it came from cache.

        A page fetched from the website replaces the cached copy.
        """
        if use_cache:
            data = self.listing_cache.get(year)
            if data is not None:
                logger.debug("listing_cache_hit", year=year)
                return data, True

        data = self.fetcher(self.listing_url(year))
        self.listing_cache.put(year, data)
        return data, False

    def fetch_listing(
        self, year: int, use_cache: bool = True
    ) -> tuple[dict[str, CompetitionDescriptor], bool]:
        data, from_cache = self.fetch_listing_page(year, use_cache)
        return parse_listing(decode_page(data), self.base_url), from_cache

    def resolve(
        self, year: int, requested: Sequence[CompetitionDescriptor]
    ) -> list[CompetitionDescriptor]:
        """Fills in name, date and URL of each requested competition.

        A URL supplied with the request is kept; otherwise the listing URL
        plus the ranking-mode suffix is used.

        Args:
            year: Season whose listing is consulted.
            requested: Competitions asked for, possibly with URLs.

        Returns:
            Completed descriptors, in the order requested.

        Raises:
            ResolutionError: An id is not listed even on the live page.
            FetchError: The listing page could not be fetched.
        """
        listing, from_cache = self.fetch_listing(year)
        missing = first_missing_id(requested, listing)

        if missing is not None and from_cache:
            logger.info("listing_cache_stale", year=year, missing_id=missing)
            self.refetch_count += 1
            listing, from_cache = self.fetch_listing(year, use_cache=False)
            missing = first_missing_id(requested, listing)

        if missing is not None:
            self.state = ResolverState.FAILED
            raise ResolutionError(
                f"Competition id {missing} not found on the {year} competition list",
                comp_id=missing,
                year=year,
            )

        self.state = ResolverState.RECONCILED
        resolved = [d.with_listing(listing[d.id], self.url_suffix) for d in requested]
        logger.info("descriptors_resolved", year=year, count=len(resolved))
        return resolved

    def all_descriptors(self, year: int) -> list[CompetitionDescriptor]:
        """Returns every competition on the year's listing, ordered by id."""
        listing, _ = self.fetch_listing(year)
        self.state = ResolverState.RECONCILED
        return [listing[comp_id] for comp_id in sorted(listing, key=int)]
