from pathlib import Path

import pytest

from oom.cache import ListingCache
from oom.exceptions import FetchError, ResolutionError
from oom.models import CompetitionDescriptor
from oom.resolver import DescriptorResolver, ResolverState, first_missing_id
from tests.conftest import FakeFetcher, listing_page

YEAR = 2024

STALE_LISTING = listing_page([("100", "Spring Medal", "12/04/2024")])
LIVE_LISTING = listing_page(
    [("100", "Spring Medal", "12/04/2024"), ("200", "Summer Cup", "20/06/2024")]
)


@pytest.fixture
def listing_cache(tmp_path: Path) -> ListingCache:
    return ListingCache(tmp_path)


def make_resolver(
    listing_cache: ListingCache, base_url: str, live_page: str | None
) -> tuple[DescriptorResolver, FakeFetcher]:
    """Builds a resolver whose website serves live_page as the listing, if given."""
    listing_url = f"{base_url}/competition.php?showall=1&time=&show=&year={YEAR}"
    fetcher = FakeFetcher({listing_url: live_page} if live_page is not None else {})
    return DescriptorResolver(fetcher, listing_cache, base_url), fetcher


def requested(*ids: str) -> list[CompetitionDescriptor]:
    return [CompetitionDescriptor(id=i) for i in ids]


def test_listing_url(listing_cache: ListingCache, base_url: str) -> None:
    resolver = DescriptorResolver(FakeFetcher(), listing_cache, base_url + "/")
    assert resolver.listing_url(2016) == (
        f"{base_url}/competition.php?showall=1&time=&show=&year=2016"
    )


def test_stale_cache_is_refetched_once(listing_cache: ListingCache, base_url: str) -> None:
    listing_cache.put(YEAR, STALE_LISTING.encode())
    resolver, fetcher = make_resolver(listing_cache, base_url, LIVE_LISTING)

    resolved = resolver.resolve(YEAR, requested("100", "200"))

    assert [d.id for d in resolved] == ["100", "200"]
    assert [d.name for d in resolved] == ["Spring Medal", "Summer Cup"]
    assert fetcher.calls == [resolver.listing_url(YEAR)]
    assert resolver.refetch_count == 1
    assert resolver.state is ResolverState.RECONCILED
    assert listing_cache.get(YEAR) == LIVE_LISTING.encode()


def test_current_cache_needs_no_network(listing_cache: ListingCache, base_url: str) -> None:
    listing_cache.put(YEAR, LIVE_LISTING.encode())
    resolver, fetcher = make_resolver(listing_cache, base_url, None)

    resolved = resolver.resolve(YEAR, requested("200"))

    assert resolved[0].date == "20/06/2024"
    assert fetcher.calls == []
    assert resolver.refetch_count == 0


def test_still_missing_after_refetch_fails(listing_cache: ListingCache, base_url: str) -> None:
    listing_cache.put(YEAR, STALE_LISTING.encode())
    resolver, fetcher = make_resolver(listing_cache, base_url, LIVE_LISTING)

    with pytest.raises(ResolutionError) as excinfo:
        resolver.resolve(YEAR, requested("100", "300"))

    assert excinfo.value.comp_id == "300"
    assert excinfo.value.year == YEAR
    assert len(fetcher.calls) == 1
    assert resolver.state is ResolverState.FAILED


def test_missing_from_live_listing_fails_without_retry(
    listing_cache: ListingCache, base_url: str
) -> None:
    resolver, fetcher = make_resolver(listing_cache, base_url, STALE_LISTING)

    with pytest.raises(ResolutionError):
        resolver.resolve(YEAR, requested("200"))

    assert len(fetcher.calls) == 1
    assert resolver.refetch_count == 0
    assert listing_cache.get(YEAR) == STALE_LISTING.encode()


def test_listing_fetch_error_propagates(listing_cache: ListingCache, base_url: str) -> None:
    resolver, _ = make_resolver(listing_cache, base_url, None)

    with pytest.raises(FetchError):
        resolver.resolve(YEAR, requested("100"))
    assert resolver.state is ResolverState.INITIAL


def test_urls_from_listing_get_ranking_suffix(
    listing_cache: ListingCache, base_url: str
) -> None:
    listing_cache.put(YEAR, LIVE_LISTING.encode())
    resolver, _ = make_resolver(listing_cache, base_url, None)
    own_url = f"{base_url}/competition.php?compid=200&sort=0"

    resolved = resolver.resolve(
        YEAR, [CompetitionDescriptor(id="100"), CompetitionDescriptor(id="200", source_url=own_url)]
    )

    assert resolved[0].source_url == f"{base_url}/competition.php?compid=100&sort=1"
    assert resolved[1].source_url == own_url
    assert resolved[1].name == "Summer Cup"


def test_all_descriptors(listing_cache: ListingCache, base_url: str) -> None:
    page = listing_page([("1200", "Winter Cup", "02/12/2024"), ("900", "Spring Medal", "12/04/2024")])
    listing_cache.put(YEAR, page.encode())
    resolver, fetcher = make_resolver(listing_cache, base_url, None)

    descriptors = resolver.all_descriptors(YEAR)

    assert [d.id for d in descriptors] == ["900", "1200"]
    assert descriptors[0].source_url == f"{base_url}/competition.php?compid=900"
    assert fetcher.calls == []


def test_first_missing_id() -> None:
    listing = {"100": CompetitionDescriptor(id="100")}
    assert first_missing_id(requested("100"), listing) is None
    assert first_missing_id(requested("100", "300", "400"), listing) == "300"
