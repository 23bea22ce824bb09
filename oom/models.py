from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class CompetitionDescriptor:
    """Identifies one competition on the club website.

    The id is the numeric ``compid`` used by the website; it is also the
    cache key. Descriptors are immutable; use ``with_listing`` to fill in
    the fields taken from the listing page.
    """

    id: str
    name: str = ""
    date: str = ""
    source_url: str = ""

    def with_listing(
        self, listed: "CompetitionDescriptor", url_suffix: str = ""
    ) -> "CompetitionDescriptor":
        """Returns a copy with name and date from the listing page.

        A caller-supplied source_url is kept; otherwise the listing URL plus
        url_suffix is used.
        """
        source_url = self.source_url or f"{listed.source_url}{url_suffix}"
        return replace(self, name=listed.name, date=listed.date, source_url=source_url)


@dataclass
class PlayerResult:
    player_name: str
    points: int
    rank: int  # 1-based position on the results page
    raw_result: str  # as displayed, e.g. "36", "72", "DQ", "NS"


@dataclass
class Competition:
    """A competition and every player's result in it."""

    descriptor: CompetitionDescriptor
    player_count: int = 0
    results: dict[str, PlayerResult] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.descriptor.id

    def ranked_results(self) -> list[PlayerResult]:
        """Returns the results in finishing order."""
        return sorted(self.results.values(), key=lambda r: (r.rank, r.player_name))


@dataclass
class PlayerStanding:
    """One player's season total across all competitions."""

    name: str
    points: int = 0
    competitions_played: int = 0
    rank: int = 0
    by_competition: dict[str, PlayerResult] = field(default_factory=dict)


@dataclass
class OrderOfMerit:
    year: int
    competitions: list[Competition]
    standings: list[PlayerStanding] = field(default_factory=list)
