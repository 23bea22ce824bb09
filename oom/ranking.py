from collections.abc import Sequence

from .models import Competition, OrderOfMerit, PlayerStanding


def build_order_of_merit(year: int, competitions: Sequence[Competition]) -> OrderOfMerit:
    """Totals each player's points across the season's competitions.

    Players are ranked by total points, highest first; players level on
    points are listed by name and ranked by position.

    Args:
        year: The season.
        competitions: Fully loaded competitions.

    Returns:
        The Order of Merit with standings in rank order.
    """
    standings: dict[str, PlayerStanding] = {}
    for competition in competitions:
        for name, result in competition.results.items():
            standing = standings.setdefault(name, PlayerStanding(name=name))
            standing.by_competition[competition.id] = result
            standing.points += result.points
            standing.competitions_played += 1

    ranked = sorted(standings.values(), key=lambda s: (-s.points, s.name))
    for position, standing in enumerate(ranked, start=1):
        standing.rank = position

    return OrderOfMerit(year=year, competitions=list(competitions), standings=ranked)
