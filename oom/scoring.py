from collections.abc import Sequence

from .models import PlayerResult


def is_numeric_result(raw_result: str) -> bool:
    """True for a stroke/stableford score, False for DQ, NS, NR and the like."""
    try:
        int(raw_result)
    except ValueError:
        return False
    return True


def score_results(entries: Sequence[tuple[str, str]]) -> list[PlayerResult]:
    """Awards Order of Merit points to results in finishing order.

    With k players the winner gets k points, second place k - 1 and so on
    down to 1 point for last. Players without a numeric result get no points
    wherever they are listed. Rank is the position on the page; equal scores
    are not treated as ties.

    Args:
        entries: (player_name, raw_result) pairs, best first.

    Returns:
        One PlayerResult per entry, in the same order.
    """
    player_count = len(entries)
    results = []
    for position, (name, raw_result) in enumerate(entries):
        points = player_count - position if is_numeric_result(raw_result) else 0
        results.append(
            PlayerResult(
                player_name=name,
                points=points,
                rank=position + 1,
                raw_result=raw_result,
            )
        )
    return results
