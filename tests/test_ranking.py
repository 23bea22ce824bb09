import csv
from pathlib import Path

import pytest

from oom.exceptions import ConfigError
from oom.models import Competition, CompetitionDescriptor, PlayerResult
from oom.ranking import build_order_of_merit
from oom.report import format_player_result, ordinal, report_rows, write_report


def make_competition(
    comp_id: str, name: str, results: list[tuple[str, int, int, str]]
) -> Competition:
    return Competition(
        descriptor=CompetitionDescriptor(id=comp_id, name=name, date=f"{comp_id}/05/2024"),
        player_count=len(results),
        results={n: PlayerResult(n, points, rank, raw) for n, points, rank, raw in results},
    )


SPRING = make_competition(
    "10", "Spring Medal", [("Alice", 3, 1, "72"), ("Bob", 2, 2, "75"), ("Carol", 0, 3, "DQ")]
)
SUMMER = make_competition("20", "Summer Cup", [("Bob", 2, 1, "38"), ("Dan", 1, 2, "30")])


def test_build_order_of_merit() -> None:
    oom = build_order_of_merit(2024, [SPRING, SUMMER])

    assert [(s.rank, s.name, s.points, s.competitions_played) for s in oom.standings] == [
        (1, "Bob", 4, 2),
        (2, "Alice", 3, 1),
        (3, "Dan", 1, 1),
        (4, "Carol", 0, 1),
    ]
    assert set(oom.standings[0].by_competition) == {"10", "20"}


def test_equal_points_are_listed_by_name() -> None:
    a = make_competition("1", "A", [("Zoe", 2, 1, "40"), ("Amy", 1, 2, "35")])
    b = make_competition("2", "B", [("Amy", 2, 1, "40"), ("Zoe", 1, 2, "35")])

    oom = build_order_of_merit(2024, [a, b])

    assert [(s.rank, s.name) for s in oom.standings] == [(1, "Amy"), (2, "Zoe")]


def test_ordinal() -> None:
    assert [ordinal(n) for n in (1, 2, 3, 4, 11, 12, 13, 21, 22, 23, 101, 111)] == [
        "1st", "2nd", "3rd", "4th", "11th", "12th",
        "13th", "21st", "22nd", "23rd", "101st", "111th",
    ]


def test_format_player_result() -> None:
    result = PlayerResult("Bob", 2, 2, "75")
    assert format_player_result(result) == "2"
    assert format_player_result(result, detail=True) == "2 (2nd 75)"


def test_report_rows() -> None:
    rows = report_rows(build_order_of_merit(2024, [SPRING, SUMMER]))

    assert rows[0] == ["Year 2024"]
    assert rows[1] == ["", "", "", "", "10", "20"]
    assert rows[2] == ["", "", "", "", "10/05/2024", "20/05/2024"]
    assert rows[3] == ["rank", "name", "oomPts", "#Comp", "Spring Medal", "Summer Cup"]
    assert rows[4] == ["1", "Bob", "4", "2", "2", "2"]
    assert rows[5] == ["2", "Alice", "3", "1", "3", ""]


def test_write_report_detail(tmp_path: Path) -> None:
    path = tmp_path / "out.csv"

    write_report(build_order_of_merit(2024, [SPRING, SUMMER]), path, detail=True)

    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[4] == ["1", "Bob", "4", "2", "2 (2nd 75)", "2 (1st 38)"]
    assert rows[7] == ["4", "Carol", "0", "1", "0 (3rd DQ)", ""]


def test_unwritable_report_raises_config_error(tmp_path: Path) -> None:
    path = tmp_path / "no_such_dir" / "out.csv"

    with pytest.raises(ConfigError) as excinfo:
        write_report(build_order_of_merit(2024, [SPRING]), path)

    assert excinfo.value.path == str(path)
