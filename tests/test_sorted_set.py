import pytest

from miniredis.sorted_set import Direction, SortedSet, SSElem


@pytest.fixture
def pis():
    s = SortedSet()
    s.set(3.1415, "pi")
    s.set(2 * 3.1415, "2pi")
    s.set(3 * 3.1415, "3pi")
    return s


def test_empty_set_has_no_members():
    assert len(SortedSet()) == 0


def test_card_and_replace(pis):
    assert len(pis) == 3
    pis.set(3.141592, "pi")
    assert len(pis) == 3


def test_get(pis):
    pis.set(3.141592, "pi")
    assert pis.get("pi") == 3.141592
    assert pis.get("nosuch") is None


def test_contains(pis):
    assert "2pi" in pis
    assert "4pi" not in pis


def test_by_score_ascending(pis):
    pis.set(3.141592, "pi")
    assert pis.by_score(Direction.ASC) == [
        SSElem(3.141592, "pi"),
        SSElem(2 * 3.1415, "2pi"),
        SSElem(3 * 3.1415, "3pi"),
    ]


def test_by_score_descending(pis):
    assert [e.member for e in pis.by_score(Direction.DESC)] == ["3pi", "2pi", "pi"]


def test_rank_by_score(pis):
    pis.set(3.141592, "pi")
    assert pis.rank_by_score("pi", Direction.ASC) == 0
    assert pis.rank_by_score("3pi", Direction.DESC) == 0
    assert pis.rank_by_score("3pi", Direction.ASC) == 2
    assert pis.rank_by_score("nosuch", Direction.ASC) is None


def test_elems_holds_every_member(pis):
    assert sorted(e.member for e in pis.elems()) == ["2pi", "3pi", "pi"]


def test_sort_order_ties_are_lexicographic():
    s = SortedSet()
    s.set(1, "one")
    s.set(1, "1")
    s.set(1, "eins")
    s.set(2, "two")
    s.set(2, "2")
    s.set(2, "zwei")
    s.set(3, "three")
    s.set(3, "3")
    s.set(3, "drei")
    assert len(s) == 9
    assert s.by_score(Direction.ASC) == [
        SSElem(1, "1"),
        SSElem(1, "eins"),
        SSElem(1, "one"),
        SSElem(2, "2"),
        SSElem(2, "two"),
        SSElem(2, "zwei"),
        SSElem(3, "3"),
        SSElem(3, "drei"),
        SSElem(3, "three"),
    ]