import pytest

from apps.api.app.content import ContentLevel, certification_rank, normalize_certification
from apps.api.app.domain import RatingRecord, make_query, parse_era
from apps.api.app.errors import InvalidQuery
from apps.api.app.moods import MOOD_TABLE


def test_members_are_required_and_deduplicated():
    with pytest.raises(InvalidQuery):
        make_query(member_ids=[])
    with pytest.raises(InvalidQuery):
        make_query(member_ids=["  "])
    q = make_query(member_ids=["a", "b", "a"])
    assert q.member_ids == ("a", "b")


@pytest.mark.parametrize(
    "kw",
    [
        {"page": 0},
        {"max_runtime": 0},
        {"max_runtime": -10},
        {"content_rating": "X"},
        {"era": "the future"},
        {"parental": {"violence": "extreme"}},
        {"parental": {"gore": "Mild"}},
        {"moods": ["sleepy"], "known_moods": tuple(MOOD_TABLE)},
    ],
)
def test_invalid_queries_are_rejected(kw):
    with pytest.raises(InvalidQuery):
        make_query(member_ids=["a"], **kw)


def test_invalid_query_is_a_value_error():
    assert issubclass(InvalidQuery, ValueError)


def test_moods_are_normalized():
    q = make_query(member_ids=["a"], moods=["Funny", "funny", " scary "], known_moods=tuple(MOOD_TABLE))
    assert q.moods == ("funny", "scary")


def test_eras():
    assert parse_era("1980s").start_year == 1980
    assert parse_era("1980s").end_year == 1989
    pre = parse_era("Pre-40s")
    assert pre.start_year is None and pre.end_year == 1939
    assert pre.contains(1920) and not pre.contains(1940)


def test_content_levels_are_totally_ordered():
    order = [ContentLevel.NONE, ContentLevel.MILD, ContentLevel.MODERATE, ContentLevel.SEVERE]
    assert [lvl.rank for lvl in order] == [0, 1, 2, 3]
    assert ContentLevel.SEVERE.exceeds(ContentLevel.MILD)
    assert not ContentLevel.MILD.exceeds(ContentLevel.MILD)
    assert ContentLevel.parse("moderate") is ContentLevel.MODERATE
    assert ContentLevel.parse("") is None
    assert ContentLevel.coerce("weird") is None


def test_certifications():
    assert normalize_certification("pg13") == "PG-13"
    assert normalize_certification("NR") is None
    assert certification_rank("R") > certification_rank("PG-13")


def test_with_page_keeps_everything_else():
    q = make_query(member_ids=["a"], era="Pre-40s", parental={"violence": "Mild"}, max_runtime=100)
    q2 = q.with_page(3)
    assert q2.page == 3
    assert q2.era == q.era
    assert q2.parental == q.parental
    assert q2.max_runtime == 100


def test_rating_scores_outside_range_are_rejected():
    with pytest.raises(ValueError):
        RatingRecord(member_id="a", movie_id=1, score=101)
