import random
from datetime import date

import pytest

from apps.api.app.domain import make_query
from apps.api.app.engine import EngineConfig, explain, recommend, unique_candidates
from apps.api.app.errors import InvalidQuery
from apps.api.app.moods import MOOD_TABLE


def query(members=("a",), **kw):
    return make_query(member_ids=list(members), known_moods=tuple(MOOD_TABLE), **kw)


def _pool(movie, genres, n=25):
    palette = [genres["comedy"], genres["drama"], genres["horror"], genres["action"], genres["romance"]]
    return [
        movie(
            i,
            genres=[palette[i % len(palette)]],
            runtime=80 + (i * 7) % 70,
            release_date=date(1960 + (i * 3) % 60, 1, 1),
            vote_average=round(4.0 + (i * 13 % 50) / 10, 1),
        )
        for i in range(1, n + 1)
    ]


def test_two_members_one_without_ratings(movie, rating, genres):
    comedy = genres["comedy"]
    ratings = [rating("a", i, 90) for i in range(101, 106)]
    index = {i: [comedy] for i in range(101, 106)}
    pick = recommend(query(["a", "b"]), ratings, index, [movie(1, genres=[comedy])])
    shared = pick.profile.shared_genres
    assert len(shared) == 1
    assert shared[0].genre_id == comedy.id
    assert shared[0].avg_score == pytest.approx(90.0)
    assert shared[0].rating_count == 5


def test_runtime_ceiling_keeps_only_short_movie(movie):
    pick = recommend(query(max_runtime=90), [], {}, [movie(1, runtime=95), movie(2, runtime=88)])
    assert [r.id for r in pick.recommendations] == [2]


def test_parental_ceiling_excludes_severe_keeps_unknown(movie):
    pool = [movie(1, guide={"violence": "Severe"}), movie(2)]
    pick = recommend(query(parental={"violence": "Mild"}), [], {}, pool)
    assert [r.id for r in pick.recommendations] == [2]


def test_era_wins_over_start_year(movie):
    pool = [movie(1, release_date=date(1995, 5, 5)), movie(2, release_date=date(2015, 5, 5))]
    pick = recommend(query(era="1990s", start_year=2010), [], {}, pool)
    assert [r.id for r in pick.recommendations] == [1]


def test_page_past_end_is_empty(movie):
    pool = [movie(i) for i in range(1, 13)]
    pick = recommend(query(page=5), [], {}, pool)
    assert pick.recommendations == []
    assert pick.page.total == 12
    assert not pick.page.has_more


def test_deterministic_and_input_order_independent(movie, rating, genres):
    pool = _pool(movie, genres)
    ratings = [rating("a", 1, 80), rating("a", 2, 40), rating("b", 3, 95)]
    index = {1: [genres["drama"]], 2: [genres["horror"]], 3: [genres["action"]]}
    q = query(["a", "b"])
    first = [r.id for r in recommend(q, ratings, index, pool).recommendations]
    shuffled = list(pool)
    random.Random(7).shuffle(shuffled)
    second = [r.id for r in recommend(q, list(reversed(ratings)), index, shuffled).recommendations]
    assert first == second


def test_shuffle_pages_are_disjoint_and_cover_survivors(movie, genres):
    pool = _pool(movie, genres, n=25)
    q = query()
    ids = []
    for page in (1, 2, 3):
        ids += [r.id for r in recommend(q.with_page(page), [], {}, pool).recommendations]
    assert len(ids) == len(set(ids)) == 25


def test_every_result_satisfies_every_constraint(movie, genres):
    pool = _pool(movie, genres, n=40)
    q = query(max_runtime=120, era="1990s", moods=["emotional"])
    pick = recommend(q, [], {}, pool)
    for rec in pick.recommendations:
        m = rec.movie
        assert m.runtime <= 120
        assert 1990 <= m.release_year <= 1999
        assert m.genre_ids & MOOD_TABLE["emotional"].genre_ids


def test_cold_start_uses_neutral_genre_match(movie):
    pick = recommend(query(["a", "b"]), [], {}, [movie(1, vote_average=8.0)])
    assert pick.profile.is_cold_start
    rec = pick.recommendations[0]
    assert rec.genre_match_score == 50
    # 0.7 * 50 + 0.3 * 80 = 59
    assert rec.group_fit_score == 59


def test_seen_by_annotates_without_excluding(movie, rating, genres):
    ratings = [rating("b", 1, 20), rating("a", 1, 90)]
    index = {1: [genres["comedy"]]}
    pick = recommend(query(["a", "b"]), ratings, index, [movie(1), movie(2)])
    by_id = {r.id: r for r in pick.recommendations}
    assert by_id[1].seen_by == ["a", "b"]
    assert by_id[2].seen_by == []


def test_exclude_seen_by_all_when_configured(movie, rating, genres):
    ratings = [rating("a", 1, 80), rating("b", 1, 70), rating("a", 2, 60)]
    config = EngineConfig(exclude_seen_by_all=True)
    pick = recommend(query(["a", "b"]), ratings, {}, [movie(1), movie(2)], config)
    assert [r.id for r in pick.recommendations] == [2]
    assert pick.filter_drops["seen_by_all"] == 1


def test_duplicate_candidates_collapse(movie):
    assert [m.id for m in unique_candidates([movie(1), movie(2), movie(1)])] == [1, 2]
    pick = recommend(query(), [], {}, [movie(1), movie(1)])
    assert [r.id for r in pick.recommendations] == [1]


def test_franchise_dedupe_when_configured(movie):
    pool = [movie(1, title="Iron Pursuit"), movie(2, title="Iron Pursuit 2", vote_average=8.0)]
    pick = recommend(query(), [], {}, pool, EngineConfig(dedupe_franchises=True))
    assert [r.id for r in pick.recommendations] == [2]


def test_unknown_mood_in_config_is_rejected(movie):
    q = query(moods=["funny"])
    with pytest.raises(InvalidQuery):
        recommend(q, [], {}, [movie(1)], EngineConfig(moods={}))


def test_filter_drops_are_counted(movie):
    pool = [movie(1, runtime=200), movie(2, runtime=None), movie(3, genres=[], vote_average=5.0)]
    pick = recommend(query(max_runtime=100, moods=["funny"]), [], {}, pool)
    assert pick.recommendations == []
    assert pick.filter_drops["runtime"] == 2
    assert pick.filter_drops["mood"] == 1


def test_explain_reports_violations_and_scores(movie, genres):
    pool = [movie(1, runtime=200), movie(2, genres=[genres["comedy"]])]
    rows = explain(query(max_runtime=120, moods=["funny"]), [], {}, pool)
    assert rows[0]["id"] == 2 and rows[0]["violations"] == [] and rows[0]["moodMatch"]
    assert rows[1]["violations"] == ["runtime"]
    assert {"genreMatchScore", "groupFitScore", "seenBy", "title"} <= set(rows[0])
