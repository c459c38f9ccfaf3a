import pytest

from apps.api.app.moods import MOOD_TABLE, hard_avoided, mood_tags, passes_moods, preferred_genre_ids, rules_for
from apps.api.app.scoring import (
    ScoringWeights,
    clamp_score,
    genre_match_score,
    group_fit_score,
    round_half_up,
    score_candidates,
)
from apps.api.app.taste import GenrePreference, build_group_profile


def _profile(*prefs):
    return build_group_profile(["a"], {"a": list(prefs)})


def test_fun_mood_matches_comedy_and_refuses_horror(movie, genres):
    fun = rules_for(["fun"])
    assert passes_moods(movie(1, genres=[genres["comedy"]]), fun)
    assert not passes_moods(movie(2, genres=[genres["comedy"], genres["horror"]]), fun)
    assert not passes_moods(movie(3, genres=[genres["drama"]]), fun)


def test_multiple_moods_are_or_and_avoid_needs_every_mood(movie, genres):
    rules = rules_for(["fun", "scary"])
    # "scary" does not refuse horror, so the combined selection does not either
    assert hard_avoided(rules) == frozenset()
    assert passes_moods(movie(1, genres=[genres["horror"]]), rules)
    assert passes_moods(movie(2, genres=[genres["comedy"]]), rules)


def test_acclaimed_uses_vote_floor(movie, genres):
    rules = rules_for(["acclaimed"])
    assert passes_moods(movie(1, genres=[genres["drama"]], vote_average=7.0), rules)
    assert not passes_moods(movie(2, genres=[genres["drama"]], vote_average=6.9), rules)
    assert not passes_moods(movie(3, genres=[genres["drama"]], vote_average=None), rules)


def test_no_moods_passes_everything(movie, genres):
    assert passes_moods(movie(1, genres=[genres["war"]]), [])


def test_mood_tags_and_preferred_genres(movie, genres):
    tags = mood_tags(movie(1, genres=[genres["comedy"]], vote_average=8.0))
    assert "funny" in tags and "fun" in tags and "acclaimed" in tags
    assert "scary" not in tags
    assert preferred_genre_ids(["funny"]) == sorted(MOOD_TABLE["funny"].genre_ids)


def test_round_half_up_and_clamp():
    assert round_half_up(84.5) == 85
    assert round_half_up(84.49) == 84
    assert clamp_score(130) == 100
    assert clamp_score(-3) == 0


def test_genre_match_rank_weighted(movie, genres):
    profile = _profile(
        GenrePreference(genres["comedy"].id, "Comedy", 80.0, 3),
        GenrePreference(genres["drama"].id, "Drama", 80.0, 3),
    )
    assert genre_match_score(movie(1, genres=[genres["comedy"]]), profile) == 50
    assert genre_match_score(movie(2, genres=[genres["comedy"], genres["drama"]]), profile) == 100
    assert genre_match_score(movie(3, genres=[genres["horror"]]), profile) == 0


def test_genre_match_neutral_when_profile_empty(movie):
    assert genre_match_score(movie(1), _profile(), neutral=50) == 50


def test_group_fit_blend(movie):
    w = ScoringWeights()
    # 0.7 * 100 + 0.3 * 90 = 97
    assert group_fit_score(100, movie(1, vote_average=9.0), w) == 97
    # missing vote average counts as zero
    assert group_fit_score(100, movie(2, vote_average=None), w) == 70
    assert group_fit_score(0, movie(3, vote_average=0.0), w) == 0


def test_scores_always_within_bounds(movie, genres):
    profile = _profile(GenrePreference(genres["comedy"].id, "Comedy", 100.0, 50))
    pool = [movie(i, genres=[genres["comedy"]], vote_average=va) for i, va in enumerate([0.0, 5.5, 10.0, 12.0, None], 1)]
    scored, _ = score_candidates(pool, profile, [])
    for rec in scored:
        assert 0 <= rec.genre_match_score <= 100
        assert 0 <= rec.group_fit_score <= 100


def test_score_candidates_counts_mood_drops(movie, genres):
    pool = [movie(1, genres=[genres["comedy"]]), movie(2, genres=[genres["drama"]], vote_average=5.0)]
    scored, dropped = score_candidates(pool, _profile(), ["funny"])
    assert [r.id for r in scored] == [1]
    assert dropped == 1


def test_upstream_reasoning_carried_through(movie):
    scored, _ = score_candidates([movie(1, reasoning=("Because you liked X",))], _profile(), [])
    assert scored[0].reasoning == ["Because you liked X"]


@pytest.mark.parametrize("weights", [ScoringWeights(0.5, 0.5), ScoringWeights(1.0, 0.0)])
def test_custom_weights(movie, weights):
    fit = group_fit_score(60, movie(1, vote_average=6.0), weights)
    assert fit == round_half_up(weights.genre_weight * 60 + weights.vote_weight * 60)
