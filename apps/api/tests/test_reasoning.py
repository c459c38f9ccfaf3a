import asyncio

import pytest

from apps.api.app.domain import ScoredRecommendation, make_query
from apps.api.app.reasoning import RuleBasedReasoning
from apps.api.app.service import get_tonights_pick
from apps.api.app.sources import InMemoryCandidateSource, InMemoryRatingSource
from apps.api.app.spoiler_lint import SpoilerError, assert_no_spoilers, scrub_reasoning
from apps.api.app.taste import GenrePreference, build_group_profile


class Chatty:
    def reasoning_for(self, recommendations, profile, moods):
        return {r.id: ["Great cast", "The twist at the end is wild", "x" * 400] for r in recommendations}


def test_spoiler_lint_blocks_denylist():
    with pytest.raises(SpoilerError):
        assert_no_spoilers("The killer is the butler all along")
    assert_no_spoilers("A cozy baking competition")


def test_scrub_drops_spoilers_and_trims():
    out = scrub_reasoning(["", "Fun for everyone", "Everyone dies in the final scene", "y" * 500])
    assert out[0] == "Fun for everyone"
    assert len(out) == 2
    assert len(out[1]) == 180


def test_rule_based_reasons_for_group(movie, genres):
    comedy = genres["comedy"]
    profile = build_group_profile(["a", "b"], {"a": [GenrePreference(comedy.id, "Comedy", 90.0, 4)]})
    rec = ScoredRecommendation(movie=movie(1, genres=[comedy], vote_average=8.1), group_fit_score=94, genre_match_score=100,
                               seen_by=["b"], mood_tags=["funny"])
    lines = RuleBasedReasoning().reasoning_for([rec], profile, ["funny"])[1]
    assert lines[0] == "Matches 1 of your group's favorite genre (Comedy)"
    assert "Fits the funny mood" in lines
    assert "Highly rated on TMDB" in lines
    assert "1 member may have seen this" in lines
    for line in lines:
        assert_no_spoilers(line)


def test_solo_wording(movie, genres):
    profile = build_group_profile(["a"], {"a": []})
    rec = ScoredRecommendation(movie=movie(1, vote_average=7.2), group_fit_score=57, genre_match_score=50, seen_by=["a"])
    lines = RuleBasedReasoning().reasoning_for([rec], profile, [])[1]
    assert lines == ["Well reviewed", "You may have seen this"]


def test_reasoning_source_output_is_scrubbed(movie):
    q = make_query(member_ids=["a"])
    pick = asyncio.run(get_tonights_pick(q, InMemoryRatingSource(), InMemoryCandidateSource(movies=[movie(1)]), reasoning=Chatty()))
    lines = pick.recommendations[0].reasoning
    assert lines[0] == "Great cast"
    assert len(lines) == 2 and len(lines[1]) == 180
