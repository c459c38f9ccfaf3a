from datetime import date, datetime

import pytest

from apps.api.app.content import ParentalGuideInfo
from apps.api.app.domain import Genre, MovieCandidate, RatingRecord

COMEDY = Genre(35, "Comedy")
DRAMA = Genre(18, "Drama")
HORROR = Genre(27, "Horror")
ACTION = Genre(28, "Action")
THRILLER = Genre(53, "Thriller")
ANIMATION = Genre(16, "Animation")
FAMILY = Genre(10751, "Family")
ROMANCE = Genre(10749, "Romance")
WAR = Genre(10752, "War")


def make_movie(
    id,
    genres=(COMEDY,),
    runtime=100,
    release_date=date(2015, 6, 1),
    certification="PG-13",
    vote_average=7.0,
    title=None,
    providers=(),
    guide=None,
    **kw,
):
    return MovieCandidate(
        id=id,
        title=title or f"Movie {id}",
        genres=tuple(genres),
        runtime=runtime,
        release_date=release_date,
        certification=certification,
        vote_average=vote_average,
        vote_count=kw.pop("vote_count", 100),
        popularity=kw.pop("popularity", 10.0),
        provider_ids=frozenset(providers),
        parental_guide=ParentalGuideInfo.from_raw(guide) if guide is not None else None,
        **kw,
    )


def rate(member, movie_id, score, day=1):
    return RatingRecord(member_id=member, movie_id=movie_id, score=score, rated_at=datetime(2024, 1, day))


@pytest.fixture
def movie():
    return make_movie


@pytest.fixture
def rating():
    return rate


@pytest.fixture
def genres():
    return {
        "comedy": COMEDY,
        "drama": DRAMA,
        "horror": HORROR,
        "action": ACTION,
        "thriller": THRILLER,
        "animation": ANIMATION,
        "family": FAMILY,
        "romance": ROMANCE,
        "war": WAR,
    }
